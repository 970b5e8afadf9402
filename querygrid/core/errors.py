from __future__ import annotations


class QueryError(Exception):
    """Base class for every error raised while building a query."""

    kind = "query_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ArgumentError(QueryError, ValueError):
    kind = "argument_error"


class SchemaError(QueryError):
    kind = "schema_error"


class ValueParseError(QueryError, ValueError):
    kind = "value_parse_error"

    def __init__(self, type_name: str, literal: str):
        super().__init__(f'Value "{literal}" cannot be parsed to type {type_name}.')
        self.type_name = type_name
        self.literal = literal


class DeserializationError(QueryError):
    kind = "deserialization_error"


def first_validation_message(exc) -> str:
    """Turns a pydantic ``ValidationError`` into one readable line."""
    try:
        errors = exc.errors()
    except AttributeError:
        return str(exc)
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "__root__")
    message = str(first.get("msg") or "invalid value")
    # pydantic prefixes messages of ValueError raised from validators
    message = message.removeprefix("Value error, ")
    return f"{location}: {message}" if location else message
