from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from querygrid.core.errors import ArgumentError, first_validation_message


class SortDefault(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    property_path: str = Field(alias="property", min_length=1)
    ascending: bool = True


class QueryDefaults(BaseSettings):
    """Read-only defaults consumed when query models are constructed.

    Values come from ``QUERYGRID_*`` environment variables (or a ``.env``
    file). Instances are passed explicitly to the query model and to the
    builder; nothing in the package keeps a shared instance.
    """

    model_config = SettingsConfigDict(
        env_prefix="QUERYGRID_",
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
        frozen=True,
    )

    DEFAULT_PAGE: int = 1
    DEFAULT_ROWS: int = 10
    MAX_ROWS: int = 50
    # JSON list in the environment: [{"property": "Name", "ascending": true}]
    DEFAULT_SORT: List[SortDefault] = []
    # When false, evaluate() returns every filtered row and only reports pagination.
    SLICE_RESULTS: bool = True

    @model_validator(mode="after")
    def _check_limits(self) -> "QueryDefaults":
        if self.DEFAULT_PAGE <= 0:
            raise ValueError("Page number must be greater than zero.")
        if self.MAX_ROWS <= 0:
            raise ValueError("Maximum rows must be greater than zero.")
        if self.DEFAULT_ROWS <= 0:
            raise ValueError("Rows per page must be greater than zero.")
        if self.DEFAULT_ROWS > self.MAX_ROWS:
            raise ValueError(f"Rows cannot exceed maximum rows ({self.MAX_ROWS}).")
        return self

    @classmethod
    def configure(cls, **overrides: Any) -> "QueryDefaults":
        """Builds validated defaults, e.g. ``QueryDefaults.configure(max_rows=100)``."""
        values = {key.upper(): value for key, value in overrides.items()}
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ArgumentError(first_validation_message(exc)) from exc


def resolve_defaults(defaults: Optional[QueryDefaults] = None) -> QueryDefaults:
    if defaults is not None:
        return defaults
    return QueryDefaults()
