from sqlalchemy import event
from sqlalchemy.engine import Engine


def enable_case_sensitive_like(engine: Engine) -> None:
    """Makes ``LIKE`` case-sensitive on every new SQLite connection of ``engine``.

    Contains/StartsWith/EndsWith filters compile to ``LIKE``; SQLite compares
    ASCII case-insensitively by default. Register before the first connect.
    """

    @event.listens_for(engine, "connect")
    def _case_sensitive_like(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA case_sensitive_like = ON")
        cursor.close()
