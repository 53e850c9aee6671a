from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg_pool import ConnectionPool

from app.config.settings import Settings


def build_conninfo(settings: Settings) -> str:
    """Render libpq connection info from settings."""
    return (
        f"host={settings.db_host} "
        f"port={settings.db_port} "
        f"dbname={settings.db_database} "
        f"user={settings.db_username} "
        f"password={settings.db_password}"
    )


class Database:
    """Owns the connection pool; handed explicitly to every repository."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    @classmethod
    def connect(cls, settings: Settings) -> "Database":
        pool = ConnectionPool(
            build_conninfo(settings),
            min_size=1,
            max_size=settings.db_pool_max_size,
            open=True,
        )
        return cls(pool)

    def close(self) -> None:
        """Close the underlying pool."""
        self._pool.close()

    @contextmanager
    def connection(self) -> Generator[psycopg.Connection[Any], None, None]:
        """Yield a pooled connection. Caller manages commit/rollback."""
        with self._pool.connection() as conn:
            yield conn
