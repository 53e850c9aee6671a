import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from app.config.settings import Settings
from app.database.connection import Database, build_conninfo

SCHEMA_PATH = Path(__file__).parent / "schema.sql"
TABLES = (
    "uploads",
    "site_settings",
    "extraction_credentials",
    "extraction_usage",
    "debug_artifacts",
    "extraction_logs",
)


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "docextract_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def database(test_settings: Settings) -> Generator[Database, None, None]:
    try:
        with psycopg.connect(build_conninfo(test_settings), connect_timeout=3) as conn:
            conn.execute(SCHEMA_PATH.read_text())
            conn.commit()
    except Exception as e:
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a disposable database"
        )
    db = Database.connect(test_settings)
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def db_conn(database: Database) -> Generator[psycopg.Connection[Any], None, None]:
    with database.connection() as conn:
        yield conn


@pytest.fixture(autouse=True)
def clean_tables(request: pytest.FixtureRequest) -> Generator[None, None, None]:
    """Start every integration test from empty tables."""
    if "database" not in request.fixturenames:
        yield
        return
    database: Database = request.getfixturevalue("database")
    with database.connection() as conn:
        conn.execute(f"TRUNCATE {', '.join(TABLES)} RESTART IDENTITY")
        conn.commit()
    yield


@pytest.fixture
def seed_upload(db_conn: psycopg.Connection[Any]) -> Callable[..., int]:
    """Insert an upload row and return its id."""

    def _seed(
        status: str = "queued",
        file_type: str = "application/pdf",
        content: bytes | None = b"%PDF-1.7 test",
        file_name: str = "cv.pdf",
        user_id: str = "42",
        locked_seconds_ago: int | None = None,
    ) -> int:
        with db_conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO uploads
                (user_id, file_name, file_type, file_size, file_content,
                 processing_status, locked_at)
                VALUES (%s, %s, %s, %s, %s, %s,
                        CASE WHEN %s::int IS NULL THEN NULL
                             ELSE NOW() - make_interval(secs => %s::int) END)
                RETURNING id
                """,
                (
                    user_id,
                    file_name,
                    file_type,
                    None if content is None else len(content),
                    content,
                    status,
                    locked_seconds_ago,
                    locked_seconds_ago,
                ),
            )
            row = cur.fetchone()
            assert row is not None
        db_conn.commit()
        return int(row[0])

    return _seed


@pytest.fixture
def upload_row(db_conn: psycopg.Connection[Any]) -> Callable[[int], tuple[Any, ...]]:
    """Read back status, text and error of an upload."""

    def _read(upload_id: int) -> tuple[Any, ...]:
        with db_conn.cursor() as cur:
            cur.execute(
                """
                SELECT processing_status, extracted_text, error_message, locked_at
                FROM uploads WHERE id = %s
                """,
                (upload_id,),
            )
            row = cur.fetchone()
        db_conn.commit()
        assert row is not None
        return tuple(row)

    return _read
