from app.database.connection import Database


class ExtractionLogRepository:
    """Audit trail of extraction attempts (extraction_logs table)."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def record(
        self,
        *,
        upload_id: int,
        user_id: str,
        file_name: str,
        file_size: int,
        success: bool,
        failure_kind: str | None,
        processing_time_ms: int,
    ) -> None:
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO extraction_logs
                (upload_id, user_id, file_name, file_size, success,
                 failure_kind, processing_time_ms)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    upload_id,
                    user_id,
                    file_name,
                    file_size,
                    success,
                    failure_kind,
                    processing_time_ms,
                ),
            )
            conn.commit()
