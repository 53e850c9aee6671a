from psycopg.rows import dict_row

from app.database.connection import Database
from app.database.models import UploadJob, UploadStatus


class JobRepository:
    """Database operations for the uploads table.

    Every status change is a single conditional UPDATE so that concurrent
    batch invocations never process the same upload twice.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    def find_pending_ids(self, limit: int, file_types: list[str]) -> list[int]:
        """Return ids of queued uploads of a supported type, oldest first."""
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT id
                    FROM uploads
                    WHERE processing_status = %s
                      AND file_type = ANY(%s)
                      AND file_content IS NOT NULL
                    ORDER BY created_at, id
                    LIMIT %s
                    """,
                    (UploadStatus.QUEUED.value, file_types, limit),
                )
                rows = cur.fetchall()
        return [row[0] for row in rows]

    def claim(self, job_id: int) -> UploadJob | None:
        """Move an upload from queued to processing.

        Returns None when another invocation already claimed it.
        """
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    UPDATE uploads
                    SET processing_status = %s, locked_at = NOW(), updated_at = NOW()
                    WHERE id = %s AND processing_status = %s
                    RETURNING id, user_id, file_name, file_type, file_size,
                              file_content, processing_status, locked_at, created_at
                    """,
                    (UploadStatus.PROCESSING.value, job_id, UploadStatus.QUEUED.value),
                )
                row = cur.fetchone()
            conn.commit()

        if row is None:
            return None

        content = bytes(row["file_content"] or b"")
        return UploadJob(
            id=row["id"],
            user_id=str(row["user_id"]),
            file_name=row["file_name"],
            file_type=row["file_type"],
            status=row["processing_status"],
            file_content=content,
            file_size=row["file_size"] or len(content),
            locked_at=row["locked_at"],
            created_at=row["created_at"],
        )

    def mark_completed(self, job_id: int, extracted_text: str) -> bool:
        """Record the extracted text. Only a processing upload can complete."""
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE uploads
                    SET processing_status = %s, extracted_text = %s,
                        error_message = NULL, updated_at = NOW()
                    WHERE id = %s AND processing_status = %s
                    """,
                    (
                        UploadStatus.COMPLETED.value,
                        extracted_text,
                        job_id,
                        UploadStatus.PROCESSING.value,
                    ),
                )
                updated = cur.rowcount == 1
            conn.commit()
        return updated

    def mark_failed(self, job_id: int, error: str) -> bool:
        """Record a user-facing failure. Only a processing upload can fail."""
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE uploads
                    SET processing_status = %s, error_message = %s,
                        extracted_text = NULL, updated_at = NOW()
                    WHERE id = %s AND processing_status = %s
                    """,
                    (
                        UploadStatus.FAILED.value,
                        error,
                        job_id,
                        UploadStatus.PROCESSING.value,
                    ),
                )
                updated = cur.rowcount == 1
            conn.commit()
        return updated

    def fail_stale(self, older_than_seconds: int, error: str) -> list[int]:
        """Fail uploads stuck in processing longer than the given age."""
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE uploads
                    SET processing_status = %s, error_message = %s,
                        extracted_text = NULL, updated_at = NOW()
                    WHERE processing_status = %s
                      AND locked_at < NOW() - make_interval(secs => %s)
                    RETURNING id
                    """,
                    (
                        UploadStatus.FAILED.value,
                        error,
                        UploadStatus.PROCESSING.value,
                        older_than_seconds,
                    ),
                )
                rows = cur.fetchall()
            conn.commit()
        return [row[0] for row in rows]

    def find_by_id(self, job_id: int) -> UploadJob | None:
        """Find an upload by ID. Useful for tests."""
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, user_id, file_name, file_type, file_size,
                           processing_status, extracted_text, error_message,
                           locked_at, created_at, updated_at
                    FROM uploads
                    WHERE id = %s
                    """,
                    (job_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None

        return UploadJob(
            id=row["id"],
            user_id=str(row["user_id"]),
            file_name=row["file_name"],
            file_type=row["file_type"],
            status=row["processing_status"],
            file_size=row["file_size"] or 0,
            extracted_text=row["extracted_text"],
            error_message=row["error_message"],
            locked_at=row["locked_at"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
