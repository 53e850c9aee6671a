from app.database.connection import Database
from app.database.models import DebugArtifact


class ArtifactRepository:
    """Metadata rows for persisted debug artifacts (debug_artifacts table)."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def insert(self, artifact: DebugArtifact) -> int:
        """Insert a metadata row and return its id."""
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO debug_artifacts
                    (user_id, original_filename, kind, tag, file_size, storage_path)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    RETURNING id
                    """,
                    (
                        artifact.user_id,
                        artifact.original_filename,
                        artifact.kind,
                        artifact.tag,
                        artifact.file_size,
                        artifact.storage_path,
                    ),
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            raise RuntimeError("INSERT into debug_artifacts returned no id")
        return int(row[0])

    def delete_beyond_limit(self, max_per_kind: int) -> list[str]:
        """Drop the oldest rows of each kind past the cap.

        Returns:
            Storage paths of the removed rows, for blob cleanup.
        """
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    DELETE FROM debug_artifacts
                    WHERE id IN (
                        SELECT id FROM (
                            SELECT id, ROW_NUMBER() OVER (
                                PARTITION BY kind ORDER BY created_at DESC, id DESC
                            ) AS rank
                            FROM debug_artifacts
                        ) ranked
                        WHERE ranked.rank > %s
                    )
                    RETURNING storage_path
                    """,
                    (max_per_kind,),
                )
                rows = cur.fetchall()
            conn.commit()
        return [row[0] for row in rows]

    def list_for_user(self, user_id: str) -> list[DebugArtifact]:
        """List a user's artifacts, newest first."""
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT id, user_id, original_filename, kind, tag,
                           file_size, storage_path, created_at
                    FROM debug_artifacts
                    WHERE user_id = %s
                    ORDER BY created_at DESC, id DESC
                    """,
                    (user_id,),
                )
                rows = cur.fetchall()
        return [
            DebugArtifact(
                id=row[0],
                user_id=row[1],
                original_filename=row[2],
                kind=row[3],
                tag=row[4],
                file_size=row[5],
                storage_path=row[6],
                created_at=row[7],
            )
            for row in rows
        ]
