from app.database.connection import Database


class UsageRepository:
    """Monthly extraction usage counter (extraction_usage table)."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def try_increment(self, period: str, ceiling: int) -> int | None:
        """Increment the counter for a period if it is below the ceiling.

        A single upsert: the first call of a period creates the row at 1,
        later calls only update while the stored count is under the ceiling.

        Returns:
            The new count, or None when the ceiling was already reached.
        """
        if ceiling <= 0:
            return None
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO extraction_usage (month_year, api_calls_count)
                    VALUES (%s, 1)
                    ON CONFLICT (month_year) DO UPDATE
                    SET api_calls_count = extraction_usage.api_calls_count + 1,
                        updated_at = NOW()
                    WHERE extraction_usage.api_calls_count < %s
                    RETURNING api_calls_count
                    """,
                    (period, ceiling),
                )
                row = cur.fetchone()
            conn.commit()
        return None if row is None else int(row[0])

    def current(self, period: str) -> int:
        """Current count for a period (0 when nothing was consumed yet)."""
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT api_calls_count FROM extraction_usage WHERE month_year = %s",
                    (period,),
                )
                row = cur.fetchone()
        return 0 if row is None else int(row[0])
