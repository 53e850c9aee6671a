from psycopg.rows import dict_row

from app.database.connection import Database
from app.database.models import ExtractionCredentials, SiteSettings


class SettingsRepository:
    """Reads runtime switches and the active extraction credentials."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def get_site_settings(self) -> SiteSettings:
        """Fetch the site_settings row. Missing row means extraction is off."""
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT extraction_enabled, debug_mode, monthly_limit
                    FROM site_settings
                    ORDER BY id
                    LIMIT 1
                    """
                )
                row = cur.fetchone()

        if row is None:
            return SiteSettings()

        return SiteSettings(
            extraction_enabled=bool(row["extraction_enabled"]),
            debug_mode=bool(row["debug_mode"]),
            monthly_limit=int(row["monthly_limit"] or 0),
        )

    def get_active_credentials(self) -> ExtractionCredentials | None:
        """Fetch the active credentials row, or None if none is configured."""
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT client_id, client_secret, organization_id
                    FROM extraction_credentials
                    WHERE is_active
                    ORDER BY updated_at DESC
                    LIMIT 1
                    """
                )
                row = cur.fetchone()

        if row is None or not row["client_id"] or not row["client_secret"]:
            return None

        return ExtractionCredentials(
            client_id=row["client_id"],
            client_secret=row["client_secret"],
            organization_id=row["organization_id"] or "",
        )
