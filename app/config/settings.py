from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# token, asset reservation, upload, job creation, download
_FIXED_REQUESTS_PER_EXTRACTION = 5


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "docextract"
    db_username: str = "docextract"
    db_password: str = "secret"
    db_pool_max_size: int = 10

    batch_size: int = 5
    job_poll_interval_seconds: int = 5
    stale_job_timeout_seconds: int = 3600
    supported_file_types: list[str] = ["application/pdf"]

    extraction_token_url: str = "https://ims-na1.adobelogin.com/ims/token/v3"
    extraction_api_base_url: str = "https://pdf-services.adobe.io"
    extraction_scope: str = "openid,AdobeID,DCAPI"
    extraction_http_timeout_seconds: int = 60

    poll_interval_seconds: float = 1.0
    poll_max_attempts: int = 30

    storage_disk: str = "local"
    artifacts_root: str = "/app/files/debug"
    artifacts_public_base_url: str = ""
    artifact_max_per_kind: int = 100
    artifact_cleanup_every: int = 10

    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = ["*"]

    @property
    def max_extraction_seconds(self) -> float:
        """Upper bound on one extraction: every request hits its timeout, plus poll sleeps."""
        requests = _FIXED_REQUESTS_PER_EXTRACTION + self.poll_max_attempts
        return (
            requests * self.extraction_http_timeout_seconds
            + self.poll_max_attempts * self.poll_interval_seconds
        )

    @model_validator(mode="after")
    def _stale_timeout_exceeds_extraction(self) -> "Settings":
        if self.stale_job_timeout_seconds <= self.max_extraction_seconds:
            raise ValueError(
                f"stale_job_timeout_seconds ({self.stale_job_timeout_seconds}) must exceed "
                f"the longest possible extraction ({self.max_extraction_seconds:.0f}s)"
            )
        return self
