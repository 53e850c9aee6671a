import time
from collections.abc import Callable
from typing import Any

import httpx

from app.config.settings import Settings
from app.database.models import ExtractionCredentials
from app.extraction.exceptions import (
    AuthenticationError,
    ExtractionError,
    JobFailedError,
    JobRejectedError,
    PollTimeoutError,
    TransportError,
)
from app.extraction.models import (
    ExtractionAsset,
    ExtractionJobHandle,
    ExtractionResult,
    FailureKind,
)
from app.logging.logger import Log

POLL_INTERVAL_SECONDS = 1.0
POLL_MAX_ATTEMPTS = 30

_STATUS_DONE = "done"
_STATUS_FAILED = "failed"


class ExtractionClient:
    """Drives the extraction service: reserve asset, upload, create job, poll, download.

    Every call authenticates with a fresh client-credentials token. Failures
    are classified and returned as an ExtractionResult; no exception leaves
    extract().
    """

    def __init__(
        self,
        http: httpx.Client,
        *,
        token_url: str,
        api_base_url: str,
        scope: str,
        poll_interval_seconds: float = POLL_INTERVAL_SECONDS,
        poll_max_attempts: int = POLL_MAX_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._http = http
        self._token_url = token_url
        self._api_base_url = api_base_url.rstrip("/")
        self._scope = scope
        self._poll_interval_seconds = poll_interval_seconds
        self._poll_max_attempts = poll_max_attempts
        self._sleep = sleep

    def extract(
        self,
        content: bytes,
        file_name: str,
        credentials: ExtractionCredentials,
        media_type: str = "application/pdf",
        debug: bool = False,
    ) -> ExtractionResult:
        """Convert a document and return the raw result archive."""
        Log.info(f"Extracting {file_name} ({len(content)} bytes)")
        if debug:
            Log.info(f"Input magic bytes for {file_name}: {Log.magic(content)}")
        try:
            token = self._fetch_access_token(credentials)
            asset = self._reserve_asset(token, credentials, media_type)
            self._upload(asset, content, media_type)
            handle = self._create_job(token, credentials, asset, debug)
            download_uri = self._poll(token, credentials, handle)
            data = self._download(download_uri)
        except ExtractionError as exc:
            Log.error(f"Extraction of {file_name} failed [{exc.kind.value}]: {exc}")
            return ExtractionResult.failed(exc.kind, str(exc))
        except httpx.HTTPError as exc:
            Log.error(f"Extraction of {file_name} failed [transport]: {exc!r}")
            return ExtractionResult.failed(FailureKind.TRANSPORT, repr(exc))

        Log.info(f"Downloaded result archive for {file_name}: {len(data)} bytes")
        if debug:
            Log.info(f"Result magic bytes for {file_name}: {Log.magic(data)}")
        return ExtractionResult.success(data)

    def _fetch_access_token(self, credentials: ExtractionCredentials) -> str:
        response = self._http.post(
            self._token_url,
            data={
                "client_id": credentials.client_id,
                "client_secret": credentials.client_secret,
                "grant_type": "client_credentials",
                "scope": self._scope,
            },
        )
        if not response.is_success:
            raise AuthenticationError(
                f"Token request failed: {response.status_code} - {Log.snippet(response.text)}"
            )
        token = _json_body(response, AuthenticationError).get("access_token")
        if not token:
            raise AuthenticationError("Token response has no access_token")
        return str(token)

    def _reserve_asset(
        self,
        token: str,
        credentials: ExtractionCredentials,
        media_type: str,
    ) -> ExtractionAsset:
        response = self._http.post(
            f"{self._api_base_url}/assets",
            headers=self._auth_headers(token, credentials),
            json={"mediaType": media_type},
        )
        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"Asset reservation unauthorized: {response.status_code} - "
                f"{Log.snippet(response.text)}"
            )
        if not response.is_success:
            raise TransportError(
                f"Asset reservation failed: {response.status_code} - {Log.snippet(response.text)}"
            )
        body = _json_body(response, TransportError)
        asset_id, upload_uri = body.get("assetID"), body.get("uploadUri")
        if not asset_id or not upload_uri:
            raise TransportError("Asset reservation response lacks assetID or uploadUri")
        Log.info(f"Reserved asset {asset_id}")
        return ExtractionAsset(asset_id=str(asset_id), upload_uri=str(upload_uri))

    def _upload(self, asset: ExtractionAsset, content: bytes, media_type: str) -> None:
        response = self._http.put(
            asset.upload_uri,
            headers={"Content-Type": media_type},
            content=content,
        )
        if not response.is_success:
            raise TransportError(
                f"Upload of asset {asset.asset_id} failed: {response.status_code} - "
                f"{Log.snippet(response.text)}"
            )
        Log.info(f"Uploaded {len(content)} bytes to asset {asset.asset_id}")

    def _create_job(
        self,
        token: str,
        credentials: ExtractionCredentials,
        asset: ExtractionAsset,
        debug: bool,
    ) -> ExtractionJobHandle:
        payload = {
            "assetID": asset.asset_id,
            "getCharBounds": False,
            "includeStyling": False,
            "elementsToExtract": ["text"],
        }
        if debug:
            Log.info(f"Job creation payload: {payload}")
        response = self._http.post(
            f"{self._api_base_url}/operation/extractpdf",
            headers=self._auth_headers(token, credentials),
            json=payload,
        )
        if debug:
            Log.info(f"Job creation response headers: {dict(response.headers)}")
        if not response.is_success:
            raise JobRejectedError(
                f"Job creation rejected: {response.status_code} - {Log.snippet(response.text)}"
            )
        location = response.headers.get("location")
        if not location:
            raise JobRejectedError(
                f"Job creation returned {response.status_code} without a location header"
            )
        return ExtractionJobHandle(location=location)

    def _poll(
        self,
        token: str,
        credentials: ExtractionCredentials,
        handle: ExtractionJobHandle,
    ) -> str:
        """Poll the job on a fixed interval; return the result download URI."""
        for attempt in range(1, self._poll_max_attempts + 1):
            self._sleep(self._poll_interval_seconds)
            response = self._http.get(
                handle.location,
                headers=self._auth_headers(token, credentials),
            )
            if not response.is_success:
                raise TransportError(
                    f"Job status check failed: {response.status_code} - "
                    f"{Log.snippet(response.text)}"
                )
            body = _json_body(response, TransportError)
            status = str(body.get("status", "")).lower()
            if status == _STATUS_DONE:
                asset = body.get("asset")
                download_uri = asset.get("downloadUri") if isinstance(asset, dict) else None
                if not download_uri:
                    raise JobFailedError("Job finished without a download reference")
                Log.info(f"Job finished after {attempt} polls")
                return str(download_uri)
            if status == _STATUS_FAILED:
                raise JobFailedError(f"Job reported failure: {body.get('error') or 'unknown error'}")
            Log.debug(f"Job still running (poll {attempt}/{self._poll_max_attempts})")

        raise PollTimeoutError(
            f"Job not finished after {self._poll_max_attempts} polls "
            f"({self._poll_max_attempts * self._poll_interval_seconds:.0f}s)"
        )

    def _download(self, download_uri: str) -> bytes:
        response = self._http.get(download_uri)
        if not response.is_success:
            raise TransportError(f"Result download failed: {response.status_code}")
        return response.content

    @staticmethod
    def _auth_headers(token: str, credentials: ExtractionCredentials) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "X-API-Key": credentials.client_id,
        }


def _json_body(response: httpx.Response, error_cls: type[ExtractionError]) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError as exc:
        raise error_cls(f"Expected JSON from {response.request.url}: {exc}") from exc
    if not isinstance(body, dict):
        raise error_cls(f"Expected a JSON object from {response.request.url}")
    return body


def build_extraction_client(settings: Settings, http: httpx.Client) -> ExtractionClient:
    """Build an ExtractionClient from application settings."""
    return ExtractionClient(
        http,
        token_url=settings.extraction_token_url,
        api_base_url=settings.extraction_api_base_url,
        scope=settings.extraction_scope,
        poll_interval_seconds=settings.poll_interval_seconds,
        poll_max_attempts=settings.poll_max_attempts,
    )
