import pytest

from app.database.models import ExtractionCredentials, UploadJob
from tests.helpers import build_zip, structured_archive


@pytest.fixture()
def hello_world_archive() -> bytes:
    return structured_archive([{"Text": "Hello"}, {"Text": "world"}])


@pytest.fixture()
def archive_without_structured_data() -> bytes:
    return build_zip({"tables/fileoutpart0.xlsx": b"not relevant"})


@pytest.fixture()
def credentials() -> ExtractionCredentials:
    return ExtractionCredentials(client_id="client-1", client_secret="s3cret", organization_id="org-1")


@pytest.fixture()
def upload_job() -> UploadJob:
    return UploadJob(
        id=7,
        user_id="42",
        file_name="My CV (final).pdf",
        file_type="application/pdf",
        status="processing",
        file_content=b"%PDF-1.7 fake",
        file_size=13,
    )
