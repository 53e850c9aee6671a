from app.extraction.client import ExtractionClient, build_extraction_client
from app.extraction.models import ExtractionResult, FailureKind

__all__ = ["ExtractionClient", "ExtractionResult", "FailureKind", "build_extraction_client"]
