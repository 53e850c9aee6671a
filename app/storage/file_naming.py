import re
from enum import StrEnum
from pathlib import PurePosixPath

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class ArtifactTag(StrEnum):
    """Why an artifact was kept."""

    DOWNLOADED = "downloaded"
    INVALID_ZIP = "invalid_zip"
    EXTRACTION_FAILED = "extraction_failed"
    EXTRACTED = "extracted"


RAW_ARCHIVE_TAGS = frozenset(
    {ArtifactTag.DOWNLOADED, ArtifactTag.INVALID_ZIP, ArtifactTag.EXTRACTION_FAILED}
)


def sanitize_base_name(file_name: str) -> str:
    """Strip directories and extension, collapse unsafe characters to '_'."""
    name = PurePosixPath(file_name.replace("\\", "/")).name
    stem, dot, _ext = name.rpartition(".")
    base = stem if dot and stem else name
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned or "document"


def artifact_file_name(
    user_id: str,
    original_file_name: str,
    tag: ArtifactTag,
    extension: str,
    timestamp_ms: int,
) -> str:
    """Build {userId}_{timestampMillis}_{baseName}_{tag}.{ext}"""
    user_part = _UNSAFE_CHARS.sub("_", str(user_id)) or "anonymous"
    base = sanitize_base_name(original_file_name)
    return f"{user_part}_{timestamp_ms}_{base}_{tag.value}.{extension}"
