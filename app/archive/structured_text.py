"""Flattens the structured-content document inside a result archive."""

import io
import json
import zipfile
from collections.abc import Iterator
from typing import Any

from app.archive.exceptions import UnparsableContentError

STRUCTURED_DATA_NAME = "structuredData.json"


def unpack(archive: bytes) -> dict[str, bytes]:
    """Decompress a ZIP held in memory into {entry name: bytes}.

    Raises:
        UnparsableContentError: if the archive cannot be read.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            return {
                info.filename: zf.read(info)
                for info in zf.infolist()
                if not info.is_dir()
            }
    except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, ValueError) as exc:
        raise UnparsableContentError(f"Result archive could not be opened: {exc}") from exc


def find_structured_data(entries: dict[str, bytes]) -> bytes:
    """Locate structuredData.json at the root or any directory depth."""
    if STRUCTURED_DATA_NAME in entries:
        return entries[STRUCTURED_DATA_NAME]
    for name, content in entries.items():
        if name.endswith("/" + STRUCTURED_DATA_NAME):
            return content
    raise UnparsableContentError(
        f"{STRUCTURED_DATA_NAME} not found in result archive "
        f"(entries: {sorted(entries)})"
    )


def iter_text_fragments(document: dict[str, Any]) -> Iterator[str]:
    """Yield the Text field of each element in document order."""
    elements = document.get("elements")
    if not isinstance(elements, list):
        raise UnparsableContentError("'elements' must be a list")
    for element in elements:
        if not isinstance(element, dict):
            raise UnparsableContentError("every element must be an object")
        text = element.get("Text")
        if isinstance(text, str) and text:
            yield text


def extract_text(archive: bytes) -> str:
    """Return the plain text of a result archive.

    Raises:
        UnparsableContentError: if the structured-content entry is missing,
            is not valid JSON, or does not match the expected shape.
    """
    raw = find_structured_data(unpack(archive))
    try:
        document = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise UnparsableContentError(f"{STRUCTURED_DATA_NAME} is not valid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise UnparsableContentError(f"{STRUCTURED_DATA_NAME} must be a JSON object")
    return " ".join(iter_text_fragments(document)).strip()
