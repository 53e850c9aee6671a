"""Cheap shape check for downloaded result archives.

The extraction service sometimes answers 200 with an error document instead
of a ZIP; this turns that into an early, clearly labelled rejection.
"""

# Size of an empty ZIP: a lone end-of-central-directory record.
MIN_ARCHIVE_SIZE = 22

ARCHIVE_SIGNATURES = (
    b"PK\x03\x04",  # local file header
    b"PK\x05\x06",  # empty archive
    b"PK\x07\x08",  # spanned archive
)


def is_valid_archive(data: bytes) -> bool:
    """Return True when data looks like a ZIP container. Never raises."""
    if len(data) < MIN_ARCHIVE_SIZE:
        return False
    return bytes(data[:4]) in ARCHIVE_SIGNATURES
