import io
import json
import zipfile


def build_zip(entries: dict[str, bytes]) -> bytes:
    """Build an in-memory ZIP with the given entries."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, content in entries.items():
            zf.writestr(name, content)
    return buf.getvalue()


def structured_archive(elements: list[dict[str, object]], name: str = "structuredData.json") -> bytes:
    """Build a result archive carrying a structured-content document."""
    return build_zip({name: json.dumps({"elements": elements}).encode("utf-8")})
