from __future__ import annotations

from typing import Dict, List, Mapping, Union

from ..models import DataObject

MULTIPART_PARALLEL = "multipart/parallel"
UNKNOWN_EXTENSION = "unknown"

_BLANK_LINE = b"\r\n\r\n"
_CRLF = b"\r\n"


def process_content_type(text: str) -> Dict[str, str]:
    """
    Parse a Content-Type value into its media type and parameters.
    Example: 'multipart/parallel; boundary=XYZ'
             -> {'content-type': 'multipart/parallel', 'boundary': 'XYZ'}

    Splits on literal ';' and '=' only, so quoted values containing either
    character are not handled.
    """
    base, _, params = text.partition(";")
    content: Dict[str, str] = {"content-type": base.strip()}
    for part in params.split(";"):
        name, sep, value = part.partition("=")
        name = name.strip()
        if not name or not sep:
            continue
        content[name] = value.strip().strip('"')
    return content


def process_header(raw: Union[bytes, str]) -> Dict[str, str]:
    """Parse a raw header block into a mapping; lines without a colon are skipped."""
    if isinstance(raw, bytes):
        raw = raw.decode("latin-1")
    header: Dict[str, str] = {}
    for line in raw.splitlines():
        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            continue
        header[name.strip()] = value.strip()
    return header


def is_multipart(content_type: str) -> bool:
    return MULTIPART_PARALLEL in (content_type or "").lower()


def resolve_extension(headers: Mapping[str, str], mimemap: Mapping[str, str]) -> str:
    ctype = next((v for k, v in headers.items() if k.lower() == "content-type"), None)
    if ctype is None:
        return UNKNOWN_EXTENSION
    return mimemap.get(ctype, UNKNOWN_EXTENSION)


class MultipartDecoder:
    """Split a multipart/parallel GetObject body into DataObjects, in body order."""

    def __init__(self, mimemap: Mapping[str, str]):
        self.mimemap = mimemap

    def decode(self, body: bytes, content_type: str) -> List[DataObject]:
        boundary = process_content_type(content_type).get("boundary")
        if not boundary:
            return []

        parts = body.split(b"--" + boundary.encode("latin-1"))
        objects: List[DataObject] = []
        # First chunk is the preamble before the opening delimiter.
        for part in parts[1:]:
            raw_header, sep, raw_data = part.partition(_BLANK_LINE)
            if not sep:
                continue
            # The CRLF before the next delimiter belongs to the delimiter.
            if raw_data.endswith(_CRLF):
                raw_data = raw_data[: -len(_CRLF)]
            if not raw_data:
                continue

            headers = process_header(raw_header)
            objects.append(
                DataObject(
                    headers=headers,
                    payload=raw_data,
                    extension=resolve_extension(headers, self.mimemap),
                )
            )
        return objects


__all__ = [
    "MultipartDecoder",
    "MULTIPART_PARALLEL",
    "UNKNOWN_EXTENSION",
    "is_multipart",
    "process_content_type",
    "process_header",
    "resolve_extension",
]
