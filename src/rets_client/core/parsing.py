"""Result parsers, one per output mode, and the registry a client is built with."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Set,
    runtime_checkable,
)

from ..models import RawResult, StructuredResult
from .config import OutputMode, check_output_mode
from .errors import ParserException, Unsupported

EMPTY_BODY_REPLY_CODE = -1
EMPTY_BODY_REPLY_TEXT = "No transaction body was returned!"
DEFAULT_DELIMITER = "\t"


@runtime_checkable
class ResultParser(Protocol):
    def parse(self, body: bytes) -> Any: ...


class RawParser:
    """Identity: hands the body back untouched."""

    def parse(self, body: bytes) -> RawResult:
        return RawResult(body=body)


def _split_compact(text: Optional[str], delimiter: str) -> List[str]:
    if text is None:
        return []
    text = text.strip("\r\n")
    # COMPACT lines are wrapped in leading and trailing delimiters.
    if text.startswith(delimiter):
        text = text[len(delimiter) :]
    if text.endswith(delimiter):
        text = text[: -len(delimiter)]
    return text.split(delimiter)


def _parse_delimiter(element: Optional[ET.Element]) -> str:
    if element is None:
        return DEFAULT_DELIMITER
    value = element.get("value", "")
    try:
        return chr(int(value, 16))
    except ValueError:
        return DEFAULT_DELIMITER


def _compact_rows(
    parent: ET.Element, delimiter: str
) -> tuple[List[str], List[Dict[str, str]]]:
    columns = _split_compact(parent.findtext("COLUMNS"), delimiter)
    rows = [
        dict(zip(columns, _split_compact(data.text or "", delimiter)))
        for data in parent.findall("DATA")
    ]
    return columns, rows


def _key_values(text: Optional[str]) -> Dict[str, str]:
    response: Dict[str, str] = {}
    for line in (text or "").splitlines():
        name, sep, value = line.partition("=")
        if sep and name.strip():
            response[name.strip()] = value.strip()
    return response


class CompactParser:
    """
    Structured parser for RETS 1.x replies.
    - ReplyCode/ReplyText from the RETS root element
    - RETS-RESPONSE key=value body (falls back to the root text for RETS 1.0 style)
    - COMPACT search data (DELIMITER, COLUMNS, DATA, COUNT, MAXROWS)
    - COMPACT metadata (METADATA-* elements with COLUMNS/DATA)
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.log = logger or logging.getLogger("rets_client.parser")

    def parse(self, body: bytes) -> StructuredResult:
        root = ET.fromstring(body)
        if root.tag != "RETS":
            raise ValueError(f"Expected RETS root element, got {root.tag!r}")

        reply_code = int(root.get("ReplyCode", EMPTY_BODY_REPLY_CODE))
        reply_text = root.get("ReplyText", "")

        rets_response = root.find("RETS-RESPONSE")
        response = _key_values(
            rets_response.text if rets_response is not None else root.text
        )

        delimiter = _parse_delimiter(root.find("DELIMITER"))
        columns, rows = _compact_rows(root, delimiter)

        count = None
        count_el = root.find("COUNT")
        if count_el is not None and count_el.get("Records") is not None:
            count = int(count_el.get("Records"))

        metadata: Dict[str, List[Dict[str, str]]] = {}
        metadata_root = root.find("METADATA")
        if metadata_root is not None:
            for child in metadata_root:
                _, child_rows = _compact_rows(child, delimiter)
                metadata.setdefault(child.tag, []).extend(child_rows)

        self.log.debug(
            "rets.parse",
            extra={"reply_code": reply_code, "rows": len(rows)},
        )

        return StructuredResult(
            reply_code=reply_code,
            reply_text=reply_text,
            response=response,
            columns=columns,
            rows=rows,
            count=count,
            max_rows=root.find("MAXROWS") is not None,
            metadata=metadata,
        )


class ParserRegistry:
    """
    Output mode -> parser, plus the parser types this registry accepts.
    Passed to the client explicitly; parsers given to the constructor are
    accepted as supported types.
    """

    def __init__(
        self,
        parsers: Optional[Mapping[OutputMode, ResultParser]] = None,
        *,
        supported: Iterable[type] = (RawParser, CompactParser),
    ):
        self.supported: Set[type] = set(supported)
        self._parsers: Dict[OutputMode, ResultParser] = {}
        for mode, parser in (parsers or {}).items():
            self.register(mode, parser, force=True)

    @classmethod
    def default(cls) -> "ParserRegistry":
        return cls({OutputMode.RAW: RawParser(), OutputMode.STRUCTURED: CompactParser()})

    def register(self, mode: OutputMode, parser: ResultParser, force: bool = False) -> None:
        mode = check_output_mode(mode)
        if not isinstance(parser, ResultParser):
            raise Unsupported(f"{type(parser).__name__} does not implement parse().")
        if not force and type(parser) not in self.supported:
            raise Unsupported(f"The parser class '{type(parser).__name__}' is not supported!")
        self.supported.add(type(parser))
        self._parsers[mode] = parser

    def supports(self, mode: OutputMode) -> bool:
        return mode in self._parsers

    def get(self, mode: OutputMode) -> ResultParser:
        mode = check_output_mode(mode)
        parser = self._parsers.get(mode)
        if parser is None:
            raise Unsupported(f"No parser registered for {mode.name} output.")
        return parser

    def parse(self, body: bytes, mode: OutputMode) -> Any:
        parser = self.get(mode)
        if mode == OutputMode.STRUCTURED and not body:
            return StructuredResult(
                reply_code=EMPTY_BODY_REPLY_CODE, reply_text=EMPTY_BODY_REPLY_TEXT
            )
        try:
            return parser.parse(body)
        except Exception as exc:
            raise ParserException(
                f"{type(parser).__name__} failed to parse response: {exc}",
                body=body,
            ) from exc


__all__ = [
    "ResultParser",
    "RawParser",
    "CompactParser",
    "ParserRegistry",
    "EMPTY_BODY_REPLY_CODE",
    "EMPTY_BODY_REPLY_TEXT",
]
