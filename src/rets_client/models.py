from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

SUCCESS_REPLY_CODE = 0


class DataObject(BaseModel):
    """A single binary object returned by GetObject."""

    headers: Dict[str, str] = Field(default_factory=dict)
    payload: bytes = b""
    extension: str = "unknown"

    model_config = ConfigDict(extra="ignore")

    @property
    def content_type(self) -> Optional[str]:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value
        return None


class _TransactionResult(BaseModel):
    # Filled in by login when an Action URL was followed.
    secondary_response: Optional[bytes] = None
    secondary_error: Optional[Any] = None

    model_config = ConfigDict(extra="ignore", arbitrary_types_allowed=True)


class RawResult(_TransactionResult):
    """Raw output mode: the response body, unmodified."""

    body: bytes = b""


class StructuredResult(_TransactionResult):
    """
    Parsed RETS reply.
    - response: key/value pairs from the RETS-RESPONSE body (login, logout)
    - columns/rows: COMPACT search data
    - metadata: COMPACT metadata rows keyed by METADATA-* element name
    """

    reply_code: int
    reply_text: str = ""
    response: Dict[str, str] = Field(default_factory=dict)
    columns: List[str] = Field(default_factory=list)
    rows: List[Dict[str, str]] = Field(default_factory=list)
    count: Optional[int] = None
    max_rows: bool = False
    metadata: Dict[str, List[Dict[str, str]]] = Field(default_factory=dict)

    def success(self) -> bool:
        return self.reply_code == SUCCESS_REPLY_CODE


__all__ = ["DataObject", "RawResult", "StructuredResult", "SUCCESS_REPLY_CODE"]
