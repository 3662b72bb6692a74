from __future__ import annotations

import logging
from typing import Dict, Iterator, Mapping, MutableMapping, Optional

import httpx

SESSION_ID_HEADER = "RETS-Session-ID"
REQUEST_ID_HEADER = "RETS-Request-ID"
COOKIE_HEADER = "Cookie"
AUTHORIZATION_HEADER = "Authorization"
USER_AGENT_HEADER = "User-Agent"

# Never written to logs verbatim.
REDACTED_HEADERS = frozenset({AUTHORIZATION_HEADER.lower(), COOKIE_HEADER.lower()})


class HeaderState(MutableMapping[str, str]):
    """
    Outgoing session headers.
    - RETS-Session-ID and Cookie follow the latest response that supplies them
    - Authorization is only written by the engine's challenge retry path
    - reset() restores the defaults the session started with
    """

    def __init__(
        self,
        *,
        user_agent: str,
        rets_version: str,
        extra: Optional[Mapping[str, str]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.log = logger or logging.getLogger("rets_client.headers")
        self._defaults: Dict[str, str] = {
            USER_AGENT_HEADER: user_agent,
            "Accept": "*/*",
            "RETS-Version": f"RETS/{rets_version}",
            SESSION_ID_HEADER: "0",
        }
        self._defaults.update(extra or {})
        self._headers: Dict[str, str] = dict(self._defaults)

    def __getitem__(self, name: str) -> str:
        return self._headers[name]

    def __setitem__(self, name: str, value: str) -> None:
        self.set(name, value)

    def __delitem__(self, name: str) -> None:
        del self._headers[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def set(self, name: str, value: Optional[str]) -> None:
        if value is None:
            self._headers.pop(name, None)
        else:
            self._headers[name] = value
        shown = value
        if value is not None and name.lower() in REDACTED_HEADERS:
            shown = "<redacted>"
        self.log.debug("Set header %r to %r", name, shown)

    def snapshot(self, extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        merged = dict(self._headers)
        if extra:
            merged.update(extra)
        return merged

    def update_from_response(self, response: httpx.Response) -> None:
        cookies = [
            raw.split(";", 1)[0].strip()
            for raw in response.headers.get_list("set-cookie")
        ]
        cookies = [c for c in cookies if c]
        # An empty cookie set must not clobber the stored cookie.
        if cookies:
            self.set(COOKIE_HEADER, "; ".join(cookies))

        session_id = response.headers.get(SESSION_ID_HEADER)
        if session_id is not None:
            self.set(SESSION_ID_HEADER, session_id)

    def reset(self) -> None:
        self._headers = dict(self._defaults)


__all__ = [
    "HeaderState",
    "SESSION_ID_HEADER",
    "REQUEST_ID_HEADER",
    "COOKIE_HEADER",
    "AUTHORIZATION_HEADER",
    "USER_AGENT_HEADER",
]
