from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

import httpx


@runtime_checkable
class Authenticator(Protocol):
    """
    Computes the Authorization header value for a 401 challenge.
    The digest algorithm itself lives with the implementation; the engine
    only supplies the challenge response and the session's inputs.
    """

    def authenticate(
        self,
        challenge: httpx.Response,
        username: str,
        password: str,
        path: str,
        method: str,
        request_id: Optional[str],
        user_agent: Optional[str],
        nonce_count: int,
    ) -> str: ...


__all__ = ["Authenticator"]
