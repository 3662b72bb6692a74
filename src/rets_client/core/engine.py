from __future__ import annotations

import logging
import threading
import time
from typing import Dict, Mapping, Optional, Type, Union

import httpx

from .auth import Authenticator
from .capabilities import CapabilityMap
from .config import ClientConfig, RequestMethod, RetsVersion
from .errors import AuthRequired, Unsupported
from .headers import (
    AUTHORIZATION_HEADER,
    REQUEST_ID_HEADER,
    USER_AGENT_HEADER,
    HeaderState,
)
from .observability import log_event

AUTH_CHALLENGE_STATUS = 401


class TransactionEngine:
    """
    Serialized request pipeline for one RETS session.
    - Owns the session headers, capability URLs and digest nonce counter
    - Retries once per remaining attempt on a 401 challenge via the authenticator
    - Returns the raw httpx.Response; callers parse or decode the body
    - Transport errors (httpx.HTTPError) propagate unmodified
    """

    version: RetsVersion

    def __init__(
        self,
        login_url: Union[str, httpx.URL],
        *,
        config: ClientConfig,
        http: httpx.Client,
        authenticator: Optional[Authenticator] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.log = logger or logging.getLogger("rets_client.engine")
        self.http = http
        self.authenticator = authenticator
        self.request_method = RequestMethod(config.request_method)
        self.max_auth_retries = config.max_auth_retries

        self.urls = CapabilityMap(login_url)
        self.headers = HeaderState(
            user_agent=config.user_agent,
            rets_version=self.version.value,
            extra=config.headers,
            logger=self.log,
        )
        self.username: Optional[str] = None
        self.password: Optional[str] = None
        self.nonce_count = 0

        self._lock = threading.Lock()

    @property
    def user_agent(self) -> Optional[str]:
        return self.headers.get(USER_AGENT_HEADER)

    def set_credentials(self, username: str, password: str) -> None:
        with self._lock:
            self.username = username
            self.password = password

    def set_header(self, name: str, value: Optional[str]) -> None:
        with self._lock:
            self.headers.set(name, value)

    def commit_capabilities(self, urls: Mapping[str, httpx.URL]) -> None:
        with self._lock:
            self.urls.commit(urls)

    def reset(self) -> None:
        """Tear the session down to its initial headers and capabilities."""
        with self._lock:
            self.headers.reset()
            self.urls.reset()

    def _build(
        self,
        url: httpx.URL,
        data: Mapping[str, str],
        headers: Mapping[str, str],
        method: RequestMethod,
    ) -> httpx.Request:
        if method == RequestMethod.POST:
            return self.http.build_request(
                method.value, url, headers=headers, data=dict(data)
            )
        return self.http.build_request(
            method.value, url, headers=headers, params=dict(data) or None
        )

    def _authorize(
        self, response: httpx.Response, url: httpx.URL, method: RequestMethod
    ) -> None:
        # Called with the lock held.
        self.nonce_count += 1
        credential = self.authenticator.authenticate(
            response,
            self.username or "",
            self.password or "",
            url.path,
            method.value,
            self.headers.get(REQUEST_ID_HEADER),
            self.user_agent,
            self.nonce_count,
        )
        self.headers.set(AUTHORIZATION_HEADER, credential)

    def request(
        self,
        url: Union[str, httpx.URL],
        data: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
        method: Optional[Union[RequestMethod, str]] = None,
        max_auth_retries: Optional[int] = None,
        *,
        transaction: Optional[str] = None,
    ) -> httpx.Response:
        """
        Core request method.
        - GET/HEAD put data in the query string, POST sends it form-encoded
        - A 401 is retried with fresh credentials while retries remain;
          once exhausted (or with no authenticator) the 401 is returned as-is
        - Cookie and RETS-Session-ID are taken from every non-401 response
        """
        url = httpx.URL(url)
        data = {str(k): str(v) for k, v in (data or {}).items()}
        method = RequestMethod(method or self.request_method)
        retry_auth = self.max_auth_retries if max_auth_retries is None else max_auth_retries

        attempt = 0
        start = time.perf_counter()

        while True:
            with self._lock:
                request = self._build(url, data, self.headers.snapshot(headers), method)

            # The lock is not held across the blocking call.
            try:
                response = self.http.send(request)
            except httpx.HTTPError as exc:
                log_event(
                    "rets_call",
                    transaction=transaction,
                    method=method.value,
                    url=str(url),
                    status="exception",
                    error_type=type(exc).__name__,
                    attempt=attempt,
                )
                raise

            with self._lock:
                # Cookies travel only through the session's Cookie header.
                self.http.cookies.clear()
                try:
                    if response.status_code == AUTH_CHALLENGE_STATUS:
                        raise AuthRequired(f"{method.value} {url} requires authentication")
                    self.headers.update_from_response(response)
                except AuthRequired:
                    if retry_auth > 0 and self.authenticator is not None:
                        retry_auth -= 1
                        self._authorize(response, url, method)
                        self.log.debug(
                            "rets.auth_retry",
                            extra={
                                "url": str(url),
                                "attempt": attempt,
                                "nonce_count": self.nonce_count,
                            },
                        )
                        attempt += 1
                        continue
                    if self.authenticator is None:
                        self.log.warning(
                            "rets.auth_unavailable",
                            extra={"url": str(url), "status": response.status_code},
                        )

            duration_ms = int((time.perf_counter() - start) * 1000)
            self.log.debug(
                "rets.request",
                extra={
                    "transaction": transaction,
                    "method": method.value,
                    "url": str(response.request.url),
                    "status": response.status_code,
                    "duration_ms": duration_ms,
                    "attempt": attempt,
                },
            )
            log_event(
                "rets_call",
                transaction=transaction,
                method=method.value,
                url=str(url),
                status=response.status_code,
                duration_ms=duration_ms,
                attempt=attempt,
            )
            return response


class Rets15Engine(TransactionEngine):
    version = RetsVersion.V1_5


class Rets17Engine(TransactionEngine):
    version = RetsVersion.V1_7


ENGINES: Dict[RetsVersion, Type[TransactionEngine]] = {
    RetsVersion.V1_5: Rets15Engine,
    RetsVersion.V1_7: Rets17Engine,
}


def engine_for(version: Union[RetsVersion, str]) -> Type[TransactionEngine]:
    try:
        return ENGINES[RetsVersion(version)]
    except (KeyError, ValueError):
        raise Unsupported(f"The client does not support RETS version '{version}'.") from None


__all__ = [
    "TransactionEngine",
    "Rets15Engine",
    "Rets17Engine",
    "ENGINES",
    "engine_for",
    "AUTH_CHALLENGE_STATUS",
]
