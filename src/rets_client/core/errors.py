from typing import Optional


class RetsClientError(Exception):
    """Base error for client failures."""


class ParserException(RetsClientError):
    """A parser failed; keeps the body that was being processed."""

    def __init__(self, message: str, *, body: Optional[bytes] = None):
        super().__init__(message)
        self.body = body


class Unsupported(RetsClientError):
    """The client does not support the requested mode, parser or version."""


class RetsError(RetsClientError):
    """Protocol-level failure reported by (or about) the RETS server."""


class LoginError(RetsError):
    def __init__(
        self,
        *,
        status_code: int,
        http_message: str,
        reply_code: int,
        reply_text: str,
    ):
        super().__init__(f"{http_message} ({reply_code}: {reply_text})")
        self.status_code = status_code
        self.http_message = http_message
        self.reply_code = reply_code
        self.reply_text = reply_text


class MissingCapability(RetsError):
    def __init__(self, capability: str):
        super().__init__(f"No {capability} URL was provided by the server at login.")
        self.capability = capability


class AuthRequired(RetsError):
    """Raised inside the engine when the server answers with a 401 challenge."""


class TransactionFailure(RetsError):
    """A follow-up request failed; reported on the result rather than raised."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


__all__ = [
    "RetsClientError",
    "ParserException",
    "Unsupported",
    "RetsError",
    "LoginError",
    "MissingCapability",
    "AuthRequired",
    "TransactionFailure",
]
