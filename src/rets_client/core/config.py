from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from .. import __version__
from .errors import Unsupported

DEFAULT_USER_AGENT = f"rets-client/{__version__}"
DEFAULT_MIMEMAP = {
    "image/jpeg": "jpg",
    "image/gif": "gif",
}


class OutputMode(int, Enum):
    RAW = 0
    DOM = 1  # no longer supported
    STRUCTURED = 2


class RequestMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    HEAD = "HEAD"


class RetsVersion(str, Enum):
    V1_5 = "1.5"
    V1_7 = "1.7"


DISABLED_OUTPUT_MODES = frozenset({OutputMode.DOM})


def check_output_mode(output: OutputMode) -> OutputMode:
    output = OutputMode(output)
    if output in DISABLED_OUTPUT_MODES:
        raise Unsupported(f"{output.name} output is no longer supported.")
    return output


@dataclass(frozen=True)
class ClientConfig:
    output: OutputMode = OutputMode.STRUCTURED
    request_method: RequestMethod = RequestMethod.GET
    user_agent: str = DEFAULT_USER_AGENT
    headers: Mapping[str, str] = field(default_factory=dict)  # extra defaults
    mimemap: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_MIMEMAP))
    max_auth_retries: int = 2
    rets_version: RetsVersion = RetsVersion.V1_5
    timeout_seconds: float = 30.0

    def __post_init__(self) -> None:
        check_output_mode(self.output)
        if self.max_auth_retries < 0:
            raise ValueError("max_auth_retries must be >= 0.")


def load_env_config(
    *, use_dotenv: bool = True
) -> Tuple[str, str, str, Optional[str]]:
    """Load login URL, credentials and user agent from environment (optional .env)."""
    if use_dotenv:
        load_dotenv()
    login_url = os.getenv("RETS_LOGIN_URL", "").strip()
    username = os.getenv("RETS_USERNAME", "").strip()
    password = os.getenv("RETS_PASSWORD", "")
    user_agent = os.getenv("RETS_USER_AGENT", "").strip() or None
    return login_url, username, password, user_agent


__all__ = [
    "ClientConfig",
    "OutputMode",
    "RequestMethod",
    "RetsVersion",
    "DEFAULT_USER_AGENT",
    "DEFAULT_MIMEMAP",
    "check_output_mode",
    "load_env_config",
]
