"""Session/transaction engine for rets_client (no facade imports)."""

from .auth import Authenticator
from .capabilities import CAPABILITY_LIST, CapabilityMap, capability_url
from .config import (
    ClientConfig,
    OutputMode,
    RequestMethod,
    RetsVersion,
    load_env_config,
)
from .engine import (
    ENGINES,
    Rets15Engine,
    Rets17Engine,
    TransactionEngine,
    engine_for,
)
from .errors import (
    AuthRequired,
    LoginError,
    MissingCapability,
    ParserException,
    RetsClientError,
    RetsError,
    TransactionFailure,
    Unsupported,
)
from .headers import HeaderState
from .logging import LogfmtFormatter, setup_logging
from .multipart import MultipartDecoder, process_content_type, process_header
from .observability import log_event
from .parsing import CompactParser, ParserRegistry, RawParser, ResultParser

__all__ = [
    # Engine
    "TransactionEngine",
    "Rets15Engine",
    "Rets17Engine",
    "ENGINES",
    "engine_for",
    "CapabilityMap",
    "CAPABILITY_LIST",
    "capability_url",
    "HeaderState",
    "MultipartDecoder",
    "process_content_type",
    "process_header",
    # Config
    "ClientConfig",
    "OutputMode",
    "RequestMethod",
    "RetsVersion",
    "load_env_config",
    # Logging
    "setup_logging",
    "LogfmtFormatter",
    "log_event",
    # Collaborators
    "Authenticator",
    "ResultParser",
    "ParserRegistry",
    "RawParser",
    "CompactParser",
    # Exceptions
    "RetsClientError",
    "RetsError",
    "LoginError",
    "MissingCapability",
    "AuthRequired",
    "TransactionFailure",
    "ParserException",
    "Unsupported",
]
