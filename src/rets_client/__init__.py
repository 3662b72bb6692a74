"""rets_client package exports."""

__version__ = "0.1.0"

from .client import RetsClient, SINGLE_OBJECT_MIN_LENGTH, create_client_from_env
from .core import (
    AuthRequired,
    Authenticator,
    CapabilityMap,
    ClientConfig,
    CompactParser,
    HeaderState,
    LoginError,
    MissingCapability,
    MultipartDecoder,
    OutputMode,
    ParserException,
    ParserRegistry,
    RawParser,
    RequestMethod,
    RetsClientError,
    RetsError,
    RetsVersion,
    TransactionEngine,
    TransactionFailure,
    Unsupported,
    load_env_config,
    log_event,
    setup_logging,
)
from .models import DataObject, RawResult, StructuredResult

__all__ = [
    "__version__",
    # Client
    "RetsClient",
    "ClientConfig",
    "OutputMode",
    "RequestMethod",
    "RetsVersion",
    "create_client_from_env",
    "load_env_config",
    "SINGLE_OBJECT_MIN_LENGTH",
    # Logging
    "setup_logging",
    "log_event",
    # Engine pieces
    "TransactionEngine",
    "CapabilityMap",
    "HeaderState",
    "MultipartDecoder",
    # Collaborators
    "Authenticator",
    "ParserRegistry",
    "RawParser",
    "CompactParser",
    # Results
    "DataObject",
    "RawResult",
    "StructuredResult",
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
