from .adapter import EXIT_ADAPTER_REQUESTED_TERMINATION, NUTAdapter
from .client import (
    NUTClient,
    NUTCommandError,
    NUTConfigurationError,
    NUTConnectionError,
    NUTError,
)
from .status import Severity, StatusReading, parse_status

__all__ = [
    "EXIT_ADAPTER_REQUESTED_TERMINATION",
    "NUTAdapter",
    "NUTClient",
    "NUTCommandError",
    "NUTConfigurationError",
    "NUTConnectionError",
    "NUTError",
    "Severity",
    "StatusReading",
    "parse_status",
]
