"""
A single, short-lived NUT connection.

Every poll and every command opens its own session, performs one unit of
work and closes it again:

    IDLE -> CONNECTING -> READY -> CLOSED
    CONNECTING/READY -> ERRORED

``start()`` reports connection failures through its return value. Work
calls propagate their errors; transport errors also move the session to
ERRORED, while an ERR reply from the daemon leaves it READY.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional

from ..config import parse_int
from .client import NUTClient, NUTConfigurationError, NUTConnectionError, NUTError

logger = logging.getLogger(__name__)


def validate_port(value: str | int | None) -> int:
    """
    Return the configured port as an integer.

    Raises:
        NUTConfigurationError: If the value is not an integer in 0-65535.
    """
    port = parse_int(value)
    if port is None or port < 0 or port > 65535:
        raise NUTConfigurationError(f"Configured Port invalid: {value}")
    return port


class SessionState(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    READY = "ready"
    CLOSED = "closed"
    ERRORED = "errored"


class NUTSession:
    """
    One connection to the NUT daemon.
    """

    def __init__(self, client: NUTClient, ups_name: str):
        self.client = client
        self.ups_name = ups_name
        self.state = SessionState.IDLE
        self.error: Optional[NUTError] = None

    @property
    def ready(self) -> bool:
        return self.state is SessionState.READY

    async def start(self) -> bool:
        """
        Connect to the daemon.

        Returns:
            True once the connection is ready, False if it failed. The
            failure is kept in :attr:`error`.
        """
        if self.state is not SessionState.IDLE:
            raise RuntimeError(f"Session already {self.state.value}")
        self.state = SessionState.CONNECTING
        try:
            await self.client.connect()
        except NUTError as e:
            self._fail(e)
            return False
        self.state = SessionState.READY
        logger.debug("NUT Connection ready")
        return True

    def _fail(self, error: NUTError) -> None:
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.ERRORED
        self.error = error
        self.client.close()

    def _require_ready(self, operation: str) -> None:
        if self.state is not SessionState.READY:
            raise RuntimeError(f"Cannot {operation}: session is {self.state.value}")

    async def list_vars(self) -> Dict[str, str]:
        self._require_ready("list variables")
        try:
            return await self.client.list_vars(self.ups_name)
        except NUTConnectionError as e:
            self._fail(e)
            raise

    async def list_commands(self) -> List[str]:
        self._require_ready("list commands")
        try:
            return await self.client.list_commands(self.ups_name)
        except NUTConnectionError as e:
            self._fail(e)
            raise

    async def run_command(self, command: str) -> None:
        self._require_ready("run command")
        try:
            await self.client.run_command(self.ups_name, command)
        except NUTConnectionError as e:
            self._fail(e)
            raise

    async def close(self) -> None:
        """Close the session. Closing twice, or after an error, is a no-op."""
        if self.state in (SessionState.CLOSED, SessionState.ERRORED):
            return
        self.client.close()
        self.state = SessionState.CLOSED
        logger.debug("NUT Connection closed. Done.")
