"""
NUT (Network UPS Tools) client wrapper.

This module provides an asynchronous client for interacting with a NUT server,
using the synchronous python-nut2 library. It uses asyncio.to_thread to run
blocking I/O operations in a separate thread.
"""

import asyncio
import logging
from typing import Dict, List

from pynut2.nut2 import PyNUTClient, PyNUTError

logger = logging.getLogger(__name__)


class NUTError(Exception):
    """Base exception for NUT client errors."""
    pass


class NUTConnectionError(NUTError):
    """Exception for NUT connection errors."""
    pass


class NUTCommandError(NUTError):
    """The NUT server answered a request with an error."""
    pass


class NUTConfigurationError(NUTError):
    """The configured connection parameters can never work."""
    pass


def _wrap(e: Exception, message: str) -> NUTError:
    # pynut2 raises PyNUTError for socket failures and empty replies too;
    # only an ERR line is an answer from the server.
    if isinstance(e, PyNUTError) and str(e).startswith("ERR"):
        return NUTCommandError(f"{message}: {e}")
    return NUTConnectionError(f"{message}: {e}")


class NUTClient:
    """
    An asynchronous client for NUT servers.

    One instance represents one connection: :meth:`connect` opens it and
    :meth:`close` releases it.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str | None = None,
        password: str | None = None,
        timeout: int = 5,
    ):
        """
        Initialize the NUT client.

        Args:
            host: The NUT server hostname or IP address.
            port: The NUT server port.
            username: The username for authentication.
            password: The password for authentication.
            timeout: Socket timeout in seconds.
        """
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout
        self._client: PyNUTClient | None = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        """
        Open the connection, logging in when credentials are set.

        The library sends USERNAME and then PASSWORD and stops at the
        first one the server rejects.

        Raises:
            NUTConnectionError: If the server cannot be reached.
            NUTCommandError: If the server rejects the credentials.
        """
        try:
            logger.debug("Connecting to %s:%s (login=%s)", self.host, self.port, bool(self.username))
            self._client = await asyncio.to_thread(
                PyNUTClient,
                host=self.host,
                port=self.port,
                login=self.username,
                password=self.password,
                timeout=self.timeout,
            )
        except Exception as e:
            raise _wrap(e, f"Failed to connect to {self.host}:{self.port}") from e

    def _require(self) -> PyNUTClient:
        if self._client is None:
            raise NUTConnectionError(f"Not connected to {self.host}:{self.port}")
        return self._client

    async def list_ups(self) -> Dict[str, str]:
        """
        List the available UPS devices on the NUT server.

        Returns:
            A dictionary of UPS devices, where the key is the UPS name and
            the value is the UPS description.
        """
        client = self._require()
        try:
            data = await asyncio.to_thread(client.list_ups)
            logger.info("NUT list_ups ok: %d devices", len(data) if data else 0)
            return dict(data or {})
        except Exception as e:
            raise _wrap(e, f"Failed to list UPS devices from {self.host}:{self.port}") from e

    async def list_vars(self, ups_name: str) -> Dict[str, str]:
        """
        Get all variables for a specific UPS, in server order.

        Raises:
            NUTConnectionError: If there is an error communicating with the server.
            NUTCommandError: If the server refuses the request.
        """
        client = self._require()
        try:
            logger.debug("Fetching vars for UPS '%s'", ups_name)
            vars_ = await asyncio.to_thread(client.list_vars, ups_name)
            logger.debug("NUT list_vars ok for '%s' (%d vars)", ups_name, len(vars_) if vars_ else 0)
            return dict(vars_ or {})
        except Exception as e:
            raise _wrap(e, f"Failed to get variables for UPS '{ups_name}'") from e

    async def list_commands(self, ups_name: str) -> List[str]:
        """Get the names of the instant commands a UPS supports."""
        client = self._require()
        try:
            logger.debug("Fetching commands for UPS '%s'", ups_name)
            commands = await asyncio.to_thread(client.list_commands, ups_name)
            return list(commands or {})
        except Exception as e:
            raise _wrap(e, f"Failed to get commands for UPS '{ups_name}'") from e

    async def run_command(self, ups_name: str, command: str) -> None:
        """Run an instant command such as ``beeper.toggle``."""
        client = self._require()
        try:
            logger.debug("Running command '%s' on UPS '%s'", command, ups_name)
            await asyncio.to_thread(client.run_command, ups_name, command)
        except Exception as e:
            raise _wrap(e, f"Failed to run command '{command}' on UPS '{ups_name}'") from e

    def close(self) -> None:
        """
        Release the connection.

        PyNUTClient sends LOGOUT and closes its socket when it is
        garbage collected, so dropping the handle closes the session.
        """
        if self._client is not None:
            logger.debug("Closing connection to %s:%s", self.host, self.port)
        self._client = None
