"""
Background polling service for the NUT adapter.

This module contains the NUTPoller class, which runs one poll phase per
interval: open a session, fetch the telemetry, publish it and close the
session. Until the command catalog has been read once, a phase is an
initialisation phase that also reads it. A failed phase is simply
followed by the next one; polling only stops when the adapter unloads.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Optional, Set

from .client import NUTConfigurationError, NUTConnectionError, NUTError

if TYPE_CHECKING:
    from .adapter import NUTAdapter

logger = logging.getLogger(__name__)


class NUTPoller:
    """
    Schedules poll phases for one adapter.
    """

    def __init__(self, adapter: "NUTAdapter"):
        """
        Initialize the NUT poller.

        Args:
            adapter: The adapter whose UPS is polled.
        """
        self.adapter = adapter
        self.initialized = False
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()
        self._should_stop = False

    @property
    def scheduled(self) -> bool:
        return self._timer is not None

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def start(self) -> None:
        """Start polling with an immediate first phase."""
        logger.info("Starting NUT poller for UPS '%s'", self.adapter.settings.UPS_NAME)
        self._should_stop = False
        self._start_phase()

    def trigger(self) -> None:
        """Poll now instead of waiting for the pending timer."""
        if self._should_stop or self.adapter.stopping:
            return
        logger.debug("Start NUT update")
        self._start_phase()

    def cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def stop(self, timeout: float = 10.0) -> None:
        """Cancel the pending timer and wait for a running phase to finish."""
        logger.info("Stopping NUT poller for UPS '%s'", self.adapter.settings.UPS_NAME)
        self._should_stop = True
        self.cancel_timer()
        for task in list(self._tasks):
            try:
                await asyncio.wait_for(task, timeout=timeout)
            except asyncio.CancelledError:
                pass
            except asyncio.TimeoutError:
                logger.error("Poll phase did not stop gracefully within timeout.")
        logger.info("NUT poller stopped.")

    def _schedule(self) -> None:
        self.cancel_timer()
        interval = self.adapter.settings.poll_interval
        logger.debug("Next NUT poll in %ss", interval)
        self._timer = asyncio.get_running_loop().call_later(interval, self._start_phase)

    def _start_phase(self) -> None:
        self.cancel_timer()
        task = asyncio.create_task(self._run_phase())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_phase(self) -> None:
        try:
            if self.initialized:
                await self.update()
            else:
                await self.initialize()
        except NUTConfigurationError:
            # Termination has been requested, nothing left to schedule.
            return
        except Exception:
            logger.exception("An unexpected error occurred in the polling loop.")

        if not self._should_stop and not self.adapter.stopping:
            self._schedule()

    async def initialize(self) -> None:
        """Read the command catalog and the telemetry."""
        async with self.adapter.session() as session:
            if self.adapter.stopping:
                return
            if not session.ready:
                logger.error("USV not available - Delay initialization")
                return
            try:
                cmdlist = await session.list_commands()
            except NUTConnectionError as e:
                logger.error("Err while getting all commands: %s", e)
                await self.adapter.handle_connection_error(e)
                return
            except NUTError as e:
                logger.error("Err while getting all commands: %s", e)
            else:
                logger.debug("Got commands, create and subscribe command states")
                await self.adapter.init_commands(cmdlist)
            self.initialized = True
            await self.adapter.fetch_vars(session)

    async def update(self) -> None:
        """Fetch and publish the telemetry."""
        async with self.adapter.session() as session:
            if session.ready:
                await self.adapter.fetch_vars(session)
