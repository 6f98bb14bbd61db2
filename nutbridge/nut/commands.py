"""
Execution of UPS instant commands.

A write to a ``commands.*`` state runs the matching command on the UPS,
logging in first when credentials are configured. The write is
acknowledged once the command has been issued and the telemetry is
fetched again so the state tree shows how the UPS reacted.
"""

import logging
from typing import TYPE_CHECKING

from .client import NUTCommandError, NUTError

if TYPE_CHECKING:
    from .adapter import NUTAdapter

logger = logging.getLogger(__name__)


class CommandDispatcher:
    def __init__(self, adapter: "NUTAdapter"):
        self.adapter = adapter

    async def dispatch(self, state_id: str, command: str) -> bool:
        """
        Run ``command`` for a write on ``state_id``.

        Returns:
            True if the UPS accepted the command.
        """
        if self.adapter.stopping:
            return False
        settings = self.adapter.settings
        authenticate = settings.has_credentials
        refetch = False
        accepted = False

        async with self.adapter.session(authenticate=authenticate) as session:
            if self.adapter.stopping:
                return False
            if not session.ready:
                if isinstance(session.error, NUTCommandError):
                    logger.error("Err while logging in for command %s: %s", command, session.error)
                    await self._acknowledge(state_id)
                    refetch = True
                else:
                    logger.error("USV not available - Error while sending command: %s", command)
            else:
                if authenticate:
                    logger.info("send command %s as user %s", command, settings.USERNAME)
                else:
                    logger.info("send command %s without username and password", command)
                try:
                    await session.run_command(command)
                except NUTError as e:
                    logger.error("Err while sending command %s: %s", command, e)
                    await session.close()
                    refetch = True
                else:
                    accepted = True

                await self._acknowledge(state_id)
                if accepted:
                    await self.adapter.fetch_vars(session)

        if refetch:
            self.adapter.poller.trigger()
        return accepted

    async def _acknowledge(self, state_id: str) -> None:
        try:
            await self.adapter.store.set_state(state_id, False, ack=True)
        except Exception as e:
            logger.error("Error acknowledging state '%s': %s", state_id, e)
