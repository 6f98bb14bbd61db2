"""
Data models for the NUT adapter.

This module defines the Pydantic models for the messages the adapter
accepts and the ids of the states it maintains.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel

INFO_CHANNEL = "info"
CONNECTION_STATE = "info.connection"
STATUS_CHANNEL = "status"
SEVERITY_STATE = "status.severity"
LAST_NOTIFY_STATE = "status.last_notify"
COMMANDS_CHANNEL = "commands"
COMMANDS_PREFIX = "commands."

NOTIFY_COMMAND = "notify"
ERROR_NOTIFICATION = "ERROR"
# Notifications that describe the failure better than ERROR does.
STICKY_NOTIFICATIONS = frozenset({"COMMBAD", "SHUTDOWN", "NOCOMM"})
# Notifications after which the UPS is read as offline.
OFFLINE_NOTIFICATIONS = frozenset({"COMMBAD", "NOCOMM"})


class NotifyMessage(BaseModel):
    """What upsmon reports through NOTIFYCMD."""

    notifytype: str
    upsname: str


class AdapterMessage(BaseModel):
    """
    A message sent to the adapter.

    Only ``notify`` messages carry a payload the adapter looks at; every
    other command just requests a fresh poll.
    """

    command: str
    message: Optional[Dict[str, Any]] = None

    def notification(self) -> Optional[NotifyMessage]:
        if self.command != NOTIFY_COMMAND or not self.message:
            return None
        return NotifyMessage.model_validate(self.message)


def command_state_id(command: str) -> str:
    """``beeper.toggle`` is exposed as ``commands.beeper-toggle``."""
    return COMMANDS_PREFIX + command.replace(".", "-")


def command_for_state(state_id: str) -> str:
    """Inverse of :func:`command_state_id`."""
    return state_id[len(COMMANDS_PREFIX):].replace("-", ".")
