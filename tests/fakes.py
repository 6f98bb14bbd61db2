"""Shared test doubles."""
import asyncio
from typing import Dict, List, Optional

from nutbridge.config import Settings
from nutbridge.nut.adapter import NUTAdapter
from nutbridge.nut.client import NUTCommandError, NUTConnectionError


SAMPLE_VARS = {
    "battery.charge": "87",
    "battery.voltage": "13.5",
    "device.model": "Back-UPS 700",
    "input.voltage": "230.0",
    "input.voltage.nominal": "230",
    "ups.status": "OL",
}

SAMPLE_COMMANDS = ["beeper.disable", "beeper.enable", "test.battery.start"]


class FakeNUTServer:
    """Stands in for a NUT daemon; hands out FakeNUTClient connections."""

    def __init__(self):
        self.vars: Dict[str, str] = dict(SAMPLE_VARS)
        self.commands: List[str] = list(SAMPLE_COMMANDS)
        self.devices = {"ups": "Test UPS"}
        self.reachable = True
        self.reject_login = False
        self.fail_vars: Optional[Exception] = None
        self.fail_commands: Optional[Exception] = None
        self.fail_run: Optional[Exception] = None
        self.clients: List["FakeNUTClient"] = []
        self.calls: List[tuple] = []
        # When set, connections wait for it before they are ready.
        self.gate: Optional[asyncio.Event] = None
        self.open_sessions = 0
        self.max_open_sessions = 0

    def client(self, host, port, username=None, password=None, timeout=5):
        client = FakeNUTClient(self, host, port, username, password, timeout)
        self.clients.append(client)
        return client

    def names(self) -> List[str]:
        return [call[0] for call in self.calls]


class FakeNUTClient:
    def __init__(self, server, host, port, username, password, timeout):
        self.server = server
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout
        self.open = False

    async def connect(self):
        self.server.calls.append(("connect", self.username))
        if self.server.gate is not None:
            await self.server.gate.wait()
        if not self.server.reachable:
            raise NUTConnectionError(f"Failed to connect to {self.host}:{self.port}: Connection refused")
        if self.username and self.server.reject_login:
            raise NUTCommandError(f"Failed to connect to {self.host}:{self.port}: ERR ACCESS-DENIED")
        self.open = True
        self.server.open_sessions += 1
        self.server.max_open_sessions = max(self.server.max_open_sessions, self.server.open_sessions)

    async def list_ups(self):
        self.server.calls.append(("list_ups",))
        return dict(self.server.devices)

    async def list_vars(self, ups_name):
        self.server.calls.append(("list_vars", ups_name))
        if self.server.fail_vars:
            raise self.server.fail_vars
        return dict(self.server.vars)

    async def list_commands(self, ups_name):
        self.server.calls.append(("list_commands", ups_name))
        if self.server.fail_commands:
            raise self.server.fail_commands
        return list(self.server.commands)

    async def run_command(self, ups_name, command):
        self.server.calls.append(("run_command", ups_name, command))
        if self.server.fail_run:
            raise self.server.fail_run

    def close(self):
        if self.open:
            self.server.calls.append(("close",))
            self.server.open_sessions -= 1
        self.open = False


def make_settings(**overrides) -> Settings:
    values = {"HOST_IP": "10.0.0.2", "HOST_PORT": 3493, "UPS_NAME": "ups"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


async def drain(adapter: NUTAdapter) -> None:
    """Wait until no poll phase is running."""
    while adapter.poller._tasks:
        await asyncio.gather(*list(adapter.poller._tasks), return_exceptions=True)


async def state_val(store, id):
    state = await store.get_state(id)
    return state.val if state is not None else None
