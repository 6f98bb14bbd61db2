"""
The NUT adapter.

``NUTAdapter`` owns everything that lives for the lifetime of one
adapter instance: the settings, the state store, the connection flag,
the command catalog and the stop flag. The poller and the command
dispatcher reach all of it through the adapter.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, List, Optional

from pydantic import ValidationError

from ..config import Settings
from ..store.base import State, StateObject, StateStore, StateValue
from .client import NUTClient, NUTCommandError, NUTConfigurationError, NUTError
from .commands import CommandDispatcher
from .mapper import store_vars
from .models import (
    COMMANDS_CHANNEL,
    COMMANDS_PREFIX,
    CONNECTION_STATE,
    ERROR_NOTIFICATION,
    INFO_CHANNEL,
    LAST_NOTIFY_STATE,
    NOTIFY_COMMAND,
    OFFLINE_NOTIFICATIONS,
    SEVERITY_STATE,
    STATUS_CHANNEL,
    STICKY_NOTIFICATIONS,
    AdapterMessage,
    command_for_state,
    command_state_id,
)
from .poller import NUTPoller
from .session import NUTSession, validate_port
from .status import SEVERITY_LABELS, STATUS_MAP, Severity, StatusReading, parse_status

logger = logging.getLogger(__name__)

EXIT_ADAPTER_REQUESTED_TERMINATION = 11

ClientFactory = Callable[..., NUTClient]


class NUTAdapter:
    """
    Bridges one UPS on a NUT daemon into a state store.
    """

    def __init__(
        self,
        settings: Settings,
        store: StateStore,
        client_factory: ClientFactory = NUTClient,
    ):
        self.settings = settings
        self.store = store
        self.client_factory = client_factory
        self.connected: Optional[bool] = None
        self.commands: List[str] = []
        self._commands_subscribed = False
        self.stopping = False
        self.exit_code: Optional[int] = None
        self._terminated = asyncio.Event()
        self._session_lock = asyncio.Lock()
        self.poller = NUTPoller(self)
        self.dispatcher = CommandDispatcher(self)

    # Lifecycle

    async def ready(self) -> None:
        """Declare the fixed states and start polling."""
        logger.info(
            "Starting NUT adapter for '%s' on %s:%s",
            self.settings.UPS_NAME,
            self.settings.HOST_IP,
            self.settings.HOST_PORT,
        )
        await self._create_object(INFO_CHANNEL, StateObject.channel(INFO_CHANNEL))
        await self._create_object(
            CONNECTION_STATE,
            StateObject.state(
                CONNECTION_STATE, type="boolean", role="indicator.connected", read=True, write=False
            ),
        )
        await self.set_connected(False)

        logger.debug("Create Channel status")
        await self._create_object(STATUS_CHANNEL, StateObject.channel(STATUS_CHANNEL))
        await self._create_object(
            SEVERITY_STATE,
            StateObject.state(
                SEVERITY_STATE,
                type="number",
                role="indicator",
                read=True,
                write=False,
                default=int(Severity.UNKNOWN),
                states=SEVERITY_LABELS,
            ),
        )
        await self.publish_status("", create_objects=True)
        await self._create_object(
            LAST_NOTIFY_STATE,
            StateObject.state(LAST_NOTIFY_STATE, type="string", role="state", read=True, write=False),
        )
        try:
            last_notify = await self.store.get_state(LAST_NOTIFY_STATE)
        except Exception as e:
            logger.error("Error reading state '%s': %s", LAST_NOTIFY_STATE, e)
        else:
            if last_notify is None:
                await self._set_state(LAST_NOTIFY_STATE, "")

        self.poller.start()

    async def unload(self) -> None:
        """
        Stop polling and mark the adapter disconnected.

        Always completes, even when the final state write fails.
        """
        logger.info("Stopping NUT adapter for '%s'", self.settings.UPS_NAME)
        self.stopping = True
        try:
            await self.poller.stop()
            await self.set_connected(False)
        except Exception:
            logger.exception("Error while unloading NUT adapter")

    def terminate(self, exit_code: int = EXIT_ADAPTER_REQUESTED_TERMINATION) -> None:
        """Request termination of the hosting process."""
        logger.error("Adapter requested termination (exit code %d)", exit_code)
        self.exit_code = exit_code
        self.stopping = True
        self.poller.cancel_timer()
        self._terminated.set()

    async def wait_terminated(self) -> int:
        await self._terminated.wait()
        return self.exit_code if self.exit_code is not None else EXIT_ADAPTER_REQUESTED_TERMINATION

    # Inbound events

    async def handle_message(self, message: AdapterMessage) -> None:
        """
        Handle a message from the outside.

        A notification for this UPS is recorded and triggers an immediate
        poll; notifications for other UPS are ignored. Any other message
        just triggers an immediate poll.
        """
        logger.info("Message received = %s", message.model_dump_json())
        update = False
        if message.command == NOTIFY_COMMAND and message.message:
            try:
                notification = message.notification()
            except ValidationError as e:
                logger.error("Invalid notify message %s: %s", message.message, e)
                return
            logger.info("got Notify %s for: %s", notification.notifytype, notification.upsname)
            own_name = self.settings.own_ups_name
            if notification.upsname == own_name:
                update = True
                await self._set_state(LAST_NOTIFY_STATE, notification.notifytype)
                if notification.notifytype in OFFLINE_NOTIFICATIONS:
                    await self.publish_status("OFF")
            else:
                logger.debug("Ignoring notification for '%s', own name is '%s'", notification.upsname, own_name)
        else:
            update = True

        if update:
            self.poller.trigger()

    async def handle_state_change(self, id: str, state: Optional[State]) -> None:
        """React to writes on ``commands.*`` states."""
        if state is None:
            return
        logger.debug("stateChange %s %s", id, state.model_dump_json())
        if state.ack or not id.startswith(COMMANDS_PREFIX):
            return
        if not state.val:
            return
        await self.dispatcher.dispatch(id, command_for_state(id))

    # Connection handling

    async def set_connected(self, connected: bool) -> None:
        """Mirror the connection flag, writing only when it changes."""
        if self.connected == connected:
            return
        self.connected = connected
        try:
            await self.store.set_state(CONNECTION_STATE, connected, ack=True)
        except Exception as e:
            logger.error("Can not update connected state: %s", e)
        else:
            logger.debug("connected set to %s", connected)

    @asynccontextmanager
    async def session(self, authenticate: bool = False) -> AsyncIterator[NUTSession]:
        """
        Open one NUT session, holding it exclusively until the block exits.

        The yielded session is READY on success. When the daemon cannot be
        reached the failure is recorded (disconnected, last notification,
        unknown severity) and the session is yielded in its ERRORED state.
        A session that opens after unloading started is yielded closed.

        Raises:
            NUTConfigurationError: If the configured port is invalid. The
                adapter has requested termination by then.
        """
        try:
            port = validate_port(self.settings.HOST_PORT)
        except NUTConfigurationError as e:
            logger.error("%s", e)
            self.terminate(EXIT_ADAPTER_REQUESTED_TERMINATION)
            raise

        async with self._session_lock:
            use_login = authenticate and self.settings.has_credentials
            client = self.client_factory(
                host=self.settings.HOST_IP,
                port=port,
                username=self.settings.USERNAME if use_login else None,
                password=self.settings.PASSWORD if use_login else None,
                timeout=self.settings.TIMEOUT,
            )
            session = NUTSession(client, self.settings.UPS_NAME)
            if await session.start():
                if self.stopping:
                    # Opened while unloading, leave the states alone.
                    await session.close()
                else:
                    await self.set_connected(True)
            elif isinstance(session.error, NUTCommandError):
                logger.error("Login to %s:%s rejected: %s", self.settings.HOST_IP, port, session.error)
            else:
                await self.handle_connection_error(session.error)
            try:
                yield session
            finally:
                await session.close()

    async def handle_connection_error(self, error: Optional[BaseException]) -> None:
        """Record a failed connection. Ignored once unloading started."""
        if self.stopping:
            return
        logger.error("Error happened: %s", error)
        await self.set_connected(False)
        try:
            last_notify = await self.store.get_state(LAST_NOTIFY_STATE)
        except Exception as e:
            logger.error("Error reading state '%s': %s", LAST_NOTIFY_STATE, e)
            return
        if last_notify is None or last_notify.val not in STICKY_NOTIFICATIONS:
            await self._set_state(LAST_NOTIFY_STATE, ERROR_NOTIFICATION)
        await self.publish_status("")

    # Publishing

    async def fetch_vars(self, session: NUTSession) -> bool:
        """Fetch the telemetry over an open session and publish it."""
        try:
            varlist = await session.list_vars()
        except NUTError as e:
            logger.error("Err while getting NUT values: %s", e)
            await self.handle_connection_error(e)
            return False
        if self.stopping:
            return False
        logger.debug("Got values, start setting them")
        await self.store_vars(varlist)
        return True

    async def store_vars(self, varlist: Dict[str, str]) -> None:
        await store_vars(self.store, varlist)
        await self.publish_status(varlist.get("ups.status") or "")

    async def publish_status(self, ups_status: str, create_objects: bool = False) -> StatusReading:
        """Classify a status string and write the flags and the severity."""
        reading = parse_status(ups_status)
        for code in STATUS_MAP.values():
            state_id = f"{STATUS_CHANNEL}.{code.name}"
            if create_objects:
                await self._create_object(
                    state_id,
                    StateObject.state(state_id, type="boolean", role="indicator", read=True, write=False),
                )
            await self._set_state(state_id, reading.flags[code.name])
        logger.debug("Set State %s = %d", SEVERITY_STATE, reading.severity)
        await self._set_state(SEVERITY_STATE, int(reading.severity))
        return reading

    async def init_commands(self, cmdlist: List[str]) -> None:
        """Expose the UPS commands as writable button states."""
        logger.debug("Create Channel commands")
        await self._create_object(COMMANDS_CHANNEL, StateObject.channel(COMMANDS_CHANNEL))
        self.commands = list(cmdlist)
        for command in self.commands:
            state_id = command_state_id(command)
            logger.debug("Create State %s", state_id)
            await self._create_object(
                state_id,
                StateObject.state(
                    state_id, type="boolean", role="button", read=True, write=True, default=False
                ),
            )
            await self._set_state(state_id, False)
        if not self._commands_subscribed:
            self.store.subscribe(f"{COMMANDS_PREFIX}*", self.handle_state_change)
            self._commands_subscribed = True

    async def _create_object(self, id: str, obj: StateObject) -> None:
        try:
            await self.store.set_object_not_exists(id, obj)
        except Exception as e:
            logger.error("Error creating %s '%s': %s", obj.type, id, e)

    async def _set_state(self, id: str, val: StateValue) -> None:
        try:
            await self.store.set_state(id, val, ack=True)
        except Exception as e:
            logger.error("Error setting state '%s': %s", id, e)
