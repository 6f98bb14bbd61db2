"""
An in-memory, async-friendly state store.

Subscriptions are glob patterns (``commands.*``). Change callbacks are
awaited concurrently on every write, the way an event bus publishes.
"""

import asyncio
import logging
from fnmatch import fnmatchcase
from typing import Dict, List, Optional, Tuple

from .base import (
    State,
    StateChangeCallback,
    StateObject,
    StateStore,
    StateStoreError,
    StateValue,
    now_ms,
)

logger = logging.getLogger(__name__)


class MemoryStateStore(StateStore):
    """
    Process-local state store.
    """

    def __init__(self):
        self._objects: Dict[str, StateObject] = {}
        self._states: Dict[str, State] = {}
        self._subscribers: List[Tuple[str, StateChangeCallback]] = []

    async def set_object_not_exists(self, id: str, obj: StateObject) -> bool:
        if not id or id.startswith(".") or id.endswith("."):
            raise StateStoreError(f"Invalid object id '{id}'")
        if id in self._objects:
            return False
        logger.debug("Created %s object '%s'", obj.type, id)
        self._objects[id] = obj
        return True

    async def get_object(self, id: str) -> Optional[StateObject]:
        return self._objects.get(id)

    async def get_state(self, id: str) -> Optional[State]:
        return self._states.get(id)

    async def set_state(self, id: str, val: StateValue, ack: bool = True) -> State:
        if not id:
            raise StateStoreError("State id must not be empty")
        previous = self._states.get(id)
        ts = now_ms()
        lc = previous.lc if previous is not None and previous.val == val else ts
        state = State(val=val, ack=ack, ts=ts, lc=lc)
        self._states[id] = state
        await self._publish(id, state)
        return state

    def subscribe(self, pattern: str, callback: StateChangeCallback) -> None:
        logger.debug("New subscription to pattern: %s", pattern)
        self._subscribers.append((pattern, callback))

    async def list_states(self, pattern: str = "*") -> Dict[str, State]:
        return {id: state for id, state in sorted(self._states.items()) if fnmatchcase(id, pattern)}

    async def list_objects(self, pattern: str = "*") -> List[str]:
        return sorted(id for id in self._objects if fnmatchcase(id, pattern))

    async def _publish(self, id: str, state: State) -> None:
        callbacks = [cb for pattern, cb in self._subscribers if fnmatchcase(id, pattern)]
        if not callbacks:
            return
        results = await asyncio.gather(*(cb(id, state) for cb in callbacks), return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                logger.error("State change handler for '%s' failed: %s", id, result)
