"""
State store interface.

nutbridge mirrors the UPS into a hierarchical key/value store made of
*objects* (channel and state definitions) and *states* (timestamped
values). The store is the durable mirror; the adapter never reads
telemetry back from it.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

StateValue = bool | int | float | str | None


class ObjectCommon(BaseModel):
    """The ``common`` part of an object definition."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    type: Optional[Literal["boolean", "number", "string"]] = None
    role: Optional[str] = None
    read: Optional[bool] = None
    write: Optional[bool] = None
    unit: Optional[str] = None
    default: StateValue = Field(None, alias="def")
    states: Optional[Dict[int, str]] = None


class StateObject(BaseModel):
    """A channel or state definition."""

    type: Literal["channel", "state"]
    common: ObjectCommon
    native: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def channel(cls, name: str) -> "StateObject":
        return cls(type="channel", common=ObjectCommon(name=name))

    @classmethod
    def state(cls, name: str, **common: Any) -> "StateObject":
        return cls(type="state", common=ObjectCommon(name=name, **common), native={"id": name})


def now_ms() -> int:
    return int(time.time() * 1000)


class State(BaseModel):
    """A stored value. ``ack`` marks values confirmed by the adapter."""

    val: StateValue = None
    ack: bool = False
    ts: int = Field(default_factory=now_ms)
    lc: int = Field(default_factory=now_ms)


StateChangeCallback = Callable[[str, Optional[State]], Awaitable[None]]


class StateStoreError(Exception):
    """Raised when the store rejects an operation."""
    pass


class StateStore(ABC):
    """
    Abstract hierarchical state store.
    """

    @abstractmethod
    async def set_object_not_exists(self, id: str, obj: StateObject) -> bool:
        """
        Create an object unless one already exists under ``id``.

        :return: True if the object was created, False if it already existed.
        """

    @abstractmethod
    async def get_object(self, id: str) -> Optional[StateObject]:
        """Return the object stored under ``id``, or None."""

    @abstractmethod
    async def get_state(self, id: str) -> Optional[State]:
        """Return the state stored under ``id``, or None."""

    @abstractmethod
    async def set_state(self, id: str, val: StateValue, ack: bool = True) -> State:
        """Write a value and notify subscribers whose pattern matches ``id``."""

    @abstractmethod
    def subscribe(self, pattern: str, callback: StateChangeCallback) -> None:
        """Subscribe to state changes of ids matching a glob pattern."""

    @abstractmethod
    async def list_states(self, pattern: str = "*") -> Dict[str, State]:
        """Return all states whose id matches a glob pattern."""

    @abstractmethod
    async def list_objects(self, pattern: str = "*") -> List[str]:
        """Return the ids of all objects matching a glob pattern."""
