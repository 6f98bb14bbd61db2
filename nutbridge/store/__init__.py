from .base import ObjectCommon, State, StateObject, StateStore, StateStoreError, StateValue
from .memory import MemoryStateStore

__all__ = [
    "MemoryStateStore",
    "ObjectCommon",
    "State",
    "StateObject",
    "StateStore",
    "StateStoreError",
    "StateValue",
]
