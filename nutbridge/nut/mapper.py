"""
Mapping of NUT variables onto the state tree.

``battery.charge`` becomes channel ``battery`` with state
``battery.charge``; deeper keys keep their first segment as channel and
join the rest with hyphens (``input.voltage.nominal`` becomes
``input.voltage-nominal``). Keys without a dot become root states.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Literal, Optional

from ..config import parse_int
from ..store.base import StateObject, StateStore, StateValue

logger = logging.getLogger(__name__)

BATTERY_CHARGE = "battery.charge"


@dataclass
class StateOp:
    """One step of a state plan: declare a channel, or declare and write a state."""

    kind: Literal["channel", "state"]
    id: str
    obj: StateObject
    value: StateValue = None


def state_id_for(key: str) -> str:
    """Return the state id a NUT variable is stored under."""
    index = key.find(".")
    if index <= 0:
        return key
    return f"{key[:index]}.{key[index + 1:].replace('.', '-')}"


def _leaf(state_id: str, raw: str) -> StateOp:
    if state_id == BATTERY_CHARGE:
        # Reported as a string, stored as a number.
        obj = StateObject.state(
            state_id, type="number", role="value.battery", read=True, write=False, unit="%"
        )
        return StateOp("state", state_id, obj, parse_int(raw))
    obj = StateObject.state(state_id, type="string", role="state", read=True, write=False)
    return StateOp("state", state_id, obj, raw)


def plan_states(varlist: Dict[str, str]) -> List[StateOp]:
    """
    Build the create-then-set plan for one telemetry map.

    A channel is declared whenever its prefix differs from the prefix of
    the previous key, so keys have to arrive grouped by prefix (which the
    NUT daemon does) for every channel to be declared only once.
    """
    ops: List[StateOp] = []
    last: Optional[str] = None
    for key, raw in varlist.items():
        index = key.find(".")
        current = key[:index] if index > 0 else None
        if current is not None and current != last:
            ops.append(StateOp("channel", current, StateObject.channel(current)))
        ops.append(_leaf(state_id_for(key), raw))
        last = current
    return ops


async def store_vars(store: StateStore, varlist: Dict[str, str]) -> None:
    """
    Declare and write every NUT variable.

    Each value is written on every call, changed or not. A failing store
    call is logged and the remaining keys are still processed.
    """
    for op in plan_states(varlist):
        try:
            logger.debug("Create %s %s", op.kind.capitalize(), op.id)
            await store.set_object_not_exists(op.id, op.obj)
        except Exception as e:
            logger.error("Error creating %s '%s': %s", op.kind, op.id, e)
        if op.kind == "channel":
            continue
        try:
            logger.debug("Set State %s = %s", op.id, op.value)
            await store.set_state(op.id, op.value, ack=True)
        except Exception as e:
            logger.error("Error setting state '%s': %s", op.id, e)
    logger.debug("All NUT values set")
