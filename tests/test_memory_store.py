"""
Tests for the in-memory state store.
"""

import logging

import pytest

from nutbridge.store.base import StateObject, StateStoreError
from nutbridge.store.memory import MemoryStateStore


@pytest.mark.asyncio
async def test_set_object_not_exists_never_overwrites():
    store = MemoryStateStore()
    first = StateObject.state("ups.status", type="string", role="state")
    second = StateObject.state("ups.status", type="number", role="value")

    assert await store.set_object_not_exists("ups.status", first) is True
    assert await store.set_object_not_exists("ups.status", second) is False
    assert (await store.get_object("ups.status")).common.type == "string"


@pytest.mark.asyncio
async def test_invalid_ids_are_rejected():
    store = MemoryStateStore()
    with pytest.raises(StateStoreError):
        await store.set_object_not_exists(".status", StateObject.channel(".status"))
    with pytest.raises(StateStoreError):
        await store.set_state("", 1)


@pytest.mark.asyncio
async def test_last_change_only_moves_on_new_values():
    store = MemoryStateStore()
    first = await store.set_state("ups.load", "10")
    store._states["ups.load"] = first.model_copy(update={"ts": 1, "lc": 1})

    same = await store.set_state("ups.load", "10")
    assert same.lc == 1
    assert same.ts > 1

    changed = await store.set_state("ups.load", "11")
    assert changed.lc == changed.ts


@pytest.mark.asyncio
async def test_subscribers_receive_matching_changes():
    store = MemoryStateStore()
    seen = []

    async def on_change(id, state):
        seen.append((id, state.val, state.ack))

    store.subscribe("commands.*", on_change)
    await store.set_state("commands.beeper-enable", True, ack=False)
    await store.set_state("status.online", True)

    assert seen == [("commands.beeper-enable", True, False)]


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_break_writes(caplog):
    store = MemoryStateStore()
    seen = []

    async def broken(id, state):
        raise RuntimeError("boom")

    async def working(id, state):
        seen.append(id)

    store.subscribe("*", broken)
    store.subscribe("*", working)
    with caplog.at_level(logging.ERROR):
        state = await store.set_state("ups.status", "OL")

    assert state.val == "OL"
    assert seen == ["ups.status"]
    assert "boom" in caplog.text


@pytest.mark.asyncio
async def test_listing_by_pattern():
    store = MemoryStateStore()
    await store.set_state("battery.charge", 87)
    await store.set_state("battery.voltage", "13.5")
    await store.set_state("ups.status", "OL")
    await store.set_object_not_exists("battery", StateObject.channel("battery"))

    assert list(await store.list_states("battery.*")) == ["battery.charge", "battery.voltage"]
    assert len(await store.list_states()) == 3
    assert await store.list_objects("bat*") == ["battery"]


def test_object_common_uses_def_alias():
    obj = StateObject.state("status.severity", type="number", default=4, states={0: "idle"})
    dumped = obj.model_dump(by_alias=True, exclude_none=True)
    assert dumped["common"]["def"] == 4
    assert dumped["native"] == {"id": "status.severity"}
