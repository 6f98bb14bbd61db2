from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from nutbridge.api.deps import get_adapter, get_store
from nutbridge.nut.adapter import NUTAdapter
from nutbridge.nut.models import CONNECTION_STATE, LAST_NOTIFY_STATE, SEVERITY_STATE
from nutbridge.store.base import State, StateStore, StateValue

router = APIRouter()


class StateResponse(BaseModel):
    id: str
    val: StateValue = None
    ack: bool = Field(description="True once the adapter confirmed the value")
    ts: int = Field(description="Last write, ms since the epoch")
    lc: int = Field(description="Last value change, ms since the epoch")

    @classmethod
    def from_state(cls, id: str, state: State) -> "StateResponse":
        return cls(id=id, **state.model_dump())


class StateWrite(BaseModel):
    val: StateValue


class HealthResponse(BaseModel):
    connected: Optional[bool] = Field(None, description="Whether the last NUT session succeeded")
    last_notify: Optional[str] = Field(None, description="Most recent upsmon notification or ERROR")
    severity: Optional[int] = Field(None, description="0 idle, 1 operating, 2 operating_critical, 3 action_needed, 4 unknown")


@router.get("/states", response_model=List[StateResponse], summary="List states")
async def list_states(
    pattern: str = Query("*", description="Glob pattern, e.g. 'battery.*'"),
    store: StateStore = Depends(get_store),
) -> List[StateResponse]:
    states = await store.list_states(pattern)
    return [StateResponse.from_state(id, state) for id, state in states.items()]


@router.get(
    "/states/{id}",
    response_model=StateResponse,
    summary="Get one state",
    responses={404: {"description": "No value has been written to this state."}},
)
async def get_state(id: str, store: StateStore = Depends(get_store)) -> StateResponse:
    state = await store.get_state(id)
    if state is None:
        raise HTTPException(status_code=404, detail=f"State '{id}' not found")
    return StateResponse.from_state(id, state)


@router.put(
    "/states/{id}",
    response_model=StateResponse,
    summary="Write a state",
    responses={404: {"description": "The state has not been declared."}},
)
async def set_state(id: str, body: StateWrite, store: StateStore = Depends(get_store)) -> StateResponse:
    """
    Write an unacknowledged value. Writing ``true`` to a ``commands.*``
    state runs that command on the UPS.
    """
    obj = await store.get_object(id)
    if obj is None or obj.type != "state":
        raise HTTPException(status_code=404, detail=f"State '{id}' not found")
    if not obj.common.write:
        raise HTTPException(status_code=403, detail=f"State '{id}' is read-only")
    await store.set_state(id, body.val, ack=False)
    state = await store.get_state(id)
    return StateResponse.from_state(id, state)


@router.get(
    "/objects/{id}",
    summary="Get an object definition",
    responses={404: {"description": "The object has not been declared."}},
)
async def get_object(id: str, store: StateStore = Depends(get_store)) -> dict:
    obj = await store.get_object(id)
    if obj is None:
        raise HTTPException(status_code=404, detail=f"Object '{id}' not found")
    return obj.model_dump(by_alias=True, exclude_none=True)


@router.get("/health", response_model=HealthResponse, summary="Connection and severity summary")
async def health(adapter: NUTAdapter = Depends(get_adapter)) -> HealthResponse:
    last_notify = await adapter.store.get_state(LAST_NOTIFY_STATE)
    severity = await adapter.store.get_state(SEVERITY_STATE)
    connected = await adapter.store.get_state(CONNECTION_STATE)
    return HealthResponse(
        connected=connected.val if connected else None,
        last_notify=last_notify.val if last_notify else None,
        severity=severity.val if severity else None,
    )
