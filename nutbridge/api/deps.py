from fastapi import Request

from nutbridge.nut.adapter import NUTAdapter
from nutbridge.store.base import StateStore


def get_adapter(request: Request) -> NUTAdapter:
    return request.app.state.adapter


def get_store(request: Request) -> StateStore:
    return request.app.state.adapter.store
