from fastapi import APIRouter, Depends

from nutbridge.api.deps import get_adapter
from nutbridge.nut.adapter import NUTAdapter
from nutbridge.nut.models import AdapterMessage

router = APIRouter()


@router.post("/messages", status_code=202, summary="Send a message to the adapter")
async def post_message(message: AdapterMessage, adapter: NUTAdapter = Depends(get_adapter)) -> dict:
    """
    Deliver a message, typically a ``notify`` from upsmon's NOTIFYCMD:

        {"command": "notify", "message": {"notifytype": "ONBATT", "upsname": "ups@10.0.0.2"}}
    """
    await adapter.handle_message(message)
    return {"accepted": True}
