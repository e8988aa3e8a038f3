"""Message sending endpoints."""

from fastapi import APIRouter

from app.api.deps import MessageServiceDep
from app.core.exceptions import unwrap
from app.schemas import MessageDetail, SendMessageRequest, SendMessageResponse

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("", response_model=SendMessageResponse, status_code=201)
async def send_message(
    data: SendMessageRequest,
    service: MessageServiceDep,
):
    """Send a message to a phone number.

    The contact and its conversation are created on first contact. A failed
    delivery is still stored as a ``failed`` message and answered with 502
    and the ``WHATSAPP_SEND_FAILED`` code.
    """
    sent = unwrap(await service.send_message(data.phone, data.content))
    return SendMessageResponse.model_validate(sent, from_attributes=True)


@router.post("/{message_id}/retry", response_model=SendMessageResponse, status_code=201)
async def retry_message(
    message_id: int,
    service: MessageServiceDep,
):
    """Send a failed message again; the failed message is kept as it is."""
    sent = unwrap(await service.retry_failed_message(message_id))
    return SendMessageResponse.model_validate(sent, from_attributes=True)


@router.get("/{message_id}", response_model=MessageDetail)
async def get_message(
    message_id: int,
    service: MessageServiceDep,
):
    """Get message details."""
    return unwrap(await service.get_message(message_id))
