"""Message schemas.

Message content is a tagged union on ``type``. Each variant knows how to
flatten itself into message columns and how to render the conversation
preview; ``content_from_message`` rebuilds a variant from a stored row.
"""

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator

from app.models.message import Message, MessageDirection, MessageStatus, MessageType

MAX_TEXT_LENGTH = 4096
MAX_CAPTION_LENGTH = 1024


class _MediaContent(BaseModel):
    """Media referenced either by public link or by uploaded media id."""

    link: str | None = Field(None, max_length=1000)
    media_id: str | None = Field(None, max_length=100)

    @model_validator(mode="after")
    def require_source(self):
        if not self.link and not self.media_id:
            raise ValueError("Either link or media_id is required")
        return self


class TextContent(BaseModel):
    """Plain text message."""

    type: Literal["text"] = "text"
    body: str = Field(..., min_length=1, max_length=MAX_TEXT_LENGTH)

    def to_columns(self) -> dict[str, Any]:
        return {"content_type": MessageType.TEXT, "content": self.body}

    def preview(self) -> str:
        return self.body


class ImageContent(_MediaContent):
    """Image message with optional caption."""

    type: Literal["image"] = "image"
    caption: str | None = Field(None, max_length=MAX_CAPTION_LENGTH)

    def to_columns(self) -> dict[str, Any]:
        return {
            "content_type": MessageType.IMAGE,
            "content": self.caption or "",
            "media_url": self.link,
            "media_id": self.media_id,
        }

    def preview(self) -> str:
        return self.caption or "[image]"


class AudioContent(_MediaContent):
    """Audio message."""

    type: Literal["audio"] = "audio"

    def to_columns(self) -> dict[str, Any]:
        return {
            "content_type": MessageType.AUDIO,
            "content": "",
            "media_url": self.link,
            "media_id": self.media_id,
        }

    def preview(self) -> str:
        return "[audio]"


MessageContent = Annotated[
    Union[TextContent, ImageContent, AudioContent],
    Field(discriminator="type"),
]

_content_adapter: TypeAdapter = TypeAdapter(MessageContent)


def parse_content(raw: Any) -> TextContent | ImageContent | AudioContent:
    """Validate raw content; a plain string is a text body.

    Raises:
        pydantic.ValidationError: If the content matches no variant
    """
    if isinstance(raw, (TextContent, ImageContent, AudioContent)):
        return raw
    if isinstance(raw, str):
        raw = {"type": "text", "body": raw}
    return _content_adapter.validate_python(raw)


def content_from_message(message: Message) -> TextContent | ImageContent | AudioContent:
    """Rebuild the content variant a stored message was sent with."""
    if message.content_type == MessageType.IMAGE:
        return ImageContent(
            link=message.media_url,
            media_id=message.media_id,
            caption=message.content or None,
        )
    if message.content_type == MessageType.AUDIO:
        return AudioContent(link=message.media_url, media_id=message.media_id)
    return TextContent(body=message.content)


class SendMessageRequest(BaseModel):
    """Schema for sending a new message."""

    phone: str = Field(..., min_length=1, max_length=32, description="Recipient phone number")
    content: MessageContent = Field(..., description="Message content, or a plain text body")

    @field_validator("content", mode="before")
    @classmethod
    def text_shorthand(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"type": "text", "body": value}
        return value


class MessageDetail(BaseModel):
    """Schema for message details."""

    id: int
    conversation_id: int
    contact_id: int
    whatsapp_account_id: int | None
    direction: MessageDirection
    status: MessageStatus
    content_type: MessageType
    content: str
    media_url: str | None
    media_id: str | None
    provider_message_id: str | None
    provider_status: str | None
    error_code: str | None
    error_message: str | None
    created_by: int | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SendMessageResponse(BaseModel):
    """Result of a successful send."""

    conversation_id: int
    contact_id: int
    message_id: int
    message: MessageDetail
    created_contact: bool
    created_conversation: bool

    class Config:
        from_attributes = True
