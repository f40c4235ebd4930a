"""Incremental stream events (Anthropic Messages streaming shape)."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter

from lucid.models.ir import ConversationRole


class MessageInfo(BaseModel):
    id: str | None = None
    role: ConversationRole = "assistant"

    class Config:
        extra = "ignore"  # Ignore model, usage and other provider fields


class ContentBlockInfo(BaseModel):
    """Header of a content block; ``type`` is text, thinking or tool_use."""

    type: str
    id: str | None = None
    name: str | None = None

    class Config:
        extra = "ignore"


class TextDelta(BaseModel):
    type: Literal["text_delta"] = "text_delta"
    text: str


class ThinkingDelta(BaseModel):
    type: Literal["thinking_delta"] = "thinking_delta"
    thinking: str


class InputJsonDelta(BaseModel):
    type: Literal["input_json_delta"] = "input_json_delta"
    partial_json: str


class SignatureDelta(BaseModel):
    type: Literal["signature_delta"] = "signature_delta"
    signature: str


Delta = Annotated[TextDelta | ThinkingDelta | InputJsonDelta | SignatureDelta, Field(discriminator="type")]


class MessageStartEvent(BaseModel):
    type: Literal["message_start"] = "message_start"
    message: MessageInfo = Field(default_factory=MessageInfo)


class ContentBlockStartEvent(BaseModel):
    type: Literal["content_block_start"] = "content_block_start"
    index: int
    content_block: ContentBlockInfo


class ContentBlockDeltaEvent(BaseModel):
    type: Literal["content_block_delta"] = "content_block_delta"
    index: int
    delta: Delta


class ContentBlockStopEvent(BaseModel):
    type: Literal["content_block_stop"] = "content_block_stop"
    index: int


class MessageDeltaEvent(BaseModel):
    type: Literal["message_delta"] = "message_delta"
    delta: dict[str, Any] = Field(default_factory=dict)


class MessageStopEvent(BaseModel):
    type: Literal["message_stop"] = "message_stop"


class PingEvent(BaseModel):
    type: Literal["ping"] = "ping"


class ErrorInfo(BaseModel):
    type: str = "error"
    message: str


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    error: ErrorInfo


StreamEvent = Annotated[
    MessageStartEvent
    | ContentBlockStartEvent
    | ContentBlockDeltaEvent
    | ContentBlockStopEvent
    | MessageDeltaEvent
    | MessageStopEvent
    | PingEvent
    | ErrorEvent,
    Field(discriminator="type"),
]

_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)


def parse_event(data: dict[str, Any]) -> StreamEvent:
    """Validate a raw stream event.

    Raises:
        pydantic.ValidationError: If the event type is unknown or fields are missing
    """
    return _event_adapter.validate_python(data)
