"""Builds an IR conversation incrementally from stream events."""

import asyncio
import json
from collections.abc import AsyncIterable
from typing import Any

from lucid.models.events import (
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    ContentBlockStopEvent,
    ErrorEvent,
    InputJsonDelta,
    MessageDeltaEvent,
    MessageStartEvent,
    MessageStopEvent,
    PingEvent,
    SignatureDelta,
    StreamEvent,
    TextDelta,
    ThinkingDelta,
    parse_event,
)
from lucid.models.ir import (
    Block,
    Conversation,
    ErrorBlock,
    ErrorContent,
    TextBlock,
    TextContent,
    ThinkingBlock,
    ThinkingContent,
    ToolBlock,
    ToolContent,
)
from lucid.services.ids import BlockIdGenerator, CuidIdGenerator
from lucid.utils.logging import get_logger

logger = get_logger(__name__)


def parse_partial_json(buffer: str) -> tuple[bool, Any]:
    """Try to parse a possibly incomplete JSON payload.

    Returns:
        ``(True, value)`` when the buffer parses, ``(False, None)`` otherwise
    """
    try:
        return True, json.loads(buffer)
    except json.JSONDecodeError:
        return False, None


class ConversationBuilder:
    """Applies stream events to the conversation currently being streamed.

    Every applied event is followed by a status recomputation. ``apply`` is
    synchronous, so on a single event loop a recomputation can never observe a
    half-applied event; ``consume_events`` additionally serializes async feeds.
    """

    def __init__(
        self,
        generate_block_id: BlockIdGenerator | None = None,
        generate_conversation_id: BlockIdGenerator | None = None,
    ):
        self.generate_block_id = generate_block_id or CuidIdGenerator()
        self.generate_conversation_id = generate_conversation_id or CuidIdGenerator(prefix="conv")
        self.conversation: Conversation | None = None
        self.message_open = False
        self._block_ids: dict[int, str] = {}
        self._json_buffers: dict[str, str] = {}
        self._lock = asyncio.Lock()

    def apply(self, event: StreamEvent | dict[str, Any]) -> Conversation | None:
        """Apply one event and return the conversation it belongs to.

        Raises:
            pydantic.ValidationError: If a raw event does not validate
            BlockNotMutableError: If a delta targets a block that is no longer streaming
        """
        if isinstance(event, dict):
            event = parse_event(event)

        if isinstance(event, MessageStartEvent):
            self._start_message(event)
            return self.conversation

        if self.conversation is None:
            logger.warning(f"Ignoring {event.type} event received before message_start")
            return None

        match event:
            case ContentBlockStartEvent():
                self._start_block(event)
            case ContentBlockDeltaEvent():
                self._apply_delta(event)
            case ContentBlockStopEvent():
                self._stop_block(event.index)
            case MessageStopEvent():
                self._finish_streaming_blocks()
                self.message_open = False
            case ErrorEvent():
                self._apply_error(event)
                self.message_open = False
            case MessageDeltaEvent() | PingEvent():
                pass

        self.refresh_status()
        return self.conversation

    def refresh_status(self) -> None:
        """Recompute the conversation status.

        Until message_stop arrives the message stays streaming, even between
        content blocks when no block is streaming.
        """
        if self.conversation is None:
            return
        if self.conversation.refresh_status() == "completed" and self.message_open:
            self.conversation.status = "streaming"

    async def consume_events(self, events: AsyncIterable[StreamEvent | dict[str, Any]]) -> Conversation | None:
        """Apply events from an async source in arrival order."""
        async for event in events:
            async with self._lock:
                self.apply(event)
        return self.conversation

    def _start_message(self, event: MessageStartEvent) -> None:
        if self.conversation is not None:
            logger.info(f"New message_start replaces conversation {self.conversation.id}")
        self._block_ids.clear()
        self._json_buffers.clear()
        self.message_open = True
        self.conversation = Conversation(
            id=event.message.id or self.generate_conversation_id(),
            role=event.message.role,
            status="streaming",
        )

    def _start_block(self, event: ContentBlockStartEvent) -> None:
        info = event.content_block
        block: Block
        if info.type == "text":
            block = TextBlock(id=self.generate_block_id(), status="streaming", content=TextContent(text=""))
        elif info.type == "thinking":
            block = ThinkingBlock(
                id=self.generate_block_id(), status="streaming", content=ThinkingContent(reasoning="")
            )
        elif info.type == "tool_use":
            block = ToolBlock(
                id=info.id or self.generate_block_id(),
                status="streaming",
                content=ToolContent(name=info.name or "unknown", input={}, status="streaming"),
            )
        else:
            logger.warning(f"Unsupported content block type at index {event.index}: {info.type}")
            return

        self._block_ids[event.index] = block.id
        self.conversation.append_block(block)

    def _apply_delta(self, event: ContentBlockDeltaEvent) -> None:
        block_id = self._block_ids.get(event.index)
        if block_id is None:
            logger.warning(f"Ignoring delta for unknown block index {event.index}")
            return

        block = self.conversation.mutable_block(block_id)
        delta = event.delta
        if isinstance(delta, TextDelta) and isinstance(block, TextBlock):
            block.content.text += delta.text
        elif isinstance(delta, ThinkingDelta) and isinstance(block, ThinkingBlock):
            block.content.reasoning += delta.thinking
        elif isinstance(delta, InputJsonDelta) and isinstance(block, ToolBlock):
            self._apply_partial_json(block, delta.partial_json)
        elif isinstance(delta, SignatureDelta):
            pass
        else:
            logger.warning(f"Delta {delta.type} does not apply to {block.type} block {block.id}")

    def _apply_partial_json(self, block: ToolBlock, fragment: str) -> None:
        buffer = self._json_buffers.get(block.id, "") + fragment
        self._json_buffers[block.id] = buffer

        parsed, value = parse_partial_json(buffer)
        if not parsed:
            # Incomplete payload: keep the last input that parsed
            logger.debug(f"Tool input for {block.id} not parseable yet ({len(buffer)} chars)")
            return
        block.content.input = value

    def _stop_block(self, index: int) -> None:
        block_id = self._block_ids.get(index)
        block = self.conversation.get_block(block_id) if block_id else None
        if block is None:
            logger.warning(f"Ignoring stop for unknown block index {index}")
            return
        self._complete_block(block)

    def _complete_block(self, block: Block) -> None:
        if block.status != "streaming":
            return
        block.set_status("completed")
        if isinstance(block, ToolBlock):
            buffer = self._json_buffers.pop(block.id, None)
            if buffer and not parse_partial_json(buffer)[0]:
                logger.warning(f"Tool input for {block.id} ended unparseable; keeping last parsed value")
            if block.content.status == "streaming":
                block.content.transition("ready")

    def _finish_streaming_blocks(self) -> None:
        for block in self.conversation.blocks:
            self._complete_block(block)

    def _apply_error(self, event: ErrorEvent) -> None:
        logger.warning(f"Stream error for conversation {self.conversation.id}: {event.error.message}")
        for block in self.conversation.blocks:
            if block.status != "streaming":
                continue
            if isinstance(block, ToolBlock):
                block.fail(event.error.message)
            else:
                block.set_status("error")

        self.conversation.append_block(
            ErrorBlock(
                id=self.generate_block_id(),
                status="error",
                content=ErrorContent(code=event.error.type, message=event.error.message),
            )
        )
