"""Bidirectional conversion between wire messages and Lucid IR conversations."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import assert_never

from lucid.models.ir import (
    Block,
    ContentStatus,
    Conversation,
    ErrorBlock,
    FileBlock,
    FileContent,
    ImageBlock,
    SourceBlock,
    SourceContent,
    TextBlock,
    TextContent,
    ThinkingBlock,
    ThinkingContent,
    ToolApproval,
    ToolBlock,
    ToolContent,
    ToolStatus,
)
from lucid.models.wire import (
    FilePart,
    ReasoningPart,
    SourceDocumentPart,
    SourceUrlPart,
    TextPart,
    ToolPart,
    UnknownPart,
    WireApproval,
    WireMessage,
    WirePart,
)
from lucid.services.ids import BlockIdGenerator, CuidIdGenerator
from lucid.services.status import aggregate_status
from lucid.utils.logging import get_logger

logger = get_logger(__name__)

TOOL_STATE_TO_STATUS: dict[str, ToolStatus] = {
    "input-streaming": "streaming",
    "input-available": "ready",
    "approval-requested": "approval-required",
    "approval-responded": "approved",
    "output-available": "success",
    "output-error": "error",
    "output-denied": "denied",
}

# Not the inverse of TOOL_STATE_TO_STATUS: running and approved both become
# approval-responded, which reads back as approved.
STATUS_TO_TOOL_STATE: dict[ToolStatus, str] = {
    "pending": "input-streaming",
    "streaming": "input-streaming",
    "ready": "input-available",
    "approval-required": "approval-requested",
    "approved": "approval-responded",
    "running": "approval-responded",
    "success": "output-available",
    "error": "output-error",
    "denied": "output-denied",
}


def tool_state_to_status(state: str | None) -> ToolStatus:
    """Map a wire tool state to a ToolStatus; unknown or missing states are pending."""
    if state is None:
        return "pending"
    return TOOL_STATE_TO_STATUS.get(state, "pending")


def tool_status_to_state(status: ToolStatus) -> str:
    """Map a ToolStatus to its wire tool state."""
    return STATUS_TO_TOOL_STATE.get(status, "input-streaming")


def extract_tool_name(part: ToolPart) -> str:
    """Tool name from a ``dynamic-tool`` name field or a ``tool-<name>`` tag."""
    if part.type == "dynamic-tool":
        return part.tool_name or "unknown"
    return part.type.removeprefix("tool-")


def _text_status(state: str | None) -> ContentStatus:
    return "streaming" if state == "streaming" else "completed"


def _tool_block_status(state: str | None) -> ContentStatus:
    if state == "input-streaming":
        return "streaming"
    if state == "output-error":
        return "error"
    return "completed"


@dataclass
class ConversionOptions:
    """Options for wire to IR conversion."""

    # Defaults to a fresh cuid2 generator owned by the adapter
    generate_block_id: BlockIdGenerator | None = None
    include_metadata: bool = False
    filter_part: Callable[[WirePart], bool] | None = None


class WireAdapter:
    """Converts wire messages to IR conversations and back.

    Conversion is pure and order preserving: every supported part becomes one
    block, in the order the parts appear. Unsupported parts produce no block.
    """

    def __init__(self, options: ConversionOptions | None = None):
        """Initialize the adapter.

        Args:
            options: Conversion options; the id generator is created here if not given
        """
        self.options = options or ConversionOptions()
        self.generate_block_id: BlockIdGenerator = self.options.generate_block_id or CuidIdGenerator()

    # Wire -> IR

    def part_to_block(self, part: WirePart) -> Block | None:
        """Convert a single wire part to a block, or None for unsupported parts."""
        match part:
            case TextPart():
                return TextBlock(
                    id=self.generate_block_id(),
                    status=_text_status(part.state),
                    content=TextContent(text=part.text),
                )
            case ReasoningPart():
                return ThinkingBlock(
                    id=self.generate_block_id(),
                    status=_text_status(part.state),
                    content=ThinkingContent(reasoning=part.text),
                )
            case FilePart():
                return FileBlock(
                    id=self.generate_block_id(),
                    content=FileContent(name=part.filename or "file", type=part.media_type, url=part.url),
                )
            case SourceUrlPart():
                return SourceBlock(
                    id=self.generate_block_id(),
                    content=SourceContent(
                        source_id=part.source_id,
                        source_type="url",
                        title=part.title or part.url,
                        url=part.url,
                    ),
                )
            case SourceDocumentPart():
                return SourceBlock(
                    id=self.generate_block_id(),
                    content=SourceContent(
                        source_id=part.source_id,
                        source_type="document",
                        title=part.title,
                        media_type=part.media_type,
                        filename=part.filename,
                    ),
                )
            case ToolPart():
                return self._tool_part_to_block(part)
            case UnknownPart():
                logger.debug(f"Skipping unsupported wire part type: {part.type}")
                return None
            case _:
                assert_never(part)

    def _tool_part_to_block(self, part: ToolPart) -> ToolBlock:
        approval = None
        if part.approval is not None:
            approval = ToolApproval(
                id=part.approval.id,
                approved=part.approval.approved,
                reason=part.approval.reason,
            )

        return ToolBlock(
            id=self.generate_block_id(),
            status=_tool_block_status(part.state),
            content=ToolContent(
                name=extract_tool_name(part),
                input=part.input if part.input is not None else {},
                output=part.output,
                status=tool_state_to_status(part.state),
                error=part.error_text,
                approval=approval,
            ),
        )

    def from_wire_message(self, message: WireMessage) -> Conversation:
        """Convert a wire message to a conversation."""
        blocks: list[Block] = []
        for part in message.parts:
            if self.options.filter_part is not None and not self.options.filter_part(part):
                continue
            block = self.part_to_block(part)
            if block is not None:
                blocks.append(block)

        dropped = len(message.parts) - len(blocks)
        if dropped:
            logger.debug(f"Message {message.id}: {dropped} of {len(message.parts)} parts produced no block")

        return Conversation(
            id=message.id,
            role=message.role,
            status=aggregate_status(blocks),
            blocks=blocks,
            metadata=message.metadata if self.options.include_metadata else None,
        )

    def from_wire_messages(self, messages: Iterable[WireMessage]) -> list[Conversation]:
        return [self.from_wire_message(message) for message in messages]

    # IR -> Wire

    def block_to_parts(self, block: Block) -> list[WirePart]:
        """Convert a block to its wire parts; image and error blocks have none."""
        match block:
            case TextBlock():
                return [TextPart(text=block.content.text, state=_wire_text_state(block.status))]
            case ThinkingBlock():
                return [ReasoningPart(text=block.content.reasoning, state=_wire_text_state(block.status))]
            case FileBlock():
                return [FilePart(media_type=block.content.type, filename=block.content.name, url=block.content.url)]
            case SourceBlock():
                content = block.content
                if content.source_type == "url":
                    return [SourceUrlPart(source_id=content.source_id, url=content.url or "", title=content.title)]
                return [
                    SourceDocumentPart(
                        source_id=content.source_id,
                        media_type=content.media_type or "",
                        title=content.title,
                        filename=content.filename,
                    )
                ]
            case ToolBlock():
                content = block.content
                approval = None
                if content.approval is not None:
                    approval = WireApproval(
                        id=content.approval.id,
                        approved=content.approval.approved,
                        reason=content.approval.reason,
                    )
                return [
                    ToolPart(
                        type="dynamic-tool",
                        tool_name=content.name,
                        tool_call_id=block.id,
                        state=tool_status_to_state(content.status),
                        input=content.input,
                        output=content.output,
                        error_text=content.error,
                        approval=approval,
                    )
                ]
            case ImageBlock() | ErrorBlock():
                return []
            case _:
                assert_never(block)

    def to_wire_message(self, conversation: Conversation) -> WireMessage:
        """Convert a conversation to a wire message."""
        parts: list[WirePart] = []
        for block in conversation.blocks:
            parts.extend(self.block_to_parts(block))
        return WireMessage(id=conversation.id, role=conversation.role, parts=parts)

    def to_wire_messages(self, conversations: Iterable[Conversation]) -> list[WireMessage]:
        return [self.to_wire_message(conversation) for conversation in conversations]


def _wire_text_state(status: ContentStatus) -> str:
    return "streaming" if status == "streaming" else "done"
