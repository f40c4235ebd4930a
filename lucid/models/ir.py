"""Lucid IR data models.

A conversation is an ordered list of typed blocks. Each block type has its own
model class whose ``content`` is the matching content model, so a block can
never carry content of another type. ``Block`` is the discriminated union over
all block classes and is what every consumer should match on.
"""

import time
from typing import Annotated, Any, Literal, TypeGuard

from pydantic import BaseModel, Field, TypeAdapter

from lucid.exceptions import BlockNotMutableError, InvalidTransitionError

ConversationRole = Literal["user", "assistant", "system"]
ContentStatus = Literal["streaming", "completed", "error"]
BlockType = Literal["text", "tool", "thinking", "image", "file", "error", "source"]
SourceType = Literal["url", "document"]

ToolStatus = Literal[
    "pending",
    "streaming",
    "ready",
    "running",
    "approval-required",
    "approved",
    "denied",
    "success",
    "error",
]

TOOL_TERMINAL_STATUSES: frozenset[str] = frozenset({"success", "error", "denied"})
TOOL_EXECUTING_STATUSES: frozenset[str] = frozenset({"running", "approved"})

# approval-required is only reachable from ready, approved/denied only from approval-required.
TOOL_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"streaming", "ready", "running", "error"}),
    "streaming": frozenset({"ready", "error"}),
    "ready": frozenset({"running", "approval-required", "error"}),
    "approval-required": frozenset({"approved", "denied"}),
    "approved": frozenset({"running", "success", "error"}),
    "running": frozenset({"success", "error"}),
    "denied": frozenset(),
    "success": frozenset(),
    "error": frozenset(),
}


def now_ms() -> int:
    """Current Unix time in milliseconds."""
    return int(time.time() * 1000)


class IRModel(BaseModel):
    """Base for IR models: camelCase on the wire, snake_case in Python."""

    class Config:
        populate_by_name = True

    def dump(self) -> dict[str, Any]:
        """Serialize to the IR JSON shape (aliased names, absent optionals omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# Block content types
class TextContent(IRModel):
    """Content for text blocks."""

    text: str


class ThinkingContent(IRModel):
    """Content for thinking/reasoning blocks."""

    reasoning: str


class ImageContent(IRModel):
    """Content for image blocks."""

    url: str
    alt: str | None = None
    width: int | None = None
    height: int | None = None


class FileContent(IRModel):
    """Content for file attachment blocks."""

    name: str
    type: str = Field(description="MIME type")
    url: str
    size: int | None = None


class ErrorContent(IRModel):
    """Content for error blocks."""

    code: str
    message: str
    details: Any = None


class SourceContent(IRModel):
    """Content for source/citation blocks used in retrieval-augmented answers."""

    source_id: str = Field(alias="sourceId")
    source_type: SourceType = Field(alias="sourceType")
    title: str
    url: str | None = None
    media_type: str | None = Field(default=None, alias="mediaType")
    filename: str | None = None
    excerpt: str | None = None


class ToolApproval(IRModel):
    """User approval response for a tool execution."""

    id: str
    approved: bool | None = None
    reason: str | None = None


class ToolContent(IRModel):
    """Content for tool/function call blocks."""

    name: str
    input: Any = Field(default_factory=dict, description="May be partial while streaming")
    output: Any = None
    status: ToolStatus = "pending"
    error: str | None = None
    approval: ToolApproval | None = None

    def can_transition(self, target: ToolStatus) -> bool:
        """Whether the tool state machine allows moving to ``target``."""
        return target in TOOL_TRANSITIONS[self.status]

    def transition(self, target: ToolStatus) -> None:
        """Move to ``target`` or raise without touching the current status."""
        if not self.can_transition(target):
            raise InvalidTransitionError("tool", self.status, target)
        self.status = target


# Blocks
class BaseBlock(IRModel):
    """Fields shared by every block type."""

    id: str
    type: BlockType
    status: ContentStatus = "completed"

    def set_status(self, target: ContentStatus) -> None:
        """Update the block status.

        Status is monotonic: once a block leaves ``streaming`` it can never go
        back, and ``error`` is final. Setting the current status is a no-op.
        """
        if target == self.status:
            return
        if target == "streaming" or self.status == "error":
            raise InvalidTransitionError("block", self.status, target)
        self.status = target


class TextBlock(BaseBlock):
    type: Literal["text"] = "text"
    content: TextContent


class ThinkingBlock(BaseBlock):
    type: Literal["thinking"] = "thinking"
    content: ThinkingContent


class ImageBlock(BaseBlock):
    type: Literal["image"] = "image"
    content: ImageContent


class FileBlock(BaseBlock):
    type: Literal["file"] = "file"
    content: FileContent


class ErrorBlock(BaseBlock):
    type: Literal["error"] = "error"
    content: ErrorContent


class SourceBlock(BaseBlock):
    type: Literal["source"] = "source"
    content: SourceContent


class ToolBlock(BaseBlock):
    """Tool call block with the approval workflow helpers."""

    type: Literal["tool"] = "tool"
    content: ToolContent

    def request_approval(self, approval_id: str) -> None:
        """Gate execution on a human decision (``ready -> approval-required``)."""
        self.content.transition("approval-required")
        self.content.approval = ToolApproval(id=approval_id)

    def approve(self, reason: str | None = None) -> None:
        """Record a positive decision (``approval-required -> approved``)."""
        self._respond(approved=True, reason=reason)

    def deny(self, reason: str | None = None) -> None:
        """Record a negative decision (``approval-required -> denied``)."""
        self._respond(approved=False, reason=reason)

    def start(self) -> None:
        self.content.transition("running")

    def succeed(self, output: Any = None) -> None:
        self.content.transition("success")
        self.content.output = output
        if self.status == "streaming":
            self.set_status("completed")

    def fail(self, error: str) -> None:
        self.content.transition("error")
        self.content.error = error
        self.set_status("error")

    def _respond(self, approved: bool, reason: str | None) -> None:
        self.content.transition("approved" if approved else "denied")
        approval = self.content.approval or ToolApproval(id=self.id)
        self.content.approval = approval.model_copy(update={"approved": approved, "reason": reason})


Block = Annotated[
    TextBlock | ToolBlock | ThinkingBlock | ImageBlock | FileBlock | ErrorBlock | SourceBlock,
    Field(discriminator="type"),
]

_block_adapter: TypeAdapter[Block] = TypeAdapter(Block)


def parse_block(data: dict[str, Any]) -> Block:
    """Validate a block from its IR JSON shape."""
    return _block_adapter.validate_python(data)


class Conversation(IRModel):
    """A conversation message containing an ordered list of blocks."""

    id: str
    role: ConversationRole
    status: ContentStatus = "completed"
    blocks: list[Block] = Field(default_factory=list)
    timestamp: int = Field(default_factory=now_ms, description="Unix timestamp in milliseconds")
    metadata: Any = None

    def get_block(self, block_id: str) -> Block | None:
        return next((block for block in self.blocks if block.id == block_id), None)

    def append_block(self, block: Block) -> Block:
        """Append a block; earlier blocks are never replaced."""
        self.blocks.append(block)
        return block

    def mutable_block(self, block_id: str) -> Block:
        """Return the block if it may be mutated in place.

        Only the most recently appended block may change, and only while it
        is still streaming.

        Raises:
            BlockNotMutableError: If the block is unknown, not last, or no longer streaming
        """
        if not self.blocks or self.blocks[-1].id != block_id:
            raise BlockNotMutableError(f"Block {block_id} is not the last block of conversation {self.id}")
        block = self.blocks[-1]
        if block.status != "streaming":
            raise BlockNotMutableError(f"Block {block_id} is {block.status}, not streaming")
        return block

    def refresh_status(self) -> ContentStatus:
        """Recompute the conversation status from its blocks."""
        from lucid.services.status import aggregate_status

        self.status = aggregate_status(self.blocks)
        return self.status


# Type guards
def is_text_block(block: Block) -> TypeGuard[TextBlock]:
    return block.type == "text"


def is_tool_block(block: Block) -> TypeGuard[ToolBlock]:
    return block.type == "tool"


def is_thinking_block(block: Block) -> TypeGuard[ThinkingBlock]:
    return block.type == "thinking"


def is_image_block(block: Block) -> TypeGuard[ImageBlock]:
    return block.type == "image"


def is_file_block(block: Block) -> TypeGuard[FileBlock]:
    return block.type == "file"


def is_error_block(block: Block) -> TypeGuard[ErrorBlock]:
    return block.type == "error"


def is_source_block(block: Block) -> TypeGuard[SourceBlock]:
    return block.type == "source"


# Tool status helpers
def is_tool_awaiting_approval(block: ToolBlock) -> bool:
    """Check if tool requires user approval."""
    return block.content.status == "approval-required"


def is_tool_terminal(block: ToolBlock) -> bool:
    """Check if tool is in a terminal state (success, error, or denied)."""
    return block.content.status in TOOL_TERMINAL_STATUSES


def is_tool_executing(block: ToolBlock) -> bool:
    """Check if tool is currently executing."""
    return block.content.status in TOOL_EXECUTING_STATUSES


# Status guards
def is_streaming(item: BaseBlock | Conversation) -> bool:
    return item.status == "streaming"


def is_completed(item: BaseBlock | Conversation) -> bool:
    return item.status == "completed"


def is_error(item: BaseBlock | Conversation) -> bool:
    return item.status == "error"
