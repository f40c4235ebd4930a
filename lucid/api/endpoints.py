"""API endpoints for conversion, repair, sessions and tool approval."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from lucid import __version__
from lucid.exceptions import SessionNotFoundError
from lucid.models.api import ApprovalRequest, HealthResponse, MarkdownRequest, MarkdownResponse, SessionResponse
from lucid.models.ir import Conversation, is_tool_block
from lucid.models.session import Session
from lucid.models.wire import WireMessage
from lucid.services.adapter import WireAdapter
from lucid.services.markdown import heal_markdown
from lucid.services.session_manager import session_manager
from lucid.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

adapter = WireAdapter()


def _get_session(session_id: str) -> Session:
    try:
        return session_manager.require_session(session_id)
    except SessionNotFoundError as e:
        logger.warning(f"Unknown session ID: {session_id}")
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}") from e


@router.post("/convert/from-wire", tags=["Conversion"])
async def convert_from_wire(message: WireMessage) -> dict[str, Any]:
    """Convert a wire message to a Lucid IR conversation."""
    conversation = adapter.from_wire_message(message)
    logger.info(f"Converted message {message.id}: {len(message.parts)} parts -> {len(conversation.blocks)} blocks")
    return conversation.dump()


@router.post("/convert/to-wire", tags=["Conversion"])
async def convert_to_wire(conversation: Conversation) -> dict[str, Any]:
    """Convert a Lucid IR conversation to a wire message."""
    return adapter.to_wire_message(conversation).dump()


@router.post("/markdown/heal", response_model=MarkdownResponse, tags=["Markdown"])
async def heal(request: MarkdownRequest) -> MarkdownResponse:
    """Close unbalanced markdown markers in partially streamed text."""
    return MarkdownResponse(content=heal_markdown(request.content))


@router.post("/sessions", response_model=SessionResponse, tags=["Sessions"])
async def create_session() -> SessionResponse:
    session = session_manager.create_session()
    return SessionResponse(session_id=session.session_id)


@router.delete("/sessions/{session_id}", status_code=204, tags=["Sessions"])
async def delete_session(session_id: str) -> None:
    if not session_manager.delete_session(session_id):
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")


@router.post("/sessions/{session_id}/events", tags=["Sessions"])
async def post_events(session_id: str, events: list[dict[str, Any]]) -> dict[str, Any]:
    """Apply stream events to the conversation being built for the session."""
    session = _get_session(session_id)

    conversation = session.builder.conversation
    try:
        for event in events:
            conversation = session.apply_event(event)
    except ValidationError as e:
        logger.warning(f"Invalid stream event for session {session_id}: {e}")
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False)) from e
    except ValueError as e:
        logger.warning(f"Rejected stream event for session {session_id}: {e}")
        raise HTTPException(status_code=400, detail=str(e)) from e

    if conversation is None:
        raise HTTPException(status_code=400, detail="No conversation in progress; send message_start first")
    return conversation.dump()


@router.get("/sessions/{session_id}/conversations", tags=["Sessions"])
async def list_conversations(session_id: str) -> list[dict[str, Any]]:
    session = _get_session(session_id)
    return [conversation.dump() for conversation in session.conversations]


@router.post("/sessions/{session_id}/conversations", tags=["Sessions"])
async def add_wire_conversation(session_id: str, message: WireMessage) -> dict[str, Any]:
    """Convert a wire message and add the resulting conversation to the session."""
    session = _get_session(session_id)
    conversation = session.add_conversation(adapter.from_wire_message(message))
    return conversation.dump()


@router.post("/sessions/{session_id}/conversations/{conversation_id}/tools/{block_id}/approval", tags=["Tools"])
async def respond_to_approval(
    session_id: str, conversation_id: str, block_id: str, request: ApprovalRequest
) -> dict[str, Any]:
    """Approve or deny a tool call that is awaiting approval."""
    session = _get_session(session_id)
    conversation = session.get_conversation(conversation_id)
    if conversation is None:
        raise HTTPException(status_code=404, detail=f"Conversation not found: {conversation_id}")

    block = conversation.get_block(block_id)
    if block is None:
        raise HTTPException(status_code=404, detail=f"Block not found: {block_id}")
    if not is_tool_block(block):
        raise HTTPException(status_code=400, detail=f"Block {block_id} is a {block.type} block, not a tool block")

    try:
        if request.approved:
            block.approve(request.reason)
        else:
            block.deny(request.reason)
    except ValueError as e:
        logger.warning(f"Rejected approval for block {block_id}: {e}")
        raise HTTPException(status_code=400, detail=str(e)) from e

    logger.info(f"Tool {block.content.name} ({block_id}) {block.content.status}")
    if conversation is session.builder.conversation:
        session.builder.refresh_status()
    else:
        conversation.refresh_status()
    session.update_activity()
    return block.dump()


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=__version__,
    )
