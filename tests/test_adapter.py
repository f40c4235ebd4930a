"""Tests for the wire <-> IR adapter."""

import pytest
from pydantic import ValidationError

from lucid.models.ir import (
    Conversation,
    ErrorBlock,
    ErrorContent,
    FileBlock,
    ImageBlock,
    ImageContent,
    SourceBlock,
    TextBlock,
    TextContent,
    ThinkingBlock,
    ToolBlock,
    ToolContent,
    ToolStatus,
)
from lucid.models.wire import TextPart, ToolPart, WireMessage
from lucid.services.adapter import (
    STATUS_TO_TOOL_STATE,
    TOOL_STATE_TO_STATUS,
    ConversionOptions,
    WireAdapter,
    tool_state_to_status,
    tool_status_to_state,
)
from lucid.services.ids import CounterIdGenerator


@pytest.fixture
def adapter() -> WireAdapter:
    return WireAdapter(ConversionOptions(generate_block_id=CounterIdGenerator()))


def wire_message(*parts: dict, role: str = "assistant", **extra) -> WireMessage:
    return WireMessage.model_validate({"id": "msg-1", "role": role, "parts": list(parts), **extra})


class TestToolStateMapping:
    """Tests for the tool state mapping tables."""

    def test_forward_mapping(self):
        """Test every known wire state."""
        assert tool_state_to_status("input-streaming") == "streaming"
        assert tool_state_to_status("input-available") == "ready"
        assert tool_state_to_status("approval-requested") == "approval-required"
        assert tool_state_to_status("approval-responded") == "approved"
        assert tool_state_to_status("output-available") == "success"
        assert tool_state_to_status("output-error") == "error"
        assert tool_state_to_status("output-denied") == "denied"

    def test_unknown_and_missing_states_are_pending(self):
        assert tool_state_to_status("bogus") == "pending"
        assert tool_state_to_status(None) == "pending"

    def test_reverse_mapping_is_lossy_for_running_and_pending(self):
        """Test that only pending and running fail to survive a round trip."""
        lossy = set()
        for status, state in STATUS_TO_TOOL_STATE.items():
            if tool_state_to_status(state) != status:
                lossy.add(status)
        assert lossy == {"pending", "running"}
        assert tool_status_to_state("running") == "approval-responded"
        assert tool_status_to_state("pending") == "input-streaming"

    def test_forward_states_round_trip(self):
        for state, status in TOOL_STATE_TO_STATUS.items():
            assert tool_status_to_state(status) == state


class TestFromWire:
    """Tests for wire message -> conversation."""

    def test_text_and_reasoning(self, adapter):
        """Test text and reasoning parts with their streaming state."""
        conversation = adapter.from_wire_message(
            wire_message(
                {"type": "reasoning", "text": "thinking...", "state": "done"},
                {"type": "text", "text": "Hel", "state": "streaming"},
            )
        )
        thinking, text = conversation.blocks
        assert isinstance(thinking, ThinkingBlock)
        assert thinking.content.reasoning == "thinking..."
        assert thinking.status == "completed"
        assert isinstance(text, TextBlock)
        assert text.status == "streaming"
        assert conversation.status == "streaming"

    def test_file_and_sources(self, adapter):
        """Test file, source-url and source-document parts."""
        conversation = adapter.from_wire_message(
            wire_message(
                {"type": "file", "mediaType": "image/png", "url": "https://x/y.png"},
                {"type": "source-url", "sourceId": "s1", "url": "https://example.com"},
                {"type": "source-document", "sourceId": "s2", "mediaType": "application/pdf", "title": "Paper"},
            )
        )
        file_block, url_source, doc_source = conversation.blocks
        assert isinstance(file_block, FileBlock)
        assert file_block.content.name == "file"
        assert file_block.content.type == "image/png"
        assert isinstance(url_source, SourceBlock)
        assert url_source.content.source_type == "url"
        assert url_source.content.title == "https://example.com"
        assert isinstance(doc_source, SourceBlock)
        assert doc_source.content.source_type == "document"
        assert doc_source.content.media_type == "application/pdf"

    def test_named_tool_part(self, adapter):
        """Test a tool-<name> part that completed."""
        conversation = adapter.from_wire_message(
            wire_message(
                {
                    "type": "tool-search",
                    "toolCallId": "call-1",
                    "state": "output-available",
                    "input": {"query": "weather"},
                    "output": {"temp": 21},
                }
            )
        )
        (block,) = conversation.blocks
        assert isinstance(block, ToolBlock)
        assert block.content.name == "search"
        assert block.content.status == "success"
        assert block.content.input == {"query": "weather"}
        assert block.content.output == {"temp": 21}
        assert block.status == "completed"

    def test_dynamic_tool_awaiting_approval(self, adapter):
        """Test a dynamic tool awaiting approval carries its approval record."""
        conversation = adapter.from_wire_message(
            wire_message(
                {
                    "type": "dynamic-tool",
                    "toolName": "delete_file",
                    "toolCallId": "call-2",
                    "state": "approval-requested",
                    "input": {"path": "/tmp/x"},
                    "approval": {"id": "appr-1"},
                }
            )
        )
        (block,) = conversation.blocks
        assert block.content.name == "delete_file"
        assert block.content.status == "approval-required"
        assert block.content.approval is not None
        assert block.content.approval.id == "appr-1"
        assert block.content.approval.approved is None

    def test_tool_block_statuses(self, adapter):
        """Test block status derived from tool state."""
        conversation = adapter.from_wire_message(
            wire_message(
                {"type": "tool-a", "toolCallId": "1", "state": "input-streaming"},
                {"type": "tool-b", "toolCallId": "2", "state": "output-error", "errorText": "boom"},
                {"type": "tool-c", "toolCallId": "3", "state": "input-available"},
            )
        )
        streaming, errored, ready = conversation.blocks
        assert streaming.status == "streaming"
        assert streaming.content.input == {}
        assert errored.status == "error"
        assert errored.content.error == "boom"
        assert ready.status == "completed"
        assert conversation.status == "streaming"

    def test_unknown_parts_are_dropped_and_order_kept(self, adapter):
        """Test that unsupported parts produce no block and order is preserved."""
        conversation = adapter.from_wire_message(
            wire_message(
                {"type": "text", "text": "one"},
                {"type": "step-start"},
                {"type": "data-weather", "data": {"city": "Oslo"}},
                {"type": "text", "text": "two"},
            )
        )
        assert [block.content.text for block in conversation.blocks] == ["one", "two"]
        assert [block.id for block in conversation.blocks] == ["block-1", "block-2"]

    def test_unknown_tool_state_does_not_raise(self, adapter):
        conversation = adapter.from_wire_message(
            wire_message({"type": "tool-x", "toolCallId": "1", "state": "something-new"})
        )
        assert conversation.blocks[0].content.status == "pending"

    def test_missing_tool_call_id_is_invalid(self):
        with pytest.raises(ValidationError):
            wire_message({"type": "tool-search", "state": "input-available"})

    def test_part_without_type_is_invalid(self):
        with pytest.raises(ValidationError):
            wire_message({"text": "no tag"})

    def test_filter_part(self):
        """Test that filtered parts are skipped before conversion."""
        adapter = WireAdapter(
            ConversionOptions(generate_block_id=CounterIdGenerator(), filter_part=lambda p: p.type != "reasoning")
        )
        conversation = adapter.from_wire_message(
            wire_message({"type": "reasoning", "text": "hidden"}, {"type": "text", "text": "shown"})
        )
        assert len(conversation.blocks) == 1
        assert isinstance(conversation.blocks[0], TextBlock)

    def test_metadata_only_when_requested(self, adapter):
        message = wire_message({"type": "text", "text": "hi"}, metadata={"model": "m"})
        assert adapter.from_wire_message(message).metadata is None

        with_metadata = WireAdapter(ConversionOptions(include_metadata=True))
        assert with_metadata.from_wire_message(message).metadata == {"model": "m"}

    def test_default_generator_ids_are_unique(self):
        """Test that the default cuid2 generator yields distinct ids."""
        adapter = WireAdapter()
        conversation = adapter.from_wire_message(wire_message(*[{"type": "text", "text": str(i)} for i in range(20)]))
        ids = [block.id for block in conversation.blocks]
        assert len(set(ids)) == 20

    def test_from_wire_messages(self, adapter):
        messages = [wire_message({"type": "text", "text": "q"}, role="user"), wire_message()]
        conversations = adapter.from_wire_messages(messages)
        assert [c.role for c in conversations] == ["user", "assistant"]
        assert conversations[1].blocks == []
        assert conversations[1].status == "completed"


class TestToWire:
    """Tests for conversation -> wire message."""

    def test_tool_block_becomes_dynamic_tool(self, adapter):
        conversation = Conversation(
            id="c1",
            role="assistant",
            blocks=[ToolBlock(id="tool-7", content=ToolContent(name="search", input={"q": 1}, status="success"))],
        )
        message = adapter.to_wire_message(conversation)
        (part,) = message.parts
        assert isinstance(part, ToolPart)
        assert part.dump() == {
            "type": "dynamic-tool",
            "toolName": "search",
            "toolCallId": "tool-7",
            "state": "output-available",
            "input": {"q": 1},
        }

    def test_image_and_error_blocks_have_no_parts(self, adapter):
        conversation = Conversation(
            id="c1",
            role="assistant",
            blocks=[
                ImageBlock(id="i", content=ImageContent(url="https://x/y.png")),
                TextBlock(id="t", content=TextContent(text="caption")),
                ErrorBlock(id="e", status="error", content=ErrorContent(code="x", message="y")),
            ],
        )
        message = adapter.to_wire_message(conversation)
        assert len(message.parts) == 1
        assert isinstance(message.parts[0], TextPart)
        assert message.parts[0].state == "done"

    def test_text_state(self, adapter):
        conversation = Conversation(
            id="c1", role="assistant", blocks=[TextBlock(id="t", status="streaming", content=TextContent(text="Hi"))]
        )
        assert adapter.to_wire_message(conversation).dump()["parts"] == [
            {"type": "text", "text": "Hi", "state": "streaming"}
        ]

    def test_round_trip_preserves_tool_status_except_lossy(self, adapter):
        """Test conversation -> wire -> conversation for every tool status."""
        statuses: list[ToolStatus] = list(STATUS_TO_TOOL_STATE)
        conversation = Conversation(
            id="c1",
            role="assistant",
            blocks=[
                ToolBlock(id=f"tool-{i}", content=ToolContent(name="t", status=status))
                for i, status in enumerate(statuses)
            ],
        )
        restored = adapter.from_wire_message(adapter.to_wire_message(conversation))

        for original, block in zip(statuses, restored.blocks, strict=True):
            if original == "running":
                assert block.content.status == "approved"
            elif original == "pending":
                assert block.content.status == "streaming"
            else:
                assert block.content.status == original

    def test_round_trip_wire_message(self, adapter):
        """Test that supported parts survive wire -> IR -> wire."""
        raw = {
            "id": "msg-9",
            "role": "assistant",
            "parts": [
                {"type": "reasoning", "text": "plan", "state": "done"},
                {"type": "text", "text": "answer", "state": "done"},
                {"type": "source-url", "sourceId": "s1", "url": "https://a", "title": "A"},
            ],
        }
        message = WireMessage.model_validate(raw)
        assert adapter.to_wire_message(adapter.from_wire_message(message)).dump() == raw

    def test_to_wire_messages(self, adapter):
        conversations = [Conversation(id="a", role="user"), Conversation(id="b", role="assistant")]
        assert [m.id for m in adapter.to_wire_messages(conversations)] == ["a", "b"]
