"""Session state: the owner of conversations and their stream consumers."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from lucid.models.events import StreamEvent
from lucid.models.ir import Conversation
from lucid.services.builder import ConversationBuilder
from lucid.services.streaming import StreamConfig, StreamConsumer, StreamSource
from lucid.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Session:
    """Conversations and live consumptions belonging to one client session."""

    session_id: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_activity: datetime = field(default_factory=lambda: datetime.now(UTC))
    conversations: list[Conversation] = field(default_factory=list)
    consumers: dict[str, StreamConsumer] = field(default_factory=dict)
    builder: ConversationBuilder = field(default_factory=ConversationBuilder)
    closed: bool = False

    def as_dict(self) -> dict[str, Any]:
        """Return the session summary as a dictionary."""
        return {
            "session_id": self.session_id,
            "created_at": self.created_at.isoformat(),
            "last_activity": self.last_activity.isoformat(),
            "conversations": len(self.conversations),
            "active_consumers": sum(1 for consumer in self.consumers.values() if consumer.is_streaming),
        }

    def update_activity(self) -> None:
        """Update the last activity timestamp."""
        self.last_activity = datetime.now(UTC)

    def add_conversation(self, conversation: Conversation) -> Conversation:
        self.conversations.append(conversation)
        self.update_activity()
        return conversation

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        return next((c for c in self.conversations if c.id == conversation_id), None)

    def apply_event(self, event: StreamEvent | dict[str, Any]) -> Conversation | None:
        """Feed a stream event to the session's builder.

        A ``message_start`` begins a new conversation, which is added to the session.
        """
        previous = self.builder.conversation
        conversation = self.builder.apply(event)
        if conversation is not None and conversation is not previous:
            self.add_conversation(conversation)
        self.update_activity()
        return conversation

    def start_consumption(
        self,
        slot: str,
        source: StreamSource,
        on_complete: Callable[[], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
        config: StreamConfig | None = None,
    ) -> StreamConsumer:
        """Consume ``source`` in ``slot``, cancelling whatever the slot was consuming."""
        previous = self.consumers.pop(slot, None)
        if previous is not None:
            logger.info(f"Session {self.session_id}: restarting consumption in slot {slot}")
            previous.cancel()

        consumer = StreamConsumer(config=config, on_complete=on_complete, on_error=on_error)
        self.consumers[slot] = consumer
        consumer.start(source)
        self.update_activity()
        return consumer

    def close(self) -> None:
        """End the session, cancelling every consumption it owns."""
        for consumer in self.consumers.values():
            consumer.cancel()
        self.consumers.clear()
        self.closed = True
