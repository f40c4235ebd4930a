#!/usr/bin/env python3
"""Replay a canned event stream through the Lucid IR builder in the terminal."""

import asyncio
import json
import sys

import httpx
from rich.console import Console, Group
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax

from lucid.models.ir import Conversation, ErrorBlock, TextBlock, ThinkingBlock, ToolBlock
from lucid.services.builder import ConversationBuilder
from lucid.services.markdown import heal_markdown

DEMO_EVENTS = [
    {"type": "message_start", "message": {"role": "assistant"}},
    {"type": "content_block_start", "index": 0, "content_block": {"type": "thinking"}},
    {"type": "content_block_delta", "index": 0, "delta": {"type": "thinking_delta", "thinking": "Let me analyze "}},
    {"type": "content_block_delta", "index": 0, "delta": {"type": "thinking_delta", "thinking": "this request..."}},
    {"type": "content_block_stop", "index": 0},
    {
        "type": "content_block_start",
        "index": 1,
        "content_block": {"type": "tool_use", "id": "tool_1", "name": "search"},
    },
    {"type": "content_block_delta", "index": 1, "delta": {"type": "input_json_delta", "partial_json": '{"query": '}},
    {"type": "content_block_delta", "index": 1, "delta": {"type": "input_json_delta", "partial_json": '"Lucid IR"}'}},
    {"type": "content_block_stop", "index": 1},
    {"type": "content_block_start", "index": 2, "content_block": {"type": "text"}},
    {"type": "content_block_delta", "index": 2, "delta": {"type": "text_delta", "text": "Based on my research, "}},
    {"type": "content_block_delta", "index": 2, "delta": {"type": "text_delta", "text": "**Lucid IR** is an "}},
    {"type": "content_block_delta", "index": 2, "delta": {"type": "text_delta", "text": "a conversation IR "}},
    {"type": "content_block_delta", "index": 2, "delta": {"type": "text_delta", "text": "for streamed output."}},
    {"type": "content_block_stop", "index": 2},
    {"type": "message_stop"},
]


class ProtocolDemo:
    """Shows events, the IR they build, and a rendering of that IR side by side."""

    def __init__(self, base_url: str | None = None, delay: float = 0.4):
        """Initialize the demo.

        Args:
            base_url: Running service to send the final conversation to, if any
            delay: Seconds between events
        """
        self.base_url = base_url
        self.delay = delay
        self.console = Console()
        self.builder = ConversationBuilder()

    async def run(self) -> None:
        """Replay the events with a live view."""
        with Live(console=self.console, refresh_per_second=10) as live:
            for event in DEMO_EVENTS:
                await asyncio.sleep(self.delay)
                conversation = self.builder.apply(event)
                live.update(self._render(event, conversation))

        if self.base_url and self.builder.conversation is not None:
            self._send_to_service(self.builder.conversation)

    def _render(self, event: dict, conversation: Conversation | None) -> Group:
        event_panel = Panel(f"[bold blue]{event['type']}[/bold blue]", title="Event", border_style="blue")
        if conversation is None:
            return Group(event_panel)

        ir_panel = Panel(
            Syntax(json.dumps(conversation.dump(), indent=2), "json"),
            title=f"IR ({conversation.status})",
            border_style="yellow" if conversation.status == "streaming" else "green",
        )
        return Group(event_panel, ir_panel, *self._render_blocks(conversation))

    def _render_blocks(self, conversation: Conversation) -> list[Panel]:
        panels = []
        for block in conversation.blocks:
            match block:
                case ThinkingBlock():
                    panels.append(Panel(f"[dim italic]{block.content.reasoning}[/dim italic]", title="💭 Thinking"))
                case ToolBlock():
                    panels.append(
                        Panel(
                            json.dumps(block.content.input),
                            title=f"🔧 {block.content.name} [{block.content.status}]",
                            border_style="magenta",
                        )
                    )
                case TextBlock():
                    panels.append(Panel(Markdown(heal_markdown(block.content.text)), border_style="green"))
                case ErrorBlock():
                    panels.append(Panel(f"[red]{block.content.message}[/red]", title="Error", border_style="red"))
                case _:
                    pass
        return panels

    def _send_to_service(self, conversation: Conversation) -> None:
        """Convert the final conversation to a wire message through the running service."""
        try:
            with httpx.Client(timeout=10.0) as client:
                response = client.post(f"{self.base_url}/convert/to-wire", json=conversation.dump())
        except httpx.HTTPError as e:
            self.console.print(f"[red]❌ Connection error: {e}[/red]")
            return

        if response.status_code != 200:
            self.console.print(f"[red]❌ API Error: {response.status_code} - {response.text}[/red]")
            return

        self.console.print(
            Panel(Syntax(json.dumps(response.json(), indent=2), "json"), title="Wire message", border_style="cyan")
        )


def main():
    """Main entry point for the protocol demo.

    Usage: protocol_demo.py [--url http://localhost:8000]
    """
    base_url = None
    if "--url" in sys.argv:
        base_url = sys.argv[sys.argv.index("--url") + 1]

    asyncio.run(ProtocolDemo(base_url).run())


if __name__ == "__main__":
    main()
