"""Conversation status aggregation."""

from collections.abc import Iterable

from lucid.models.ir import BaseBlock, ContentStatus


def aggregate_status(blocks: Iterable[BaseBlock]) -> ContentStatus:
    """Derive a conversation status from its blocks.

    A streaming block wins outright and stops the scan. An error block only
    records ``error`` and the scan continues, so a later streaming block still
    takes priority. With neither present the conversation is ``completed``.

    Args:
        blocks: Blocks in conversation order

    Returns:
        The aggregated content status
    """
    status: ContentStatus = "completed"
    for block in blocks:
        if block.status == "streaming":
            return "streaming"
        if block.status == "error":
            status = "error"
            # Don't stop, streaming takes priority
    return status
