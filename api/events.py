"""Streaming event records for the chat endpoints."""

import json
from typing import Any, AsyncIterator, Dict


def format_sse_event(event_data: Dict[str, Any]) -> str:
    """
    Format a dictionary as an SSE (Server-Sent Events) event.

    Args:
        event_data: Event record

    Returns:
        SSE-formatted string with 'data: ' prefix and double newline
    """
    return f"data: {json.dumps(event_data)}\n\n"


async def stream_events(copilot, message: str) -> AsyncIterator[Dict[str, Any]]:
    """
    Stream a conversation as event records.

    Yields ``{"content": chunk}`` for each chunk in production order, then
    exactly one ``{"done": True}`` or ``{"error": message}`` record.
    """
    try:
        async for chunk in copilot.astream(message):
            yield {"content": chunk}
    except Exception as e:
        print(f"   ❌ [API] Streaming error: {e}")
        yield {"error": str(e) or type(e).__name__}
        return

    yield {"done": True}


async def sse_stream(events: AsyncIterator[Dict[str, Any]]) -> AsyncIterator[str]:
    async for event in events:
        yield format_sse_event(event)
