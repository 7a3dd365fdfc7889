"""HTTP transport module."""

from .app import create_app
from .events import format_sse_event, stream_events

__all__ = ["create_app", "format_sse_event", "stream_events"]
