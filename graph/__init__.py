"""Graph module for the LangGraph conversation workflow."""

from .state import (
    SENDER_USER,
    NodeName,
    ConversationState,
    create_initial_state,
    message_text,
    strip_completion_marker,
)
from .nodes import (
    make_reception_node,
    make_tool_execution_node,
    node_analysis,
    node_terminal,
)
from .edges import route_conversation
from .builder import build_copilot_graph
from .orchestrator import TradingCopilot

__all__ = [
    "SENDER_USER",
    "NodeName",
    "ConversationState",
    "create_initial_state",
    "message_text",
    "strip_completion_marker",
    "make_reception_node",
    "make_tool_execution_node",
    "node_analysis",
    "node_terminal",
    "route_conversation",
    "build_copilot_graph",
    "TradingCopilot",
]
