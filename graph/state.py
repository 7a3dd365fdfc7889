"""State definitions for the LangGraph conversation workflow."""

import operator
import re
from enum import Enum
from typing import Annotated, List, TypedDict, Union

from langchain_core.messages import BaseMessage, HumanMessage

from agents import InvalidStateError, OHLCVPoint
from config import get_settings

SENDER_USER = "user"


class NodeName(str, Enum):
    """Nodes of the conversation graph."""
    RECEPTION = "reception"
    TOOL_EXECUTION = "tool_execution"
    ANALYSIS = "analysis"
    TERMINAL = "terminal"


class ConversationState(TypedDict):
    """
    State threaded through the conversation graph.

    Created once per user turn and discarded after the terminal node.
    """
    # Append-only history: every node delta is concatenated, never merged
    messages: Annotated[List[BaseMessage], operator.add]

    # Last market data series; replaced wholesale by each market data result
    market_series: List[OHLCVPoint]

    # Node that produced the latest delta ("user" before any node runs)
    sender: Union[NodeName, str]


def create_initial_state(message: str) -> ConversationState:
    """
    Seed the state with exactly one human message.

    Args:
        message: The user's question

    Returns:
        ConversationState with every field set

    Raises:
        InvalidStateError: If the message is empty
    """
    if not message or not message.strip():
        raise InvalidStateError("Cannot start a conversation without a message")

    return ConversationState(
        messages=[HumanMessage(content=message.strip())],
        market_series=[],
        sender=SENDER_USER,
    )


def message_text(message: BaseMessage) -> str:
    """Plain text of a message, whether its content is a string or content blocks."""
    content = message.content
    if isinstance(content, str):
        return content

    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def has_completion_marker(text: str) -> bool:
    return get_settings().COMPLETION_MARKER in text


def strip_completion_marker(text: str) -> str:
    """Remove the completion marker (and the colon that may follow it)."""
    marker = re.escape(get_settings().COMPLETION_MARKER)
    return re.sub(rf"{marker}\s*:?\s*", "", text).strip()
