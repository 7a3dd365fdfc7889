"""Routing function shared by every conditional edge of the conversation graph."""

from langchain_core.messages import AIMessage

from agents import InvalidStateError, parse_market_series
from graph.state import ConversationState, NodeName, has_completion_marker, message_text


def route_conversation(state: ConversationState) -> NodeName:
    """
    Pick the next node from the current state.

    Pure: reads the state, never mutates it. Rules are checked in priority
    order, first match wins:

    1. Latest message is a successful market data result -> analysis
    2. The analysis node just ran -> terminal
    3. Latest message is an assistant message with tool calls -> tool_execution
    4. Latest message contains the completion marker -> terminal
    5. Otherwise -> reception

    Args:
        state: Current conversation state

    Returns:
        Next node name

    Raises:
        InvalidStateError: If the state has no messages
    """
    messages = state.get("messages")
    if not messages:
        raise InvalidStateError("Cannot route a conversation with no messages")

    last_message = messages[-1]

    if parse_market_series(last_message) is not None:
        return NodeName.ANALYSIS

    if state.get("sender") == NodeName.ANALYSIS:
        return NodeName.TERMINAL

    if isinstance(last_message, AIMessage) and last_message.tool_calls:
        return NodeName.TOOL_EXECUTION

    if has_completion_marker(message_text(last_message)):
        return NodeName.TERMINAL

    return NodeName.RECEPTION
