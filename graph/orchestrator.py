"""Orchestrator: runs one conversation through the graph and streams the result."""

from typing import AsyncIterator, Optional

from langchain_core.messages import AIMessage
from langgraph.errors import GraphRecursionError

from agents import ChatCapability, InvalidStateError, RunawayConversationError, ToolRegistry
from config import get_settings
from graph.builder import build_copilot_graph
from graph.state import (
    ConversationState,
    NodeName,
    create_initial_state,
    message_text,
    strip_completion_marker,
)

# Nodes whose assistant text is shown to the user
STREAMED_SENDERS = (NodeName.RECEPTION, NodeName.ANALYSIS, NodeName.TERMINAL)


class TradingCopilot:
    """
    Answers trading questions by driving the conversation graph.

    Each call starts a fresh conversation state; nothing is shared between
    runs except the read-only tool registry.
    """

    def __init__(
        self,
        llm: Optional[ChatCapability] = None,
        registry: Optional[ToolRegistry] = None,
        max_node_visits: Optional[int] = None,
    ):
        if max_node_visits is None:
            max_node_visits = get_settings().MAX_NODE_VISITS
        if max_node_visits < 1:
            raise ValueError(f"max_node_visits must be at least 1, got {max_node_visits}")
        self.max_node_visits = max_node_visits
        self.graph = build_copilot_graph(llm=llm, registry=registry)

    async def astream_states(self, message: str) -> AsyncIterator[ConversationState]:
        """
        Run a conversation and yield a state snapshot after every node.

        The first snapshot is the seeded state (sender "user").

        Raises:
            InvalidStateError: If the message is empty
            CapabilityError: If the language model fails
            RunawayConversationError: If the node-visit ceiling is exceeded
        """
        state = create_initial_state(message)
        config = {"recursion_limit": self.max_node_visits}

        try:
            async for snapshot in self.graph.astream(state, config=config, stream_mode="values"):
                yield snapshot
        except GraphRecursionError as e:
            raise RunawayConversationError(self.max_node_visits) from e

    async def astream(self, message: str) -> AsyncIterator[str]:
        """
        Run a conversation and yield user-visible text chunks as they are produced.

        Tool call requests and tool results are not streamed. The final answer
        is skipped when it repeats the chunk just streamed.
        """
        seen = 0
        last_chunk = None

        async for snapshot in self.astream_states(message):
            messages = snapshot["messages"]
            new_messages = messages[seen:]
            seen = len(messages)

            if snapshot["sender"] not in STREAMED_SENDERS:
                continue

            for msg in new_messages:
                if not isinstance(msg, AIMessage) or msg.tool_calls:
                    continue
                chunk = strip_completion_marker(message_text(msg))
                if chunk and chunk != last_chunk:
                    last_chunk = chunk
                    yield chunk

    async def arun(self, message: str) -> str:
        """Run a conversation to the end and return the final answer text."""
        final_state = None
        async for snapshot in self.astream_states(message):
            final_state = snapshot

        if final_state is None or final_state["sender"] != NodeName.TERMINAL:
            raise InvalidStateError("Conversation ended outside the terminal node")

        return message_text(final_state["messages"][-1])
