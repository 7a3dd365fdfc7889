"""Graph builder for the conversation workflow."""

from typing import Optional

from langgraph.graph import StateGraph, START, END

from agents import ChatCapability, OllamaChatCapability, ToolRegistry, build_default_registry
from graph.state import ConversationState, NodeName
from graph.nodes import (
    make_reception_node,
    make_tool_execution_node,
    node_analysis,
    node_terminal,
)
from graph.edges import route_conversation

# Every routed node may lead to any node; the router decides.
ROUTES = {name: name.value for name in NodeName}


def build_copilot_graph(
    llm: Optional[ChatCapability] = None,
    registry: Optional[ToolRegistry] = None,
):
    """
    Build the trading copilot graph.

    Flow:
    START -> reception -> [route] -> tool_execution -> [route] -> analysis -> [route] -> terminal -> END
    Any routed node may go back to reception; terminal is the only exit.

    Args:
        llm: Language model capability (Ollama by default)
        registry: Tool registry (market data + technical indicators by default)

    Returns:
        Compiled StateGraph
    """
    registry = registry or build_default_registry()
    llm = llm or OllamaChatCapability(registry)

    workflow = StateGraph(ConversationState)

    # Add nodes
    workflow.add_node(NodeName.RECEPTION.value, make_reception_node(llm, registry))
    workflow.add_node(NodeName.TOOL_EXECUTION.value, make_tool_execution_node(registry))
    workflow.add_node(NodeName.ANALYSIS.value, node_analysis)
    workflow.add_node(NodeName.TERMINAL.value, node_terminal)

    # Add edges
    workflow.add_edge(START, NodeName.RECEPTION.value)

    for node in (NodeName.RECEPTION, NodeName.TOOL_EXECUTION, NodeName.ANALYSIS):
        workflow.add_conditional_edges(node.value, route_conversation, ROUTES)

    workflow.add_edge(NodeName.TERMINAL.value, END)

    return workflow.compile()
