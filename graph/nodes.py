"""Node functions for the conversation graph."""

from datetime import date
from typing import Any, Dict, List, Optional

from langchain_core.messages import AIMessage, SystemMessage, ToolMessage

from agents import (
    MARKET_DATA_TOOL,
    CapabilityError,
    ChatCapability,
    InvalidStateError,
    ToolRegistry,
    analyze_technicals,
    parse_market_series,
)
from config import get_settings
from graph.state import ConversationState, NodeName, message_text, strip_completion_marker

RECEPTION_PROMPT = """You are a reception agent for a cryptocurrency trading assistant.
Today is {today}.

- If the user asks for a trading recommendation or a trend, call the {market_data_tool} tool \
to get the market data. Convert relative periods ("last week", "past 3 months") into an ISO \
start date (timeStart).
- If the user did not mention a period of time, ask which period to consider \
(e.g. the last 1 hour, 1 day, 1 week, 1 month, 1 year).
- If the user asks for anything unrelated to trading, reply that you are not able to help with that.
- Whenever you reply to the user directly instead of calling a tool, prefix your reply with \
{marker} so the system knows the conversation is complete.

You have access to the following tools: {tool_names}"""

FALLBACK_ANSWER = "I could not produce an answer to that question."


def _latest_message(state: ConversationState):
    messages = state.get("messages")
    if not messages:
        raise InvalidStateError("Conversation state has no messages")
    return messages[-1]


def build_reception_prompt(tool_names: List[str]) -> SystemMessage:
    """System instruction for the reception agent."""
    return SystemMessage(content=RECEPTION_PROMPT.format(
        today=date.today().isoformat(),
        market_data_tool=MARKET_DATA_TOOL,
        marker=get_settings().COMPLETION_MARKER,
        tool_names=", ".join(tool_names),
    ))


def make_reception_node(llm: ChatCapability, registry: ToolRegistry):
    """Build the reception node around a language model capability."""

    async def node_reception(state: ConversationState) -> Dict[str, Any]:
        """
        Ask the language model for the next assistant message.

        Returns:
            Delta appending one AIMessage (text or tool calls)
        """
        print("\n🤖 [NODE] Reception agent...")
        _latest_message(state)

        tool_names = registry.names()
        prompt = build_reception_prompt(tool_names)
        try:
            response = await llm.ainvoke([prompt, *state["messages"]], tool_names)
        except CapabilityError:
            raise
        except Exception as e:
            raise CapabilityError(f"Language model call failed: {e}") from e

        if response.tool_calls:
            print(f"   -> Requesting {len(response.tool_calls)} tool(s)...")

        return {"messages": [response], "sender": NodeName.RECEPTION}

    return node_reception


def make_tool_execution_node(registry: ToolRegistry):
    """Build the tool execution node around the tool registry."""

    async def node_tool_execution(state: ConversationState) -> Dict[str, Any]:
        """
        Run every pending tool call of the latest assistant message.

        Tool failures are recorded as error payloads in the tool results.
        A valid market data result also replaces the market series.

        Returns:
            Delta appending one ToolMessage per call
        """
        last_message = _latest_message(state)
        if not isinstance(last_message, AIMessage) or not last_message.tool_calls:
            raise InvalidStateError("Tool execution requires an assistant message with tool calls")

        print(f"\n🔧 [NODE] Executing {len(last_message.tool_calls)} tool call(s)...")

        results: List[ToolMessage] = []
        market_series = None
        for call in last_message.tool_calls:
            spec = registry.get(call["name"])
            content = await registry.ainvoke(spec.name, call.get("args") or {})

            result = ToolMessage(content=content, name=spec.name, tool_call_id=call.get("id") or "")
            results.append(result)

            series = parse_market_series(result)
            if series is not None:
                market_series = series

        delta: Dict[str, Any] = {"messages": results, "sender": NodeName.TOOL_EXECUTION}
        if market_series is not None:
            delta["market_series"] = market_series
        return delta

    return node_tool_execution


def _requested_symbol(state: ConversationState) -> Optional[str]:
    """Symbol of the latest market data tool call, if any."""
    for message in reversed(state["messages"]):
        if isinstance(message, AIMessage):
            for call in message.tool_calls:
                if call["name"] == MARKET_DATA_TOOL and call.get("args", {}).get("symbol"):
                    return str(call["args"]["symbol"])
    return None


def node_analysis(state: ConversationState) -> Dict[str, Any]:
    """
    Analyze the market series and append a recommendation.

    Returns:
        Delta appending one AIMessage with the analysis
    """
    series = state.get("market_series")
    if not series:
        raise InvalidStateError("Analysis requires a market series")

    symbol = _requested_symbol(state)
    print(f"\n🔍 [NODE] Technical analysis for {symbol or 'series'} ({len(series)} bars)...")

    analysis = analyze_technicals(series, symbol=symbol)
    return {"messages": [AIMessage(content=analysis)], "sender": NodeName.ANALYSIS}


def node_terminal(state: ConversationState) -> Dict[str, Any]:
    """
    Append the final answer: the latest assistant text without the completion marker.

    Only the latest assistant message counts; if it holds nothing but the
    marker, the fallback answer is used.

    Returns:
        Delta appending the final AIMessage
    """
    print("\n📝 [NODE] Final answer...")
    _latest_message(state)

    answer = FALLBACK_ANSWER
    latest_reply = next(
        (m for m in reversed(state["messages"]) if isinstance(m, AIMessage)), None
    )
    if latest_reply is not None:
        answer = strip_completion_marker(message_text(latest_reply)) or FALLBACK_ANSWER

    return {"messages": [AIMessage(content=answer)], "sender": NodeName.TERMINAL}
