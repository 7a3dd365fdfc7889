"""
Tests for the individual graph nodes.
"""

import json
from datetime import date

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from agents import MARKET_DATA_TOOL, CapabilityError, InvalidStateError
from graph import (
    NodeName,
    create_initial_state,
    make_reception_node,
    make_tool_execution_node,
    node_analysis,
    node_terminal,
)
from graph.nodes import FALLBACK_ANSWER, build_reception_prompt
from tests.fakes import ScriptedChat, tool_call_message


# ===== Reception Node Tests =====

class TestReceptionNode:
    """Tests for the reception node."""

    @pytest.mark.asyncio
    async def test_appends_model_reply(self, registry):
        llm = ScriptedChat([AIMessage(content="FINAL ANSWER: Hello")])
        node = make_reception_node(llm, registry)

        delta = await node(create_initial_state("Hi"))

        assert delta["sender"] == NodeName.RECEPTION
        assert [m.content for m in delta["messages"]] == ["FINAL ANSWER: Hello"]
        assert "market_series" not in delta

    @pytest.mark.asyncio
    async def test_prompt_and_tools_passed_to_model(self, registry):
        llm = ScriptedChat([AIMessage(content="FINAL ANSWER: Hello")])
        await make_reception_node(llm, registry)(create_initial_state("Hi"))

        call = llm.calls[0]
        assert isinstance(call["messages"][0], SystemMessage)
        assert MARKET_DATA_TOOL in call["messages"][0].content
        assert "FINAL ANSWER" in call["messages"][0].content
        assert isinstance(call["messages"][1], HumanMessage)
        assert call["tool_names"] == registry.names()

    @pytest.mark.asyncio
    async def test_model_failure_becomes_capability_error(self, registry):
        llm = ScriptedChat([RuntimeError("connection refused")])
        with pytest.raises(CapabilityError, match="connection refused"):
            await make_reception_node(llm, registry)(create_initial_state("Hi"))

    @pytest.mark.asyncio
    async def test_capability_error_passes_through(self, registry):
        error = CapabilityError("bad response")
        llm = ScriptedChat([error])
        with pytest.raises(CapabilityError) as exc_info:
            await make_reception_node(llm, registry)(create_initial_state("Hi"))
        assert exc_info.value is error


# ===== Tool Execution Node Tests =====

class TestToolExecutionNode:
    """Tests for the tool execution node."""

    @pytest.mark.asyncio
    async def test_market_data_installs_series(self, registry, week_series):
        state = create_initial_state("BTC last week?")
        state["messages"].append(tool_call_message(args={"symbol": "BTC"}, call_id="call_42"))

        delta = await make_tool_execution_node(registry)(state)

        assert delta["sender"] == NodeName.TOOL_EXECUTION
        result = delta["messages"][0]
        assert isinstance(result, ToolMessage)
        assert result.name == MARKET_DATA_TOOL
        assert result.tool_call_id == "call_42"
        assert delta["market_series"] == week_series

    @pytest.mark.asyncio
    async def test_error_result_leaves_series_alone(self, registry):
        state = create_initial_state("BTC?")
        state["messages"].append(tool_call_message(args={}))

        delta = await make_tool_execution_node(registry)(state)

        assert "market_series" not in delta
        assert "error" in json.loads(delta["messages"][0].content)

    @pytest.mark.asyncio
    async def test_one_result_per_call(self, registry):
        state = create_initial_state("BTC and ETH?")
        state["messages"].append(AIMessage(content="", tool_calls=[
            {"name": MARKET_DATA_TOOL, "args": {"symbol": "BTC"}, "id": "a"},
            {"name": MARKET_DATA_TOOL, "args": {"symbol": "ETH"}, "id": "b"},
        ]))

        delta = await make_tool_execution_node(registry)(state)

        assert [m.tool_call_id for m in delta["messages"]] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_unknown_tool_raises(self, registry):
        state = create_initial_state("Buy BTC")
        state["messages"].append(tool_call_message("place_order", {"symbol": "BTC"}))
        with pytest.raises(InvalidStateError):
            await make_tool_execution_node(registry)(state)

    @pytest.mark.asyncio
    async def test_requires_tool_calls(self, registry):
        with pytest.raises(InvalidStateError):
            await make_tool_execution_node(registry)(create_initial_state("BTC?"))


# ===== Analysis Node Tests =====

class TestAnalysisNode:
    """Tests for the analysis node."""

    def test_appends_analysis(self, week_series):
        state = create_initial_state("BTC?")
        state["messages"].append(tool_call_message(args={"symbol": "btc"}))
        state["market_series"] = week_series

        delta = node_analysis(state)

        assert delta["sender"] == NodeName.ANALYSIS
        assert delta["messages"][0].content.startswith("Technical analysis for BTC over 7 bars")
        assert "Recommendation: BUY" in delta["messages"][0].content

    def test_empty_series_raises(self):
        with pytest.raises(InvalidStateError):
            node_analysis(create_initial_state("BTC?"))


# ===== Terminal Node Tests =====

class TestTerminalNode:
    """Tests for the terminal node."""

    def test_strips_marker_from_latest_reply(self):
        state = create_initial_state("Weather?")
        state["messages"].append(AIMessage(content="FINAL ANSWER: I'm not able to help with that."))

        delta = node_terminal(state)

        assert delta["sender"] == NodeName.TERMINAL
        assert delta["messages"][0].content == "I'm not able to help with that."

    def test_passes_analysis_through(self):
        state = create_initial_state("BTC?")
        state["messages"].append(AIMessage(content="Recommendation: HOLD"))
        assert node_terminal(state)["messages"][0].content == "Recommendation: HOLD"

    def test_fallback_without_assistant_text(self):
        state = create_initial_state("BTC?")
        state["messages"].append(AIMessage(content="FINAL ANSWER"))
        assert node_terminal(state)["messages"][0].content == FALLBACK_ANSWER

    def test_marker_only_reply_does_not_reuse_older_text(self):
        state = create_initial_state("BTC?")
        state["messages"].append(AIMessage(content="Let me check that."))
        state["messages"].append(AIMessage(content="FINAL ANSWER:"))
        assert node_terminal(state)["messages"][0].content == FALLBACK_ANSWER


# ===== Reception Prompt Tests =====

class TestReceptionPrompt:
    """Tests for the reception system instruction."""

    def test_includes_today_for_relative_periods(self):
        prompt = build_reception_prompt([MARKET_DATA_TOOL])
        assert date.today().isoformat() in prompt.content
        assert "timeStart" in prompt.content

    def test_lists_tool_names(self):
        prompt = build_reception_prompt([MARKET_DATA_TOOL, "analyze_technical_indicators"])
        assert f"{MARKET_DATA_TOOL}, analyze_technical_indicators" in prompt.content
