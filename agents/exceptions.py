"""Error taxonomy for a copilot conversation run."""


class TradingCopilotError(Exception):
    """Base class for every error raised by the copilot."""


class ToolFailure(TradingCopilotError):
    """A tool capability failed.

    Never escapes the tool registry: the failure is recorded in the
    conversation as a ``{"error", "message"}`` tool result.
    """


class MarketDataError(ToolFailure):
    """The market data provider returned nothing usable."""


class CapabilityError(TradingCopilotError):
    """The language model (or vision model) call failed. Aborts the run."""


class InvalidStateError(TradingCopilotError):
    """The conversation state is structurally invalid. Aborts the run."""


class RunawayConversationError(TradingCopilotError):
    """The node-visit ceiling was exceeded before reaching the terminal node."""

    def __init__(self, max_node_visits: int):
        self.max_node_visits = max_node_visits
        super().__init__(
            f"Conversation did not reach the terminal node within {max_node_visits} node visits"
        )
