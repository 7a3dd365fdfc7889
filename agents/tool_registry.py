"""Tool registry: named, schema-validated capabilities the LLM may request."""

import asyncio
import inspect
import json
from dataclasses import dataclass
from datetime import date
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from config import get_settings
from .exceptions import InvalidStateError
from .market_data import MARKET_DATA_TOOL, fetch_market_data
from .technical_indicators import bollinger_bands, macd, rsi, sma

TECHNICAL_INDICATORS_TOOL = "analyze_technical_indicators"


@dataclass(frozen=True)
class ToolSpec:
    """A capability record: name, input schema and handler."""
    name: str
    description: str
    args_schema: Type[BaseModel]
    handler: Callable[..., Any]

    def to_llm_tool(self) -> Dict[str, Any]:
        """OpenAI-style function definition, accepted by ``bind_tools``."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.args_schema.model_json_schema(by_alias=True),
            },
        }


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def error_payload(error: str, message: str) -> str:
    """Structured tool failure, recorded in the conversation as data."""
    return json.dumps({"error": error, "message": message})


class ToolRegistry:
    """Read-only mapping from tool name to ToolSpec."""

    def __init__(self, specs: Iterable[ToolSpec]):
        tools: Dict[str, ToolSpec] = {}
        for spec in specs:
            if spec.name in tools:
                raise ValueError(f"Duplicate tool name: {spec.name}")
            tools[spec.name] = spec
        self._tools = MappingProxyType(tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def names(self) -> List[str]:
        return list(self._tools)

    def get(self, name: str) -> ToolSpec:
        """
        Look up a tool by name.

        Raises:
            InvalidStateError: If no tool is registered under that name
        """
        try:
            return self._tools[name]
        except KeyError:
            raise InvalidStateError(f"Unknown tool requested: {name!r}") from None

    def llm_tools(self, names: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
        """Function definitions for the given tool names (all by default)."""
        selected = self.names() if names is None else list(names)
        return [self.get(name).to_llm_tool() for name in selected]

    async def ainvoke(self, name: str, arguments: Dict[str, Any]) -> str:
        """
        Validate arguments and run a tool.

        Args:
            name: Registered tool name
            arguments: Raw arguments from the model's tool call

        Returns:
            JSON content for the tool-result message. Invalid arguments and
            handler failures give an ``{"error", "message"}`` payload.

        Raises:
            InvalidStateError: If the tool is unknown
        """
        spec = self.get(name)

        try:
            validated = spec.args_schema.model_validate(arguments or {})
        except ValidationError as e:
            print(f"   ⚠️ [TOOL] Invalid arguments for {name}: {e.error_count()} error(s)")
            return error_payload(f"Invalid arguments for {name}", str(e))

        kwargs = validated.model_dump()
        try:
            if inspect.iscoroutinefunction(spec.handler):
                result = await spec.handler(**kwargs)
            else:
                result = await asyncio.to_thread(spec.handler, **kwargs)
            return json.dumps(result, default=_json_default)
        except Exception as e:
            print(f"   ❌ [TOOL] {name} failed: {e}")
            return error_payload(f"Failed to run {name}", str(e) or type(e).__name__)


# --- Registry tools ---


class MarketDataInput(BaseModel):
    """Arguments of the market data tool."""
    model_config = ConfigDict(populate_by_name=True)

    symbol: str = Field(description='The cryptocurrency symbol (e.g., "BTC", "ETH", "SOL")')
    interval: Optional[str] = Field(
        default=None, description='Bar interval (e.g., "1d", "1h", "15m"). Default is "1d"'
    )
    time_start: Optional[str] = Field(
        default=None, alias="timeStart", description="Start of the period, ISO date (YYYY-MM-DD)"
    )
    time_end: Optional[str] = Field(
        default=None, alias="timeEnd", description="End of the period, ISO date. Default is now"
    )


class IndicatorParams(BaseModel):
    """Optional indicator periods."""
    model_config = ConfigDict(populate_by_name=True)

    sma_period: Optional[int] = Field(default=None, alias="smaPeriod", ge=1)
    rsi_period: Optional[int] = Field(default=None, alias="rsiPeriod", ge=1)
    macd_fast_period: Optional[int] = Field(default=None, alias="macdFastPeriod", ge=1)
    macd_slow_period: Optional[int] = Field(default=None, alias="macdSlowPeriod", ge=1)
    macd_signal_period: Optional[int] = Field(default=None, alias="macdSignalPeriod", ge=1)
    bollinger_period: Optional[int] = Field(default=None, alias="bollingerPeriod", ge=1)
    bollinger_multiplier: Optional[float] = Field(default=None, alias="bollingerMultiplier", ge=0)


class TechnicalIndicatorsInput(BaseModel):
    """Arguments of the technical indicators tool."""
    model_config = ConfigDict(populate_by_name=True)

    symbol: str = Field(description='The cryptocurrency symbol (e.g., "BTC", "ETH", "SOL")')
    interval: Optional[str] = Field(default=None, description='Bar interval. Default is "1d"')
    indicators: List[Literal["sma", "rsi", "macd", "bollinger"]] = Field(
        min_length=1, description="Indicators to calculate"
    )
    params: IndicatorParams = Field(default_factory=IndicatorParams)


def make_technical_indicators_handler(
    fetcher: Callable[..., Any] = fetch_market_data,
) -> Callable[..., Dict[str, Any]]:
    """Build the indicators tool handler around a market data fetcher."""

    def analyze_technical_indicators(
        symbol: str,
        indicators: List[str],
        params: Dict[str, Any],
        interval: Optional[str] = None,
    ) -> Dict[str, Any]:
        settings = get_settings()
        series = fetcher(symbol=symbol, interval=interval)

        def param(key: str, default: Any) -> Any:
            value = params.get(key)
            return default if value is None else value

        results: Dict[str, Any] = {}
        for indicator in indicators:
            if indicator == "sma":
                results["sma"] = sma(series, param("sma_period", settings.SMA_PERIOD))
            elif indicator == "rsi":
                results["rsi"] = rsi(series, param("rsi_period", settings.RSI_PERIOD))
            elif indicator == "macd":
                results["macd"] = macd(
                    series,
                    param("macd_fast_period", settings.MACD_FAST_PERIOD),
                    param("macd_slow_period", settings.MACD_SLOW_PERIOD),
                    param("macd_signal_period", settings.MACD_SIGNAL_PERIOD),
                )._asdict()
            elif indicator == "bollinger":
                results["bollinger"] = bollinger_bands(
                    series,
                    param("bollinger_period", settings.BOLLINGER_PERIOD),
                    param("bollinger_multiplier", settings.BOLLINGER_MULTIPLIER),
                )._asdict()

        return {
            "symbol": symbol.upper(),
            "interval": interval or settings.MARKET_DATA_INTERVAL,
            "points": len(series),
            "dates": [point.date.isoformat() for point in series],
            "indicators": results,
        }

    return analyze_technical_indicators


def build_default_registry(fetcher: Callable[..., Any] = fetch_market_data) -> ToolRegistry:
    """
    Build the registry exposed to the reception agent.

    Args:
        fetcher: Market data function, ``fetcher(symbol, interval, time_start, time_end)``

    Returns:
        ToolRegistry with the market data and technical indicator tools
    """
    return ToolRegistry([
        ToolSpec(
            name=MARKET_DATA_TOOL,
            description=(
                "Get historical OHLCV market data for a cryptocurrency symbol over a time period. "
                "Use it whenever the user asks for a trading recommendation or a trend."
            ),
            args_schema=MarketDataInput,
            handler=fetcher,
        ),
        ToolSpec(
            name=TECHNICAL_INDICATORS_TOOL,
            description=(
                "Calculate technical indicators (SMA, RSI, MACD, Bollinger Bands) for a "
                "cryptocurrency symbol. Use it when the user asks for specific indicator values."
            ),
            args_schema=TechnicalIndicatorsInput,
            handler=make_technical_indicators_handler(fetcher),
        ),
    ])
