"""Chart screenshot analysis used to enrich the user's message."""

import base64
import json
import math
from typing import Any, List, Optional

from langchain_core.messages import HumanMessage
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from config import Settings, get_settings
from .exceptions import CapabilityError
from .llm import create_chat_model

VISION_PROMPT = """
You are an expert trading chart analyzer. Analyze this trading chart image and extract:
1. The cryptocurrency or stock symbol (e.g., BTC, ETH, AAPL)
2. The timeframe of the chart (e.g., 1m, 5m, 15m, 1h, 4h, 1d)
3. Any key price levels visible (support/resistance)
4. Current trend direction (bullish, bearish, or ranging)

Format your response as a JSON object with these exact keys:
{"symbol": "detected_symbol", "timeframe": "detected_timeframe", "priceLevels": [list_of_key_levels], "trend": "detected_trend"}

Only return the JSON object, no other text.
"""


class ChartDescription(BaseModel):
    """What a chart screenshot shows."""
    model_config = ConfigDict(populate_by_name=True)

    symbol: Optional[str] = None
    timeframe: Optional[str] = None
    price_levels: List[float] = Field(default_factory=list, alias="priceLevels")
    trend: Optional[str] = None

    @field_validator("price_levels", mode="before")
    @classmethod
    def normalize_price_levels(cls, value: Any) -> List[float]:
        """Accept levels like "$64,500"; drop anything that is not a price."""
        if not isinstance(value, list):
            return []

        levels = []
        for level in value:
            if isinstance(level, (int, float)) and not isinstance(level, bool):
                levels.append(float(level))
            elif isinstance(level, str):
                try:
                    parsed = float(level.replace("$", "").replace(",", "").strip())
                except ValueError:
                    continue
                if math.isfinite(parsed):
                    levels.append(parsed)
        return levels


def parse_chart_description(text: str) -> ChartDescription:
    """
    Extract the JSON object from a vision model reply.

    Raises:
        CapabilityError: If no valid JSON object can be found
    """
    start = text.find("{")
    end = text.rfind("}") + 1
    if start == -1 or end == 0:
        raise CapabilityError("Could not extract JSON from vision model response")

    try:
        return ChartDescription.model_validate(json.loads(text[start:end]))
    except (json.JSONDecodeError, ValidationError) as e:
        raise CapabilityError(f"Invalid chart description: {e}") from e


def enrich_message(message: str, description: ChartDescription) -> str:
    """Append what the chart shows to the user's message."""
    details = []
    if description.symbol:
        details.append(f"symbol {description.symbol}")
    if description.timeframe:
        details.append(f"timeframe {description.timeframe}")
    if description.trend:
        details.append(f"trend {description.trend}")
    if description.price_levels:
        levels = ", ".join(f"{level:g}" for level in description.price_levels)
        details.append(f"key price levels {levels}")

    if not details:
        return message
    return f"{message}\n\n[Attached chart: {'; '.join(details)}]"


class ChartVisionCapability:
    """Describe chart screenshots with a vision model served by Ollama."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.model = create_chat_model(
            self.settings, model=self.settings.OLLAMA_VISION_MODEL, temperature=0.2
        )

    async def adescribe(self, image: bytes, mime_type: str = "image/jpeg") -> ChartDescription:
        """
        Describe a chart image.

        Args:
            image: Raw image bytes
            mime_type: Image MIME type

        Returns:
            ChartDescription with whatever the model could detect
        """
        print("\n   🖼️ [VISION] Analyzing chart image...")
        data_url = f"data:{mime_type};base64,{base64.b64encode(image).decode('ascii')}"
        message = HumanMessage(content=[
            {"type": "text", "text": VISION_PROMPT},
            {"type": "image_url", "image_url": {"url": data_url}},
        ])

        try:
            response = await self.model.ainvoke([message])
        except Exception as e:
            raise CapabilityError(f"Vision model call failed: {e}") from e

        text = response.content if isinstance(response.content, str) else json.dumps(response.content)
        return parse_chart_description(text)
