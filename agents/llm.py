"""Language model capability used by the reception agent."""

from typing import List, Optional, Protocol, Sequence

from langchain_core.messages import AIMessage, BaseMessage
from langchain_ollama import ChatOllama

from config import Settings, get_settings
from .exceptions import CapabilityError
from .tool_registry import ToolRegistry


class ChatCapability(Protocol):
    """Anything that answers a conversation, possibly with tool calls."""

    async def ainvoke(self, messages: Sequence[BaseMessage], tool_names: List[str]) -> AIMessage:
        ...


def create_chat_model(settings: Settings, model: str = "", temperature: Optional[float] = None) -> ChatOllama:
    """Create a ChatOllama client from settings."""
    return ChatOllama(
        model=model or settings.OLLAMA_MODEL,
        base_url=settings.OLLAMA_BASE_URL.replace("/v1", ""),
        temperature=settings.LLM_TEMPERATURE if temperature is None else temperature,
        client_kwargs={"timeout": settings.LLM_TIMEOUT},
    )


class OllamaChatCapability:
    """ChatOllama with the registry's tools bound on each call."""

    def __init__(self, registry: ToolRegistry, settings: Optional[Settings] = None):
        self.registry = registry
        self.settings = settings or get_settings()
        self.model = create_chat_model(self.settings)

    async def ainvoke(self, messages: Sequence[BaseMessage], tool_names: List[str]) -> AIMessage:
        runnable = self.model
        if tool_names:
            runnable = self.model.bind_tools(self.registry.llm_tools(tool_names))

        response = await runnable.ainvoke(list(messages))
        if not isinstance(response, AIMessage):
            raise CapabilityError(f"Unexpected model response type: {type(response).__name__}")
        return response
