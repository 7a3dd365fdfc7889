"""HTTP transport for the trading copilot."""

from typing import AsyncIterator, Dict, Any, Optional

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from agents import (
    CapabilityError,
    ChartVisionCapability,
    InvalidStateError,
    enrich_message,
)
from graph import TradingCopilot
from .events import sse_stream, stream_events
from .schemas import ChatMessageRequest, ChatResponse, ImageChatRequest

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


def _error_response(error: Exception) -> JSONResponse:
    if isinstance(error, (InvalidStateError, ValueError)):
        status_code = 400
    elif isinstance(error, CapabilityError):
        status_code = 502
    else:
        status_code = 500
    return JSONResponse(status_code=status_code, content={"error": str(error) or type(error).__name__})


def create_app(
    copilot: Optional[TradingCopilot] = None,
    vision: Optional[ChartVisionCapability] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        copilot: Conversation runner (default: Ollama + Yahoo Finance)
        vision: Chart image capability (default: Ollama vision model)

    Returns:
        FastAPI app exposing the /agent endpoints
    """
    app = FastAPI(title="Trading Copilot", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept"],
    )
    app.state.copilot = copilot or TradingCopilot()
    app.state.vision = vision

    def get_vision() -> ChartVisionCapability:
        if app.state.vision is None:
            app.state.vision = ChartVisionCapability()
        return app.state.vision

    async def describe_and_enrich(request: ImageChatRequest) -> str:
        image, mime_type = request.decode_image()
        description = await get_vision().adescribe(image, mime_type)
        return enrich_message(request.message, description)

    def event_stream(events: AsyncIterator[Dict[str, Any]]) -> StreamingResponse:
        return StreamingResponse(
            sse_stream(events), media_type="text/event-stream", headers=SSE_HEADERS
        )

    @app.post("/agent/chat", response_model=ChatResponse)
    async def chat(request: ChatMessageRequest):
        print(f"\n📨 [API] chat: {request.message}")
        try:
            return ChatResponse(response=await app.state.copilot.arun(request.message))
        except Exception as e:
            print(f"   ❌ [API] chat failed: {e}")
            return _error_response(e)

    @app.post("/agent/chat-with-image", response_model=ChatResponse)
    async def chat_with_image(request: ImageChatRequest):
        print(f"\n📨 [API] chat-with-image: {request.message}")
        try:
            message = await describe_and_enrich(request)
            return ChatResponse(response=await app.state.copilot.arun(message))
        except Exception as e:
            print(f"   ❌ [API] chat-with-image failed: {e}")
            return _error_response(e)

    @app.post("/agent/chat-stream")
    async def chat_stream_post(request: ChatMessageRequest):
        print(f"\n📨 [API] chat-stream (POST): {request.message}")
        return event_stream(stream_events(app.state.copilot, request.message))

    @app.get("/agent/chat-stream")
    async def chat_stream_get(message: str = Query(default="")):
        print(f"\n📨 [API] chat-stream (GET): {message}")

        async def events():
            if not message.strip():
                yield {"error": "No message provided in query parameters"}
                return
            async for event in stream_events(app.state.copilot, message):
                yield event

        return event_stream(events())

    @app.post("/agent/chat-with-image-stream")
    async def chat_with_image_stream(request: ImageChatRequest):
        print(f"\n📨 [API] chat-with-image-stream: {request.message}")

        async def events():
            try:
                message = await describe_and_enrich(request)
            except Exception as e:
                yield {"error": str(e)}
                return
            async for event in stream_events(app.state.copilot, message):
                yield event

        return event_stream(events())

    return app
