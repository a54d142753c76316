"""Streaming chat endpoint relaying conversations to the model.

Each request carries the full conversation; the response is a Server-Sent
Events stream of ``StreamChunk`` JSON objects:

    data: {"content": "", "done": false, "status": "received"}
    data: {"content": "He", "done": false, "status": "generating"}
    ...
    data: {"content": "", "done": true, "status": "complete"}

A failed stream ends with ``done: true, status: "error"`` and an ``error_type``
of ``provider`` or ``timeout`` instead of the completion chunk.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import aclosing

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from streamchat.agent.relay import StreamingRelay, get_relay
from streamchat.errors import ProviderError, RelayTimeoutError
from streamchat.models.schemas import RelayRequest, StreamChunk, StreamErrorType, StreamStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _sse(chunk: StreamChunk) -> str:
    """Format a chunk as one SSE data event."""
    return f"data: {chunk.model_dump_json()}\n\n"


def _error_chunk(error: Exception, error_type: StreamErrorType) -> StreamChunk:
    return StreamChunk(
        content="",
        done=True,
        status=StreamStatus.ERROR,
        error=str(error),
        error_type=error_type,
    )


async def _event_stream(
    relay: StreamingRelay,
    payload: RelayRequest,
    request: Request,
) -> AsyncGenerator[str]:
    """Translate relay fragments into SSE events.

    Stops pulling from the relay as soon as the client goes away, which closes
    the provider stream.
    """
    yield _sse(StreamChunk(content="", done=False, status=StreamStatus.RECEIVED))

    async with aclosing(relay.stream(payload.messages)) as fragments:
        try:
            async for fragment in fragments:
                if await request.is_disconnected():
                    logger.info("Client disconnected, stopping relay stream")
                    return
                yield _sse(
                    StreamChunk(content=fragment, done=False, status=StreamStatus.GENERATING)
                )
        except RelayTimeoutError as e:
            yield _sse(_error_chunk(e, StreamErrorType.TIMEOUT))
            return
        except ProviderError as e:
            logger.warning(f"Provider error while streaming: {e}")
            yield _sse(_error_chunk(e, StreamErrorType.PROVIDER))
            return

    yield _sse(StreamChunk(content="", done=True, status=StreamStatus.COMPLETE))


@router.post("/stream")
async def stream_chat(
    payload: RelayRequest,
    request: Request,
    relay: StreamingRelay = Depends(get_relay),
) -> StreamingResponse:
    """Stream the model's reply to a conversation.

    Args:
        payload: The entire conversation so far, ending with a user message.
        request: The incoming request, used to detect client disconnects.
        relay: The streaming relay.

    Returns:
        SSE stream of StreamChunk events.

    Raises:
        422: Empty conversation, bad roles, or invalid attachment URLs.
    """
    logger.info(f"Chat stream requested with {len(payload.messages)} messages")
    return StreamingResponse(
        _event_stream(relay, payload, request),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
