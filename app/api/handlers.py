"""
API handlers: build the orchestrator dependency and turn its output into SSE events.

Responsibility: Bridge HTTP types and the agent. Lives in the API layer so the
agent stays free of FastAPI/HTTP types.
"""

import asyncio
import contextlib
import json
import logging
from functools import lru_cache
from typing import AsyncIterator

from app.agent.graph import ResponseOrchestrator, build_orchestrator

logger = logging.getLogger(__name__)

DONE_MARKER = "data: [DONE]\n\n"


@lru_cache(maxsize=1)
def get_orchestrator() -> ResponseOrchestrator:
    """FastAPI dependency. Tests replace it through app.dependency_overrides."""
    return build_orchestrator()


def sse_event(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


async def stream_answer_events(orchestrator: ResponseOrchestrator, query: str) -> AsyncIterator[str]:
    """
    Yield one `chunk` event per increment, then a `complete` event with the full
    response, then the end marker. If the client goes away the generator is
    closed and the orchestrator is told to stop streaming.
    """
    queue: asyncio.Queue[str | None] = asyncio.Queue()
    cancel_event = asyncio.Event()
    task = asyncio.create_task(
        orchestrator.answer(query, on_increment=queue.put_nowait, cancel_event=cancel_event)
    )
    task.add_done_callback(lambda _: queue.put_nowait(None))
    try:
        while True:
            increment = await queue.get()
            if increment is None:
                break
            yield sse_event({"type": "chunk", "content": increment})
        response = await task
        yield sse_event({"type": "complete", **response.model_dump(mode="json", by_alias=True)})
    except Exception as e:
        logger.exception("SSE stream failed")
        yield sse_event({"type": "error", "message": str(e)})
    finally:
        if not task.done():
            logger.info("[api:stream_answer_events] client went away; cancelling stream")
            cancel_event.set()
            with contextlib.suppress(Exception):
                await task
    yield DONE_MARKER
