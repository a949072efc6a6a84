"""
API route aggregator: register endpoints; no logic, only delegate to handlers and the agent.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.agent.graph import ResponseOrchestrator
from app.api.handlers import get_orchestrator, stream_answer_events
from app.core.config import SERVICE_NAME
from app.schemas.query import AgentResponse, AskRequest

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/health", tags=["system"])
def health() -> dict:
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": SERVICE_NAME,
    }


# --- Ask ---

@router.post(
    "/ask",
    tags=["ask"],
    summary="Ask the agent (SSE stream)",
    description="Stream the answer via Server-Sent Events: chunk events, one complete event with answer and data, then [DONE]. 422 on invalid input.",
)
async def post_ask(
    body: AskRequest,
    orchestrator: ResponseOrchestrator = Depends(get_orchestrator),
) -> StreamingResponse:
    logger.info("[api:post_ask] IN  query=%r", body.query)
    return StreamingResponse(
        stream_answer_events(orchestrator, body.query),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post(
    "/ask-sync",
    response_model=AgentResponse,
    tags=["ask"],
    summary="Ask the agent (no streaming)",
    description="Return the full answer and side data in one response. 422 on invalid input.",
)
async def post_ask_sync(
    body: AskRequest,
    orchestrator: ResponseOrchestrator = Depends(get_orchestrator),
) -> AgentResponse:
    logger.info("[api:post_ask_sync] IN  query=%r", body.query)
    response = await orchestrator.answer(body.query)
    logger.info("[api:post_ask_sync] OUT data=%s answer_len=%d", [d.kind for d in response.data], len(response.answer))
    return response
