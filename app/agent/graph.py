"""
LangGraph agent: classify → (retrieve) → (chart) → build prompt → stream answer.

Orchestration only; the knowledge store and the LLM are injected. Each call to
`ResponseOrchestrator.answer` runs the compiled graph with fresh state, so
concurrent queries share nothing.
"""

import asyncio
import contextlib
import logging
from typing import Any, Callable, Literal, TypedDict

from langgraph.graph import END, StateGraph

from app.agent.classifier import CapabilityClassifier, Decision
from app.agent.llm import StreamProvider, get_stream_provider, iter_until_cancelled
from app.agent.tools import CHART_CONTEXT, DEFAULT_CHART_KIND, generate_chart
from app.core.config import KB_FETCH_LIMIT, KB_MAX_SELECTED, KB_TENANT
from app.schemas.query import AgentResponse, SideDatum
from app.services.knowledge_store import MilvusRecordStore
from app.services.retrieval_service import ReferenceAggregator

logger = logging.getLogger(__name__)

APOLOGY_ANSWER = "I apologize, but I encountered an error while processing your request."

PERSONA_PROMPT = (
    "You are a helpful AI assistant with access to a knowledge base and visualization tools.\n"
    "Your task is to provide clear, concise answers to user queries.\n\n"
    "When referencing information from documents, use the format: [FileNumber - Page X]\n"
    "For example: [1 - Page 3] refers to the first file, page 3.\n"
)

IncrementCallback = Callable[[str], None]


class AgentState(TypedDict, total=False):
    query: str
    decision: Decision
    data: list[SideDatum]
    knowledge_context: str
    chart_context: str
    messages: list[dict[str, Any]]
    answer: str
    outcome: Literal["completed", "failed", "cancelled"]
    on_increment: IncrementCallback | None
    cancel_event: asyncio.Event | None


def build_system_prompt(context: str) -> str:
    """Persona and citation format, followed by whatever context the tools produced (may be empty)."""
    return f"{PERSONA_PROMPT}\n{context}"


class ResponseOrchestrator:
    """Routes a query to the knowledge base and/or chart tool, then streams the LLM answer."""

    def __init__(
        self,
        aggregator: ReferenceAggregator,
        provider: StreamProvider,
        classifier: CapabilityClassifier | None = None,
        chart: Callable[[str], dict[str, Any]] = generate_chart,
    ) -> None:
        self.aggregator = aggregator
        self.provider = provider
        self.classifier = classifier or CapabilityClassifier()
        self.chart = chart
        self.graph = self._build_graph()

    # --- nodes ---

    def _classify(self, state: AgentState) -> dict:
        decision = self.classifier.classify(state["query"])
        return {"decision": decision, "data": [], "knowledge_context": "", "chart_context": ""}

    async def _retrieve(self, state: AgentState) -> dict:
        """Knowledge lookup. The store call blocks, so it runs in a worker thread."""
        logger.info("[graph:retrieve] IN  query=%r", state["query"])
        result = await asyncio.to_thread(self.aggregator.retrieve, state["query"])
        if not result.references:
            logger.info("[graph:retrieve] OUT no references; context left empty")
            return {"knowledge_context": ""}
        datum = SideDatum(kind="reference", payload=result.references)
        context = f"\n\nContext from knowledge base:\n{result.answer_fragment}\n"
        logger.info("[graph:retrieve] OUT references=%d context_len=%d", len(result.references), len(context))
        return {"data": state["data"] + [datum], "knowledge_context": context}

    def _chart(self, state: AgentState) -> dict:
        descriptor = self.chart(DEFAULT_CHART_KIND)
        datum = SideDatum(kind="chart", payload=descriptor)
        context = f"\n\nChart data available: {CHART_CONTEXT}\n"
        logger.info("[graph:chart] OUT chart type=%s", descriptor.get("type"))
        return {"data": state["data"] + [datum], "chart_context": context}

    def _build_prompt(self, state: AgentState) -> dict:
        context = state.get("knowledge_context", "") + state.get("chart_context", "")
        messages = [
            {"role": "system", "content": build_system_prompt(context)},
            {"role": "user", "content": state["query"]},
        ]
        logger.info("[graph:build_prompt] context_len=%d", len(context))
        return {"messages": messages}

    async def _stream(self, state: AgentState) -> dict:
        """
        Pass provider increments through in order. Empty increments are skipped.
        On provider failure the answer becomes the apology, or the knowledge
        context for a pure knowledge lookup that produced one.
        """
        on_increment = state.get("on_increment")
        cancel_event = state.get("cancel_event")
        parts: list[str] = []
        outcome = "completed"
        try:
            increments = self.provider.stream(state["messages"])
            async with contextlib.aclosing(iter_until_cancelled(increments, cancel_event)) as stream:
                async for increment in stream:
                    if not increment:
                        continue
                    parts.append(increment)
                    if on_increment is not None:
                        on_increment(increment)
            if cancel_event is not None and cancel_event.is_set():
                outcome = "cancelled"
            answer = "".join(parts)
        except Exception as e:
            logger.warning("[graph:stream] LLM streaming failed after %d increments: %s", len(parts), e)
            outcome = "failed"
            answer = APOLOGY_ANSWER
            context = state.get("knowledge_context", "")
            if state["decision"] == Decision.KNOWLEDGE_LOOKUP and context:
                answer = context
        logger.info("[graph:stream] OUT outcome=%s increments=%d answer_len=%d", outcome, len(parts), len(answer))
        return {"answer": answer, "outcome": outcome}

    # --- routing ---

    def _route_after_classify(self, state: AgentState) -> Literal["retrieve", "chart", "build_prompt"]:
        decision = state["decision"]
        if decision.wants_knowledge:
            return "retrieve"
        if decision.wants_chart:
            return "chart"
        return "build_prompt"

    def _route_after_retrieve(self, state: AgentState) -> Literal["chart", "build_prompt"]:
        return "chart" if state["decision"].wants_chart else "build_prompt"

    def _build_graph(self):
        """
        classify → retrieve? → chart? → build_prompt → stream → END.
        Reference data is always appended before chart data.
        """
        graph = StateGraph(AgentState)

        graph.add_node("classify", self._classify)
        graph.add_node("retrieve", self._retrieve)
        graph.add_node("chart", self._chart)
        graph.add_node("build_prompt", self._build_prompt)
        graph.add_node("stream", self._stream)

        graph.set_entry_point("classify")
        graph.add_conditional_edges("classify", self._route_after_classify)
        graph.add_conditional_edges("retrieve", self._route_after_retrieve)
        graph.add_edge("chart", "build_prompt")
        graph.add_edge("build_prompt", "stream")
        graph.add_edge("stream", END)

        return graph.compile()

    async def answer(
        self,
        query: str,
        on_increment: IncrementCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> AgentResponse:
        """
        Answer one query. `on_increment` is called synchronously with each
        non-empty increment, in order, before the next one is awaited. Setting
        `cancel_event` stops streaming; the answer is then whatever arrived.
        """
        logger.info("[run_agent] START query=%r", query)
        initial: AgentState = {
            "query": query,
            "on_increment": on_increment,
            "cancel_event": cancel_event,
        }
        final = await self.graph.ainvoke(initial)
        response = AgentResponse(answer=final.get("answer", ""), data=final.get("data") or [])
        logger.info("[run_agent] END decision=%s outcome=%s data=%s answer_len=%d",
                    final["decision"].value, final.get("outcome"),
                    [d.kind for d in response.data], len(response.answer))
        return response


def build_orchestrator() -> ResponseOrchestrator:
    """Default wiring: Milvus record store for the configured tenant and the configured LLM."""
    aggregator = ReferenceAggregator(
        MilvusRecordStore(),
        tenant=KB_TENANT,
        fetch_limit=KB_FETCH_LIMIT,
        max_selected=KB_MAX_SELECTED,
    )
    return ResponseOrchestrator(aggregator, get_stream_provider())
