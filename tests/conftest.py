"""
Shared fakes for the knowledge store and the streaming LLM.

Nothing here talks to Milvus or a model API.
"""

import asyncio

import pytest

from app.agent.graph import ResponseOrchestrator
from app.services.knowledge_store import StoredRecord
from app.services.retrieval_service import ReferenceAggregator


class FakeStore:
    """Record store returning a fixed list (or raising). Remembers every fetch call."""

    def __init__(self, records=None, error: Exception | None = None) -> None:
        self.records = list(records or [])
        self.error = error
        self.calls: list[tuple[str, int]] = []

    def fetch(self, tenant: str, limit: int) -> list[StoredRecord]:
        self.calls.append((tenant, limit))
        if self.error is not None:
            raise self.error
        return self.records[:limit]


class ScriptedProvider:
    """
    Streams the given increments. Raises `error` after `fail_after` increments,
    or blocks forever after `hang_after` increments, when set.
    """

    def __init__(
        self,
        increments=None,
        fail_after: int | None = None,
        error: Exception | None = None,
        hang_after: int | None = None,
    ) -> None:
        self.increments = list(increments or [])
        self.fail_after = fail_after
        self.error = error or RuntimeError("provider went away")
        self.hang_after = hang_after
        self.messages: list[list[dict]] = []

    async def stream(self, messages):
        self.messages.append(messages)
        for i, increment in enumerate(self.increments):
            if self.fail_after is not None and i == self.fail_after:
                raise self.error
            if self.hang_after is not None and i == self.hang_after:
                await asyncio.Event().wait()
            yield increment
        if self.fail_after is not None and self.fail_after >= len(self.increments):
            raise self.error


@pytest.fixture
def seed_records() -> list[StoredRecord]:
    return [
        StoredRecord("doc_001", "What is the annual revenue target for Q1 2024?",
                     "The annual revenue target for Q1 2024 is $2.5 million.", ("3", "4")),
        StoredRecord("doc_001", "What are the key product features planned for the next release?",
                     "The next release includes an analytics dashboard.", ("12",)),
        StoredRecord("doc_002", "What is the company policy on remote work?",
                     "Employees can work remotely up to 3 days per week.", ("7", "8")),
        StoredRecord("doc_002", "What are the vacation day entitlements?",
                     "Full-time employees receive 20 vacation days per year.", ("15",)),
        StoredRecord("doc_003", "How does the authentication system work?",
                     "The system uses JWT tokens with OAuth 2.0.", ("22", "23", "24")),
    ]


@pytest.fixture
def handbook_records() -> list[StoredRecord]:
    return [
        StoredRecord("doc_002", "What is the company policy on remote work?",
                     "Employees can work remotely up to 3 days per week.", ("7", "8")),
        StoredRecord("doc_002", "What are the vacation day entitlements?",
                     "Full-time employees receive 20 vacation days per year.", ("15",)),
    ]


def make_orchestrator(records=None, increments=None, store_error=None, **provider_kwargs):
    """Orchestrator over fakes. Returns (orchestrator, store, provider)."""
    store = FakeStore(records, error=store_error)
    provider = ScriptedProvider(increments if increments is not None else ["Hello", " there"], **provider_kwargs)
    orchestrator = ResponseOrchestrator(ReferenceAggregator(store, tenant="test_tenant"), provider)
    return orchestrator, store, provider


@pytest.fixture
def orchestrator_factory():
    return make_orchestrator


@pytest.fixture
def store_factory():
    return FakeStore
