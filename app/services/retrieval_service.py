"""
Retrieval: bulk fetch, keyword relevance filter, and cited answer assembly.

Responsibility: Pull the tenant's Q/A records from the store, keep the ones that
mention the query, and turn them into a cited answer fragment plus one
deduplicated reference per source file.
"""

import logging
from dataclasses import dataclass, field

from app.core.config import KB_FETCH_LIMIT, KB_MAX_SELECTED
from app.schemas.query import Reference
from app.services.knowledge_store import RecordStore, StoredRecord

logger = logging.getLogger(__name__)

NO_INFORMATION_ANSWER = "No information found in the knowledge base."
MIN_KEYWORD_LEN = 4


@dataclass
class RetrievalResult:
    """Answer fragment with inline `[N - Page X]` markers and the references those markers point to."""

    answer_fragment: str
    references: list[Reference] = field(default_factory=list)


def _is_relevant(record: StoredRecord, query: str) -> bool:
    """Whole query as a substring, or any query word longer than 3 chars, in question or answer."""
    needle = query.casefold()
    question = record.question.casefold()
    answer = record.answer.casefold()
    if needle in question or needle in answer:
        return True
    return any(
        len(word) >= MIN_KEYWORD_LEN and (word in question or word in answer)
        for word in needle.split()
    )


def select_records(query: str, records: list[StoredRecord], max_selected: int = KB_MAX_SELECTED) -> list[StoredRecord]:
    """
    First `max_selected` relevant records in fetch order. When nothing matches,
    fall back to the first `max_selected` records so a non-empty store always
    contributes something.
    """
    relevant = [r for r in records if _is_relevant(r, query)]
    if relevant:
        return relevant[:max_selected]
    logger.info("[retrieval:select_records] no keyword match, falling back to first %d records", max_selected)
    return records[:max_selected]


def merge_pages(reference: Reference, pages) -> Reference:
    """Append pages not already on the reference, keeping first-seen order. Idempotent."""
    for page in pages:
        if page not in reference.page_numbers:
            reference.page_numbers.append(page)
    return reference


def build_references(records: list[StoredRecord]) -> list[Reference]:
    """Fold records into one Reference per file_id, in first-appearance order."""
    by_file: dict[str, Reference] = {}
    for record in records:
        existing = by_file.get(record.file_id)
        if existing is None:
            by_file[record.file_id] = Reference(file_id=record.file_id, page_numbers=list(record.page_numbers))
        else:
            merge_pages(existing, record.page_numbers)
    return list(by_file.values())


def build_answer_fragment(records: list[StoredRecord]) -> str:
    """Each answer followed by its citation line; files numbered from 1 by first appearance."""
    ordinals: dict[str, int] = {}
    parts: list[str] = []
    for record in records:
        ordinal = ordinals.setdefault(record.file_id, len(ordinals) + 1)
        pages = ", ".join(record.page_numbers)
        parts.append(f"{record.answer}\n[{ordinal} - Page {pages}]\n\n")
    return "".join(parts).strip()


def format_references(references: list[Reference]) -> str:
    """Human-readable reference listing, e.g. for CLI output. Empty string when there are none."""
    if not references:
        return ""
    lines = [
        f"{i}. {ref.file_id} - Page {', '.join(ref.page_numbers)}"
        for i, ref in enumerate(references, start=1)
    ]
    return "\n\nReferences:\n" + "\n".join(lines)


class ReferenceAggregator:
    """Knowledge-base lookup for one tenant. Holds no per-query state."""

    def __init__(
        self,
        store: RecordStore,
        tenant: str,
        fetch_limit: int = KB_FETCH_LIMIT,
        max_selected: int = KB_MAX_SELECTED,
    ) -> None:
        self.store = store
        self.tenant = tenant
        self.fetch_limit = fetch_limit
        self.max_selected = max_selected

    def retrieve(self, query: str) -> RetrievalResult:
        """
        Pipeline: bulk fetch → keyword filter → select → cite and merge references.

        Store failures and empty stores both yield the "no information" result;
        nothing is raised to the caller.
        """
        logger.info("[retrieval:retrieve] IN  query=%r tenant=%s", query, self.tenant)
        try:
            records = self.store.fetch(self.tenant, self.fetch_limit)
        except Exception as e:
            logger.warning("[retrieval:retrieve] store fetch failed: %s", e)
            records = []
        if not records:
            logger.info("[retrieval:retrieve] OUT no records")
            return RetrievalResult(answer_fragment=NO_INFORMATION_ANSWER, references=[])

        selected = select_records(query, records, self.max_selected)
        result = RetrievalResult(
            answer_fragment=build_answer_fragment(selected),
            references=build_references(selected),
        )
        logger.info("[retrieval:retrieve] OUT fetched=%d selected=%d references=%s",
                    len(records), len(selected), [r.file_id for r in result.references])
        return result
