"""
Capability classifier: map query text to the capabilities the agent should invoke.

Plain substring matching, no tokenization. A stray knowledge match only costs a
cheap lookup that finds nothing, so false positives are acceptable.
"""

import logging
from enum import Enum

from app.core.keywords import DEFAULT_KEYWORDS, KeywordSets

logger = logging.getLogger(__name__)


class Decision(str, Enum):
    KNOWLEDGE_LOOKUP = "knowledge-lookup"
    CHART = "chart"
    BOTH = "both"
    DIRECT_ANSWER = "direct-answer"

    @property
    def wants_knowledge(self) -> bool:
        return self in (Decision.KNOWLEDGE_LOOKUP, Decision.BOTH)

    @property
    def wants_chart(self) -> bool:
        return self in (Decision.CHART, Decision.BOTH)


class CapabilityClassifier:
    def __init__(self, keywords: KeywordSets = DEFAULT_KEYWORDS) -> None:
        self.keywords = keywords

    def classify(self, query: str) -> Decision:
        text = (query or "").lower()
        has_chart = any(k in text for k in self.keywords.visualization)
        has_knowledge = any(k in text for k in self.keywords.knowledge)

        if has_chart and has_knowledge:
            decision = Decision.BOTH
        elif has_chart:
            decision = Decision.CHART
        elif has_knowledge:
            decision = Decision.KNOWLEDGE_LOOKUP
        else:
            decision = Decision.DIRECT_ANSWER
        logger.info("[classifier:classify] query=%r keywords=%s -> %s", query, self.keywords.version, decision.value)
        return decision


def classify(query: str, keywords: KeywordSets = DEFAULT_KEYWORDS) -> Decision:
    """Classify with the given (default) keyword sets."""
    return CapabilityClassifier(keywords).classify(query)
