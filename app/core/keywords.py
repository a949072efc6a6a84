"""
Routing keyword sets used by the capability classifier.

Bump `version` whenever a list changes so logged decisions can be traced back
to the keywords that produced them.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class KeywordSets:
    """Named, versioned keyword lists. Entries are matched as lowercase substrings."""

    version: str
    visualization: tuple[str, ...]
    knowledge: tuple[str, ...]


DEFAULT_KEYWORDS = KeywordSets(
    version="2024.1",
    visualization=(
        "chart",
        "graph",
        "plot",
        "visualize",
        "visualization",
        "bar chart",
        "pie chart",
    ),
    knowledge=(
        "document",
        "file",
        "policy",
        "what is",
        "how does",
        "explain",
        "tell me about",
        "information",
    ),
)
