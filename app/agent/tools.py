"""
Agent tools: chart generation.

The chart tool is a stub with no live data source. It always returns the same
Chart.js bar configuration; the requested kind is logged but does not change
the output yet.
"""

import logging
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_CHART_KIND = "bar"

# Sentence added to the prompt so the model can describe the chart it is shipped with.
CHART_CONTEXT = "Quarterly revenue report with Q1: $2.5M, Q2: $3.2M, Q3: $2.8M, Q4: $4.1M"


def generate_chart(kind: str = DEFAULT_CHART_KIND) -> dict[str, Any]:
    """Return a fresh Chart.js config for the quarterly revenue report. `kind` is currently inert."""
    logger.info("[tools:generate_chart] kind=%s", kind or DEFAULT_CHART_KIND)
    return {
        "type": "bar",
        "data": {
            "labels": ["Q1", "Q2", "Q3", "Q4"],
            "datasets": [
                {
                    "label": "Revenue (in millions)",
                    "data": [2.5, 3.2, 2.8, 4.1],
                    "backgroundColor": [
                        "rgba(75, 192, 192, 0.6)",
                        "rgba(54, 162, 235, 0.6)",
                        "rgba(255, 206, 86, 0.6)",
                        "rgba(153, 102, 255, 0.6)",
                    ],
                    "borderColor": [
                        "rgba(75, 192, 192, 1)",
                        "rgba(54, 162, 235, 1)",
                        "rgba(255, 206, 86, 1)",
                        "rgba(153, 102, 255, 1)",
                    ],
                    "borderWidth": 1,
                }
            ],
        },
        "options": {
            "responsive": True,
            "plugins": {
                "legend": {"position": "top"},
                "title": {"display": True, "text": "Quarterly Revenue Report 2024"},
            },
            "scales": {
                "y": {
                    "beginAtZero": True,
                    "title": {"display": True, "text": "Revenue ($M)"},
                }
            },
        },
    }
