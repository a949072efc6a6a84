#!/usr/bin/env python3
"""
Ask the agent one question from the command line.

Prints increments as they stream in (or only the final answer with --sync),
then the attached references and chart, if any.

Run from project root:

    python scripts/ask.py "What is the company policy on remote work?"
    python scripts/ask.py --sync "Show me a bar chart of revenue"
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Project root on path so "app" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from app.agent.graph import build_orchestrator
from app.services.retrieval_service import format_references


def _print_increment(text: str) -> None:
    print(text, end="", flush=True)


async def _run(query: str, sync: bool) -> None:
    orchestrator = build_orchestrator()
    response = await orchestrator.answer(query, on_increment=None if sync else _print_increment)
    if sync:
        print(response.answer)
    else:
        print()
    for datum in response.data:
        if datum.kind == "reference":
            print(format_references(datum.payload))
        elif datum.kind == "chart":
            print("\nChart:")
            print(json.dumps(datum.payload, indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description="Ask the query routing agent a question.")
    parser.add_argument("query", help="Question to ask.")
    parser.add_argument("--sync", action="store_true", help="Print only the final answer, no streaming.")
    args = parser.parse_args()
    if not args.query.strip():
        parser.error("query must not be empty")
    asyncio.run(_run(args.query, args.sync))


if __name__ == "__main__":
    main()
