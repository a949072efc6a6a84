#!/usr/bin/env python3
"""
Seed the knowledge base with demo question/answer records.

Creates the Milvus record collection and the tenant partition (if missing)
and inserts the demo records. Use --reset to drop the tenant's existing
records first.

Run from project root:

    python scripts/seed_knowledge_base.py
    python scripts/seed_knowledge_base.py --reset --tenant acme
"""

import argparse
import sys
from pathlib import Path

# Project root on path so "app" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from app.core.config import KB_TENANT
from app.services.knowledge_store import MilvusRecordStore, StoredRecord

SEED_RECORDS = [
    StoredRecord(
        file_id="doc_001",
        question="What is the annual revenue target for Q1 2024?",
        answer="The annual revenue target for Q1 2024 is $2.5 million, with a focus on expanding the enterprise client base by 30%.",
        page_numbers=("3", "4"),
    ),
    StoredRecord(
        file_id="doc_001",
        question="What are the key product features planned for the next release?",
        answer="The next release includes advanced analytics dashboard, multi-language support, and API rate limiting improvements.",
        page_numbers=("12",),
    ),
    StoredRecord(
        file_id="doc_002",
        question="What is the company policy on remote work?",
        answer="Employees can work remotely up to 3 days per week. All remote work requires approval from the direct manager and must maintain productivity standards.",
        page_numbers=("7", "8"),
    ),
    StoredRecord(
        file_id="doc_002",
        question="What are the vacation day entitlements?",
        answer="Full-time employees receive 20 vacation days per year, plus 10 public holidays. Vacation days accrue monthly at a rate of 1.67 days per month.",
        page_numbers=("15",),
    ),
    StoredRecord(
        file_id="doc_003",
        question="How does the authentication system work?",
        answer="The system uses JWT tokens with OAuth 2.0 for authentication. Tokens expire after 24 hours and refresh tokens are valid for 30 days.",
        page_numbers=("22", "23", "24"),
    ),
]


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the Q/A knowledge base for demos/tests.")
    parser.add_argument("--tenant", default=KB_TENANT, help=f"Tenant partition to seed (default: {KB_TENANT}).")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop the tenant's existing records before inserting seed records.",
    )
    args = parser.parse_args()

    store = MilvusRecordStore()
    if args.reset:
        store.clear_tenant(args.tenant)
        print(f"Cleared tenant {args.tenant}.")

    store.ensure_tenant(args.tenant)
    inserted = store.insert_records(args.tenant, SEED_RECORDS)
    for record in SEED_RECORDS:
        print(f"  added: {record.file_id} pages={', '.join(record.page_numbers)} {record.question!r}")

    print(f"Done. Seeded {inserted} records; tenant {args.tenant} now holds {store.count(args.tenant)}.")


if __name__ == "__main__":
    main()
