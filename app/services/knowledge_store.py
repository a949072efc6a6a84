"""
Knowledge store client: Milvus Cloud connection and question/answer record storage.

Responsibility: Connect to Milvus, bulk-fetch the Q/A records of one tenant, and
provision/seed tenants. There is no semantic search here; callers filter the
fetched records themselves.
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from app.core.config import (
    KB_COLLECTION_NAME,
    KB_PLACEHOLDER_DIM,
    MILVUS_TOKEN,
    MILVUS_URI,
)
from app.core.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)

RECORD_FIELDS = ["file_id", "question", "answer", "page_numbers"]


@dataclass(frozen=True)
class StoredRecord:
    """One question/answer pair extracted from a source file. Read-only once fetched."""

    file_id: str
    question: str
    answer: str
    page_numbers: tuple[str, ...] = ()

    @classmethod
    def from_entity(cls, entity: dict[str, Any]) -> "StoredRecord":
        pages = entity.get("page_numbers") or []
        if isinstance(pages, str):
            pages = [pages]
        return cls(
            file_id=str(entity.get("file_id") or ""),
            question=str(entity.get("question") or ""),
            answer=str(entity.get("answer") or ""),
            page_numbers=tuple(str(p) for p in pages),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "vector": [0.0] * KB_PLACEHOLDER_DIM,
            "file_id": self.file_id,
            "question": self.question,
            "answer": self.answer,
            "page_numbers": list(self.page_numbers),
        }


class RecordStore(Protocol):
    """Anything that can return up to `limit` stored records for a tenant. May raise."""

    def fetch(self, tenant: str, limit: int) -> list[StoredRecord]: ...


def get_milvus_client() -> Any:
    """
    Connect to Milvus Cloud and return a client. Creates the record collection
    if it does not exist (placeholder vector, dynamic fields for the Q/A payload).
    """
    if not MILVUS_URI or not MILVUS_TOKEN:
        raise ServiceUnavailableError("milvus", "MILVUS_URI and MILVUS_TOKEN must be set in .env")

    from pymilvus import MilvusClient

    client = MilvusClient(uri=MILVUS_URI, token=MILVUS_TOKEN)
    logger.info("Milvus connection established")

    if not client.has_collection(KB_COLLECTION_NAME):
        client.create_collection(
            collection_name=KB_COLLECTION_NAME,
            dimension=KB_PLACEHOLDER_DIM,
            primary_field_name="id",
            vector_field_name="vector",
            metric_type="L2",
            auto_id=True,
        )
        logger.info("Collection %s created (dim=%s)", KB_COLLECTION_NAME, KB_PLACEHOLDER_DIM)
    return client


class MilvusRecordStore:
    """Milvus-backed record store. Each tenant is a partition of one collection."""

    def __init__(self, client: Any = None, collection_name: str = KB_COLLECTION_NAME) -> None:
        self._client = client
        self.collection_name = collection_name

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = get_milvus_client()
        return self._client

    def fetch(self, tenant: str, limit: int) -> list[StoredRecord]:
        """One bounded query over the tenant's partition. No filter, no pagination."""
        logger.info("[knowledge_store:fetch] IN  tenant=%s limit=%d", tenant, limit)
        rows = self.client.query(
            collection_name=self.collection_name,
            filter="",
            limit=limit,
            output_fields=RECORD_FIELDS,
            partition_names=[tenant],
        )
        records = [StoredRecord.from_entity(r) for r in rows or []]
        logger.info("[knowledge_store:fetch] OUT records=%d file_ids=%s",
                    len(records), sorted({r.file_id for r in records}))
        return records

    def ensure_tenant(self, tenant: str) -> None:
        """Create the tenant partition if missing."""
        if not self.client.has_partition(collection_name=self.collection_name, partition_name=tenant):
            self.client.create_partition(collection_name=self.collection_name, partition_name=tenant)
            logger.info("Tenant partition %s created in %s", tenant, self.collection_name)

    def insert_records(self, tenant: str, records: list[StoredRecord]) -> int:
        """Insert records into the tenant partition and flush. Returns the number inserted."""
        if not records:
            return 0
        self.ensure_tenant(tenant)
        self.client.insert(
            collection_name=self.collection_name,
            data=[r.to_row() for r in records],
            partition_name=tenant,
        )
        self.client.flush(collection_name=self.collection_name)
        logger.info("Stored %d records for tenant %s", len(records), tenant)
        return len(records)

    def clear_tenant(self, tenant: str) -> None:
        """Drop the tenant partition and everything in it."""
        if self.client.has_partition(collection_name=self.collection_name, partition_name=tenant):
            self.client.release_partitions(collection_name=self.collection_name, partition_names=[tenant])
            self.client.drop_partition(collection_name=self.collection_name, partition_name=tenant)
            logger.info("Tenant %s cleared", tenant)

    def count(self, tenant: str) -> int:
        if not self.client.has_partition(collection_name=self.collection_name, partition_name=tenant):
            return 0
        rows = self.client.query(
            collection_name=self.collection_name,
            filter="",
            output_fields=["count(*)"],
            partition_names=[tenant],
        )
        return int(rows[0]["count(*)"]) if rows else 0
