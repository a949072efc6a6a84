"""
Unit tests for retrieval: keyword selection, citation fragment, reference merging.

The store is a fake; see conftest.py.
"""

import pytest

from app.schemas.query import Reference
from app.services.knowledge_store import StoredRecord
from app.services.retrieval_service import (
    NO_INFORMATION_ANSWER,
    ReferenceAggregator,
    build_answer_fragment,
    build_references,
    format_references,
    merge_pages,
    select_records,
)


class TestReferenceAggregator:
    """Tests for ReferenceAggregator.retrieve()."""

    def test_empty_store_returns_no_information(self, store_factory) -> None:
        result = ReferenceAggregator(store_factory([]), tenant="t").retrieve("anything")
        assert result.answer_fragment == "No information found in the knowledge base."
        assert result.references == []

    def test_store_failure_returns_no_information(self, store_factory) -> None:
        store = store_factory(error=ConnectionError("milvus down"))
        result = ReferenceAggregator(store, tenant="t").retrieve("remote work")
        assert result.answer_fragment == NO_INFORMATION_ANSWER
        assert result.references == []

    def test_single_bounded_fetch_for_tenant(self, store_factory, seed_records) -> None:
        store = store_factory(seed_records)
        ReferenceAggregator(store, tenant="acme").retrieve("remote work")
        assert store.calls == [("acme", 100)]

    def test_handbook_pages_merged_in_order(self, store_factory, handbook_records) -> None:
        result = ReferenceAggregator(store_factory(handbook_records), tenant="t").retrieve(
            "What is in the employee handbook?"
        )
        assert [r.file_id for r in result.references] == ["doc_002"]
        assert result.references[0].page_numbers == ["7", "8", "15"]

    def test_fragment_cites_selected_records(self, store_factory, seed_records) -> None:
        result = ReferenceAggregator(store_factory(seed_records), tenant="t").retrieve("remote work")
        # "remote" hits doc_002 only; "work" also hits doc_003 ("work?") in fetch order
        assert result.answer_fragment == (
            "Employees can work remotely up to 3 days per week.\n[1 - Page 7, 8]\n\n"
            "The system uses JWT tokens with OAuth 2.0.\n[2 - Page 22, 23, 24]"
        )
        assert [r.file_id for r in result.references] == ["doc_002", "doc_003"]

    def test_never_duplicates_file_ids(self, store_factory, seed_records) -> None:
        result = ReferenceAggregator(store_factory(seed_records), tenant="t").retrieve("What")
        file_ids = [r.file_id for r in result.references]
        assert len(file_ids) == len(set(file_ids))


class TestSelectRecords:
    """Tests for select_records()."""

    def test_whole_query_substring_match(self, seed_records) -> None:
        selected = select_records("vacation day", seed_records)
        assert [r.page_numbers for r in selected] == [("15",)]

    def test_keyword_match_is_case_insensitive(self, seed_records) -> None:
        selected = select_records("JWT AUTHENTICATION", seed_records)
        assert [r.file_id for r in selected] == ["doc_003"]

    def test_caps_at_three_in_fetch_order(self, seed_records) -> None:
        selected = select_records("what", seed_records)
        assert selected == seed_records[:3]

    def test_no_match_falls_back_to_first_three(self, seed_records) -> None:
        assert select_records("xyzzy plugh", seed_records) == seed_records[:3]

    def test_short_words_do_not_count(self) -> None:
        records = [StoredRecord(f"doc_{i}", f"q{i}", f"a{i}", (str(i),)) for i in range(3)]
        records.append(StoredRecord("doc_tax", "Tax rules", "The tax rate is 20%.", ("9",)))
        # "tax" has only 3 characters and the whole query is not a substring
        assert select_records("tax xyzzy", records) == records[:3]
        assert select_records("taxes rules", records) == [records[3]]


class TestCitations:
    """Tests for build_answer_fragment(), build_references(), merge_pages()."""

    def test_ordinals_follow_first_appearance(self) -> None:
        records = [
            StoredRecord("doc_b", "q", "Answer one.", ("3", "4")),
            StoredRecord("doc_a", "q", "Answer two.", ("7",)),
            StoredRecord("doc_b", "q", "Answer three.", ("12",)),
        ]
        assert build_answer_fragment(records) == (
            "Answer one.\n[1 - Page 3, 4]\n\nAnswer two.\n[2 - Page 7]\n\nAnswer three.\n[1 - Page 12]"
        )

    def test_references_merge_without_duplicates(self) -> None:
        records = [
            StoredRecord("doc_002", "q", "a", ("7", "8")),
            StoredRecord("doc_001", "q", "a", ("1",)),
            StoredRecord("doc_002", "q", "a", ("8", "15", "7")),
        ]
        refs = build_references(records)
        assert [(r.file_id, r.page_numbers) for r in refs] == [
            ("doc_002", ["7", "8", "15"]),
            ("doc_001", ["1"]),
        ]

    def test_references_copy_record_pages(self) -> None:
        record = StoredRecord("doc_1", "q", "a", ("1",))
        refs = build_references([record, StoredRecord("doc_1", "q", "a", ("2",))])
        assert refs[0].page_numbers == ["1", "2"]
        assert record.page_numbers == ("1",)

    def test_merge_pages_is_idempotent(self) -> None:
        ref = Reference(file_id="doc_002", page_numbers=["7", "8"])
        merge_pages(ref, ("15", "7"))
        once = list(ref.page_numbers)
        merge_pages(ref, ("15", "7"))
        assert ref.page_numbers == once == ["7", "8", "15"]


class TestFormatReferences:
    """Tests for format_references()."""

    def test_empty(self) -> None:
        assert format_references([]) == ""

    @pytest.mark.parametrize("alias", [True, False])
    def test_lists_files_with_pages(self, alias: bool) -> None:
        if alias:
            refs = [Reference(fileId="doc_001", pageNumbers=["3", "4"]), Reference(fileId="doc_002", pageNumbers=["7"])]
        else:
            refs = [Reference(file_id="doc_001", page_numbers=["3", "4"]), Reference(file_id="doc_002", page_numbers=["7"])]
        assert format_references(refs) == "\n\nReferences:\n1. doc_001 - Page 3, 4\n2. doc_002 - Page 7"
