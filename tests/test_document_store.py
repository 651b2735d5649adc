"""Tests for the JSON document store."""

import tempfile

import pytest

from dpub.errors import DocumentNotFoundError, DuplicateDocumentError, StoreError
from dpub.store import DocumentStore


def test_create_and_get():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = DocumentStore(tmpdir)
        doc = store.create("things", {"name": "a"}, doc_id="t1")
        assert doc == {"name": "a", "id": "t1"}
        assert store.get("things", "t1") == {"name": "a", "id": "t1"}
        assert store.get("things", "missing") is None


def test_get_returns_a_copy():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = DocumentStore(tmpdir)
        store.create("things", {"tags": ["x"]}, doc_id="t1")
        store.get("things", "t1")["tags"].append("y")
        assert store.get("things", "t1")["tags"] == ["x"]


def test_create_is_insert_if_absent():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = DocumentStore(tmpdir)
        store.create("things", {"name": "a"}, doc_id="t1")
        with pytest.raises(DuplicateDocumentError):
            store.create("things", {"name": "b"}, doc_id="t1")
        assert store.get("things", "t1")["name"] == "a"


def test_create_unique_on_fields():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = DocumentStore(tmpdir)
        store.create("flags", {"articleId": "a1", "reportedBy": "u1"}, doc_id="f1")
        with pytest.raises(DuplicateDocumentError) as exc_info:
            store.create(
                "flags", {"articleId": "a1", "reportedBy": "u1"}, doc_id="f2", unique_on=("articleId", "reportedBy")
            )
        assert exc_info.value.doc_id == "f1"
        store.create(
            "flags", {"articleId": "a1", "reportedBy": "u2"}, doc_id="f3", unique_on=("articleId", "reportedBy")
        )


def test_query_filters_orders_and_limits():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = DocumentStore(tmpdir)
        store.create("things", {"kind": "x", "n": 2}, doc_id="a")
        store.create("things", {"kind": "x", "n": 1}, doc_id="b")
        store.create("things", {"kind": "y", "n": 3}, doc_id="c")

        assert [d["id"] for d in store.query("things", where={"kind": "x"}, order_by="n")] == ["b", "a"]
        assert [d["id"] for d in store.query("things", order_by="n", descending=True)] == ["c", "a", "b"]
        assert len(store.query("things", limit=2)) == 2
        assert store.query("empty") == []


def test_query_orders_missing_fields_first():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = DocumentStore(tmpdir)
        store.create("things", {"n": 1}, doc_id="a")
        store.create("things", {}, doc_id="b")
        assert [d["id"] for d in store.query("things", order_by="n")] == ["b", "a"]


def test_update_merges_and_deletes_none_values():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = DocumentStore(tmpdir)
        store.create("things", {"a": 1, "b": 2}, doc_id="t1")
        updated = store.update("things", "t1", {"a": 10, "b": None, "c": 3})
        assert updated == {"id": "t1", "a": 10, "c": 3}


def test_update_missing_document():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = DocumentStore(tmpdir)
        with pytest.raises(DocumentNotFoundError):
            store.update("things", "nope", {"a": 1})


def test_transform_exception_leaves_document_unchanged():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = DocumentStore(tmpdir)
        store.create("things", {"count": 1}, doc_id="t1")

        def boom(doc):
            doc["count"] = 99
            raise ValueError("nope")

        with pytest.raises(ValueError):
            store.transform("things", "t1", boom)
        assert store.get("things", "t1")["count"] == 1


def test_data_persists_across_instances():
    with tempfile.TemporaryDirectory() as tmpdir:
        DocumentStore(tmpdir).create("things", {"name": "a"}, doc_id="t1")
        store = DocumentStore(tmpdir)
        assert store.get("things", "t1")["name"] == "a"
        assert store.list_ids("things") == ["t1"]


def test_corrupt_collection_raises_store_error():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = DocumentStore(tmpdir)
        store.create("things", {"name": "a"}, doc_id="t1")
        (store._path("things")).write_text("{not json")
        with pytest.raises(StoreError):
            store.get("things", "t1")
