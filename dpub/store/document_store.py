"""File-based JSON document store.

Stands in for the external document database. Each collection is a single
JSON object (``id -> document``) stored in ``<base_dir>/<collection>.json``.

Single-document operations (``create``, ``update``, ``transform``) are atomic
within one process. There are no multi-document transactions.
"""

from __future__ import annotations

import copy
import json
import threading
import uuid
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from dpub.errors import DocumentNotFoundError, DuplicateDocumentError, StoreError


class DocumentStore:
    """Collections of JSON documents keyed by id.

    Storage path: ``base_dir`` (default ``~/.dpub/documents``), one
    ``<collection>.json`` file per collection.
    """

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        if base_dir is None:
            self._base = Path.home() / ".dpub" / "documents"
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _path(self, collection: str) -> Path:
        return self._base / f"{collection}.json"

    def _read(self, collection: str) -> dict[str, dict]:
        path = self._path(collection)
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text())
        except (json.JSONDecodeError, OSError) as exc:
            raise StoreError(f"Could not read collection '{collection}': {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"Collection '{collection}' is not a JSON object")
        return data

    def _write(self, collection: str, docs: dict[str, dict]) -> None:
        path = self._path(collection)
        tmp = path.with_suffix(".json.tmp")
        try:
            tmp.write_text(json.dumps(docs, indent=2, default=str))
            tmp.replace(path)
        except OSError as exc:
            raise StoreError(f"Could not write collection '{collection}': {exc}") from exc

    @staticmethod
    def new_id() -> str:
        return uuid.uuid4().hex[:20]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        """Return a copy of the document, or None."""
        with self._lock:
            doc = self._read(collection).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def query(
        self,
        collection: str,
        where: Optional[dict[str, Any]] = None,
        order_by: Optional[str | Sequence[str]] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        """Return documents whose fields equal every value in *where*.

        *order_by* may be one field or a sequence of fields; documents missing
        an ordering field sort as if it were empty.
        """
        with self._lock:
            docs = list(self._read(collection).values())

        if where:
            docs = [d for d in docs if all(d.get(k) == v for k, v in where.items())]

        if order_by:
            keys = [order_by] if isinstance(order_by, str) else list(order_by)
            docs.sort(
                key=lambda d: tuple(_sort_key(d.get(k)) for k in keys),
                reverse=descending,
            )

        if limit is not None:
            docs = docs[:limit]
        return copy.deepcopy(docs)

    def list_ids(self, collection: str) -> list[str]:
        with self._lock:
            return list(self._read(collection).keys())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(
        self,
        collection: str,
        data: dict,
        doc_id: Optional[str] = None,
        unique_on: Sequence[str] = (),
    ) -> dict:
        """Insert a document if absent.

        Raises ``DuplicateDocumentError`` when *doc_id* already exists or when
        another document matches *data* on every field in *unique_on*.
        """
        with self._lock:
            docs = self._read(collection)
            doc_id = doc_id or data.get("id") or self.new_id()
            if doc_id in docs:
                raise DuplicateDocumentError(collection, doc_id)
            if unique_on:
                for existing_id, existing in docs.items():
                    if all(existing.get(k) == data.get(k) for k in unique_on):
                        raise DuplicateDocumentError(collection, existing_id)
            doc = copy.deepcopy(data)
            doc["id"] = doc_id
            docs[doc_id] = doc
            self._write(collection, docs)
        return copy.deepcopy(doc)

    def update(self, collection: str, doc_id: str, changes: dict) -> dict:
        """Merge *changes* into an existing document. ``None`` values delete keys."""

        def _merge(doc: dict) -> dict:
            for key, value in changes.items():
                if value is None:
                    doc.pop(key, None)
                else:
                    doc[key] = copy.deepcopy(value)
            return doc

        return self.transform(collection, doc_id, _merge)

    def transform(
        self, collection: str, doc_id: str, fn: Callable[[dict], dict]
    ) -> dict:
        """Atomically replace a document with ``fn(current)``."""
        with self._lock:
            docs = self._read(collection)
            if doc_id not in docs:
                raise DocumentNotFoundError(collection, doc_id)
            updated = fn(copy.deepcopy(docs[doc_id]))
            updated["id"] = doc_id
            docs[doc_id] = updated
            self._write(collection, docs)
        return copy.deepcopy(updated)


def _sort_key(value: Any) -> tuple:
    # None sorts first; mixed types compare by type name first
    if value is None:
        return (0, "", "")
    if isinstance(value, bool):
        return (1, "bool", int(value))
    if isinstance(value, (int, float)):
        return (1, "number", value)
    return (1, type(value).__name__, str(value))
