"""Saved outfit storage abstractions and implementations.

Stores hold plain JSON documents per owner. They support exactly what the
saved outfit service needs: insert, equality lookup on a field, delete by id,
and newest-first listing. None of them offer an atomic check-and-insert.
"""
from __future__ import annotations

import json
import sqlite3
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

Document = Dict[str, Any]


class SavedOutfitStore:
    """Persistence interface for saved outfit documents."""

    def insert(self, owner_id: str, document: Document) -> Document:
        raise NotImplementedError

    def find_by_field(self, owner_id: str, field_name: str, value: Any) -> List[Document]:
        raise NotImplementedError

    def delete(self, owner_id: str, record_id: str) -> bool:
        raise NotImplementedError

    def list_recent(self, owner_id: str, limit: Optional[int] = None) -> List[Document]:
        raise NotImplementedError


class InMemorySavedOutfitStore(SavedOutfitStore):
    """Dictionary-backed store for tests and local runs."""

    def __init__(self) -> None:
        self._documents: Dict[str, List[Document]] = {}
        self._lock = threading.Lock()

    def insert(self, owner_id: str, document: Document) -> Document:
        with self._lock:
            self._documents.setdefault(owner_id, []).append(json.loads(json.dumps(document)))
        return document

    def find_by_field(self, owner_id: str, field_name: str, value: Any) -> List[Document]:
        with self._lock:
            return [dict(doc) for doc in self._documents.get(owner_id, []) if doc.get(field_name) == value]

    def delete(self, owner_id: str, record_id: str) -> bool:
        with self._lock:
            documents = self._documents.get(owner_id, [])
            kept = [doc for doc in documents if doc.get("id") != record_id]
            self._documents[owner_id] = kept
            return len(kept) != len(documents)

    def list_recent(self, owner_id: str, limit: Optional[int] = None) -> List[Document]:
        with self._lock:
            documents = list(enumerate(self._documents.get(owner_id, [])))
        documents.sort(key=lambda pair: (pair[1].get("savedAt", ""), pair[0]), reverse=True)
        ordered = [dict(doc) for _, doc in documents]
        return ordered[:limit] if limit else ordered


class SQLiteSavedOutfitStore(SavedOutfitStore):
    """Local SQLite-backed store for saved outfits."""

    _INDEXED_FIELDS = {"id": "record_id", "itemIdsHash": "item_ids_hash"}

    def __init__(self, database_path: str | Path = "data/saved_outfits.db") -> None:
        self.database_path = Path(database_path)
        if self.database_path.parent and not self.database_path.parent.exists():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_tables(self) -> None:
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS saved_outfits (
                    owner_id TEXT NOT NULL,
                    record_id TEXT NOT NULL,
                    item_ids_hash TEXT NOT NULL,
                    saved_at TEXT NOT NULL,
                    payload TEXT NOT NULL,
                    PRIMARY KEY (owner_id, record_id)
                );
                CREATE INDEX IF NOT EXISTS idx_saved_outfits_hash
                    ON saved_outfits (owner_id, item_ids_hash);
                """
            )

    @staticmethod
    def _row_to_document(row: sqlite3.Row) -> Document:
        return json.loads(row["payload"])

    def insert(self, owner_id: str, document: Document) -> Document:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO saved_outfits (owner_id, record_id, item_ids_hash, saved_at, payload)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    owner_id,
                    document["id"],
                    document.get("itemIdsHash", ""),
                    document.get("savedAt", ""),
                    json.dumps(document),
                ),
            )
        return document

    def find_by_field(self, owner_id: str, field_name: str, value: Any) -> List[Document]:
        column = self._INDEXED_FIELDS.get(field_name)
        if column is None:
            return [doc for doc in self.list_recent(owner_id) if doc.get(field_name) == value]
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT payload FROM saved_outfits WHERE owner_id = ? AND {column} = ? ORDER BY rowid",
                (owner_id, value),
            ).fetchall()
        return [self._row_to_document(row) for row in rows]

    def delete(self, owner_id: str, record_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM saved_outfits WHERE owner_id = ? AND record_id = ?",
                (owner_id, record_id),
            )
            return cursor.rowcount > 0

    def list_recent(self, owner_id: str, limit: Optional[int] = None) -> List[Document]:
        query = "SELECT payload FROM saved_outfits WHERE owner_id = ? ORDER BY saved_at DESC, rowid DESC"
        params: tuple = (owner_id,)
        if limit:
            query += " LIMIT ?"
            params = (owner_id, int(limit))
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_document(row) for row in rows]


__all__ = ["SavedOutfitStore", "InMemorySavedOutfitStore", "SQLiteSavedOutfitStore"]
