"""Idempotent persistence of outfit analyses.

Records are keyed per owner by the hash of their sorted item ids, so the same
set of items saved twice is detected regardless of selection order. The store
offers no atomic check-and-insert; ``save_if_absent`` checks then writes and
two concurrent saves of the same set can both succeed.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from logic.errors import OutfitAlreadySavedError, StoreUnavailableError
from logic.fingerprint import build_item_set_hash
from models.outfit import OutfitAnalysis, SavedOutfitRecord, WeatherSnapshot
from stylist_app.logging_config import get_logger, log_event
from tools.saved_outfit_store import SavedOutfitStore

LOGGER = get_logger(__name__)

_STORE_ERRORS = (sqlite3.Error, OSError)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _weather_from_dict(payload: Optional[Dict[str, Any]]) -> Optional[WeatherSnapshot]:
    if not payload:
        return None
    return WeatherSnapshot(
        temperature=float(payload.get("temperature", 0.0)),
        feels_like=payload.get("feels_like"),
        humidity=payload.get("humidity"),
        condition=str(payload.get("condition", "")),
        wind_speed=payload.get("wind_speed"),
        description=str(payload.get("description", "")),
    )


def record_from_document(owner_id: str, document: Dict[str, Any]) -> SavedOutfitRecord:
    """Rebuild a record from a stored document, recomputing a missing hash."""

    item_ids = [str(item_id) for item_id in document.get("itemIds") or []]
    saved_at = document.get("savedAt")
    return SavedOutfitRecord(
        record_id=str(document["id"]),
        owner_id=owner_id,
        item_ids=item_ids,
        item_ids_hash=document.get("itemIdsHash") or build_item_set_hash(item_ids),
        analysis=OutfitAnalysis.from_dict(document["analysis"]),
        saved_at=datetime.fromisoformat(saved_at) if saved_at else _utc_now(),
        preferred_style=document.get("preferredStyle"),
        weather=_weather_from_dict(document.get("weatherSnapshot")),
        cover_image=document.get("coverImage") or "",
        items=list(document.get("items") or []),
    )


class SavedOutfitService:
    """Save, look up, list and delete outfits for an owner."""

    def __init__(self, store: SavedOutfitStore, clock: Callable[[], datetime] = _utc_now) -> None:
        self.store = store
        self._clock = clock

    def save(
        self,
        owner_id: str,
        analysis: OutfitAnalysis,
        weather: Optional[WeatherSnapshot] = None,
        preferred_style: Optional[str] = None,
    ) -> SavedOutfitRecord:
        item_ids = analysis.item_ids
        items = [item.snapshot() for item in analysis.selected_items]
        record = SavedOutfitRecord(
            record_id=uuid.uuid4().hex,
            owner_id=owner_id,
            item_ids=item_ids,
            item_ids_hash=build_item_set_hash(item_ids),
            analysis=analysis,
            saved_at=self._clock(),
            preferred_style=preferred_style,
            weather=weather,
            cover_image=next((item["imageUrl"] for item in items if item.get("imageUrl")), ""),
            items=items,
        )
        document = record.to_dict()
        document.pop("owner_id", None)
        try:
            self.store.insert(owner_id, document)
        except _STORE_ERRORS as exc:
            raise StoreUnavailableError(f"failed to save outfit: {exc}") from exc
        log_event(
            LOGGER,
            logging.INFO,
            "outfit_saved",
            owner_id=owner_id,
            record_id=record.record_id,
            item_count=len(item_ids),
        )
        return record

    def find_by_item_set(self, owner_id: str, item_ids: Sequence[str]) -> Optional[SavedOutfitRecord]:
        if not item_ids:
            return None
        # The hash dedups ids; a stored itemIds list with a repeated id still
        # matches its deduplicated selection.
        item_ids_hash = build_item_set_hash(item_ids)
        try:
            documents = self.store.find_by_field(owner_id, "itemIdsHash", item_ids_hash)
        except _STORE_ERRORS as exc:
            raise StoreUnavailableError(f"failed to look up outfit: {exc}") from exc
        if not documents:
            return None
        return record_from_document(owner_id, documents[0])

    def save_if_absent(
        self,
        owner_id: str,
        analysis: OutfitAnalysis,
        weather: Optional[WeatherSnapshot] = None,
        preferred_style: Optional[str] = None,
    ) -> SavedOutfitRecord:
        """Save unless a record for the same item set exists."""

        existing = self.find_by_item_set(owner_id, analysis.item_ids)
        if existing is not None:
            log_event(
                LOGGER,
                logging.INFO,
                "outfit_already_saved",
                owner_id=owner_id,
                record_id=existing.record_id,
            )
            raise OutfitAlreadySavedError(existing.record_id, existing.item_ids_hash)
        return self.save(owner_id, analysis, weather=weather, preferred_style=preferred_style)

    def delete(self, owner_id: str, record_id: str) -> bool:
        try:
            deleted = self.store.delete(owner_id, record_id)
        except _STORE_ERRORS as exc:
            raise StoreUnavailableError(f"failed to delete outfit: {exc}") from exc
        log_event(LOGGER, logging.INFO, "outfit_deleted", owner_id=owner_id, record_id=record_id, deleted=deleted)
        return deleted

    def list(self, owner_id: str, limit: Optional[int] = None) -> List[SavedOutfitRecord]:
        """Newest first, at most ``limit`` records when given."""

        try:
            documents = self.store.list_recent(owner_id, limit=limit)
        except _STORE_ERRORS as exc:
            raise StoreUnavailableError(f"failed to list outfits: {exc}") from exc
        return [record_from_document(owner_id, document) for document in documents]


__all__ = ["SavedOutfitService", "record_from_document"]
