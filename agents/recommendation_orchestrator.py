"""Coordinates one outfit recommendation per session.

A request is validated, takes the single-flight lease, and is answered from the
session cache when the same fingerprint was analysed before. Only a cache miss
is subject to the cooldown and reaches the provider chain. Fresh results are
cached and arm the cooldown; failures leave the cooldown untouched. The lease
is released on every path.

Single-item style readings and purchase suggestions share the provider chain
and decoder but bypass the gate and cache.
"""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Union

from logic.errors import StoreUnavailableError, StylistError
from logic.fingerprint import build_fingerprint
from logic.outfit_builder import complete_selection
from logic.prompts import build_item_prompt, build_outfit_prompt, build_purchase_prompt
from logic.response_decoder import decode_json
from logic.validation import ItemInsightPayload, OutfitAnalysisPayload, PurchaseRecommendationsPayload
from memory.request_gate import Lease, RequestGate
from memory.result_cache import ResultCache
from models.outfit import (
    ItemInsight,
    OutfitAnalysis,
    PurchaseSuggestion,
    SavedOutfitRecord,
    WeatherSnapshot,
)
from models.selection import SelectionSet
from models.wardrobe_item import ClothingItem, from_raw_item
from stylist_app.logging_config import get_logger, log_event, operation_context
from tools.image_store import ImageStore
from tools.provider_chain import ProviderFallbackChain
from tools.saved_outfits import SavedOutfitService

LOGGER = get_logger(__name__)

ItemLike = Union[ClothingItem, Mapping[str, Any]]


@dataclass(frozen=True)
class RecommendationResult:
    analysis: OutfitAnalysis
    fingerprint: str
    from_cache: bool
    model_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "analysis": self.analysis.to_dict(),
            "fingerprint": self.fingerprint,
            "fromCache": self.from_cache,
            "modelId": self.model_id,
        }


def _coerce_items(items: Iterable[ItemLike]) -> List[ClothingItem]:
    return [item if isinstance(item, ClothingItem) else from_raw_item(dict(item)) for item in items]


class RecommendationOrchestrator:
    """Session-scoped recommendation workflow.

    One instance serves one user session. The gate and cache belong to the
    instance; the saved outfit service may be shared between sessions.
    """

    def __init__(
        self,
        chain: ProviderFallbackChain,
        image_store: ImageStore,
        saved_outfits: Optional[SavedOutfitService] = None,
        gate: Optional[RequestGate] = None,
        cache: Optional[ResultCache] = None,
        on_cooldown_elapsed: Optional[Callable[[], None]] = None,
    ) -> None:
        self.chain = chain
        self.image_store = image_store
        self.saved_outfits = saved_outfits
        self.gate = gate or RequestGate()
        self.cache = cache or ResultCache()
        self.on_cooldown_elapsed = on_cooldown_elapsed
        self._lock = threading.Lock()

    def get_recommendation(
        self,
        items: Sequence[ItemLike],
        style: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> RecommendationResult:
        """Analyse a selection of two to four items.

        Raises:
            SelectionValidationError: the selection is not analysable.
            AlreadyInFlightError: another recommendation holds the lease.
            CoolingDownError: cache miss inside the cooldown window.
            ProviderError, ImageFetchError, DecodeError: the attempt failed.
        """

        selection = SelectionSet.from_items(_coerce_items(items))

        with operation_context("orchestrator.get_recommendation") as correlation_id:
            lease = self.gate.try_acquire(check_cooldown=False)
            fingerprint = build_fingerprint(selection.item_ids, style, temperature)
            try:
                cached = self.cache.get(fingerprint)
                if cached is not None:
                    log_event(
                        LOGGER,
                        logging.INFO,
                        "recommendation_cache_hit",
                        fingerprint=fingerprint,
                        correlation_id=correlation_id,
                    )
                    return RecommendationResult(analysis=cached, fingerprint=fingerprint, from_cache=True)

                self.gate.ensure_not_cooling()
                log_event(
                    LOGGER,
                    logging.INFO,
                    "recommendation_started",
                    fingerprint=fingerprint,
                    item_count=len(selection),
                    correlation_id=correlation_id,
                )
                images = self.image_store.fetch_all(selection.image_urls)
                prompt = build_outfit_prompt(selection, style=style, temperature=temperature)
                reply = self.chain.invoke_with_model(images, prompt)
                payload = decode_json(reply.text, OutfitAnalysisPayload)
                analysis = payload.to_analysis(selection)

                committed = self._commit(lease, fingerprint, analysis)
                log_event(
                    LOGGER,
                    logging.INFO if committed else logging.WARNING,
                    # Teardown during the call: the result is returned but not kept.
                    "recommendation_completed" if committed else "recommendation_discarded",
                    fingerprint=fingerprint,
                    model_id=reply.model_id,
                    attempts=reply.attempts,
                    compatibility=analysis.compatibility,
                    correlation_id=correlation_id,
                )
                return RecommendationResult(
                    analysis=analysis,
                    fingerprint=fingerprint,
                    from_cache=False,
                    model_id=reply.model_id,
                )
            except StylistError as exc:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "recommendation_failed",
                    fingerprint=fingerprint,
                    error_code=exc.error_code,
                    error=exc.message,
                    correlation_id=correlation_id,
                )
                raise
            finally:
                self.gate.release(lease)

    def _commit(self, lease: Lease, fingerprint: str, analysis: OutfitAnalysis) -> bool:
        """Cache a fresh result and arm the cooldown, unless teardown revoked ``lease``."""

        with self._lock:
            if self.gate.arm_cooldown(on_elapsed=self.on_cooldown_elapsed, lease=lease) is None:
                return False
            self.cache.put(fingerprint, analysis)
            return True

    def recommend_smart_outfit(
        self,
        selected: Sequence[ItemLike],
        wardrobe: Sequence[ItemLike],
        style: Optional[str] = None,
        temperature: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ) -> RecommendationResult:
        """Complete a partial selection from the wardrobe, then analyse it."""

        completion = complete_selection(
            _coerce_items(selected),
            _coerce_items(wardrobe),
            temperature=temperature,
            rng=rng,
        )
        log_event(LOGGER, logging.INFO, "smart_outfit_completed", **completion.diagnostics)
        return self.get_recommendation(completion.items, style=style, temperature=temperature)

    def analyze_single_item(self, item: ItemLike) -> ItemInsight:
        """Read the style of one item and suggest pieces that pair with it.

        Not gated or cached: the cooldown only bounds outfit analyses.
        """

        (clothing,) = _coerce_items([item])
        with operation_context("orchestrator.analyze_single_item") as correlation_id:
            try:
                images = self.image_store.fetch_all([clothing.image_url] if clothing.image_url else [])
                reply = self.chain.invoke_with_model(images, build_item_prompt(clothing))
                insight = decode_json(reply.text, ItemInsightPayload).to_insight(clothing)
            except StylistError as exc:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "item_insight_failed",
                    item_id=clothing.item_id,
                    error_code=exc.error_code,
                    correlation_id=correlation_id,
                )
                raise
            log_event(
                LOGGER,
                logging.INFO,
                "item_insight_completed",
                item_id=clothing.item_id,
                style=insight.style,
                model_id=reply.model_id,
                correlation_id=correlation_id,
            )
            return insight

    def recommend_new_items(
        self,
        wardrobe: Sequence[ItemLike],
        style: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> List[PurchaseSuggestion]:
        """Suggest three to five purchases that fill gaps in ``wardrobe``. Text only."""

        items = _coerce_items(wardrobe)
        with operation_context("orchestrator.recommend_new_items") as correlation_id:
            try:
                reply = self.chain.invoke_with_model([], build_purchase_prompt(items, style, temperature))
                suggestions = decode_json(reply.text, PurchaseRecommendationsPayload).to_suggestions()
            except StylistError as exc:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "purchase_suggestions_failed",
                    wardrobe_size=len(items),
                    error_code=exc.error_code,
                    correlation_id=correlation_id,
                )
                raise
            log_event(
                LOGGER,
                logging.INFO,
                "purchase_suggestions_completed",
                wardrobe_size=len(items),
                suggestion_count=len(suggestions),
                model_id=reply.model_id,
                correlation_id=correlation_id,
            )
            return suggestions

    def cached_analysis(self, fingerprint: str) -> Optional[OutfitAnalysis]:
        return self.cache.get(fingerprint)

    def save_outfit(
        self,
        owner_id: str,
        analysis: OutfitAnalysis,
        weather: Optional[WeatherSnapshot] = None,
        preferred_style: Optional[str] = None,
    ) -> SavedOutfitRecord:
        """Persist ``analysis`` unless the owner already saved the same items."""

        if self.saved_outfits is None:
            raise StoreUnavailableError("no saved outfit store configured")
        with operation_context("orchestrator.save_outfit"):
            return self.saved_outfits.save_if_absent(
                owner_id, analysis, weather=weather, preferred_style=preferred_style
            )

    def remaining_cooldown_seconds(self) -> int:
        return self.gate.remaining_cooldown_seconds()

    def teardown(self) -> None:
        """End the session: cancel the countdown and drop cached results.

        A call still in flight loses its lease, so its result is returned to
        its caller but neither cached nor allowed to start a countdown.
        """

        with self._lock:
            self.gate.reset()
            self.cache.clear()
        log_event(LOGGER, logging.INFO, "orchestrator_teardown")


__all__ = ["RecommendationOrchestrator", "RecommendationResult"]
