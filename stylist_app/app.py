"""Wardrobe Stylist bootstrap: builds collaborators from configuration."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from agents.recommendation_orchestrator import RecommendationOrchestrator
from memory.request_gate import RequestGate
from memory.session_registry import SessionRegistry
from stylist_app.config import StylistConfig
from stylist_app.logging_config import configure_logging, get_logger, log_event
from tools.gemini_provider import GeminiProvider
from tools.image_store import HttpImageStore, ImageStore
from tools.provider_chain import AIProvider, ProviderFallbackChain
from tools.saved_outfit_store import SavedOutfitStore, SQLiteSavedOutfitStore
from tools.saved_outfits import SavedOutfitService

LOGGER = get_logger(__name__)

DEFAULT_SAVED_OUTFITS_DB = "data/saved_outfits.db"


class StylistApp:
    """Wires the provider, image store and saved outfit store together.

    Collaborators can be injected, which is how tests swap in fakes.
    """

    def __init__(
        self,
        config: StylistConfig | None = None,
        provider: AIProvider | None = None,
        image_store: ImageStore | None = None,
        saved_outfit_store: SavedOutfitStore | None = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.config = config or StylistConfig.from_env()
        configure_logging()
        self.provider = provider or GeminiProvider(
            api_key=self.config.gemini_api_key,
            generation_config={
                "temperature": self.config.generation_temperature,
                "top_p": self.config.generation_top_p,
                "top_k": self.config.generation_top_k,
                "max_output_tokens": self.config.max_output_tokens,
            },
        )
        self.image_store = image_store or HttpImageStore(timeout=self.config.image_fetch_timeout)
        self.saved_outfit_store = saved_outfit_store or SQLiteSavedOutfitStore(
            self.config.saved_outfits_db_path or DEFAULT_SAVED_OUTFITS_DB
        )
        self.saved_outfits = SavedOutfitService(self.saved_outfit_store)
        self._clock = clock
        self.sessions = SessionRegistry(self.new_orchestrator)
        log_event(
            LOGGER,
            logging.INFO,
            "stylist_app_ready",
            **self.config.to_log_dict(),
        )

    def new_orchestrator(self) -> RecommendationOrchestrator:
        """Fresh orchestrator with its own gate and cache."""

        gate = (
            RequestGate(self.config.cooldown_seconds, clock=self._clock)
            if self._clock
            else RequestGate(self.config.cooldown_seconds)
        )
        return RecommendationOrchestrator(
            chain=ProviderFallbackChain(self.provider, self.config.gemini_models),
            image_store=self.image_store,
            saved_outfits=self.saved_outfits,
            gate=gate,
        )

    def shutdown(self) -> None:
        self.sessions.close_all()


__all__ = ["StylistApp", "DEFAULT_SAVED_OUTFITS_DB"]
