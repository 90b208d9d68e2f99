"""Session-scoped cache of outfit analyses keyed by request fingerprint."""
from __future__ import annotations

import logging
from typing import Dict, Optional

from models.outfit import OutfitAnalysis

logger = logging.getLogger(__name__)


class ResultCache:
    """In-memory fingerprint -> analysis map.

    Entries live as long as the owning orchestrator session. There is no
    eviction or TTL, so a long-lived process should drop the cache with
    :meth:`clear` when the session ends.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, OutfitAnalysis] = {}

    def get(self, fingerprint: str) -> Optional[OutfitAnalysis]:
        analysis = self._entries.get(fingerprint)
        logger.debug("Result cache %s", "hit" if analysis else "miss", extra={"fingerprint": fingerprint})
        return analysis

    def put(self, fingerprint: str, analysis: OutfitAnalysis) -> None:
        self._entries[fingerprint] = analysis

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._entries

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["ResultCache"]
