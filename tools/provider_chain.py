"""Ordered model fallback for generative AI calls.

Models are tried most capable first and the first non-empty reply wins.
Failures are classified: an unavailable model or an unknown error moves on to
the next model, while invalid credentials, exhausted quota and content policy
rejections abort the whole chain because another model on the same account
would fail the same way.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Tuple

from logic.errors import (
    AllModelsExhaustedError,
    ProviderAuthError,
    ProviderError,
    ProviderPolicyError,
    ProviderQuotaError,
    TransientProviderError,
)
from stylist_app.logging_config import get_logger, log_event
from tools.image_store import ImageBlob

LOGGER = get_logger(__name__)


class FailureKind(str, enum.Enum):
    MODEL_UNAVAILABLE = "model_unavailable"
    AUTH_INVALID = "auth_invalid"
    QUOTA_EXCEEDED = "quota_exceeded"
    CONTENT_REJECTED = "content_rejected"
    OTHER = "other"


class ProviderCallError(Exception):
    """Raised by provider adapters with an explicit failure classification."""

    def __init__(self, kind: FailureKind, message: str, model_id: Optional[str] = None) -> None:
        self.kind = kind
        self.model_id = model_id
        super().__init__(message)


class AIProvider(Protocol):
    def call(self, model_id: str, images: Sequence[ImageBlob], prompt: str) -> str: ...


_MESSAGE_RULES: List[Tuple[FailureKind, Tuple[str, ...]]] = [
    (FailureKind.AUTH_INVALID, ("api key", "api_key", "unauthenticated", "permission denied", "401", "403")),
    (FailureKind.QUOTA_EXCEEDED, ("quota", "429", "rate limit", "resource exhausted", "resource_exhausted")),
    (FailureKind.CONTENT_REJECTED, ("blocked", "safety", "prohibited content")),
    (FailureKind.MODEL_UNAVAILABLE, ("not found", "404", "unsupported", "is not supported", "no longer available")),
]


def classify_provider_error(exc: BaseException) -> FailureKind:
    """Map a provider failure to a :class:`FailureKind`.

    Adapters raising :class:`ProviderCallError` are trusted; anything else is
    classified from its message.
    """

    if isinstance(exc, ProviderCallError):
        return exc.kind
    message = str(exc).lower()
    for kind, needles in _MESSAGE_RULES:
        if any(needle in message for needle in needles):
            return kind
    return FailureKind.OTHER


@dataclass(frozen=True)
class ChainResult:
    text: str
    model_id: str
    attempts: int


class ProviderFallbackChain:
    """Try ``model_ids`` in order against one provider until a reply arrives."""

    def __init__(self, provider: AIProvider, model_ids: Sequence[str]) -> None:
        if not model_ids:
            raise ValueError("at least one model id is required")
        self.provider = provider
        self.model_ids = list(model_ids)

    def invoke(self, images: Sequence[ImageBlob], prompt: str) -> str:
        return self.invoke_with_model(images, prompt).text

    def invoke_with_model(self, images: Sequence[ImageBlob], prompt: str) -> ChainResult:
        last_error: Optional[BaseException] = None
        attempted: List[str] = []

        for model_id in self.model_ids:
            attempted.append(model_id)
            try:
                text = self.provider.call(model_id, images, prompt)
            except Exception as exc:  # noqa: BLE001 - classified below
                kind = classify_provider_error(exc)
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "provider_model_failed",
                    model_id=model_id,
                    failure_kind=kind.value,
                    error=str(exc),
                )
                fatal = _fatal_error(kind, model_id, exc)
                if fatal is not None:
                    raise fatal from exc
                last_error = (
                    TransientProviderError(f"model {model_id} unavailable: {exc}")
                    if kind is FailureKind.MODEL_UNAVAILABLE
                    else exc
                )
                continue

            if not text or not text.strip():
                log_event(LOGGER, logging.WARNING, "provider_empty_response", model_id=model_id)
                last_error = TransientProviderError(f"empty provider response from {model_id}")
                continue

            log_event(
                LOGGER,
                logging.INFO,
                "provider_model_succeeded",
                model_id=model_id,
                attempts=len(attempted),
                length=len(text),
            )
            return ChainResult(text=text, model_id=model_id, attempts=len(attempted))

        raise AllModelsExhaustedError(last_error, attempted=attempted)


def _fatal_error(kind: FailureKind, model_id: str, exc: BaseException) -> Optional[ProviderError]:
    if kind is FailureKind.AUTH_INVALID:
        return ProviderAuthError(f"provider rejected credentials for {model_id}: {exc}")
    if kind is FailureKind.QUOTA_EXCEEDED:
        return ProviderQuotaError(f"provider quota exceeded on {model_id}: {exc}")
    if kind is FailureKind.CONTENT_REJECTED:
        return ProviderPolicyError(f"provider refused the content on {model_id}: {exc}")
    return None


__all__ = [
    "AIProvider",
    "ChainResult",
    "FailureKind",
    "ProviderCallError",
    "ProviderFallbackChain",
    "classify_provider_error",
]
