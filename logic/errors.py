"""Error taxonomy for the recommendation orchestrator.

Every failure carries a machine readable ``error_code``, an HTTP-ish
``status_code`` used by the API layer, and a short ``user_message`` that the
client can show as-is. Nothing here is fatal to the process: after any of these
the orchestrator stays usable.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Optional


class StylistError(Exception):
    """Base exception for orchestrator failures."""

    error_code = "INTERNAL_ERROR"
    status_code = 500
    user_message = "Something went wrong. Please try again."

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.user_message,
            "details": {"reason": self.message, **self.details},
        }


class SelectionValidationError(StylistError, ValueError):
    """The item selection cannot be analysed (too few, too many, conflicting)."""

    error_code = "INVALID_SELECTION"
    status_code = 400
    user_message = "Please select between two and four items."


# Concurrency


class ConcurrencyError(StylistError):
    """The request gate refused a new recommendation."""

    error_code = "CONCURRENCY"
    status_code = 409


class AlreadyInFlightError(ConcurrencyError):
    error_code = "ALREADY_IN_FLIGHT"
    status_code = 409
    user_message = "A recommendation is already being prepared."

    def __init__(self) -> None:
        super().__init__("a recommendation is already in flight for this session")


class CoolingDownError(ConcurrencyError):
    error_code = "COOLING_DOWN"
    status_code = 429

    def __init__(self, seconds_remaining: float) -> None:
        self.seconds_remaining = max(0, math.ceil(seconds_remaining))
        super().__init__(
            f"cooldown active for another {self.seconds_remaining}s",
            details={"seconds_remaining": self.seconds_remaining},
        )

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return f"Please wait {self.seconds_remaining} seconds before asking again."


# Provider


class ProviderError(StylistError):
    """Failure talking to the generative AI provider."""

    error_code = "PROVIDER_ERROR"
    status_code = 502
    user_message = "The styling assistant is unavailable right now. Please try again."


class TransientProviderError(ProviderError):
    """Model unavailable or empty reply; the chain moves on to the next model."""

    error_code = "PROVIDER_TRANSIENT"


class ProviderAuthError(ProviderError):
    error_code = "PROVIDER_AUTH"
    status_code = 503
    user_message = "The AI provider key is invalid. Check the service configuration."


class ProviderQuotaError(ProviderError):
    error_code = "PROVIDER_QUOTA"
    status_code = 503
    user_message = "The AI usage limit was reached. Please try again later."


class ProviderPolicyError(ProviderError):
    error_code = "PROVIDER_POLICY"
    status_code = 422
    user_message = "The AI declined this request. Try a different selection."


class AllModelsExhaustedError(ProviderError):
    error_code = "PROVIDER_EXHAUSTED"

    def __init__(self, last_error: Optional[BaseException], attempted: Optional[list] = None) -> None:
        self.last_error = last_error
        self.attempted = list(attempted or [])
        super().__init__(
            f"all models failed; last error: {last_error}",
            details={"attempted_models": self.attempted},
        )


class ImageFetchError(StylistError):
    """An item image could not be downloaded for the provider call."""

    error_code = "IMAGE_FETCH_FAILED"
    status_code = 502
    user_message = "Could not load one of the item images."


# Decoding


class DecodeError(StylistError):
    """The provider replied with text that is not the expected structure."""

    error_code = "DECODE_ERROR"
    status_code = 502
    user_message = "The AI response could not be read. Please try again."


class EmptyResponseError(DecodeError):
    error_code = "DECODE_EMPTY"

    def __init__(self, raw_text: str = "") -> None:
        self.raw_text = raw_text
        super().__init__("provider response is empty")


class MalformedResponseError(DecodeError):
    error_code = "DECODE_MALFORMED"

    def __init__(self, detail: str, raw_text: str) -> None:
        self.detail = detail
        self.raw_text = raw_text
        super().__init__(f"malformed provider response: {detail}", details={"detail": detail})


# Persistence


class SaveError(StylistError):
    error_code = "SAVE_ERROR"
    status_code = 500
    user_message = "The outfit could not be saved."


class OutfitAlreadySavedError(SaveError):
    error_code = "ALREADY_SAVED"
    status_code = 409
    user_message = "This outfit is already saved."

    def __init__(self, record_id: str, item_ids_hash: str) -> None:
        self.record_id = record_id
        self.item_ids_hash = item_ids_hash
        super().__init__(
            f"outfit {item_ids_hash} already saved as {record_id}",
            details={"record_id": record_id},
        )


class StoreUnavailableError(SaveError):
    error_code = "STORE_UNAVAILABLE"
    status_code = 503
    user_message = "Saved outfits are unavailable right now."


__all__ = [
    "StylistError",
    "SelectionValidationError",
    "ConcurrencyError",
    "AlreadyInFlightError",
    "CoolingDownError",
    "ProviderError",
    "TransientProviderError",
    "ProviderAuthError",
    "ProviderQuotaError",
    "ProviderPolicyError",
    "AllModelsExhaustedError",
    "ImageFetchError",
    "DecodeError",
    "EmptyResponseError",
    "MalformedResponseError",
    "SaveError",
    "OutfitAlreadySavedError",
    "StoreUnavailableError",
]
