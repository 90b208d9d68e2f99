"""Gemini adapter for the provider fallback chain."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import generation_types

from tools.image_store import ImageBlob
from tools.observability import instrument_call
from tools.provider_chain import FailureKind, ProviderCallError, classify_provider_error

logger = logging.getLogger(__name__)

DEFAULT_GENERATION_CONFIG: Dict[str, Any] = {
    "temperature": 0.7,
    "top_p": 0.9,
    "top_k": 40,
    "max_output_tokens": 4096,
}


class GeminiProvider:
    """Calls ``GenerativeModel.generate_content`` and classifies its failures."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> None:
        if api_key:
            genai.configure(api_key=api_key)
        self.generation_config = dict(generation_config or DEFAULT_GENERATION_CONFIG)

    def _model(self, model_id: str) -> genai.GenerativeModel:
        return genai.GenerativeModel(model_name=model_id, generation_config=self.generation_config)

    @instrument_call("gemini_generate_content")
    def call(self, model_id: str, images: Sequence[ImageBlob], prompt: str) -> str:
        contents: List[Any] = [image.as_inline_part() for image in images]
        contents.append(prompt)
        logger.info(
            "Calling Gemini",
            extra={"model_id": model_id, "image_count": len(images), "prompt_length": len(prompt)},
        )

        try:
            response = self._model(model_id).generate_content(contents)
        except google_exceptions.NotFound as exc:
            raise ProviderCallError(FailureKind.MODEL_UNAVAILABLE, str(exc), model_id) from exc
        except (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied) as exc:
            raise ProviderCallError(FailureKind.AUTH_INVALID, str(exc), model_id) from exc
        except google_exceptions.TooManyRequests as exc:
            raise ProviderCallError(FailureKind.QUOTA_EXCEEDED, str(exc), model_id) from exc
        except (generation_types.BlockedPromptException, generation_types.StopCandidateException) as exc:
            raise ProviderCallError(FailureKind.CONTENT_REJECTED, str(exc), model_id) from exc
        except google_exceptions.GoogleAPIError as exc:
            # InvalidArgument covers both bad keys ("API key not valid") and bad requests.
            raise ProviderCallError(classify_provider_error(exc), str(exc), model_id) from exc

        return self._extract_text(response, model_id)

    @staticmethod
    def _extract_text(response: Any, model_id: str) -> str:
        try:
            return response.text or ""
        except ValueError as exc:
            # ``.text`` raises when the candidate has no parts, e.g. after a safety stop.
            feedback = getattr(response, "prompt_feedback", None)
            if getattr(feedback, "block_reason", None):
                raise ProviderCallError(
                    FailureKind.CONTENT_REJECTED, f"prompt blocked: {feedback.block_reason}", model_id
                ) from exc
            logger.warning("Gemini returned no text parts", extra={"model_id": model_id})
            return ""


__all__ = ["GeminiProvider", "DEFAULT_GENERATION_CONFIG"]
