"""Provider fallback chain tests."""

import pytest

from logic.errors import (
    AllModelsExhaustedError,
    ProviderAuthError,
    ProviderPolicyError,
    ProviderQuotaError,
    TransientProviderError,
)
from tools.image_store import ImageBlob
from tools.provider_chain import (
    FailureKind,
    ProviderCallError,
    ProviderFallbackChain,
    classify_provider_error,
)

IMAGES = [ImageBlob(data=b"shirt"), ImageBlob(data=b"jeans")]


def test_first_non_empty_reply_wins(scripted_provider) -> None:
    provider = scripted_provider({"model-a": "reply a", "model-b": "reply b"})
    chain = ProviderFallbackChain(provider, ["model-a", "model-b"])

    result = chain.invoke_with_model(IMAGES, "prompt")

    assert result.text == "reply a"
    assert result.model_id == "model-a"
    assert result.attempts == 1
    assert provider.calls == ["model-a"]


def test_falls_back_in_order_past_unavailable_and_unknown_errors(scripted_provider) -> None:
    provider = scripted_provider(
        {
            "model-a": ProviderCallError(FailureKind.MODEL_UNAVAILABLE, "404 model not found"),
            "model-b": RuntimeError("socket closed"),
            "model-c": "reply c",
        }
    )
    chain = ProviderFallbackChain(provider, ["model-a", "model-b", "model-c"])

    result = chain.invoke_with_model(IMAGES, "prompt")

    assert provider.calls == ["model-a", "model-b", "model-c"]
    assert result.model_id == "model-c"
    assert result.attempts == 3
    assert chain.invoke(IMAGES, "prompt") == "reply c"


def test_same_images_are_sent_to_every_model(scripted_provider) -> None:
    provider = scripted_provider({"model-a": RuntimeError("flaky"), "model-b": "ok"})
    ProviderFallbackChain(provider, ["model-a", "model-b"]).invoke(IMAGES, "prompt")

    assert provider.images_seen[0] is IMAGES
    assert provider.images_seen[1] is IMAGES


def test_empty_reply_moves_to_next_model(scripted_provider) -> None:
    provider = scripted_provider({"model-a": "   ", "model-b": "reply b"})
    result = ProviderFallbackChain(provider, ["model-a", "model-b"]).invoke_with_model(IMAGES, "prompt")

    assert result.model_id == "model-b"
    assert provider.calls == ["model-a", "model-b"]


@pytest.mark.parametrize(
    "error, expected",
    [
        (ProviderCallError(FailureKind.AUTH_INVALID, "bad key"), ProviderAuthError),
        (ProviderCallError(FailureKind.QUOTA_EXCEEDED, "slow down"), ProviderQuotaError),
        (ProviderCallError(FailureKind.CONTENT_REJECTED, "refused"), ProviderPolicyError),
        (RuntimeError("API key not valid. Please pass a valid API key."), ProviderAuthError),
        (RuntimeError("429 Resource exhausted"), ProviderQuotaError),
        (RuntimeError("Response was blocked due to SAFETY"), ProviderPolicyError),
    ],
)
def test_fatal_failures_abort_without_trying_other_models(scripted_provider, error, expected) -> None:
    provider = scripted_provider({"model-a": error, "model-b": "never used"})
    chain = ProviderFallbackChain(provider, ["model-a", "model-b"])

    with pytest.raises(expected) as excinfo:
        chain.invoke(IMAGES, "prompt")

    assert provider.calls == ["model-a"]
    assert excinfo.value.__cause__ is error


def test_exhausted_chain_reports_last_error(scripted_provider) -> None:
    last = RuntimeError("connection reset")
    provider = scripted_provider(
        {
            "model-a": ProviderCallError(FailureKind.MODEL_UNAVAILABLE, "not found"),
            "model-b": last,
        }
    )
    chain = ProviderFallbackChain(provider, ["model-a", "model-b"])

    with pytest.raises(AllModelsExhaustedError) as excinfo:
        chain.invoke(IMAGES, "prompt")

    assert excinfo.value.last_error is last
    assert excinfo.value.attempted == ["model-a", "model-b"]


def test_exhausted_after_empty_replies_reports_empty_response(scripted_provider) -> None:
    provider = scripted_provider({"model-a": "", "model-b": ""})

    with pytest.raises(AllModelsExhaustedError) as excinfo:
        ProviderFallbackChain(provider, ["model-a", "model-b"]).invoke(IMAGES, "prompt")

    assert isinstance(excinfo.value.last_error, TransientProviderError)
    assert "empty provider response" in str(excinfo.value.last_error)


def test_unavailable_last_model_is_reported_as_transient(scripted_provider) -> None:
    provider = scripted_provider({"model-a": ProviderCallError(FailureKind.MODEL_UNAVAILABLE, "gone")})

    with pytest.raises(AllModelsExhaustedError) as excinfo:
        ProviderFallbackChain(provider, ["model-a"]).invoke(IMAGES, "prompt")

    assert isinstance(excinfo.value.last_error, TransientProviderError)


def test_chain_requires_models(scripted_provider) -> None:
    with pytest.raises(ValueError):
        ProviderFallbackChain(scripted_provider({}), [])


@pytest.mark.parametrize(
    "message, kind",
    [
        ("403 Permission denied on resource", FailureKind.AUTH_INVALID),
        ("API_KEY_INVALID", FailureKind.AUTH_INVALID),
        ("You exceeded your current quota", FailureKind.QUOTA_EXCEEDED),
        ("rate limit reached", FailureKind.QUOTA_EXCEEDED),
        ("prompt blocked: SAFETY", FailureKind.CONTENT_REJECTED),
        ("models/gemini-9 is not found for API version v1beta", FailureKind.MODEL_UNAVAILABLE),
        ("model is not supported for generateContent", FailureKind.MODEL_UNAVAILABLE),
        ("deadline exceeded", FailureKind.OTHER),
    ],
)
def test_classify_provider_error_by_message(message: str, kind: FailureKind) -> None:
    assert classify_provider_error(RuntimeError(message)) is kind


def test_classify_trusts_structured_errors() -> None:
    error = ProviderCallError(FailureKind.QUOTA_EXCEEDED, "model not found")
    assert classify_provider_error(error) is FailureKind.QUOTA_EXCEEDED
