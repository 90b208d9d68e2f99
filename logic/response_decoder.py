"""Extract a JSON object from free-form model output.

Models frequently wrap JSON in a fenced code block (tagged ``json`` or
untagged) or surround it with prose. The decoder removes the fence, falls back
to the first balanced top-level ``{...}`` span, and parses what is left. It
never returns partial or default objects: anything it cannot parse raises a
:class:`~logic.errors.DecodeError` carrying the raw text.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional, Type, TypeVar, overload

from pydantic import BaseModel, ValidationError

from logic.errors import EmptyResponseError, MalformedResponseError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_OPENING_FENCE = re.compile(r"^```[\w+\-.]*[ \t]*\r?\n?")
_CLOSING_FENCE = re.compile(r"\r?\n?```\s*$")


def strip_code_fence(text: str) -> str:
    """Remove a leading/trailing fenced code block wrapper if present."""

    cleaned = text.strip()
    if not cleaned.startswith("```"):
        return cleaned
    cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
    cleaned = _CLOSING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def find_object_span(text: str) -> Optional[str]:
    """Return the first balanced top-level ``{...}`` span, ignoring braces in strings."""

    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        # Unbalanced from this brace; try the next opening brace.
        start = text.find("{", start + 1)
    return None


def _is_clean_object(text: str) -> bool:
    return text.startswith("{") and text.endswith("}")


@overload
def decode_json(raw: Optional[str]) -> Dict[str, Any]: ...


@overload
def decode_json(raw: Optional[str], schema: Type[T]) -> T: ...


def decode_json(raw: Optional[str], schema: Optional[Type[T]] = None):
    """Decode ``raw`` into a dict, or into ``schema`` when a pydantic model is given.

    Raises:
        EmptyResponseError: input is empty or whitespace only.
        MalformedResponseError: no parsable JSON object, or the object does not
            match ``schema``.
    """

    if raw is None or not raw.strip():
        raise EmptyResponseError(raw or "")

    candidate = strip_code_fence(raw)
    if not _is_clean_object(candidate):
        span = find_object_span(candidate)
        if span is not None:
            candidate = span

    if not candidate:
        raise MalformedResponseError("no JSON object found", raw)

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.warning(
            "Failed to parse model response as JSON",
            extra={"error": str(exc), "length": len(raw)},
        )
        raise MalformedResponseError(f"{exc.msg} at line {exc.lineno} column {exc.colno}", raw) from exc

    if not isinstance(parsed, dict):
        raise MalformedResponseError(f"expected a JSON object, got {type(parsed).__name__}", raw)

    if schema is None:
        return parsed

    try:
        return schema.model_validate(parsed)
    except ValidationError as exc:
        missing = [".".join(str(part) for part in error["loc"]) for error in exc.errors()]
        raise MalformedResponseError(f"response does not match {schema.__name__}: {missing}", raw) from exc
    except OverflowError as exc:
        raise MalformedResponseError(f"numeric value out of range for {schema.__name__}", raw) from exc


__all__ = ["decode_json", "strip_code_fence", "find_object_span"]
