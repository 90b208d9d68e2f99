"""Download item images and prepare them as inline provider parts."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
from urllib.parse import urlparse

import requests

from logic.errors import ImageFetchError
from tools.observability import instrument_call

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/jpeg"


@dataclass(frozen=True)
class ImageBlob:
    """Raw image bytes plus the mime type the provider should be told."""

    data: bytes
    mime_type: str = DEFAULT_MIME_TYPE

    def as_inline_part(self) -> Dict[str, object]:
        """Inline data part accepted by ``GenerativeModel.generate_content``."""

        return {"mime_type": self.mime_type, "data": self.data}

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


class ImageStore:
    """Interface for fetching item images."""

    def fetch(self, url: str) -> ImageBlob:
        raise NotImplementedError

    def fetch_all(self, urls: Sequence[str]) -> List[ImageBlob]:
        """Fetch every image; the first failure aborts the whole set."""

        return [self.fetch(url) for url in urls]


def _validate_url(url: str) -> None:
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ImageFetchError(f"Unsupported or invalid image URL: {url}")


def _mime_type_from_header(content_type: Optional[str]) -> str:
    if not content_type:
        return DEFAULT_MIME_TYPE
    mime_type = content_type.split(";", 1)[0].strip().lower()
    return mime_type if mime_type.startswith("image/") else DEFAULT_MIME_TYPE


class HttpImageStore(ImageStore):
    """Fetch images over HTTP(S) with ``requests``."""

    def __init__(self, timeout: float = 10.0, session: Optional[requests.Session] = None) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()

    @instrument_call("fetch_image")
    def fetch(self, url: str) -> ImageBlob:
        _validate_url(url)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("Network error fetching image", extra={"error": str(exc)})
            raise ImageFetchError(f"Network error fetching image: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise ImageFetchError(
                f"Failed to fetch image: HTTP {response.status_code}",
                details={"status_code": response.status_code},
            )
        if not response.content:
            raise ImageFetchError("Image download returned no bytes")

        return ImageBlob(
            data=response.content,
            mime_type=_mime_type_from_header(response.headers.get("Content-Type")),
        )


__all__ = ["ImageBlob", "ImageStore", "HttpImageStore", "DEFAULT_MIME_TYPE"]
