"""HTTP client for the external file host that stores story media."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import httpx

from relay_chat.core.errors import TransientStoreError, UploadFailed, UploadTimeout
from relay_chat.core.settings import Settings, settings
from relay_chat.schemas.story import MediaType

logger = logging.getLogger(__name__)

# File extensions the host accepts for image and video uploads.
SUPPORTED_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp", ".mp4", ".webm"})


@dataclass(frozen=True)
class MediaUpload:
    """Media file selected for a story."""

    filename: str
    content: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        return os.path.splitext(self.filename)[1].lower()

    @property
    def media_type(self) -> MediaType | None:
        """Return the story media type implied by the MIME type, if any."""
        major = self.content_type.split("/", 1)[0].lower()
        if major == "image":
            return MediaType.IMAGE
        if major == "video":
            return MediaType.VIDEO
        return None


class MediaHostClient:
    """Uploads files with a multipart POST and returns the hosted URL."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> MediaHostClient:
        config = config or settings
        return cls(config.media_host_url, timeout=config.media_upload_timeout_seconds)

    async def upload(self, filename: str, content: bytes, content_type: str) -> str:
        """Upload one file and return its public URL.

        Raises:
            UploadTimeout: If the host does not answer within the timeout.
            UploadFailed: If the host rejects the file or answers with garbage.
            TransientStoreError: If the host cannot be reached.
        """
        try:
            response = await self._client.post(
                self.url,
                data={"reqtype": "fileupload"},
                files={"fileToUpload": (filename, content, content_type)},
                timeout=self.timeout,
            )
        except httpx.TimeoutException as err:
            raise UploadTimeout("Upload timeout. Please try again.") from err
        except httpx.HTTPError as err:
            logger.warning("Media host unreachable: %s", err)
            raise TransientStoreError(f"Media host unreachable: {err}") from err

        if response.status_code != httpx.codes.OK:
            raise UploadFailed(f"HTTP error! status: {response.status_code}")

        url = response.text.strip()
        if not url.startswith("http"):
            logger.warning("Unexpected media host response: %r", url[:200])
            raise UploadFailed("Invalid response from server")
        return url

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
