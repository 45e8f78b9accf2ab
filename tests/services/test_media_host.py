"""Tests for the media host HTTP client."""

import httpx
import pytest

from relay_chat.core.errors import TransientStoreError, UploadFailed, UploadTimeout
from relay_chat.schemas.story import MediaType
from relay_chat.services.media_host import MediaUpload


@pytest.mark.asyncio
async def test_upload_posts_multipart_form(media_host, media_stub):
    url = await media_host.upload("cat.png", b"\x89PNG...", "image/png")

    assert url == "https://files.media.test/abc123.png"
    request = media_stub.requests[0]
    assert request.method == "POST"
    assert request.headers["content-type"].startswith("multipart/form-data")
    assert b'name="reqtype"' in request.content
    assert b"fileupload" in request.content
    assert b'name="fileToUpload"; filename="cat.png"' in request.content


@pytest.mark.asyncio
async def test_upload_rejects_non_url_response(media_host, media_stub):
    media_stub.body = "<html>error</html>"
    with pytest.raises(UploadFailed):
        await media_host.upload("cat.png", b"data", "image/png")


@pytest.mark.asyncio
async def test_upload_rejects_http_error(media_host, media_stub):
    media_stub.status_code = 500
    with pytest.raises(UploadFailed) as exc_info:
        await media_host.upload("cat.png", b"data", "image/png")
    assert "500" in str(exc_info.value)


@pytest.mark.asyncio
async def test_upload_timeout(media_host, media_stub):
    media_stub.error = httpx.ReadTimeout("slow")
    with pytest.raises(UploadTimeout) as exc_info:
        await media_host.upload("cat.png", b"data", "image/png")
    assert exc_info.value.retryable


@pytest.mark.asyncio
async def test_upload_network_error(media_host, media_stub):
    media_stub.error = httpx.ConnectError("refused")
    with pytest.raises(TransientStoreError):
        await media_host.upload("cat.png", b"data", "image/png")


@pytest.mark.parametrize(
    ("content_type", "expected"),
    [("image/png", MediaType.IMAGE), ("video/mp4", MediaType.VIDEO), ("text/plain", None)],
)
def test_media_upload_type(content_type, expected):
    upload = MediaUpload(filename="file.bin", content=b"1234", content_type=content_type)
    assert upload.media_type == expected
    assert upload.size == 4
