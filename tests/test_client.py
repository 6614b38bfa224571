"""Tests for the sequential upload client."""

import base64
import json

import httpx
import pytest

from soulscape.client import MediaUploadClient, guess_content_type


def _intent(key: str) -> dict:
    return {
        "uploadUrl": f"https://bucket.example.com/{key}?sig=1",
        "cdnUrl": f"https://cdn.example.com/{key}",
        "key": key,
        "expiresIn": 300,
        "requiredHeaders": {"Content-Type": "image/png"},
    }


class RecordingService:
    """Fake upload service that records every request it sees."""

    def __init__(self, fail_names=(), fail_put=False):
        self.requests = []
        self.fail_names = set(fail_names)
        self.fail_put = fail_put

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            body = json.loads(request.content)
            self.requests.append(("POST", body["fileName"], body))
            if body["fileName"] in self.fail_names:
                return httpx.Response(400, json={"detail": "Unsupported contentType. Use image/* or video/*."})
            key = f"soulscape/image/{body['fileName']}"
            if "imageBase64" in body:
                return httpx.Response(
                    200,
                    json={
                        "cdnUrl": f"https://cdn.example.com/{key}",
                        "key": key,
                        "bytes": 123,
                        "originalBytes": 456,
                        "targetBytes": body.get("targetBytes", 1_500_000),
                    },
                )
            return httpx.Response(200, json=_intent(key))

        self.requests.append(("PUT", request.url.path.rsplit("/", 1)[-1], dict(request.headers)))
        return httpx.Response(500 if self.fail_put else 200)


@pytest.fixture
def files(tmp_path):
    paths = []
    for name in ["a.png", "b.png"]:
        path = tmp_path / name
        path.write_bytes(b"png-bytes-" + name.encode())
        paths.append(path)
    return paths


def _client(service: RecordingService) -> MediaUploadClient:
    return MediaUploadClient("http://api.example.com/", transport=httpx.MockTransport(service))


@pytest.mark.asyncio
async def test_files_upload_one_after_another(files):
    """Test that files are uploaded strictly in sequence."""
    service = RecordingService()
    statuses = []

    outcomes = await _client(service).upload_files(
        files, folder="trip", on_status=lambda path, status: statuses.append((path.name, status))
    )

    assert [(method, name) for method, name, _ in service.requests] == [
        ("POST", "a.png"),
        ("PUT", "a.png"),
        ("POST", "b.png"),
        ("PUT", "b.png"),
    ]
    assert service.requests[0][2]["folder"] == "trip"
    assert service.requests[1][2]["content-type"] == "image/png"
    assert all(outcome.ok for outcome in outcomes)
    assert outcomes[0].cdn_url == "https://cdn.example.com/soulscape/image/a.png"
    assert outcomes[1].size_bytes == files[1].stat().st_size
    assert statuses[:3] == [
        ("a.png", "Requesting upload URL..."),
        ("a.png", "Uploading..."),
        ("a.png", "Complete"),
    ]


@pytest.mark.asyncio
async def test_failure_does_not_stop_later_files(files):
    """Test that one failed file does not stop the rest."""
    service = RecordingService(fail_names={"a.png"})

    outcomes = await _client(service).upload_files(files)

    assert [outcome.status for outcome in outcomes] == ["error", "complete"]
    assert outcomes[0].message == "Unsupported contentType. Use image/* or video/*."
    assert [(method, name) for method, name, _ in service.requests] == [
        ("POST", "a.png"),
        ("POST", "b.png"),
        ("PUT", "b.png"),
    ]


@pytest.mark.asyncio
async def test_put_failure_is_reported(files):
    """Test that a failed PUT is reported as an error."""
    outcome = await _client(RecordingService(fail_put=True)).upload_file(files[0])

    assert outcome.status == "error"
    assert outcome.message == "Upload failed."


@pytest.mark.asyncio
async def test_compress_sends_inline_image(files):
    """Test compress mode sends the image inline."""
    service = RecordingService()

    outcome = await _client(service).upload_file(files[0], compress=True, target_bytes=1000)

    assert [method for method, _, _ in service.requests] == ["POST"]
    body = service.requests[0][2]
    assert base64.b64decode(body["imageBase64"]) == files[0].read_bytes()
    assert body["targetBytes"] == 1000
    assert outcome.ok
    assert outcome.size_bytes == 123


@pytest.mark.asyncio
async def test_compress_skips_non_images(tmp_path):
    """Test compress mode still presigns videos."""
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"video")
    service = RecordingService()

    await _client(service).upload_file(video, compress=True)

    body = service.requests[0][2]
    assert body["contentType"] == "video/mp4"
    assert "imageBase64" not in body
    assert service.requests[1][0] == "PUT"


@pytest.mark.asyncio
async def test_unreadable_file(tmp_path):
    """Test that an unreadable file fails without a request."""
    service = RecordingService()

    outcome = await _client(service).upload_file(tmp_path / "missing.png")

    assert outcome.status == "error"
    assert service.requests == []


@pytest.mark.asyncio
async def test_transport_error_becomes_outcome(files):
    """Test that connection errors become error outcomes."""
    def broken(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = MediaUploadClient("http://api.example.com", transport=httpx.MockTransport(broken))
    outcomes = await client.upload_files(files)

    assert [outcome.status for outcome in outcomes] == ["error", "error"]
    assert "connection refused" in outcomes[0].message


def test_guess_content_type(tmp_path):
    """Test content type guessing from file names."""
    assert guess_content_type(tmp_path / "a.JPG") == "image/jpeg"
    assert guess_content_type(tmp_path / "clip.mp4") == "video/mp4"
    assert guess_content_type(tmp_path / "unknown.zzz") == "application/octet-stream"
