"""HTTP client that uploads local files through the media service.

Files are processed strictly one after another: request an upload intent,
PUT the bytes to the signed URL, report the outcome, then move on.
"""

import base64
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Literal, Optional

import httpx

logger = logging.getLogger(__name__)

StatusCallback = Callable[[Path, str], None]


@dataclass
class UploadOutcome:
    """Terminal status of one file."""

    path: Path
    status: Literal["complete", "error"]
    cdn_url: Optional[str] = None
    key: Optional[str] = None
    size_bytes: int = 0
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == "complete"


def guess_content_type(path: Path) -> str:
    content_type, _ = mimetypes.guess_type(path.name)
    return content_type or "application/octet-stream"


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = None
    return detail if isinstance(detail, str) and detail else fallback


class MediaUploadClient:
    """Uploads files via the upload-intent endpoint."""

    def __init__(
        self,
        api_base_url: str,
        timeout: float = 300,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def upload_files(
        self,
        paths: Iterable[Path | str],
        folder: Optional[str] = None,
        compress: bool = False,
        target_bytes: Optional[int] = None,
        on_status: Optional[StatusCallback] = None,
    ) -> list[UploadOutcome]:
        """Upload files sequentially and return one outcome per file, in order."""
        outcomes = []
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            for path in paths:
                outcome = await self._upload_one(
                    client, Path(path), folder, compress, target_bytes, on_status
                )
                outcomes.append(outcome)
        return outcomes

    async def upload_file(
        self,
        path: Path | str,
        folder: Optional[str] = None,
        compress: bool = False,
        target_bytes: Optional[int] = None,
        on_status: Optional[StatusCallback] = None,
    ) -> UploadOutcome:
        outcomes = await self.upload_files([path], folder, compress, target_bytes, on_status)
        return outcomes[0]

    async def _upload_one(
        self,
        client: httpx.AsyncClient,
        path: Path,
        folder: Optional[str],
        compress: bool,
        target_bytes: Optional[int],
        on_status: Optional[StatusCallback],
    ) -> UploadOutcome:
        def report(status: str) -> None:
            if on_status:
                on_status(path, status)

        content_type = guess_content_type(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            report("Error")
            return UploadOutcome(path=path, status="error", message=f"Cannot read file: {e}")

        payload = {"fileName": path.name, "contentType": content_type}
        if folder:
            payload["folder"] = folder
        inline = compress and content_type.startswith("image/")
        if inline:
            payload["imageBase64"] = base64.b64encode(data).decode("ascii")
            if target_bytes:
                payload["targetBytes"] = target_bytes

        try:
            report("Requesting upload URL..." if not inline else "Compressing...")
            response = await client.post(f"{self.api_base_url}/api/v1/upload", json=payload)
            if response.status_code != 200:
                report("Error")
                return UploadOutcome(
                    path=path,
                    status="error",
                    message=_error_message(response, "Failed to get upload URL."),
                )
            intent = response.json()

            size_bytes = len(data)
            if inline:
                size_bytes = intent["bytes"]
            else:
                report("Uploading...")
                headers = intent.get("requiredHeaders") or {"Content-Type": content_type}
                put_response = await client.put(intent["uploadUrl"], content=data, headers=headers)
                if put_response.status_code >= 300:
                    report("Error")
                    return UploadOutcome(path=path, status="error", message="Upload failed.")

        except httpx.HTTPError as e:
            logger.error(f"Upload of {path.name} failed: {e}")
            report("Error")
            return UploadOutcome(path=path, status="error", message=str(e) or "Upload failed.")

        report("Complete")
        logger.info(
            "File uploaded",
            extra={"file_name": path.name, "key": intent["key"], "size_bytes": size_bytes},
        )
        return UploadOutcome(
            path=path,
            status="complete",
            cdn_url=intent["cdnUrl"],
            key=intent["key"],
            size_bytes=size_bytes,
        )
