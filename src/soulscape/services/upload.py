"""Upload intent handling.

An intent either carries the image inline, in which case it is compressed
and stored right away, or it only describes the file, in which case the
client gets a signed URL and PUTs the bytes to the store directly. The
direct transfer is never verified here.
"""

import asyncio
import base64
import binascii
import logging
from typing import Union

from soulscape.core.context import MediaContext
from soulscape.core.exceptions import InvalidPayloadError, PayloadTooLargeError
from soulscape.core.logging import storage_key_context
from soulscape.media.compressor import compress_image
from soulscape.media.keys import (
    MediaType,
    build_storage_key,
    classify_content_type,
    public_url,
    sanitize_folder,
)
from soulscape.models.media import (
    PresignedUploadResponse,
    StoredUploadResponse,
    UploadIntentRequest,
)

logger = logging.getLogger(__name__)

UploadIntentResult = Union[PresignedUploadResponse, StoredUploadResponse]


def _strip_data_uri(payload: str) -> str:
    """Drop a ``data:<mime>;base64,`` prefix and any whitespace."""
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]
    return "".join(payload.split())


def estimate_decoded_size(payload: str) -> int:
    """Decoded byte count of a base64 string, without decoding it."""
    padding = len(payload) - len(payload.rstrip("="))
    return max(0, len(payload) * 3 // 4 - padding)


class UploadService:
    """Handles upload intents against the configured store."""

    def __init__(self, context: MediaContext):
        self.context = context
        self.settings = context.settings

    async def handle_upload_intent(self, request: UploadIntentRequest) -> UploadIntentResult:
        """Resolve an upload intent.

        Args:
            request: Validated request body

        Returns:
            StoredUploadResponse when image bytes came inline, otherwise a
            PresignedUploadResponse

        Raises:
            ConfigurationError: If PUBLIC_HOST or the backend is not configured
            ValidationError: For unsupported types, invalid names and bad payloads
            PayloadTooLargeError: If the inline payload exceeds the ceiling
            DecodeError: If the inline bytes are not a supported image
            StoreFailure: If the store rejects the write or the signing
        """
        public_host = self.context.public_host
        media_type = classify_content_type(request.content_type)

        inline = request.image_base64 is not None
        randomize = (
            not inline
            and self.settings.RANDOMIZE_UNFOLDERED_NAMES
            and not sanitize_folder(request.folder)
        )
        key = build_storage_key(
            media_type,
            request.file_name,
            self.settings.media_prefixes,
            folder=request.folder,
            randomize=randomize,
        )
        storage_key_context.set(key)

        logger.info(
            "Upload intent received",
            extra={
                "content_type": request.content_type,
                "media_type": media_type.value,
                "key": key,
                "inline": inline,
            },
        )

        if inline:
            return await self._compress_and_store(request, media_type, key, public_host)
        return await self._presign(request, key, public_host)

    async def _compress_and_store(
        self,
        request: UploadIntentRequest,
        media_type: MediaType,
        key: str,
        public_host: str,
    ) -> StoredUploadResponse:
        payload = _strip_data_uri(request.image_base64 or "")

        if estimate_decoded_size(payload) > self.settings.max_inline_bytes:
            raise PayloadTooLargeError(
                f"Inline image exceeds maximum allowed size of {self.settings.MAX_INLINE_MB}MB"
            )
        if media_type is not MediaType.IMAGE:
            raise InvalidPayloadError("Inline payloads are only accepted for images.")

        try:
            raw = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            raise InvalidPayloadError("imageBase64 is not valid base64.") from None
        if not raw:
            raise InvalidPayloadError("imageBase64 is empty.")

        max_target = self.settings.MAX_TARGET_BYTES
        target = min(request.target_bytes or max_target, max_target)

        # CPU-bound search, keep it off the event loop
        result = await asyncio.to_thread(compress_image, raw, target)
        await asyncio.to_thread(self.context.storage.put, key, result.output_bytes, result.mime_type)

        logger.info(
            "Inline image stored",
            extra={
                "key": key,
                "original_bytes": result.original_byte_count,
                "final_bytes": result.final_byte_count,
                "target_bytes": target,
                "met_target": result.met_target,
            },
        )

        return StoredUploadResponse(
            cdn_url=public_url(public_host, key),
            key=key,
            bytes=result.final_byte_count,
            original_bytes=result.original_byte_count,
            target_bytes=target,
        )

    async def _presign(
        self,
        request: UploadIntentRequest,
        key: str,
        public_host: str,
    ) -> PresignedUploadResponse:
        expires_in = self.settings.URL_EXPIRES_SECONDS
        upload_url = await asyncio.to_thread(
            self.context.storage.presign_put, key, request.content_type, expires_in
        )

        logger.info(
            "Upload URL issued",
            extra={"key": key, "expires_in": expires_in},
        )

        return PresignedUploadResponse(
            upload_url=upload_url,
            cdn_url=public_url(public_host, key),
            key=key,
            expires_in=expires_in,
            required_headers={"Content-Type": request.content_type},
        )
