"""
Real Estate API - Image Upload Service
=======================================

What:  Reads multipart image uploads with a hard size ceiling.
How:   Checks the client-reported size first, then reads the stream in
       chunks and stops as soon as the ceiling is crossed, so an oversized
       body is never fully buffered.
Who:   Used by POST /api/properties/{id}/images before handing the bytes to
       PropertyService.add_image().

Upload Lifecycle:
    1. Client sends multipart/form-data with `file` and `enabled`
    2. validate_size() rejects an oversized reported size up front
    3. read_upload() streams the body in 64KB chunks, re-checking the size
    4. The bytes go to PropertyService.add_image(), which rejects empty
       payloads and stores them base64-encoded
"""

import logging
from typing import Optional

from fastapi import UploadFile

from realestate.exceptions import ValidationError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class UploadService:
    """
    Bounded reader for uploaded image files.

    Args:
        max_size: Largest accepted payload in bytes (settings.max_image_size).
    """

    def __init__(self, max_size: int):
        self.max_size = max_size

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Validate upload size against the configured maximum.

        Args:
            content_length: Size reported by the client (may be None or inaccurate)
            actual_size: Bytes actually read so far

        Raises:
            ValidationError with a human-readable size limit message
        """
        max_mb = self.max_size / (1024 * 1024)

        if content_length and content_length > self.max_size:
            raise ValidationError(
                message=f"Image size exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > self.max_size:
            raise ValidationError(
                message=f"Image size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    async def read_upload(self, file: UploadFile) -> bytes:
        """
        Read an UploadFile into memory, enforcing the size ceiling.

        Returns the raw bytes (possibly empty; emptiness is a business rule
        checked by the service). Always closes the upload.
        """
        try:
            self.validate_size(file.size, 0)

            buffer = bytearray()
            while True:
                chunk = await file.read(CHUNK_SIZE)
                if not chunk:
                    break
                buffer.extend(chunk)
                self.validate_size(None, len(buffer))

            logger.debug(
                "Read upload %s: %d bytes (%s)",
                file.filename or "unknown",
                len(buffer),
                file.content_type or "application/octet-stream",
            )
            return bytes(buffer)
        finally:
            await file.close()
