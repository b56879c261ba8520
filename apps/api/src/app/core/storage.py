"""
File Storage (Cloudinary)

Uploads applicant photos and signatures to Cloudinary. The SDK call is
synchronous, so it runs in a worker thread under a wall-clock timeout and
always resolves to an UploadResult instead of raising.
"""

import asyncio
import logging
from dataclasses import dataclass

import cloudinary
import cloudinary.uploader

from app.core.config import settings

logger = logging.getLogger(__name__)

cloudinary.config(
    cloud_name=settings.cloudinary_cloud_name,
    api_key=settings.cloudinary_api_key,
    api_secret=settings.cloudinary_api_secret,
    secure=True,
)


@dataclass(frozen=True)
class UploadResult:
    """Outcome of an upload: a URL on success, an error tag otherwise."""

    success: bool
    url: str | None = None
    public_id: str | None = None
    error: str | None = None

    @classmethod
    def ok(cls, url: str, public_id: str | None = None) -> "UploadResult":
        return cls(success=True, url=url, public_id=public_id)

    @classmethod
    def failed(cls, error: str) -> "UploadResult":
        return cls(success=False, error=error)


async def upload_file(
    content: bytes,
    folder: str,
    timeout: float | None = None,
) -> UploadResult:
    """
    Upload file bytes to Cloudinary under `<prefix>/<folder>`.

    Args:
        content: Raw file bytes
        folder: Sub-folder, e.g. "photos" or "signatures"
        timeout: Seconds before giving up (defaults to settings.upload_timeout_seconds)

    Returns:
        UploadResult with the secure URL, or a failure with error
        "not_configured", "timeout" or the provider's message
    """
    if not settings.cloudinary_configured:
        logger.error("Cloudinary credentials not configured - cannot upload files")
        return UploadResult.failed("not_configured")

    timeout = timeout or settings.upload_timeout_seconds

    try:
        response = await asyncio.wait_for(
            asyncio.to_thread(
                cloudinary.uploader.upload,
                content,
                folder=f"{settings.upload_folder_prefix}/{folder}",
                resource_type="image",
            ),
            timeout=timeout,
        )
    except TimeoutError:
        logger.error(f"Cloudinary upload to '{folder}' timed out after {timeout}s")
        return UploadResult.failed("timeout")
    except Exception as e:
        logger.error(f"Cloudinary upload to '{folder}' failed: {e}")
        return UploadResult.failed(str(e))

    return UploadResult.ok(response["secure_url"], response.get("public_id"))
