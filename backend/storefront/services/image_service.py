"""
Storefront API — Product Image Service
========================================

What:  Validates uploaded product images and pushes them to the image host.
How:   Extension → size → magic-byte checks, then a Cloudinary upload run in
       Starlette's threadpool (the SDK is synchronous), wrapped in tenacity
       exponential backoff for transient failures.
Who:   Called by POST /api/v1/product/{id}/image.

Upload identity:
    Every upload for a product goes to the same public_id
    (<folder>/products/<product_id>) with overwrite enabled, so a retried
    upload replaces the earlier asset instead of creating a second one.

Validation order (cheapest first):
    1. Extension check, no content read
    2. Size check, Content-Length then actual byte count
    3. MIME check via python-magic on the file header bytes
"""

import io
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
from starlette.concurrency import run_in_threadpool
from tenacity import (
    RetryError,
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from storefront.config import Settings, settings
from storefront.exceptions import ImageHostError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
}

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}

# Client-side faults: retrying cannot help.
_PERMANENT_ERRORS = (
    cloudinary.exceptions.BadRequest,
    cloudinary.exceptions.AuthorizationRequired,
    cloudinary.exceptions.NotAllowed,
    cloudinary.exceptions.NotFound,
)


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, _PERMANENT_ERRORS):
        return False
    return isinstance(exc, (cloudinary.exceptions.Error, ConnectionError, TimeoutError))


def configure_image_host(config: Settings) -> bool:
    """
    Configures the process-wide Cloudinary client. Called once at startup.

    Returns False (and leaves the client unconfigured) when credentials are
    missing; uploads then fail with ImageHostError.
    """
    if not config.images_configured:
        logger.warning("Cloudinary credentials not set; product image uploads are disabled")
        return False

    cloudinary.config(
        cloud_name=config.cloudinary_name,
        api_key=config.cloudinary_api_key,
        api_secret=config.cloudinary_secret.get_secret_value(),
        secure=True,
    )
    logger.info("Cloudinary configured for cloud '%s'", config.cloudinary_name)
    return True


class ImageService:
    """Validation plus upload of product images."""

    def __init__(
        self,
        folder: Optional[str] = None,
        max_size: Optional[int] = None,
        enabled: bool = True,
    ):
        self.folder = (folder or settings.cloudinary_folder).strip("/")
        self.max_size = max_size or settings.max_image_size
        self.enabled = enabled

    def validate_extension(self, filename: str) -> str:
        """Returns the normalised extension; raises ValidationError when not allowed."""
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Checks the reported Content-Length first, then the actual byte count
        (some clients send a wrong header). Empty files are rejected too.
        """
        max_mb = self.max_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(message="The uploaded file is empty.", field="file")

        if content_length and content_length > self.max_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > self.max_size:
            raise ValidationError(
                message=f"File is too large ({actual_size / (1024 * 1024):.1f}MB). Maximum is {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_mime_type(self, content: bytes) -> str:
        """
        Detects the real content type from the header bytes with python-magic.

        Raises:
            ValidationError: content is not one of the allowed image types
            ImageHostError: type detection itself failed (libmagic missing/broken)
        """
        try:
            import magic

            mime_type = magic.from_buffer(content[:2048], mime=True)
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise ImageHostError(
                message="Could not verify the uploaded file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    "The file must be a PNG, JPEG or WebP image."
                ),
                field="file",
                context={"detected_mime": mime_type, "allowed": list(ALLOWED_MIME_TYPES)},
            )
        return mime_type

    def public_id_for(self, product_id: str) -> str:
        return f"{self.folder}/products/{product_id}"

    @retry(
        retry=retry_if_exception(_is_transient),
        stop=stop_after_attempt(settings.upload_retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.upload_retry_min_wait,
            max=settings.upload_retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=False,
    )
    async def _upload_with_retry(self, content: bytes, public_id: str) -> Dict[str, Any]:
        return await run_in_threadpool(
            cloudinary.uploader.upload,
            io.BytesIO(content),
            public_id=public_id,
            overwrite=True,
            invalidate=True,
            resource_type="image",
        )

    async def upload_product_image(
        self,
        product_id: str,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> Dict[str, str]:
        """
        Validates and uploads an image for a product.

        Returns:
            {"url": <https url>, "public_id": <asset id>}

        Raises:
            ValidationError: bad extension, size or content type (→ 400)
            ImageHostError: host unconfigured or upload failed (→ 502)
        """
        self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        self.validate_mime_type(content)

        if not self.enabled:
            raise ImageHostError(
                message="Image uploads are not available right now.",
                context={"reason": "cloudinary_unconfigured"},
            )

        public_id = self.public_id_for(product_id)
        try:
            result = await self._upload_with_retry(content, public_id)
        except RetryError as e:
            last = e.last_attempt.exception() if e.last_attempt else None
            logger.error("Image upload for %s failed after retries: %s", public_id, last)
            raise ImageHostError(
                context={"public_id": public_id, "error": str(last), "retried": True},
            )
        except Exception as e:
            logger.error("Image upload for %s failed: %s", public_id, str(e))
            raise ImageHostError(
                context={"public_id": public_id, "error_type": type(e).__name__},
            )

        logger.info("Uploaded image %s (%d bytes)", result.get("public_id"), len(content))
        return {"url": result["secure_url"], "public_id": result["public_id"]}
