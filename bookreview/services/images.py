"""
Image Hosting Service

Uploads book cover images to Cloudinary and returns their public URL.

Failures (not configured, network errors, timeouts, rejected uploads)
raise UnavailableError. The caller keeps the book unchanged and may retry.
"""

import logging

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from cloudinary.exceptions import GeneralError

from bookreview.config import get_settings
from bookreview.services.exceptions import UnavailableError

logger = logging.getLogger(__name__)


def configure_cloudinary() -> bool:
    """
    Point the Cloudinary SDK at the configured account.

    Returns:
        False if the credentials are not set
    """
    settings = get_settings()
    if not settings.cloudinary_configured:
        return False

    cloudinary.config(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
        secure=True,
    )
    return True


def upload_image(image_bytes: bytes, filename: str = "cover") -> str:
    """
    Upload an image and return its public HTTPS URL.

    Server errors, network errors and timeouts (GeneralError) are retried
    up to image_upload_retries extra times. Other SDK errors, such as a
    rejected file or bad credentials, are not retried.

    Args:
        image_bytes: Raw image data
        filename: Original file name, passed along with the upload

    Returns:
        secure_url of the uploaded image

    Raises:
        UnavailableError: If the image host is not configured or the upload fails
    """
    settings = get_settings()

    if not configure_cloudinary():
        logger.error("Cover upload attempted but Cloudinary is not configured")
        raise UnavailableError("Image hosting is not configured")

    attempts = settings.image_upload_retries + 1
    last_error = "unknown error"

    for attempt in range(1, attempts + 1):
        try:
            result = cloudinary.uploader.upload(
                image_bytes,
                filename=filename,
                folder=settings.cloudinary_folder,
                resource_type="image",
                timeout=settings.image_upload_timeout,
            )
        except GeneralError as e:
            last_error = str(e) or e.__class__.__name__
            logger.warning(
                f"Cover upload attempt {attempt}/{attempts} failed: {last_error}"
            )
            continue
        except CloudinaryError as e:
            logger.error(f"Cover upload rejected: {e}")
            raise UnavailableError(f"Image host rejected the upload: {e}")

        secure_url = result.get("secure_url")
        if not secure_url:
            raise UnavailableError("Image host response did not include a URL")

        logger.info(f"Cover uploaded to {secure_url}")
        return secure_url

    raise UnavailableError(f"Image upload failed: {last_error}")
