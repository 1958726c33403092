"""Product image uploads to Cloudinary.

Talks to the Cloudinary upload REST API directly with httpx using signed
uploads; only the returned ``secure_url`` values are persisted by callers.
"""

import asyncio
import hashlib
import os
import time
from typing import Optional

import httpx
from fastapi import HTTPException, UploadFile, status

from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)

MAX_IMAGES = 5
MAX_IMAGE_BYTES = 10 * 1024 * 1024
ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}
ALLOWED_CONTENT_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
}


def sign_params(params: dict, api_secret: str) -> str:
    """Cloudinary signature: sha1 of sorted ``key=value`` pairs + secret."""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


async def read_image_files(files: list[UploadFile]) -> list[tuple[str, bytes, str]]:
    """
    Validate and read uploaded images.

    Returns:
        List of (filename, content, content_type) tuples
    """
    if len(files) > MAX_IMAGES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"A maximum of {MAX_IMAGES} images is allowed",
        )

    images = []
    for upload in files:
        filename = upload.filename or "image"
        ext = os.path.splitext(filename)[1].lower()
        content_type = (upload.content_type or "").lower()
        if ext not in ALLOWED_EXTENSIONS or content_type not in ALLOWED_CONTENT_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only image files (jpeg, jpg, png, gif, webp) are allowed!",
            )

        content = await upload.read()
        if len(content) > MAX_IMAGE_BYTES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Image '{filename}' exceeds the 10MB limit",
            )
        images.append((filename, content, content_type))
    return images


async def _upload_one(
    client: httpx.AsyncClient,
    filename: str,
    content: bytes,
    content_type: str,
    folder: str,
) -> str:
    settings = get_settings()
    params = {"folder": folder, "timestamp": str(int(time.time()))}
    data = {
        **params,
        "api_key": settings.CLOUDINARY_API_KEY,
        "signature": sign_params(params, settings.CLOUDINARY_API_SECRET),
    }
    response = await client.post(
        f"https://api.cloudinary.com/v1_1/{settings.CLOUDINARY_CLOUD_NAME}/image/upload",
        data=data,
        files={"file": (filename, content, content_type)},
    )
    response.raise_for_status()
    return response.json()["secure_url"]


async def upload_images(
    files: list[UploadFile], folder: Optional[str] = None
) -> list[str]:
    """
    Upload product images and return their public URLs, in upload order.

    Raises:
        HTTPException: 400 for invalid files, 500 when storage is unavailable
    """
    settings = get_settings()
    images = await read_image_files(files)
    if not images:
        return []

    if not (
        settings.CLOUDINARY_CLOUD_NAME
        and settings.CLOUDINARY_API_KEY
        and settings.CLOUDINARY_API_SECRET
    ):
        logger.error("Cloudinary credentials not configured - cannot upload images")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Image storage is not configured",
        )

    target_folder = folder or settings.CLOUDINARY_FOLDER
    try:
        async with httpx.AsyncClient(timeout=30.0) as client:
            urls = await asyncio.gather(
                *(
                    _upload_one(client, name, content, ctype, target_folder)
                    for name, content, ctype in images
                )
            )
    except httpx.HTTPError as e:
        logger.error(f"Cloudinary upload error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to upload images. Please try again.",
        )

    logger.info("Uploaded %s image(s) to folder %s", len(urls), target_folder)
    return list(urls)
