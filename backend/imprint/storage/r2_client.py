"""
Cloudflare R2 storage client for Imprint.

Handles library image upload, deletion, WebP conversion and resizing via the
R2-compatible S3 API.
"""

import io
import logging

import boto3
from botocore.config import Config
from PIL import Image

from imprint.config import (
    CF_ACCOUNT_ID,
    R2_ACCESS_KEY,
    R2_SECRET_KEY,
    R2_BUCKET,
    R2_PUBLIC_URL,
)

logger = logging.getLogger(__name__)

_s3 = None


def get_s3():
    """Boto3 S3 client configured for Cloudflare R2, created on first use."""
    global _s3
    if _s3 is None:
        _s3 = boto3.client(
            "s3",
            endpoint_url=f"https://{CF_ACCOUNT_ID}.r2.cloudflarestorage.com",
            aws_access_key_id=R2_ACCESS_KEY,
            aws_secret_access_key=R2_SECRET_KEY,
            config=Config(signature_version="s3v4"),
            region_name="auto",
        )
    return _s3


# ---------------------------------------------------------------------------
# Image helpers
# ---------------------------------------------------------------------------

def convert_to_webp(image_bytes: bytes, max_size: int = 1600) -> bytes:
    """Open *image_bytes* with Pillow, resize so the longest side is at most
    *max_size* (maintaining aspect ratio), and return WebP-encoded bytes."""
    try:
        img = Image.open(io.BytesIO(image_bytes))
        img = img.convert("RGB")

        w, h = img.size
        if max(w, h) > max_size:
            scale = max_size / max(w, h)
            img = img.resize((int(w * scale), int(h * scale)), Image.LANCZOS)

        buf = io.BytesIO()
        img.save(buf, format="WEBP", quality=85)
        return buf.getvalue()
    except Exception as e:
        logger.error("convert_to_webp error: %s", e)
        raise


def resize_for_prompt(image_bytes: bytes, max_size: int = 512) -> bytes:
    """Scale an image down for a Gemini prompt, keeping its original format."""
    img = Image.open(io.BytesIO(image_bytes))
    original_format = img.format or "PNG"

    w, h = img.size
    if max(w, h) > max_size:
        scale = max_size / max(w, h)
        img = img.resize((int(w * scale), int(h * scale)), Image.LANCZOS)

    buf = io.BytesIO()
    img.save(buf, format=original_format)
    return buf.getvalue()


# ---------------------------------------------------------------------------
# R2 CRUD operations
# ---------------------------------------------------------------------------

def library_key(image_id: str) -> str:
    return f"library/{image_id}.webp"


def get_image_url(r2_key: str) -> str:
    """Return the public URL for an R2 object."""
    return f"{R2_PUBLIC_URL}/{r2_key}"


def upload_image(image_bytes: bytes, r2_key: str, content_type: str = "image/webp") -> str:
    """Upload *image_bytes* to R2 under *r2_key* and return the public URL."""
    try:
        get_s3().put_object(
            Bucket=R2_BUCKET,
            Key=r2_key,
            Body=image_bytes,
            ContentType=content_type,
        )
        return get_image_url(r2_key)
    except Exception as e:
        logger.error("upload_image error for key '%s': %s", r2_key, e)
        raise


def delete_image(r2_key: str) -> None:
    """Delete an object from R2."""
    try:
        get_s3().delete_object(Bucket=R2_BUCKET, Key=r2_key)
    except Exception as e:
        logger.error("delete_image error for key '%s': %s", r2_key, e)
        raise


def upload_library_image(image_id: str, image_bytes: bytes) -> tuple[str, str]:
    """Convert an uploaded library photo to WebP and store it.

    Returns:
        A tuple of (r2_key, public_url).
    """
    r2_key = library_key(image_id)
    url = upload_image(convert_to_webp(image_bytes), r2_key, content_type="image/webp")
    return r2_key, url
