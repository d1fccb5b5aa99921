"""Studio settings, image library, session history and analytics API routes."""

from __future__ import annotations

import time
import uuid

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from imprint.config import ALLOWED_IMAGE_TYPES, MAX_FILE_SIZE, MIN_CATEGORY_COUNT
from imprint.models.library import ImageUpdate, LibraryImage, StudioSettings
from imprint.services.analytics import discovery_availability, studio_analytics
from imprint.services.image_tagger import normalise_room_type, suggest_tags
from imprint.services.report import build_report
from imprint.storage.r2_client import delete_image, upload_library_image
from imprint.storage.supabase_client import (
    delete_image_record,
    get_image,
    get_image_r2_key,
    get_images,
    get_session,
    get_sessions,
    get_settings,
    save_image,
    save_settings,
    update_image,
)

router = APIRouter(prefix="/api", tags=["studio"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _read_and_validate_image(upload: UploadFile) -> tuple[bytes, str]:
    """Read an uploaded library photo, validate type and size.

    Returns:
        A tuple of (image_bytes, mime_type).

    Raises:
        HTTPException 400 if the file is not an allowed image type or exceeds
        the maximum size.
    """
    mime_type = upload.content_type or ""
    if mime_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=400,
            detail="Unsupported image format. Use JPEG, PNG or WebP.",
        )

    image_bytes = await upload.read()

    if len(image_bytes) > MAX_FILE_SIZE:
        raise HTTPException(
            status_code=400,
            detail="File too large. Maximum size: 10MB.",
        )

    return image_bytes, mime_type


def _split_ids(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


# --------------------------------------------------------------------------- #
# 1. Settings
# --------------------------------------------------------------------------- #

@router.get("/settings")
async def read_settings() -> dict:
    return get_settings().model_dump()


@router.put("/settings")
async def write_settings(settings: StudioSettings) -> dict:
    """Replace the studio settings. The catalog must keep a minimum size."""
    if len(settings.categories) < MIN_CATEGORY_COUNT:
        raise HTTPException(
            status_code=400,
            detail=f"Keep at least {MIN_CATEGORY_COUNT} style categories.",
        )
    save_settings(settings)
    return settings.model_dump()


# --------------------------------------------------------------------------- #
# 2. Library
# --------------------------------------------------------------------------- #

@router.get("/library")
async def list_library() -> dict:
    images = get_images()
    return {"images": [img.model_dump() for img in images], "total": len(images)}


@router.get("/library/availability")
async def library_availability() -> dict:
    """Whether the active pool is large enough to offer discovery."""
    settings = get_settings()
    return discovery_availability(get_images(), settings.min_required_images)


@router.post("/library")
async def upload_library_photo(
    photo: UploadFile = File(...),
    room_type: str | None = Form(None),
    style_categories: str | None = Form(None, description="Comma-separated style ids"),
) -> dict:
    """Store a new library image; missing tags are suggested by Gemini."""
    image_bytes, mime_type = await _read_and_validate_image(photo)

    settings = get_settings()
    known_ids = {c.id for c in settings.categories}

    style_ids = [sid for sid in _split_ids(style_categories) if sid in known_ids]
    resolved_room = normalise_room_type(room_type)
    if room_type is not None and resolved_room is None:
        raise HTTPException(status_code=400, detail=f"Unknown room type '{room_type}'.")

    suggestion = None
    if resolved_room is None or not style_ids:
        suggestion = await suggest_tags(image_bytes, mime_type, settings.categories)
        resolved_room = resolved_room or suggestion.room_type
        style_ids = style_ids or suggestion.style_ids

    if not style_ids:
        raise HTTPException(status_code=400, detail="At least one style category is required.")

    image_id = uuid.uuid4().hex
    r2_key, url = upload_library_image(image_id, image_bytes)

    image = LibraryImage(
        id=image_id,
        url=url,
        room_type=resolved_room,
        style_categories=style_ids,
        created_at=int(time.time() * 1000),
        is_active=True,
    )
    save_image(image, r2_key=r2_key)

    return {
        "image": image.model_dump(),
        "suggested": suggestion.model_dump() if suggestion is not None else None,
    }


@router.patch("/library/{image_id}")
async def edit_library_image(image_id: str, body: ImageUpdate) -> dict:
    """Toggle pool membership or re-tag an image."""
    if get_image(image_id) is None:
        raise HTTPException(status_code=404, detail="Image not found")

    update_image(image_id, body)
    return get_image(image_id).model_dump()


@router.delete("/library/{image_id}")
async def remove_library_image(image_id: str) -> dict:
    if get_image(image_id) is None:
        raise HTTPException(status_code=404, detail="Image not found")

    r2_key = get_image_r2_key(image_id)
    delete_image_record(image_id)
    if r2_key:
        delete_image(r2_key)
    return {"id": image_id, "deleted": True}


# --------------------------------------------------------------------------- #
# 3. Session history
# --------------------------------------------------------------------------- #

@router.get("/sessions")
async def list_sessions() -> dict:
    sessions = get_sessions()
    return {
        "sessions": [s.model_dump(mode="json") for s in sessions],
        "total": len(sessions),
    }


@router.get("/sessions/{session_id}")
async def read_session(session_id: str) -> dict:
    session = get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session.model_dump(mode="json")


@router.get("/sessions/{session_id}/report")
async def session_report(session_id: str) -> dict:
    """Data for the summary / export view of one session."""
    session = get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return build_report(session, get_images())


# --------------------------------------------------------------------------- #
# 4. Analytics
# --------------------------------------------------------------------------- #

@router.get("/analytics")
async def analytics() -> dict:
    settings = get_settings()
    return studio_analytics(get_sessions(), get_images(), settings.categories)
