"""
Supabase client for Imprint. Handles all database operations for the image
library, studio settings, and the append-only session log.
"""

import logging

from supabase import create_client, Client

from imprint.config import MIN_LIBRARY_SIZE, SUPABASE_SERVICE_KEY, SUPABASE_URL
from imprint.models.library import ImageUpdate, LibraryImage, StudioSettings
from imprint.models.session import SessionResult

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = "studio"

_client: Client | None = None


def get_client() -> Client:
    """Return the shared Supabase client, creating it on first use."""
    global _client
    if _client is None:
        _client = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
    return _client


# ---------------------------------------------------------------------------
# Library images
# ---------------------------------------------------------------------------

def save_image(image: LibraryImage, r2_key: str | None = None) -> str:
    """Upsert a library image row and return its id."""
    row = image.model_dump(mode="json")
    if r2_key is not None:
        row["r2_key"] = r2_key
    get_client().table("library_images").upsert(row).execute()
    return image.id


def get_images() -> list[LibraryImage]:
    """Return the whole library ordered by creation time."""
    result = (
        get_client().table("library_images")
        .select("*")
        .order("created_at")
        .execute()
    )
    return [LibraryImage.model_validate(row) for row in result.data or []]


def get_image(image_id: str) -> LibraryImage | None:
    """Fetch a single image by its ID. Returns None when absent."""
    result = (
        get_client().table("library_images")
        .select("*")
        .eq("id", image_id)
        .execute()
    )
    if result.data:
        return LibraryImage.model_validate(result.data[0])
    return None


def get_image_r2_key(image_id: str) -> str | None:
    result = (
        get_client().table("library_images")
        .select("r2_key")
        .eq("id", image_id)
        .execute()
    )
    if result.data:
        return result.data[0].get("r2_key")
    return None


def update_image(image_id: str, updates: ImageUpdate) -> None:
    """Apply a partial update to an existing image row (unset fields are kept)."""
    row = updates.model_dump(exclude_none=True)
    if not row:
        return
    get_client().table("library_images").update(row).eq("id", image_id).execute()


def delete_image_record(image_id: str) -> None:
    get_client().table("library_images").delete().eq("id", image_id).execute()


# ---------------------------------------------------------------------------
# Studio settings
# ---------------------------------------------------------------------------

def get_settings() -> StudioSettings:
    """Return the studio settings, falling back to defaults when none are stored.

    Rows written before ``min_required_images`` existed get the default.
    """
    result = (
        get_client().table("studio_settings")
        .select("*")
        .eq("id", SETTINGS_ROW_ID)
        .execute()
    )
    if not result.data:
        return StudioSettings()

    row = dict(result.data[0])
    row.pop("id", None)
    if row.get("min_required_images") is None:
        logger.info("Migrating stored settings: min_required_images -> %d", MIN_LIBRARY_SIZE)
        row["min_required_images"] = MIN_LIBRARY_SIZE
    return StudioSettings.model_validate({k: v for k, v in row.items() if v is not None})


def save_settings(settings: StudioSettings) -> None:
    row = settings.model_dump(mode="json")
    row["id"] = SETTINGS_ROW_ID
    get_client().table("studio_settings").upsert(row).execute()


# ---------------------------------------------------------------------------
# Sessions (append-only)
# ---------------------------------------------------------------------------

def save_session(session: SessionResult) -> str:
    """Insert a finished session result. Sessions are never updated."""
    get_client().table("sessions").insert(session.model_dump(mode="json")).execute()
    return session.id


def get_sessions() -> list[SessionResult]:
    """Return all sessions, oldest first."""
    result = get_client().table("sessions").select("*").order("date").execute()
    return [SessionResult.model_validate(row) for row in result.data or []]


def get_session(session_id: str) -> SessionResult | None:
    """Fetch a single session result by its ID. Returns None when absent."""
    result = (
        get_client().table("sessions")
        .select("*")
        .eq("id", session_id)
        .execute()
    )
    if result.data:
        return SessionResult.model_validate(result.data[0])
    return None
