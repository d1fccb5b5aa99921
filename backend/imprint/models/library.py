"""Pydantic v2 models for the image library and studio settings."""

from pydantic import BaseModel, Field, field_validator

from imprint.config import (
    DEFAULT_CATEGORIES,
    DEFAULT_SESSION_LENGTH,
    MAX_SESSION_LENGTH,
    MIN_LIBRARY_SIZE,
    MIN_SESSION_LENGTH,
    ROOM_TYPES,
)


class StyleCategory(BaseModel):
    """A style in the studio catalog (e.g. Minimalist, Japandi)."""

    model_config = {"frozen": True}

    id: str
    name: str


class LibraryImage(BaseModel):
    """A curated interior image that can be shown in discovery sessions."""

    model_config = {"from_attributes": True}

    id: str
    url: str
    room_type: str
    style_categories: list[str]
    created_at: int = 0
    is_active: bool | None = True

    @field_validator("room_type")
    @classmethod
    def known_room_type(cls, v: str) -> str:
        if v not in ROOM_TYPES:
            raise ValueError(f"Unknown room type '{v}'.")
        return v

    @field_validator("style_categories")
    @classmethod
    def at_least_one_style(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("An image needs at least one style category.")
        return v

    @property
    def in_pool(self) -> bool:
        """Only an explicit ``False`` removes an image from the active pool."""
        return self.is_active is not False


def _default_categories() -> list[StyleCategory]:
    return [StyleCategory(**c) for c in DEFAULT_CATEGORIES]


class StudioSettings(BaseModel):
    """Studio-wide configuration edited from the settings screen."""

    logo: str | None = None
    session_length: int = Field(
        default=DEFAULT_SESSION_LENGTH,
        ge=MIN_SESSION_LENGTH,
        le=MAX_SESSION_LENGTH,
    )
    min_required_images: int = Field(default=MIN_LIBRARY_SIZE, ge=1)
    categories: list[StyleCategory] = Field(default_factory=_default_categories)

    @field_validator("categories")
    @classmethod
    def unique_ids(cls, v: list[StyleCategory]) -> list[StyleCategory]:
        ids = [c.id for c in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Style category ids must be unique.")
        return v


class ImageUpdate(BaseModel):
    """Partial update applied from the library tab."""

    is_active: bool | None = None
    room_type: str | None = None
    style_categories: list[str] | None = None

    @field_validator("room_type")
    @classmethod
    def known_room_type(cls, v: str | None) -> str | None:
        if v is not None and v not in ROOM_TYPES:
            raise ValueError(f"Unknown room type '{v}'.")
        return v

    @field_validator("style_categories")
    @classmethod
    def non_empty(cls, v: list[str] | None) -> list[str] | None:
        if v is not None and not v:
            raise ValueError("An image needs at least one style category.")
        return v


class TagSuggestion(BaseModel):
    """Room type and style ids proposed for a freshly uploaded image."""

    room_type: str = "Living Room"
    style_ids: list[str] = []
    confidence: str = "low"
