"""Library image tagging service using Gemini Flash vision model.

Accepts an uploaded interior photograph, asks Gemini Flash to classify its
room type and dominant styles against the studio catalog, and returns a
validated ``TagSuggestion``. Any failure falls back to a neutral default so an
upload is never blocked by the model.
"""

import base64
import json
import logging
import re
from collections.abc import Sequence

from google import genai

from imprint.config import GEMINI_API_KEY, IMAGE_TAGGING_PROMPT, ROOM_TYPES
from imprint.models.library import StyleCategory, TagSuggestion
from imprint.storage.r2_client import resize_for_prompt

logger = logging.getLogger(__name__)

GEMINI_MODEL = "gemini-2.5-flash"

MAX_SUGGESTED_STYLES = 3

# Loose spellings Gemini tends to return -> canonical room type
ROOM_TYPE_ALIASES: dict[str, str] = {
    "living room": "Living Room",
    "living_room": "Living Room",
    "lounge": "Living Room",
    "bedroom": "Bedroom",
    "kitchen": "Kitchen",
    "bathroom": "Bathroom",
    "dining": "Dining",
    "dining room": "Dining",
    "dining_room": "Dining",
    "home office": "Home Office",
    "home_office": "Home Office",
    "office": "Home Office",
    "study": "Home Office",
}

_client: genai.Client | None = None


def _get_client() -> genai.Client:
    global _client
    if _client is None:
        _client = genai.Client(api_key=GEMINI_API_KEY)
    return _client


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_gemini_json(raw_text: str) -> dict:
    """Strip optional markdown code fencing and parse the JSON payload."""
    text = raw_text.strip()
    text = re.sub(r"^```(?:json)?\s*\n?", "", text)
    text = re.sub(r"\n?```\s*$", "", text)
    return json.loads(text)


def normalise_room_type(name: str | None) -> str | None:
    """Map a free-form room label to one of ``ROOM_TYPES`` (or None)."""
    if not name:
        return None
    if name in ROOM_TYPES:
        return name
    return ROOM_TYPE_ALIASES.get(name.strip().lower())


def _build_prompt(categories: Sequence[StyleCategory]) -> str:
    catalog = "\n".join(f"- {c.id}: {c.name}" for c in categories)
    return IMAGE_TAGGING_PROMPT.format(room_types=", ".join(ROOM_TYPES), catalog=catalog)


def build_default_suggestion(categories: Sequence[StyleCategory]) -> TagSuggestion:
    """Neutral suggestion used when the image cannot be classified."""
    style_ids = [categories[0].id] if categories else []
    return TagSuggestion(room_type=ROOM_TYPES[0], style_ids=style_ids, confidence="low")


def map_suggestion(parsed: dict, categories: Sequence[StyleCategory]) -> TagSuggestion:
    """Convert Gemini's JSON reply to a ``TagSuggestion`` restricted to the catalog."""
    default = build_default_suggestion(categories)
    known_ids = {c.id for c in categories}

    style_ids: list[str] = []
    for raw_id in parsed.get("style_ids") or []:
        style_id = str(raw_id)
        if style_id in known_ids and style_id not in style_ids:
            style_ids.append(style_id)

    return TagSuggestion(
        room_type=normalise_room_type(parsed.get("room_type")) or default.room_type,
        style_ids=style_ids[:MAX_SUGGESTED_STYLES] or default.style_ids,
        confidence=parsed.get("confidence") or "low",
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def suggest_tags(
    image_bytes: bytes,
    mime_type: str,
    categories: Sequence[StyleCategory],
) -> TagSuggestion:
    """Suggest a room type and style ids for an uploaded library image.

    Parameters
    ----------
    image_bytes:
        Raw bytes of the uploaded image.
    mime_type:
        MIME type of the image (e.g. ``"image/jpeg"``).
    categories:
        The studio's current style catalog.
    """
    try:
        b64_image = base64.b64encode(resize_for_prompt(image_bytes)).decode("utf-8")

        response = await _get_client().aio.models.generate_content(
            model=GEMINI_MODEL,
            contents=[
                {
                    "parts": [
                        {"inline_data": {"mime_type": mime_type, "data": b64_image}},
                        {"text": _build_prompt(categories)},
                    ],
                }
            ],
        )

        raw_text = response.text
        if not raw_text:
            logger.warning("Gemini returned an empty tagging response; using defaults.")
            return build_default_suggestion(categories)

        return map_suggestion(_parse_gemini_json(raw_text), categories)

    except json.JSONDecodeError as exc:
        logger.error("Failed to parse Gemini tagging JSON: %s", exc)
        return build_default_suggestion(categories)
    except Exception as exc:
        logger.error("Image tagging failed: %s", exc, exc_info=True)
        return build_default_suggestion(categories)
