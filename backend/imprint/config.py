"""
Central configuration module for the Imprint discovery backend.

Loads environment variables, defines the room types and default style
catalog, session bounds, the response-time weighting bands used by the
preference inference engine, narrative templates, and the Gemini tagging
prompt.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Environment variables
# ---------------------------------------------------------------------------
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY", "")

CF_ACCOUNT_ID = os.getenv("CF_ACCOUNT_ID", "")
R2_ACCESS_KEY = os.getenv("R2_ACCESS_KEY", "")
R2_SECRET_KEY = os.getenv("R2_SECRET_KEY", "")
R2_BUCKET = os.getenv("R2_BUCKET", "imprint-library")
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL", "")

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ---------------------------------------------------------------------------
# Library classification
# ---------------------------------------------------------------------------
ROOM_TYPES: list[str] = [
    "Living Room",
    "Bedroom",
    "Kitchen",
    "Bathroom",
    "Dining",
    "Home Office",
]

DEFAULT_CATEGORIES: list[dict[str, str]] = [
    {"id": "1", "name": "Minimalist"},
    {"id": "2", "name": "Scandinavian"},
    {"id": "3", "name": "Japandi"},
    {"id": "4", "name": "Timeless Classic"},
    {"id": "5", "name": "Contemporary Modern"},
    {"id": "6", "name": "Vintage"},
    {"id": "7", "name": "Industrial"},
    {"id": "8", "name": "Bohemian"},
    {"id": "9", "name": "Decorative"},
    {"id": "10", "name": "Luxury Glamour"},
]

# Categories tab refuses to delete below this many entries
MIN_CATEGORY_COUNT = 3

# ---------------------------------------------------------------------------
# Session bounds
# ---------------------------------------------------------------------------
MIN_LIBRARY_SIZE = 5
MIN_SESSION_LENGTH = 5
MAX_SESSION_LENGTH = 40
DEFAULT_SESSION_LENGTH = 10

# Live discovery sessions untouched for this long are evicted from memory.
SESSION_IDLE_TIMEOUT_S = float(os.getenv("SESSION_IDLE_TIMEOUT_S", "7200"))

ALLOWED_IMAGE_TYPES: list[str] = ["image/jpeg", "image/png", "image/webp"]
MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Preference inference: response-time weighting
# ---------------------------------------------------------------------------
# Instinctive < 1.2s, confident 1.2s - 2.5s inclusive, deliberate > 2.5s.
INSTINCTIVE_MAX_MS = 1200
CONFIDENT_MAX_MS = 2500

INSTINCTIVE_WEIGHT = 3.0
CONFIDENT_WEIGHT = 1.5
DELIBERATE_WEIGHT = 0.8

PRIMARY_STYLE_COUNT = 2
SECONDARY_STYLE_COUNT = 2

# decisiveness = clamp(1 - avg / DECISIVENESS_TIME_SCALE_MS - UNDO_PENALTY * undos)
DECISIVENESS_TIME_SCALE_MS = 6000.0
UNDO_PENALTY = 0.15
DECISIVENESS_FLOOR = 0.1
DECISIVENESS_CEILING = 1.0

LOW_CONFIDENCE_BELOW = 0.45
MODERATE_CONFIDENCE_BELOW = 0.75

INSTINCTIVE_TONE_ABOVE = 0.85
CONSISTENT_TONE_ABOVE = 0.6

# Summary view timing label
INTUITIVE_AVERAGE_BELOW_MS = 1500

# ---------------------------------------------------------------------------
# Narrative templates
# ---------------------------------------------------------------------------
NO_PREFERENCE_NARRATIVE = (
    "No clear visual preferences were established during this session. "
    "This suggests a highly eclectic taste or a need for a broader visual "
    "exploration."
)

BASELINE_NARRATIVE = "A visual baseline is still being established."

BLEND_TEMPLATE = "a sophisticated blend of {first} and {second}"
DEFINITIVE_TEMPLATE = "a definitive preference for {first} design"
UNDERTONE_TEMPLATE = ", nuanced by subtle {styles} undertones"
NARRATIVE_TEMPLATE = "The analysis identifies {main}{support}. {tone}"

INSTINCTIVE_TONE = (
    "Your selections were remarkably instinctive, suggesting a deeply "
    "refined and unwavering aesthetic intuition."
)
CONSISTENT_TONE = (
    "There is a consistent and clear vision emerging, showing a strong pull "
    "toward cohesive textures and forms."
)
THOUGHTFUL_TONE = (
    "Your selections reflect a thoughtful, multi-faceted approach, balancing "
    "diverse visual influences into a unique personal vocabulary."
)

# ---------------------------------------------------------------------------
# LLM Prompts
# ---------------------------------------------------------------------------

IMAGE_TAGGING_PROMPT = """\
You are an interior style classifier for a design studio. You will receive a \
single photograph of a furnished interior that the studio wants to add to its \
client discovery library.

Classify the photograph and return JSON with exactly these fields:

1. **room_type** -- One of: {room_types}. Pick the closest match.
2. **style_ids** -- A list of 1 to 3 style ids from the catalog below, most \
dominant first. Use ONLY ids that appear in the catalog.
3. **confidence** -- "high" | "medium" | "low".

## Style catalog (id: name)

{catalog}

Return ONLY a valid JSON object. No markdown fencing, no extra commentary.
"""
