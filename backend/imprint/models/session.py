"""Pydantic v2 models for discovery sessions, decisions and results."""

from typing import Literal

from pydantic import BaseModel, Field

from imprint.models.library import LibraryImage

Direction = Literal["like", "reject"]
Confidence = Literal["low", "moderate", "high"]
SessionStatus = Literal["idle", "in_session", "completed"]


class SwipeDecision(BaseModel):
    """One judgement made by the client on a single image.

    Room type and style ids are copied from the image at decision time so
    later catalog edits do not rewrite history.
    """

    model_config = {"frozen": True}

    image_id: str
    direction: Direction
    response_time_ms: float = Field(ge=0)
    undo_used: bool = False
    room_type: str
    style_categories: tuple[str, ...] = ()


class Summary(BaseModel):
    """Style profile inferred from a completed session."""

    model_config = {"frozen": True}

    primary_styles: list[str] = []
    secondary_styles: list[str] = []
    narrative: str
    confidence: Confidence
    decisiveness: float = Field(ge=0.0, le=1.0)
    average_response_time: float


class SessionResult(BaseModel):
    """Immutable report of a finished discovery session."""

    model_config = {"frozen": True}

    id: str
    date: int
    client_name: str | None = None
    decisions: tuple[SwipeDecision, ...] = ()
    summary: Summary


class SessionState(BaseModel):
    """Snapshot of a session controller.

    Every transition produces a new snapshot via ``model_copy``; snapshots
    are never edited in place.
    """

    model_config = {"frozen": True}

    status: SessionStatus = "idle"
    stack: tuple[LibraryImage, ...] = ()
    position: int = 0
    decisions: tuple[SwipeDecision, ...] = ()
    last_decision_at: int = 0
    undo_armed: bool = False
    undo_consumed_for_current: bool = False
    client_name: str | None = None

    @property
    def current_image(self) -> LibraryImage | None:
        if self.status != "in_session" or self.position >= len(self.stack):
            return None
        return self.stack[self.position]

    @property
    def can_undo(self) -> bool:
        return self.status == "in_session" and self.undo_armed and self.position > 0


# ---------------------------------------------------------------------------
# Controller commands
# ---------------------------------------------------------------------------


class StartSession(BaseModel):
    """Begin a session over *pool*, presenting at most *target_length* images."""

    kind: Literal["start"] = "start"
    pool: list[LibraryImage]
    target_length: int = Field(ge=0)
    client_name: str | None = None


class Swipe(BaseModel):
    """Record a like/reject on the image currently presented."""

    kind: Literal["swipe"] = "swipe"
    direction: Direction


class Undo(BaseModel):
    """Retract the most recent decision and re-present its image."""

    kind: Literal["undo"] = "undo"


Command = StartSession | Swipe | Undo


class Transition(BaseModel):
    """What the controller hands back after processing a command."""

    model_config = {"frozen": True}

    state: SessionState
    result: SessionResult | None = None
