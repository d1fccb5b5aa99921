"""Discovery session API routes.

Drives one ``SessionController`` per live session: start, swipe, undo and
cancel. Live controllers are held in memory only; a session's result is
persisted when its last image is judged.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from typing import Callable

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, field_validator

from imprint.config import SESSION_IDLE_TIMEOUT_S
from imprint.models.session import Direction, SessionResult
from imprint.services.analytics import discovery_availability
from imprint.services.session_controller import SessionController
from imprint.storage.supabase_client import get_images, get_settings, save_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/discovery", tags=["discovery"])


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class StartRequest(BaseModel):
    client_name: str | None = None

    @field_validator("client_name")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()


class SwipeRequest(BaseModel):
    direction: Direction


# ---------------------------------------------------------------------------
# Live session registry
# ---------------------------------------------------------------------------

class SessionRegistry:
    """In-process map of session id -> controller.

    Each controller is private to its session; the lock only protects the
    map itself. Entries idle for longer than ``idle_timeout_s`` are evicted
    whenever a new session is added.
    """

    def __init__(
        self,
        idle_timeout_s: float = SESSION_IDLE_TIMEOUT_S,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.idle_timeout_s = idle_timeout_s
        self._clock = clock
        self._lock = threading.Lock()
        self._controllers: dict[str, SessionController] = {}
        self._last_seen: dict[str, float] = {}

    def add(self, controller: SessionController) -> str:
        session_id = uuid.uuid4().hex
        with self._lock:
            self._evict_stale()
            self._controllers[session_id] = controller
            self._last_seen[session_id] = self._clock()
        return session_id

    def get(self, session_id: str) -> SessionController | None:
        with self._lock:
            controller = self._controllers.get(session_id)
            if controller is not None:
                self._last_seen[session_id] = self._clock()
            return controller

    def discard(self, session_id: str) -> bool:
        with self._lock:
            self._last_seen.pop(session_id, None)
            return self._controllers.pop(session_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._controllers)

    def _evict_stale(self) -> None:
        cutoff = self._clock() - self.idle_timeout_s
        stale = [sid for sid, seen in self._last_seen.items() if seen < cutoff]
        for sid in stale:
            controller = self._controllers.pop(sid)
            del self._last_seen[sid]
            if controller.completed:
                logger.warning("Evicted discovery session %s with an unsaved result.", sid)
        if stale:
            logger.info("Evicted %d idle discovery sessions.", len(stale))


registry = SessionRegistry()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _require_controller(session_id: str) -> SessionController:
    controller = registry.get(session_id)
    if controller is None:
        raise HTTPException(status_code=404, detail=f"Discovery session '{session_id}' not found.")
    return controller


def _session_view(
    session_id: str,
    controller: SessionController,
    result: SessionResult | None = None,
) -> dict:
    """Shape of every discovery response: progress, current card, result."""
    state = controller.state
    current = state.current_image
    return {
        "session_id": session_id,
        "status": state.status,
        "position": state.position,
        "total": len(state.stack),
        "current_image": current.model_dump() if current is not None else None,
        "undo_available": state.can_undo,
        "result": result.model_dump(mode="json") if result is not None else None,
    }


# ---------------------------------------------------------------------------
# POST /api/discovery
# ---------------------------------------------------------------------------

@router.post("")
async def start_discovery(body: StartRequest) -> dict:
    """Start a session over the active pool with the configured length."""
    settings = get_settings()
    library = get_images()

    availability = discovery_availability(library, settings.min_required_images)
    if not availability["enabled"]:
        raise HTTPException(
            status_code=409,
            detail=(
                f"Discovery needs at least {availability['min_required']} active images; "
                f"{availability['remaining']} more required."
            ),
        )

    controller = SessionController(settings.categories)
    controller.start(library, settings.session_length, body.client_name)
    session_id = registry.add(controller)
    return _session_view(session_id, controller)


# ---------------------------------------------------------------------------
# POST /api/discovery/{session_id}/swipe
# ---------------------------------------------------------------------------

@router.post("/{session_id}/swipe")
async def swipe(session_id: str, body: SwipeRequest) -> dict:
    """Record a like/reject; persists and returns the result on the last card.

    A completed session stays registered until its result is saved, so a
    swipe retried after a failed save saves and returns the same result.
    """
    controller = _require_controller(session_id)
    transition = controller.swipe(body.direction)

    result = transition.result
    if result is None and controller.completed:
        result = controller.result
    if result is None:
        return _session_view(session_id, controller)

    save_session(result)
    registry.discard(session_id)
    logger.info("Discovery session %s saved as %s.", session_id, result.id)
    return _session_view(session_id, controller, result)


# ---------------------------------------------------------------------------
# POST /api/discovery/{session_id}/undo
# ---------------------------------------------------------------------------

@router.post("/{session_id}/undo")
async def undo(session_id: str) -> dict:
    controller = _require_controller(session_id)
    controller.undo()
    return _session_view(session_id, controller)


# ---------------------------------------------------------------------------
# DELETE /api/discovery/{session_id}
# ---------------------------------------------------------------------------

@router.delete("/{session_id}")
async def cancel_discovery(session_id: str) -> dict:
    """Abandon a live session; nothing is analysed or saved."""
    if not registry.discard(session_id):
        raise HTTPException(status_code=404, detail=f"Discovery session '{session_id}' not found.")
    return {"session_id": session_id, "status": "cancelled"}
