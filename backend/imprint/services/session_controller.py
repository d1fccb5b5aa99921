"""
Discovery session controller.

Owns the lifecycle of one swipe session: builds the shuffled session stack
from the active pool, records each like/reject with its response time, allows
a single-step undo, and on the final swipe runs the inference engine and
yields the immutable ``SessionResult``.

Transitions are pure functions from one frozen ``SessionState`` to the next;
``SessionController`` wires them to an injected clock and shuffle and keeps
the visited states in ``history``.
"""

from __future__ import annotations

import logging
import random
import time
import uuid
from collections.abc import Callable, Sequence

from imprint.models.library import LibraryImage, StyleCategory
from imprint.models.session import (
    Command,
    Direction,
    SessionResult,
    SessionState,
    StartSession,
    Swipe,
    SwipeDecision,
    Transition,
    Undo,
)
from imprint.services.intelligence import analyze_session

logger = logging.getLogger(__name__)

Clock = Callable[[], int]
Shuffle = Callable[[Sequence[LibraryImage]], list[LibraryImage]]


def system_clock() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def make_shuffle(seed: int | None = None) -> Shuffle:
    """Return a uniform shuffle backed by its own seedable generator."""
    rng = random.Random(seed)

    def _shuffle(images: Sequence[LibraryImage]) -> list[LibraryImage]:
        shuffled = list(images)
        rng.shuffle(shuffled)
        return shuffled

    return _shuffle


# ---------------------------------------------------------------------------
# Pure transitions
# ---------------------------------------------------------------------------

def start_session(
    pool: Sequence[LibraryImage],
    target_length: int,
    now_ms: int,
    shuffle: Shuffle,
    client_name: str | None = None,
) -> SessionState:
    """Build a fresh in-session state from the active part of *pool*.

    The stack holds ``min(target_length, active pool size)`` images. An empty
    active pool yields an empty stack; refusing to start is the caller's job.
    """
    active = [img for img in pool if img.in_pool]
    stack = shuffle(active)[:max(target_length, 0)]
    return SessionState(
        status="in_session",
        stack=tuple(stack),
        position=0,
        decisions=(),
        last_decision_at=now_ms,
        undo_armed=False,
        undo_consumed_for_current=False,
        client_name=client_name,
    )


def apply_swipe(state: SessionState, direction: Direction, now_ms: int) -> SessionState:
    """Record a decision on the current image and advance.

    Returns *state* unchanged when there is no image left to judge. The
    returned state has status ``completed`` once the last image is judged.
    """
    image = state.current_image
    if image is None:
        return state

    decision = SwipeDecision(
        image_id=image.id,
        direction=direction,
        response_time_ms=max(now_ms - state.last_decision_at, 0),
        undo_used=state.undo_consumed_for_current,
        room_type=image.room_type,
        style_categories=tuple(image.style_categories),
    )
    position = state.position + 1
    return state.model_copy(
        update={
            "decisions": state.decisions + (decision,),
            "position": position,
            "last_decision_at": now_ms,
            "undo_armed": True,
            "undo_consumed_for_current": False,
            "status": "completed" if position == len(state.stack) else "in_session",
        }
    )


def apply_undo(state: SessionState, now_ms: int) -> SessionState:
    """Drop the last decision and step back one image.

    A no-op unless undo is armed and at least one image has been judged; the
    next swipe on the re-presented image is flagged ``undo_used``.
    """
    if not state.can_undo:
        return state

    return state.model_copy(
        update={
            "decisions": state.decisions[:-1],
            "position": state.position - 1,
            "last_decision_at": now_ms,
            "undo_armed": False,
            "undo_consumed_for_current": True,
        }
    )


def build_result(
    state: SessionState,
    categories: Sequence[StyleCategory],
    now_ms: int,
) -> SessionResult:
    """Run the inference engine over a completed state's decisions."""
    return SessionResult(
        id=str(uuid.uuid4()),
        date=now_ms,
        client_name=state.client_name,
        decisions=state.decisions,
        summary=analyze_session(state.decisions, categories),
    )


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------

class SessionController:
    """Synchronous command-in, transition-out driver for one session.

    Usage:
        controller = SessionController(categories)
        controller.start(pool, target_length=10, client_name="Ada")
        controller.swipe("like")
        controller.undo()
        transition = controller.swipe("reject")
        if transition.result is not None:
            save_session(transition.result)
    """

    def __init__(
        self,
        categories: Sequence[StyleCategory],
        clock: Clock | None = None,
        shuffle: Shuffle | None = None,
    ):
        self.categories = list(categories)
        self._clock = clock or system_clock
        self._shuffle = shuffle or make_shuffle()
        self.state = SessionState()
        self.history: list[SessionState] = [self.state]
        self.result: SessionResult | None = None

    @property
    def completed(self) -> bool:
        return self.state.status == "completed"

    def dispatch(self, command: Command) -> Transition:
        """Apply a single command and return the resulting transition."""
        if isinstance(command, StartSession):
            return self.start(command.pool, command.target_length, command.client_name)
        if isinstance(command, Swipe):
            return self.swipe(command.direction)
        if isinstance(command, Undo):
            return self.undo()
        raise ValueError(f"Unsupported session command: {command!r}")

    def start(
        self,
        pool: Sequence[LibraryImage],
        target_length: int,
        client_name: str | None = None,
    ) -> Transition:
        if self.completed:
            logger.debug("Ignoring start on a completed session.")
            return Transition(state=self.state, result=self.result)

        new_state = start_session(
            pool, target_length, self._clock(), self._shuffle, client_name
        )
        self._advance(new_state)
        logger.info(
            "Discovery session started with %d of %d images (target %d).",
            len(new_state.stack), len(pool), target_length,
        )
        return Transition(state=new_state)

    def swipe(self, direction: Direction) -> Transition:
        now = self._clock()
        new_state = apply_swipe(self.state, direction, now)
        if new_state is self.state:
            logger.debug("Ignoring swipe with no image presented.")
            return Transition(state=self.state)

        self._advance(new_state)
        if new_state.status == "completed":
            self.result = build_result(new_state, self.categories, now)
            logger.info(
                "Discovery session %s completed: %d decisions, confidence %s.",
                self.result.id,
                len(self.result.decisions),
                self.result.summary.confidence,
            )
            return Transition(state=new_state, result=self.result)
        return Transition(state=new_state)

    def undo(self) -> Transition:
        new_state = apply_undo(self.state, self._clock())
        if new_state is self.state:
            logger.debug("Ignoring undo: nothing to undo.")
        else:
            self._advance(new_state)
        return Transition(state=self.state)

    def _advance(self, new_state: SessionState) -> None:
        self.state = new_state
        self.history.append(new_state)
