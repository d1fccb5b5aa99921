"""
Tests for the discovery session controller.

Covers:
1. Stack construction (active filter, target length, shuffle injection)
2. Swipe recording, timing and completion
3. Single-step undo semantics
4. Immutable snapshots and the command interface

Run with: pytest backend/tests/test_session_controller.py -v
"""

import pytest

from imprint.models.session import SessionState, StartSession, Swipe, Undo
from imprint.services.session_controller import (
    SessionController,
    apply_swipe,
    apply_undo,
    make_shuffle,
    start_session,
)


@pytest.fixture
def controller(catalog, clock, identity_shuffle):
    return SessionController(catalog, clock=clock, shuffle=identity_shuffle)


# =============================================================================
# start
# =============================================================================

class TestStart:

    @pytest.mark.parametrize("pool_size,target", [(5, 5), (8, 5), (3, 10), (1, 40), (0, 5), (6, 0)])
    def test_stack_length_is_min_of_target_and_active_pool(self, image_factory, pool_size, target, identity_shuffle):
        pool = [image_factory(i) for i in range(pool_size)]
        state = start_session(pool, target, now_ms=0, shuffle=identity_shuffle)
        assert len(state.stack) == min(target, pool_size)

    def test_inactive_images_are_excluded(self, image_factory, identity_shuffle):
        pool = [
            image_factory(0),
            image_factory(1, is_active=False),
            image_factory(2, is_active=None),
        ]
        state = start_session(pool, 10, now_ms=0, shuffle=identity_shuffle)
        assert [img.id for img in state.stack] == ["img-000", "img-002"]

    def test_uses_injected_shuffle(self, image_factory):
        pool = [image_factory(i) for i in range(4)]
        state = start_session(pool, 3, now_ms=0, shuffle=lambda imgs: list(reversed(imgs)))
        assert [img.id for img in state.stack] == ["img-003", "img-002", "img-001"]

    def test_seeded_shuffle_is_reproducible(self, image_factory):
        pool = [image_factory(i) for i in range(20)]
        first = start_session(pool, 10, 0, make_shuffle(seed=7))
        second = start_session(pool, 10, 0, make_shuffle(seed=7))
        assert [i.id for i in first.stack] == [i.id for i in second.stack]
        assert sorted(i.id for i in make_shuffle(seed=1)(pool)) == sorted(i.id for i in pool)

    def test_resets_state(self, controller, minimalist_pool, clock):
        transition = controller.start(minimalist_pool, 5, client_name="Ada")
        state = transition.state
        assert state.status == "in_session"
        assert state.position == 0
        assert state.decisions == ()
        assert state.undo_armed is False
        assert state.last_decision_at == clock.now
        assert state.client_name == "Ada"

    def test_one_card_session_completes(self, controller, image_factory):
        controller.start([image_factory(0)], 5)
        transition = controller.swipe("like")
        assert transition.result is not None
        assert len(transition.result.decisions) == 1


# =============================================================================
# swipe
# =============================================================================

class TestSwipe:

    def test_records_decision_for_current_image(self, controller, image_factory, clock):
        pool = [image_factory(0, styles=("2", "3"), room_type="Kitchen"), image_factory(1)]
        controller.start(pool, 2)
        clock.advance(950)
        state = controller.swipe("like").state

        (recorded,) = state.decisions
        assert recorded.image_id == "img-000"
        assert recorded.direction == "like"
        assert recorded.response_time_ms == 950
        assert recorded.undo_used is False
        assert recorded.room_type == "Kitchen"
        assert recorded.style_categories == ("2", "3")
        assert state.position == 1
        assert state.undo_armed is True
        assert state.last_decision_at == clock.now

    def test_timing_is_measured_from_previous_decision(self, controller, minimalist_pool, clock):
        controller.start(minimalist_pool, 5)
        clock.advance(700)
        controller.swipe("like")
        clock.advance(2100)
        state = controller.swipe("reject").state
        assert [d.response_time_ms for d in state.decisions] == [700, 2100]

    def test_completion_yields_result(self, controller, minimalist_pool, clock):
        controller.start(minimalist_pool, 5, client_name="Ada")
        transition = None
        for _ in range(5):
            clock.advance(800)
            transition = controller.swipe("like")

        result = transition.result
        assert transition.state.status == "completed"
        assert result is controller.result
        assert result.client_name == "Ada"
        assert result.date == clock.now
        assert len(result.decisions) == 5
        assert result.summary.primary_styles == ["Minimalist"]
        assert result.summary.secondary_styles == []
        assert result.summary.decisiveness == pytest.approx(0.8667, abs=1e-4)
        assert result.summary.confidence == "high"

    def test_swipe_after_completion_is_noop(self, controller, minimalist_pool, clock):
        controller.start(minimalist_pool, 2)
        controller.swipe("like")
        controller.swipe("like")
        completed = controller.state
        transition = controller.swipe("reject")
        assert transition.state is completed
        assert transition.result is None
        assert len(completed.decisions) == 2

    def test_swipe_before_start_is_noop(self, controller):
        assert controller.swipe("like").state == SessionState()

    def test_swipe_on_empty_stack_is_noop(self, controller):
        controller.start([], 5)
        state = controller.swipe("like").state
        assert state.decisions == ()
        assert state.status == "in_session"

    def test_decisions_never_exceed_target(self, controller, image_factory):
        controller.start([image_factory(i) for i in range(10)], 3)
        for _ in range(6):
            controller.swipe("like")
        assert len(controller.state.decisions) == 3


# =============================================================================
# undo
# =============================================================================

class TestUndo:

    def test_undo_at_position_zero_changes_nothing(self, controller, minimalist_pool):
        controller.start(minimalist_pool, 5)
        before = controller.state
        assert controller.undo().state is before

    def test_undo_pops_last_decision(self, controller, minimalist_pool, clock):
        controller.start(minimalist_pool, 5)
        controller.swipe("like")
        controller.swipe("reject")
        clock.advance(300)
        state = controller.undo().state
        assert state.position == 1
        assert [d.direction for d in state.decisions] == ["like"]
        assert state.undo_armed is False
        assert state.undo_consumed_for_current is True
        assert state.last_decision_at == clock.now

    def test_second_undo_is_noop(self, controller, minimalist_pool):
        controller.start(minimalist_pool, 5)
        controller.swipe("like")
        controller.swipe("like")
        once = controller.undo().state
        twice = controller.undo().state
        assert twice is once
        assert twice.position == 1

    def test_redecision_is_flagged_and_timed_fresh(self, controller, minimalist_pool, clock):
        controller.start(minimalist_pool, 5)
        clock.advance(500)
        controller.swipe("like")
        clock.advance(4000)
        controller.undo()
        clock.advance(600)
        state = controller.swipe("reject").state
        (redecided,) = state.decisions
        assert redecided.undo_used is True
        assert redecided.response_time_ms == 600
        assert redecided.direction == "reject"

        clock.advance(400)
        state = controller.swipe("like").state
        assert state.decisions[-1].undo_used is False

    def test_undo_rearmed_by_next_swipe(self, controller, minimalist_pool):
        controller.start(minimalist_pool, 5)
        controller.swipe("like")
        controller.undo()
        controller.swipe("like")
        assert controller.state.can_undo is True
        assert controller.undo().state.position == 0

    def test_completed_session_cannot_be_undone(self, controller, minimalist_pool):
        controller.start(minimalist_pool, 1)
        controller.swipe("like")
        assert controller.undo().state.status == "completed"
        assert controller.start(minimalist_pool, 5).state.status == "completed"

    def test_undo_lowers_decisiveness_by_015(self, catalog, minimalist_pool, clock, identity_shuffle):
        def run(with_undo: bool):
            ctl = SessionController(catalog, clock=clock, shuffle=identity_shuffle)
            ctl.start(minimalist_pool, 5)
            directions = ["like", "reject", "like", "reject", "like"]
            for i, direction in enumerate(directions):
                if with_undo and i == 2:
                    clock.advance(1000)
                    ctl.swipe("reject")
                    ctl.undo()
                clock.advance(1000)
                transition = ctl.swipe(direction)
            return transition.result.summary

        plain = run(with_undo=False)
        undone = run(with_undo=True)
        assert plain.decisiveness - undone.decisiveness == pytest.approx(0.15)


# =============================================================================
# Snapshots and commands
# =============================================================================

class TestTransitions:

    def test_pure_transitions_do_not_touch_input(self, minimalist_pool, identity_shuffle):
        state = start_session(minimalist_pool, 5, 0, identity_shuffle)
        after_swipe = apply_swipe(state, "like", 100)
        after_undo = apply_undo(after_swipe, 200)
        assert state.position == 0 and state.decisions == ()
        assert after_swipe.position == 1
        assert after_undo.position == 0
        assert after_swipe.decisions != after_undo.decisions

    def test_snapshots_are_frozen(self, minimalist_pool, identity_shuffle):
        state = start_session(minimalist_pool, 5, 0, identity_shuffle)
        with pytest.raises(Exception):
            state.position = 3

    def test_history_records_each_transition(self, controller, minimalist_pool):
        controller.start(minimalist_pool, 5)
        controller.swipe("like")
        controller.undo()
        controller.undo()
        assert [s.position for s in controller.history] == [0, 0, 1, 0]

    def test_dispatch_commands(self, controller, minimalist_pool):
        controller.dispatch(StartSession(pool=minimalist_pool, target_length=2))
        controller.dispatch(Swipe(direction="like"))
        controller.dispatch(Undo())
        controller.dispatch(Swipe(direction="reject"))
        transition = controller.dispatch(Swipe(direction="like"))
        assert transition.result is not None
        assert [d.direction for d in transition.result.decisions] == ["reject", "like"]

    def test_dispatch_rejects_unknown_command(self, controller):
        with pytest.raises(ValueError):
            controller.dispatch("swipe")
