"""
Tests for the AccessController door state machine.

All timestamps are simulated; steps of 0.5 s keep the arithmetic exact.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from engines.access_control.controller import (
    AccessController, AccessStatus, DoorState, SessionState,
    apply_frame, expire_door,
)
from engines.access_control.rules import AccessRules

T0 = 1000.0
STEP = 0.5


def seen(identity_id, name=None):
    return SimpleNamespace(degraded=False, recognized_id=identity_id,
                           recognized_name=name or f'person-{identity_id}')


def nobody():
    return SimpleNamespace(degraded=False, recognized_id=None, recognized_name=None)


def degraded():
    return SimpleNamespace(degraded=True, recognized_id=None, recognized_name=None)


def drive(controller, result, start, end):
    """Feed `result` every STEP seconds for t in [start, end]; return events."""
    events = []
    t = start
    while t <= end:
        controller.on_tick(t)
        event = controller.on_frame_result(result, t)
        if event is not None:
            events.append(event)
        t += STEP
    return events


class TestConfirmation:
    def test_initial_state(self):
        controller = AccessController()
        assert controller.door_state == DoorState.LOCKED
        assert controller.status() == AccessStatus.LOCKED
        assert controller.state.pending_identity is None

    def test_recognition_below_window_never_opens(self):
        controller = AccessController()
        events = drive(controller, seen(1), T0, T0 + 2.5)
        assert events == []
        assert controller.door_state == DoorState.LOCKED
        assert controller.status() == AccessStatus.PENDING

    def test_opens_once_window_elapsed(self):
        controller = AccessController()
        events = drive(controller, seen(1, 'Alice'), T0, T0 + 3.0)

        assert len(events) == 1
        assert events[0].identity_id == 1
        assert events[0].name == 'Alice'
        assert events[0].timestamp == T0 + 3.0
        assert controller.door_state == DoorState.OPEN

    def test_only_one_event_per_confirmation(self):
        controller = AccessController()
        events = drive(controller, seen(1), T0, T0 + 2.5 + 3.0)
        assert len(events) == 1

    def test_event_timestamp_is_pending_since_plus_window(self):
        controller = AccessController(AccessRules(confirmation_window=1.2))
        events = drive(controller, seen(3), T0, T0 + 2.0)
        # first frame past the window is T0 + 1.5; event is stamped at the window edge
        assert events[0].timestamp == pytest.approx(T0 + 1.2)
        assert controller.state.opened_at == T0 + 1.5

    def test_single_miss_resets_window(self):
        controller = AccessController()
        drive(controller, seen(1), T0, T0 + 2.0)
        drive(controller, nobody(), T0 + 2.5, T0 + 2.5)
        assert controller.state.pending_identity is None

        assert drive(controller, seen(1), T0 + 3.0, T0 + 5.5) == []
        assert controller.door_state == DoorState.LOCKED
        assert len(drive(controller, seen(1), T0 + 6.0, T0 + 6.0)) == 1

    def test_miss_tolerance(self):
        controller = AccessController(AccessRules(miss_tolerance=2))
        drive(controller, seen(1), T0, T0 + 1.0)
        drive(controller, nobody(), T0 + 1.5, T0 + 2.0)
        assert controller.state.pending_since == T0

        events = drive(controller, seen(1), T0 + 2.5, T0 + 3.0)
        assert len(events) == 1

    def test_miss_tolerance_exceeded(self):
        controller = AccessController(AccessRules(miss_tolerance=1))
        drive(controller, seen(1), T0, T0 + 1.0)
        drive(controller, nobody(), T0 + 1.5, T0 + 2.0)
        assert controller.state.pending_identity is None

    def test_identity_switch_restarts_window(self):
        controller = AccessController()
        drive(controller, seen(1), T0, T0 + 2.5)
        assert drive(controller, seen(2), T0 + 3.0, T0 + 5.5) == []
        assert controller.state.pending_identity == 2
        assert controller.state.pending_since == T0 + 3.0

        events = drive(controller, seen(2), T0 + 6.0, T0 + 6.0)
        assert events[0].identity_id == 2

    def test_zero_window_opens_on_first_frame(self):
        controller = AccessController(AccessRules(confirmation_window=0))
        events = drive(controller, seen(1), T0, T0)
        assert len(events) == 1
        assert controller.door_state == DoorState.OPEN


class TestAutoLock:
    def _opened(self, rules=None):
        controller = AccessController(rules)
        drive(controller, seen(1), T0, T0 + 3.0)
        assert controller.door_state == DoorState.OPEN
        return controller

    def test_stays_open_until_duration(self):
        controller = self._opened()
        controller.on_tick(T0 + 5.5)
        assert controller.door_state == DoorState.OPEN

    def test_relocks_exactly_at_duration(self):
        controller = self._opened()
        controller.on_tick(T0 + 6.0)
        assert controller.door_state == DoorState.LOCKED

    def test_relocks_despite_continued_recognition(self):
        controller = self._opened()
        events = drive(controller, seen(1), T0 + 3.5, T0 + 12.0)
        assert events == []
        assert controller.door_state == DoorState.LOCKED
        assert controller.status() == AccessStatus.LOCKED

    def test_reconfirm_after_reset_opens_again(self):
        controller = self._opened()
        drive(controller, seen(1), T0 + 3.5, T0 + 7.0)
        drive(controller, nobody(), T0 + 7.5, T0 + 7.5)
        events = drive(controller, seen(1), T0 + 8.0, T0 + 11.0)
        assert len(events) == 1
        assert controller.door_state == DoorState.OPEN

    def test_reconfirm_while_open_keeps_timer(self):
        controller = self._opened(AccessRules(open_duration=10.0))
        events = drive(controller, seen(2), T0 + 3.5, T0 + 6.5)
        assert len(events) == 1
        assert controller.state.opened_at == T0 + 3.0

    def test_extend_on_reconfirm(self):
        controller = self._opened(AccessRules(open_duration=10.0, extend_on_reconfirm=True))
        drive(controller, seen(2), T0 + 3.5, T0 + 6.5)
        assert controller.state.opened_at == T0 + 6.5

        controller.on_tick(T0 + 13.0)
        assert controller.door_state == DoorState.OPEN
        controller.on_tick(T0 + 16.5)
        assert controller.door_state == DoorState.LOCKED


class TestDegraded:
    def test_degraded_frame_clears_pending(self):
        controller = AccessController()
        drive(controller, seen(1), T0, T0 + 2.0)
        drive(controller, degraded(), T0 + 2.5, T0 + 2.5)

        assert controller.state.pending_identity is None
        assert controller.status() == AccessStatus.DEGRADED

    def test_degraded_never_opens(self):
        controller = AccessController()
        assert drive(controller, degraded(), T0, T0 + 10.0) == []
        assert controller.door_state == DoorState.LOCKED

    def test_recovers_after_degraded(self):
        controller = AccessController()
        drive(controller, degraded(), T0, T0 + 1.0)
        drive(controller, nobody(), T0 + 1.5, T0 + 1.5)
        assert controller.status() == AccessStatus.LOCKED

    def test_open_door_still_relocks_when_degraded(self):
        controller = AccessController()
        drive(controller, seen(1), T0, T0 + 3.0)
        drive(controller, degraded(), T0 + 3.5, T0 + 6.0)
        assert controller.door_state == DoorState.LOCKED


class TestPureTransitions:
    def test_expire_door_noop_when_locked(self):
        state = SessionState()
        assert expire_door(state, T0, AccessRules()) is state

    def test_apply_frame_returns_new_state(self):
        state = SessionState()
        new_state, event = apply_frame(state, seen(4), T0, AccessRules())
        assert state.pending_identity is None
        assert new_state.pending_identity == 4
        assert new_state.pending_since == T0
        assert event is None


class TestControllerSurface:
    def test_event_sink_called_once(self):
        sink = MagicMock()
        controller = AccessController(event_sink=sink)
        drive(controller, seen(1), T0, T0 + 5.0)
        sink.assert_called_once()
        assert sink.call_args[0][0].identity_id == 1

    def test_snapshot_pending(self):
        controller = AccessController()
        drive(controller, seen(1, 'Alice'), T0, T0 + 1.5)
        snap = controller.snapshot(T0 + 1.5)
        assert snap['status'] == 'pending'
        assert snap['label'] == 'Verifying...'
        assert snap['pending_name'] == 'Alice'
        assert snap['confirmation_progress'] == 0.5
        assert 'open_remaining' not in snap

    def test_snapshot_open(self):
        controller = AccessController()
        drive(controller, seen(1), T0, T0 + 3.0)
        snap = controller.snapshot(T0 + 4.0)
        assert snap['door_state'] == 'open'
        assert snap['confirmed'] is True
        assert snap['open_remaining'] == 2.0

    def test_reset(self):
        controller = AccessController()
        drive(controller, seen(1), T0, T0 + 3.0)
        controller.reset()
        assert controller.door_state == DoorState.LOCKED
        assert controller.state.pending_identity is None
