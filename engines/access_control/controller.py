"""
Access Controller - door state machine with temporal confirmation.

A recognized identity must be seen continuously for `confirmation_window`
seconds before the door opens. The door then stays open for `open_duration`
seconds and relocks on its own. Each confirmation writes exactly one
AccessEvent.

State transitions are pure functions of (state, frame result, now); the
AccessController class only owns the current state and forwards events to
the injected sink. Time is injected by the caller (real clock or a
simulated one in tests).
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Tuple

from engines.access_control.events import AccessEvent
from engines.access_control.rules import AccessRules, STATUS_METADATA

logger = logging.getLogger(__name__)


class DoorState(str, Enum):
    LOCKED = 'locked'
    OPEN = 'open'


class AccessStatus(str, Enum):
    """What the UI shows for the current tick."""
    LOCKED = 'locked'
    PENDING = 'pending'
    OPEN = 'open'
    DEGRADED = 'degraded'


@dataclass(frozen=True)
class SessionState:
    door_state: DoorState = DoorState.LOCKED
    pending_identity: Optional[int] = None
    pending_name: Optional[str] = None
    pending_since: Optional[float] = None
    event_written: bool = False
    opened_at: Optional[float] = None
    missed_frames: int = 0
    degraded: bool = False


def _clear_pending(state: SessionState) -> SessionState:
    return replace(
        state,
        pending_identity=None,
        pending_name=None,
        pending_since=None,
        event_written=False,
        missed_frames=0,
    )


def expire_door(state: SessionState, now: float, rules: AccessRules) -> SessionState:
    """Relock the door once `open_duration` has elapsed since it opened."""
    if state.door_state != DoorState.OPEN or state.opened_at is None:
        return state
    if now - state.opened_at < rules.open_duration:
        return state
    # Pending confirmation stays so the same sighting cannot re-open the door.
    return replace(state, door_state=DoorState.LOCKED, opened_at=None, degraded=False)


def apply_frame(state: SessionState, frame_result, now: float,
                rules: AccessRules) -> Tuple[SessionState, Optional[AccessEvent]]:
    """
    Fold one frame's recognition outcome into the session state.

    Args:
        state: current session state
        frame_result: object with `degraded` and `recognized_id`/`recognized_name`
        now: frame timestamp (seconds)
        rules: timing rules

    Returns:
        (new state, AccessEvent if this frame completed a confirmation)
    """
    if frame_result.degraded:
        return replace(_clear_pending(state), degraded=True), None

    state = replace(state, degraded=False)
    identity_id = frame_result.recognized_id

    if identity_id is None:
        if state.pending_identity is None:
            return state, None
        missed = state.missed_frames + 1
        if missed > rules.miss_tolerance:
            return _clear_pending(state), None
        return replace(state, missed_frames=missed), None

    if state.pending_identity != identity_id:
        state = replace(
            state,
            pending_identity=identity_id,
            pending_name=frame_result.recognized_name,
            pending_since=now,
            event_written=False,
        )
    state = replace(state, missed_frames=0)

    if state.event_written or now - state.pending_since < rules.confirmation_window:
        return state, None

    event = AccessEvent(
        timestamp=state.pending_since + rules.confirmation_window,
        identity_id=identity_id,
        name=state.pending_name,
    )
    state = replace(state, event_written=True)

    if state.door_state == DoorState.LOCKED:
        state = replace(state, door_state=DoorState.OPEN, opened_at=now)
    elif rules.extend_on_reconfirm:
        state = replace(state, opened_at=now)

    return state, event


class AccessController:
    """
    Owns the door/session state for one camera driving one door.

    Usage per tick:
        controller.on_tick(now)                  # timer first
        controller.on_frame_result(result, now)  # then the frame, if any
    """

    def __init__(self, rules: Optional[AccessRules] = None,
                 event_sink: Optional[Callable[[AccessEvent], None]] = None):
        self.rules = rules or AccessRules()
        self.event_sink = event_sink
        self.state = SessionState()

    @property
    def door_state(self) -> DoorState:
        return self.state.door_state

    def on_tick(self, now: float) -> None:
        """Run the auto-lock timer."""
        previous = self.state.door_state
        self.state = expire_door(self.state, now, self.rules)
        if previous == DoorState.OPEN and self.state.door_state == DoorState.LOCKED:
            logger.info("Door locked (open duration elapsed)")

    def on_frame_result(self, frame_result, now: float) -> Optional[AccessEvent]:
        was_degraded = self.state.degraded
        previous = self.state.door_state
        self.state, event = apply_frame(self.state, frame_result, now, self.rules)

        if self.state.degraded and not was_degraded:
            logger.warning("Recognition unavailable - access control degraded to camera-only mode")

        if event is not None:
            if previous == DoorState.LOCKED and self.state.door_state == DoorState.OPEN:
                logger.info(f"Access granted: {event.name} (ID: {event.identity_id}) - door open")
            else:
                logger.info(f"Access confirmed: {event.name} (ID: {event.identity_id}) - door already open")
            if self.event_sink is not None:
                self.event_sink(event)

        return event

    def status(self) -> AccessStatus:
        state = self.state
        if state.door_state == DoorState.OPEN:
            return AccessStatus.OPEN
        if state.degraded:
            return AccessStatus.DEGRADED
        if state.pending_identity is not None and not state.event_written:
            return AccessStatus.PENDING
        return AccessStatus.LOCKED

    def snapshot(self, now: Optional[float] = None) -> dict:
        state = self.state
        status = self.status()
        data = {
            'door_state': state.door_state.value,
            'status': status.value,
            'label': STATUS_METADATA[status.value]['label'],
            'pending_identity': state.pending_identity,
            'pending_name': state.pending_name,
            'confirmed': state.event_written,
        }
        if now is not None:
            if state.pending_since is not None and not state.event_written:
                data['confirmation_progress'] = round(
                    min(1.0, (now - state.pending_since) / self.rules.confirmation_window)
                    if self.rules.confirmation_window > 0 else 1.0, 3)
            if state.opened_at is not None:
                data['open_remaining'] = round(
                    max(0.0, self.rules.open_duration - (now - state.opened_at)), 3)
        return data

    def reset(self) -> None:
        self.state = SessionState()
