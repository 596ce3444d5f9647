"""
Access Control Engine
Temporal confirmation and timed unlock for one camera driving one door.

Usage:
    from engines.access_control import AccessController, AccessRules

    controller = AccessController(AccessRules(confirmation_window=3.0, open_duration=3.0))
    controller.on_tick(now)
    event = controller.on_frame_result(frame_result, now)
"""

from engines.access_control.rules import AccessRules, STATUS_METADATA
from engines.access_control.events import AccessEvent, AccessEventLog
from engines.access_control.controller import (
    AccessController, AccessStatus, DoorState, SessionState, apply_frame, expire_door,
)

__all__ = [
    'AccessRules', 'STATUS_METADATA',
    'AccessEvent', 'AccessEventLog',
    'AccessController', 'AccessStatus', 'DoorState', 'SessionState',
    'apply_frame', 'expire_door',
]
