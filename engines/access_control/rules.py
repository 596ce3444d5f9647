"""
Access Rules - timing thresholds for the door state machine.
All tunable parameters live here for easy adjustment.

Reference timings assume a ~60 ms frame cadence (~16 fps).
"""

from dataclasses import dataclass
from typing import Dict


# Visible status metadata - banner color (BGR) and label used by the overlay/UI
STATUS_METADATA: Dict[str, dict] = {
    'locked':   {'label': 'Door Locked',   'color': (0, 0, 255)},
    'pending':  {'label': 'Verifying...',  'color': (0, 215, 255)},
    'open':     {'label': 'Door Open',     'color': (0, 200, 0)},
    'degraded': {'label': 'Camera Only',   'color': (128, 128, 128)},
}


@dataclass
class AccessRules:
    """
    Configurable timing for confirmation and unlock.
    """

    # ── Confirmation (debounce) ──
    confirmation_window: float = 3.0      # seconds of continuous recognition before access
    miss_tolerance: int = 0               # consecutive unmatched frames tolerated (0 = any miss resets)

    # ── Unlock ──
    open_duration: float = 3.0            # seconds the door stays open once unlocked
    extend_on_reconfirm: bool = False     # restart the open timer when another confirmation lands while open

    def __post_init__(self):
        if self.confirmation_window < 0:
            raise ValueError("confirmation_window must be >= 0")
        if self.open_duration <= 0:
            raise ValueError("open_duration must be > 0")
        if self.miss_tolerance < 0:
            raise ValueError("miss_tolerance must be >= 0")
