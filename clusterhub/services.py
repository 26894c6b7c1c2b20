"""Cluster-side service endpoints called by remote clients and by the gamepad bridge."""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

from .vehicle import Battery, Gear, LRSign, Signal

log = logging.getLogger(__name__)

REPLY_OK = 0
REPLY_ERROR = -1

VALID_GEARS = frozenset({"P", "D", "N", "R"})
VALID_MODES = frozenset({0, 1, 2, 42})
START_COMMAND = "Start"


class ICService:
    """The outward-facing cluster service: gear, mode and battery requests plus status events."""

    def __init__(self, gear: Optional[Gear], battery: Battery) -> None:
        self.gear = gear
        self.battery = battery
        self.signal_gear = Signal()
        self.signal_mode = Signal()
        self.signal_start = Signal()
        self.battery_status_changed = Signal()
        self.gear_status_changed = Signal()
        self.lr_sign_status_changed = Signal()
        self.pdc_status_changed = Signal()

    def set_gear(self, client: Any, gear: str) -> int:
        """Handle a gear request; "Start" announces a connected client."""
        log.info("gear: %s", gear)
        if gear == START_COMMAND:
            self.signal_start.emit()
            return REPLY_OK
        if gear in VALID_GEARS:
            self.signal_gear.emit(gear)
            return REPLY_OK
        return REPLY_ERROR

    def get_battery(self, client: Any) -> Tuple[int, int]:
        """Return the current battery value and the reply code, which is always success."""
        return self.battery.battery_value, REPLY_OK

    def set_mode(self, client: Any, mode: int) -> int:
        """Forward a mode change; unknown modes are still forwarded but answered with an error."""
        log.info("mode: %s", mode)
        self.signal_mode.emit(mode)
        return REPLY_OK if mode in VALID_MODES else REPLY_ERROR

    def notify_battery_status_changed(self, value: int) -> None:
        if 0 <= value <= 100:
            log.debug("battery has changed to %s", value)
            self.battery_status_changed.emit(value)

    def notify_gear_status_changed(self, gear: str) -> None:
        self.gear_status_changed.emit(gear)

    def notify_lr_sign_status_changed(self, sign: int) -> None:
        self.lr_sign_status_changed.emit(sign)

    def notify_dist_status_changed(self, dist: float) -> None:
        """Publish a park distance, truncated to a whole number of centimetres."""
        self.pdc_status_changed.emit(int(dist))


class ICInterService:
    """The internal service used by the gamepad bridge to set gear and turn signal."""

    def __init__(self, gear: Optional[Gear], lrsign: Optional[LRSign]) -> None:
        self.gear = gear
        self.lrsign = lrsign
        self.signal_gear_inter = Signal()
        self.signal_lrsign_inter = Signal()
        self.gear_status_changed = Signal()

    def set_gear_inter(self, client: Any, gear: str) -> int:
        log.info("gear changed from gamepad: %s", gear)
        if gear in VALID_GEARS:
            self.signal_gear_inter.emit(gear)
            return REPLY_OK
        return REPLY_ERROR

    def set_lrsign_inter(self, client: Any, lrsign: int) -> None:
        """Forward a turn-signal request; no reply is sent for it."""
        log.info("LR sign changed from gamepad: %s", lrsign)
        self.signal_lrsign_inter.emit(lrsign)

    def notify_gear_status_changed(self, gear: str) -> None:
        self.gear_status_changed.emit(gear)