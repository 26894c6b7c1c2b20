"""Periodic value providers for the display: wall clock and a random test speed."""

from __future__ import annotations

import random
from datetime import datetime
from typing import Callable, Optional

from .vehicle import Signal, _Ticker


class Clock:
    """Reports the current time and announces a change every second while running."""

    def __init__(
        self,
        interval: float = 1.0,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._now = now
        self.time_changed = Signal()
        self._timer = _Ticker(interval, self.update_time)

    def current_time(self) -> str:
        return self._now().strftime("%H:%M:%S")

    def update_time(self) -> None:
        self.time_changed.emit()

    def start(self) -> None:
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()


class SpeedProvider:
    """Produces a uniformly random speed between min and max on every tick."""

    def __init__(
        self,
        interval: float = 1.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.speed_value = 0
        self.min_speed = 0
        self.max_speed = 0
        self._rng = rng if rng is not None else random.Random()
        self.speed_changed = Signal()
        self.min_speed_changed = Signal()
        self.max_speed_changed = Signal()
        self._timer = _Ticker(interval, self.generate_speed)

    def set_min_speed(self, min_speed: int) -> None:
        if min_speed != self.min_speed:
            self.min_speed = min_speed
            self.min_speed_changed.emit()

    def set_max_speed(self, max_speed: int) -> None:
        if max_speed != self.max_speed:
            self.max_speed = max_speed
            self.max_speed_changed.emit()

    def generate_speed(self) -> None:
        """Pick a new speed if the range is valid; always announce a change."""
        if self.min_speed < self.max_speed:
            self.speed_value = self._rng.randint(self.min_speed, self.max_speed)
        self.speed_changed.emit()

    def start(self) -> None:
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()