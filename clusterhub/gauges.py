"""Arc gauges for the cluster display: battery level and engine speed."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from .vehicle import Mode, Signal

log = logging.getLogger(__name__)

TRANSPARENT = "transparent"


@dataclass(frozen=True)
class Arc:
    """One arc to draw, with angles in sixteenths of a degree."""

    x: float
    y: float
    width: float
    height: float
    start: int
    span: int
    color: str
    pen_width: int
    flat_cap: bool = True
    antialiased: bool = True


class _Notifying:
    """A property that announces changes through the owner's `<name>_changed` signal."""

    def __set_name__(self, owner: type, name: str) -> None:
        self.attr = "_" + name
        self.signal = name + "_changed"

    def __get__(self, obj: Any, objtype: Optional[type] = None) -> Any:
        if obj is None:
            return self
        return getattr(obj, self.attr)

    def _normalize(self, value: Any) -> Any:
        return value

    def __set__(self, obj: Any, value: Any) -> None:
        value = self._normalize(value)
        if getattr(obj, self.attr) == value:
            return
        setattr(obj, self.attr, value)
        getattr(obj, self.signal).emit()


class _NotifyingColor(_Notifying):
    """A colour property; names and hex codes compare case-insensitively."""

    def _normalize(self, value: Any) -> Any:
        return str(value).lower()


class _ArcGauge:
    """A two-layer arc gauge: a full background arc and a progress arc on top."""

    speedometer_size = _Notifying()
    start_angle = _Notifying()
    lowest_range = _Notifying()
    highest_range = _Notifying()
    arc_width = _Notifying()
    outer_color = _NotifyingColor()
    inner_color = _NotifyingColor()
    text_color = _NotifyingColor()
    background_color = _NotifyingColor()

    def __init__(self, highest_range: float, value: float) -> None:
        self._speedometer_size = 320.0
        self._start_angle = 50.0
        self._align_angle = 260.0
        self._lowest_range = 0.0
        self._highest_range = float(highest_range)
        self._value = float(value)
        self._arc_width = 30
        self._outer_color = "#00b890"
        self._inner_color = "#a2f2d9"
        self._text_color = "#ffffff"
        self._background_color = TRANSPARENT

        self.speedometer_size_changed = Signal()
        self.start_angle_changed = Signal()
        self.align_angle_changed = Signal()
        self.lowest_range_changed = Signal()
        self.highest_range_changed = Signal()
        self.arc_width_changed = Signal()
        self.outer_color_changed = Signal()
        self.inner_color_changed = Signal()
        self.text_color_changed = Signal()
        self.background_color_changed = Signal()
        self.update_requested = Signal()

    @property
    def align_angle(self) -> float:
        return self._align_angle

    @align_angle.setter
    def align_angle(self, angle: float) -> None:
        # Writing the align angle moves the start angle; the stored align angle stays.
        if self._start_angle == angle:
            return
        self._start_angle = angle
        self.align_angle_changed.emit()

    def _set_value(self, value: float, changed: Signal) -> None:
        if self._value == value:
            return
        self._value = value
        self.update_requested.emit()
        changed.emit()

    def _arcs(self, width: float, height: float) -> List[Arc]:
        span_range = self._highest_range - self._lowest_range
        if span_range == 0:
            raise ValueError("highest_range must differ from lowest_range")
        start_angle = self._start_angle - 20
        span_angle = -40 - self._align_angle
        aw = self._arc_width
        rect = (aw, aw, width - 2 * aw, height - 2 * aw)
        value_to_angle = ((self._value - self._lowest_range) / span_range) * span_angle
        start = int(start_angle * 16)
        background = Arc(*rect, start, int(span_angle * 16), self._inner_color, aw)
        progress = Arc(*rect, start, int(value_to_angle * 16), self._outer_color, aw)
        return [background, progress]


class BatteryGauge(_ArcGauge):
    """Battery level gauge, 0 to 100 percent, starting at half."""

    def __init__(self) -> None:
        super().__init__(highest_range=100, value=50)
        self.battery_changed = Signal()
        self.mode: Optional[Mode] = None

    @property
    def battery(self) -> float:
        return self._value

    @battery.setter
    def battery(self, value: float) -> None:
        self._set_value(value, self.battery_changed)

    def paint(self, width: float, height: float) -> List[Arc]:
        """Return the background arc and the battery level arc for this size."""
        return self._arcs(width, height)

    def attach_mode(self, mode: Mode) -> None:
        self.mode = mode
        log.debug("mode: %s", mode.mode_value)

    def reset_color(self, mode: int) -> None:
        """Ask the display to re-read the gauge colours after a mode change."""
        self.outer_color_changed.emit()
        self.inner_color_changed.emit()
        self.text_color_changed.emit()


class RpmGauge(_ArcGauge):
    """Engine speed gauge, 0 to 4000 rpm."""

    def __init__(self) -> None:
        super().__init__(highest_range=4000, value=1000)
        self.speed_changed = Signal()

    @property
    def speed(self) -> float:
        return self._value

    @speed.setter
    def speed(self, value: float) -> None:
        self._set_value(value, self.speed_changed)

    def paint(self, width: float, height: float) -> List[Arc]:
        """Return the background arc and the engine speed arc for this size."""
        return self._arcs(width, height)