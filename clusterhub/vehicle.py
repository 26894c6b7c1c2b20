"""Vehicle state objects shown on the cluster: gear, mode, turn signal, battery, speed, PDC."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional, Protocol

log = logging.getLogger(__name__)


class Signal:
    """A minimal observer list: slots are called in connection order on emit."""

    def __init__(self) -> None:
        self._slots: list[Callable[..., Any]] = []

    def connect(self, slot: Callable[..., Any]) -> None:
        self._slots.append(slot)

    def disconnect(self, slot: Callable[..., Any]) -> None:
        """Remove a slot; raises ValueError if it was never connected."""
        self._slots.remove(slot)

    def emit(self, *args: Any) -> None:
        for slot in list(self._slots):
            slot(*args)

    def __len__(self) -> int:
        return len(self._slots)


class _Ticker:
    """Calls a function every `interval` seconds on a background thread."""

    def __init__(self, interval: float, callback: Callable[[], Any]) -> None:
        self.interval = interval
        self._callback = callback
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    @property
    def active(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the ticker, restarting it if it is already running."""
        self.stop()
        with self._lock:
            event = threading.Event()
            thread = threading.Thread(target=self._run, args=(event,), daemon=True)
            self._stop_event = event
            self._thread = thread
            thread.start()

    def stop(self) -> None:
        with self._lock:
            event, thread = self._stop_event, self._thread
            self._stop_event = None
            self._thread = None
        if event is not None:
            event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval):
            self._callback()


class _GearService(Protocol):
    def notify_gear_status_changed(self, gear: str) -> None: ...


class _BatteryService(Protocol):
    def notify_battery_status_changed(self, value: int) -> None: ...


class Gear:
    """The selected gear; starts in park."""

    def __init__(self) -> None:
        self.gear_value = "P"
        self._service: Optional[_GearService] = None
        self.gear_value_changed = Signal()
        self.client_connected = Signal()
        self.gear_r = Signal()
        self.gear_not_r = Signal()

    def set_service(self, service: _GearService) -> None:
        self._service = service

    def receive_gear(self, command: str) -> None:
        """Take a gear set by a remote client."""
        self.gear_value = command
        self.gear_value_changed.emit()
        if command == "R":
            self.gear_r.emit()
        else:
            self.gear_not_r.emit()

    def send_gear(self, gear: str) -> None:
        """Take a gear chosen on the display and publish it through the service."""
        if self._service is None:
            raise RuntimeError("no service attached to publish the gear")
        self.gear_value = gear
        self.gear_value_changed.emit()
        self._service.notify_gear_status_changed(gear)

    def client_connected_signal(self) -> None:
        self.client_connected.emit()


_MODE_COLORS = {0: "#A2F2D9", 1: "#411414", 2: "#120102"}


class Mode:
    """The display theme colour, selected by a numeric mode."""

    def __init__(self) -> None:
        self.mode_value = _MODE_COLORS[0]
        self.mode_value_changed = Signal()

    def receive_mode(self, signal: int) -> None:
        color = _MODE_COLORS.get(signal)
        if color is None:
            log.debug("MODE %s", self.mode_value)
            return
        self.mode_value = color
        log.debug("mode value: %s", color)
        self.mode_value_changed.emit()


class LRSign:
    """Turn indicator direction; requesting the active direction again turns it off."""

    def __init__(self) -> None:
        self.direction_value = 0
        self.direction_value_changed = Signal()
        self.broadcast_direction = Signal()

    def send_lrsign(self, direction: int) -> None:
        if direction == self.direction_value:
            direction = 0
        self.direction_value = direction
        self.direction_value_changed.emit()
        self.broadcast_direction.emit(self.direction_value)


class Battery:
    """Battery level in percent as shown on the cluster."""

    def __init__(self) -> None:
        self.battery_value = 77
        self._service: Optional[_BatteryService] = None
        self.battery_value_changed = Signal()

    def set_service(self, service: _BatteryService) -> None:
        self._service = service

    def set_battery_value(self, value: int) -> None:
        self.battery_value = value
        self.battery_value_changed.emit()
        self._publish()

    def update_from_ui(self, value: int) -> None:
        """Set the value from the display without notifying local listeners."""
        self.battery_value = value
        self._publish()

    def _publish(self) -> None:
        log.debug("battery %s", self.battery_value)
        if self._service is not None:
            self._service.notify_battery_status_changed(self.battery_value)
        else:
            log.debug("no service attached for battery updates")


class Speed:
    """A test speed that climbs by 5 and wraps back to 0 after 100."""

    def __init__(self) -> None:
        self.speed = 0
        self.speed_changed = Signal()

    def update_speed(self) -> None:
        self.speed = (self.speed + 5) % 105
        self.speed_changed.emit(self.speed)


class Pdc:
    """Park distance control: periodically republishes the last distance while active."""

    def __init__(self, interval: float = 0.3) -> None:
        self.dist_value = 0.0
        self.pdc_value_changed = Signal()
        self._timer = _Ticker(interval, self.send_dist_status)

    @property
    def active(self) -> bool:
        return self._timer.active

    def start(self) -> None:
        if not self._timer.active:
            self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    def send_dist_status(self) -> None:
        self.pdc_value_changed.emit(self.dist_value)

    def on_distance(self, dist: float) -> None:
        self.dist_value = dist