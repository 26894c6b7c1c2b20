"""The instrument cluster application: builds the vehicle objects and wires them together."""

from __future__ import annotations

import argparse
import logging
import threading
import time
from typing import Any, BinaryIO, Callable, Dict, Optional, Sequence, Tuple

from .can import DEFAULT_INTERFACE, CanError, Receiver, Sender
from .gauges import BatteryGauge
from .power import BatteryManager, BatterySmoother
from .providers import Clock, SpeedProvider
from .services import ICInterService, ICService
from .vehicle import LRSign, Battery, Gear, Mode, Pdc, _Ticker

log = logging.getLogger(__name__)

DOMAIN = "local"
INSTANCE = "commonapi.IC_service"
INSTANCE_INTER = "commonapi.IC_service_inter"

MIN_SPEED = 0
MAX_SPEED = 200

ELAPSED_INTERVAL = 0.5
BATTERY_INTERVAL = 1.0


class Cluster:
    """All cluster components, connected the way the display expects them."""

    def __init__(
        self,
        interface: str = DEFAULT_INTERFACE,
        socket_factory: Optional[Callable[[], Any]] = None,
        battery_device: Optional[BinaryIO] = None,
        voltage_source: Optional[Callable[[], float]] = None,
    ) -> None:
        can_kwargs: Dict[str, Any] = {"interface": interface}
        if socket_factory is not None:
            can_kwargs["socket_factory"] = socket_factory

        self.gear = Gear()
        self.battery = Battery()
        self.mode = Mode()
        self.lrsign = LRSign()
        self.pdc = Pdc()
        self.service = ICService(self.gear, self.battery)
        self.inter_service = ICInterService(self.gear, self.lrsign)
        self.clock = Clock()
        self.receiver = Receiver(**can_kwargs)
        self.sender = Sender(**can_kwargs)
        self.battery_manager = BatteryManager(device=battery_device, autostart=False)
        self.speed_provider = SpeedProvider()
        self.gauge = BatteryGauge()
        self.smoother = BatterySmoother()

        self.battery.set_service(self.service)
        self.gear.set_service(self.service)

        self.services: Dict[Tuple[str, str], Any] = {
            (DOMAIN, INSTANCE): self.service,
            (DOMAIN, INSTANCE_INTER): self.inter_service,
        }

        self._wire()

        self.speed_provider.set_min_speed(MIN_SPEED)
        self.speed_provider.set_max_speed(MAX_SPEED)
        self.gauge.attach_mode(self.mode)

        self.context: Dict[str, Any] = {
            "gearObject": self.gear,
            "batteryObject": self.battery,
            "modeObject": self.mode,
            "signObject": self.lrsign,
            "batteryManager": self.battery_manager,
            "Clock": self.clock,
            "Receiver": self.receiver,
            "speedProvider": self.speed_provider,
        }

        self._voltage_source = voltage_source
        self._started_at: Optional[float] = None
        self._receiver_thread: Optional[threading.Thread] = None
        self._elapsed_ticker = _Ticker(ELAPSED_INTERVAL, self._update_elapsed)
        self._battery_ticker = _Ticker(BATTERY_INTERVAL, self.battery_manager.update_battery)
        self._voltage_ticker = _Ticker(BATTERY_INTERVAL, self._sample_voltage)
        self.running = False

    def _wire(self) -> None:
        service, inter = self.service, self.inter_service

        service.signal_gear.connect(self.gear.receive_gear)
        service.signal_start.connect(self.gear.client_connected_signal)
        service.signal_gear.connect(inter.notify_gear_status_changed)
        service.signal_mode.connect(self.mode.receive_mode)
        self.lrsign.broadcast_direction.connect(service.notify_lr_sign_status_changed)

        inter.signal_gear_inter.connect(self.gear.receive_gear)
        inter.signal_lrsign_inter.connect(self.lrsign.send_lrsign)
        inter.signal_gear_inter.connect(service.notify_gear_status_changed)

        self.receiver.distance_received.connect(self.pdc.on_distance)
        self.gear.gear_r.connect(self.pdc.start)
        self.gear.gear_not_r.connect(self.pdc.stop)
        self.gear.gear_r.connect(self.sender.changed_gear_to_r)
        self.gear.gear_not_r.connect(self.sender.changed_gear_to_not_r)
        self.pdc.pdc_value_changed.connect(service.notify_dist_status_changed)

        service.signal_mode.connect(self.gauge.reset_color)
        self.smoother.percentage_changed.connect(self._on_battery_percentage)

    def _on_battery_percentage(self, percentage: int) -> None:
        self.gauge.battery = percentage

    def _sample_voltage(self) -> None:
        if self._voltage_source is None:
            return
        percentage = self.smoother.push(self._voltage_source())
        self.context["battery_value"] = percentage
        self.battery.set_battery_value(percentage)

    def _update_elapsed(self) -> None:
        if self._started_at is not None:
            self.context["elapsedTime"] = int(time.monotonic() - self._started_at)

    def start(self) -> None:
        """Open the CAN endpoints and start every periodic task."""
        if self.running:
            return
        self._started_at = time.monotonic()
        self.context["elapsedTime"] = 0
        self._elapsed_ticker.start()

        try:
            self.receiver.initialize()
            self._receiver_thread = self.receiver.start()
        except CanError as exc:
            log.warning("CAN receiver unavailable: %s", exc)
        try:
            self.sender.initialize()
        except CanError as exc:
            log.warning("CAN sender unavailable: %s", exc)

        self.clock.start()
        self.speed_provider.start()
        if self.battery_manager.init():
            self._battery_ticker.start()
        if self._voltage_source is not None:
            self._voltage_ticker.start()
        self.running = True
        log.info("Successfully Registered Service!")

    def stop(self) -> None:
        """Stop the periodic tasks and close the CAN endpoints."""
        self._elapsed_ticker.stop()
        self._battery_ticker.stop()
        self._voltage_ticker.stop()
        self.clock.stop()
        self.speed_provider.stop()
        self.pdc.stop()
        self.receiver.close()
        self.sender.close()
        thread, self._receiver_thread = self._receiver_thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)
        self.running = False

    def __enter__(self) -> "Cluster":
        self.start()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.stop()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the cluster until interrupted or for a fixed time."""
    parser = argparse.ArgumentParser(prog="clusterhub", description=__doc__)
    parser.add_argument("--interface", default=DEFAULT_INTERFACE, help="CAN interface name")
    parser.add_argument(
        "--duration", type=float, default=None, help="seconds to run before exiting"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    cluster = Cluster(interface=args.interface)
    cluster.start()
    try:
        threading.Event().wait(args.duration)
    except KeyboardInterrupt:
        pass
    finally:
        cluster.stop()
    return 0