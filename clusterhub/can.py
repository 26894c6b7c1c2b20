"""SocketCAN receiver for speed and distance frames and sender for gear frames."""

from __future__ import annotations

import logging
import socket
import struct
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

from .vehicle import Signal

log = logging.getLogger(__name__)

DEFAULT_INTERFACE = "can0"
GEAR_CAN_ID = 0x123
GEAR_REPEAT = 10
MAX_DATA = 8

_FRAME = struct.Struct("=IB3x8s")
_MEASUREMENTS = struct.Struct("=ff")


class CanError(OSError):
    """A CAN socket could not be opened, bound or used."""


@dataclass(frozen=True)
class CanFrame:
    """A classic CAN frame with up to eight data bytes."""

    can_id: int
    data: bytes = b""

    SIZE = _FRAME.size

    def __post_init__(self) -> None:
        if len(self.data) > MAX_DATA:
            raise ValueError(f"CAN data is limited to {MAX_DATA} bytes")

    def pack(self) -> bytes:
        return _FRAME.pack(self.can_id, len(self.data), self.data)

    @classmethod
    def unpack(cls, data: bytes) -> "CanFrame":
        if len(data) != _FRAME.size:
            raise ValueError(f"expected {_FRAME.size} bytes, got {len(data)}")
        can_id, dlc, payload = _FRAME.unpack(data)
        return cls(can_id, payload[: min(dlc, MAX_DATA)])


def decode_measurements(data: bytes) -> Tuple[float, float]:
    """Split a payload into speed (km/h, bytes 0-3) and distance (cm, bytes 4-7)."""
    padded = bytes(data[:MAX_DATA]).ljust(MAX_DATA, b"\0")
    speed, dist = _MEASUREMENTS.unpack(padded)
    return speed, dist


def ema(current: float, previous: float, factor: float) -> float:
    """Exponential moving average step."""
    return factor * current + (1 - factor) * previous


def _open_can_socket() -> socket.socket:
    try:
        return socket.socket(socket.PF_CAN, socket.SOCK_RAW, socket.CAN_RAW)
    except AttributeError as exc:
        raise CanError("SocketCAN is not available on this platform") from exc


SocketFactory = Callable[[], Any]


class _CanEndpoint:
    def __init__(
        self,
        interface: str = DEFAULT_INTERFACE,
        socket_factory: SocketFactory = _open_can_socket,
    ) -> None:
        self.interface = interface
        self._socket_factory = socket_factory
        self._sock: Any = None

    def _open(self) -> None:
        self._release()
        try:
            sock = self._socket_factory()
        except OSError as exc:
            raise CanError(f"Error while creating socket: {exc}") from exc
        try:
            sock.bind((self.interface,))
        except OSError as exc:
            sock.close()
            raise CanError(f"Error binding to {self.interface}: {exc}") from exc
        self._sock = sock

    def _release(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def _require_socket(self) -> Any:
        if self._sock is None:
            raise CanError("CAN socket is not initialized")
        return self._sock

    def initialize(self) -> None:
        self._open()

    def close(self) -> None:
        self._release()

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class Receiver(_CanEndpoint):
    """Reads measurement frames, smooths them and announces speed and distance."""

    SMOOTHING_FACTOR = 0.4

    def __init__(
        self,
        interface: str = DEFAULT_INTERFACE,
        socket_factory: SocketFactory = _open_can_socket,
    ) -> None:
        super().__init__(interface, socket_factory)
        self.speed_kmh = 0.0
        self.dist_cm = 0.0
        self.speed_received = Signal()
        self.distance_received = Signal()
        self._thread: Optional[threading.Thread] = None

    def initialize(self) -> None:
        """Open a raw CAN socket and bind it to the interface."""
        self._open()

    def close(self) -> None:
        """Close the socket, which also ends a running receive loop."""
        self._release()

    def process_frame(self, frame: CanFrame) -> Tuple[float, float]:
        """Smooth the frame's readings against the previous ones and announce them."""
        raw_speed, raw_dist = decode_measurements(frame.data)
        self.speed_kmh = ema(raw_speed, self.speed_kmh, self.SMOOTHING_FACTOR)
        self.speed_received.emit(self.speed_kmh)
        self.dist_cm = ema(raw_dist, self.dist_cm, self.SMOOTHING_FACTOR)
        self.distance_received.emit(self.dist_cm)
        log.debug(
            "CAN id %#x: speed %s, dist %s", frame.can_id, self.speed_kmh, self.dist_cm
        )
        return self.speed_kmh, self.dist_cm

    def run(self) -> None:
        """Process frames until the socket fails or is closed."""
        sock = self._require_socket()
        log.debug("listening for CAN messages on %s", self.interface)
        while True:
            try:
                raw = sock.recv(CanFrame.SIZE)
            except OSError:
                log.debug("Error reading CAN frame")
                return
            if not raw:
                return
            try:
                frame = CanFrame.unpack(raw)
            except ValueError as exc:
                log.debug("malformed CAN frame: %s", exc)
                continue
            self.process_frame(frame)

    def start(self) -> threading.Thread:
        """Run the receive loop on a background thread."""
        self._require_socket()
        thread = threading.Thread(target=self.run, daemon=True)
        self._thread = thread
        thread.start()
        return thread


class Sender(_CanEndpoint):
    """Sends frames on the CAN bus; tells the controller whether reverse is engaged."""

    def __init__(
        self,
        interface: str = DEFAULT_INTERFACE,
        socket_factory: SocketFactory = _open_can_socket,
    ) -> None:
        super().__init__(interface, socket_factory)
        self.is_gear_r = False

    def initialize(self) -> None:
        """Open a raw CAN socket and bind it to the interface."""
        self._open()

    def close(self) -> None:
        """Close the socket."""
        self._release()

    def send_message(self, can_id: int, data: bytes) -> int:
        """Send one frame, truncating data to eight bytes; return the bytes written."""
        if not data:
            log.debug("Data size is 0, no message to send.")
            return 0
        if len(data) > MAX_DATA:
            log.debug("Data size exceeds 8 bytes. Truncating to 8 bytes.")
            data = data[:MAX_DATA]
        sock = self._require_socket()
        packed = CanFrame(can_id, bytes(data)).pack()
        try:
            sent = sock.send(packed)
        except OSError as exc:
            raise CanError(f"Failed to send CAN frame with ID 0x{can_id:X}: {exc}") from exc
        if sent < len(packed):
            log.warning("Incomplete CAN frame sent. Bytes sent: %s", sent)
        else:
            log.debug("Sent CAN ID 0x%X, data %s", can_id, bytes(data).hex(" "))
        return sent

    def _broadcast_gear(self, reverse: bool) -> None:
        self.is_gear_r = reverse
        payload = bytes(7) + bytes([1 if reverse else 0])
        for _ in range(GEAR_REPEAT):
            try:
                self.send_message(GEAR_CAN_ID, payload)
            except CanError as exc:
                log.debug("%s", exc)

    def changed_gear_to_r(self) -> None:
        self._broadcast_gear(True)

    def changed_gear_to_not_r(self) -> None:
        self._broadcast_gear(False)