"""INA219 battery sensor access and battery percentage estimation."""

from __future__ import annotations

import logging
import math
from collections import deque
from typing import BinaryIO, Optional

from .vehicle import Signal, _Ticker

log = logging.getLogger(__name__)

I2C_BUS = "/dev/i2c-1"
INA219_ADDRESS = 0x41
REG_BUS_VOLTAGE = 0x02
REG_CURRENT = 0x04
REG_POWER = 0x03

MAX_VOLTAGE = 12.6
MIN_VOLTAGE = 9.0


def read_register(device: BinaryIO, reg: int) -> int:
    """Select a register and read its big-endian 16-bit value."""
    if device.write(bytes([reg])) != 1:
        raise OSError(f"Failed to select register: {reg}")
    data = device.read(2)
    if data is None or len(data) != 2:
        raise OSError("Failed to read data from I2C device.")
    return (data[0] << 8) | data[1]


def read_voltage(device: BinaryIO) -> float:
    """Bus voltage in volts (LSB 4 mV, low three bits are flags)."""
    return (read_register(device, REG_BUS_VOLTAGE) >> 3) * 0.004


def read_current(device: BinaryIO) -> float:
    return read_register(device, REG_CURRENT) * 0.001


def read_power(device: BinaryIO) -> float:
    return read_register(device, REG_POWER) * 0.02


def calculate_battery_percentage(voltage: float) -> int:
    """Percentage of the pack voltage range, clamped to 0..100 and rounded."""
    if voltage >= MAX_VOLTAGE:
        return 100
    if voltage <= MIN_VOLTAGE:
        return 0
    ratio = (voltage - MIN_VOLTAGE) / (MAX_VOLTAGE - MIN_VOLTAGE)
    return math.floor(ratio * 100 + 0.5)


def convert_to_percentage(voltage: float) -> int:
    """Percentage of the pack voltage range, truncated and not clamped."""
    return int((voltage - MIN_VOLTAGE) / (MAX_VOLTAGE - MIN_VOLTAGE) * 100.0)


class BatteryManager:
    """Polls the battery voltage and publishes the percentage when it changes."""

    def __init__(
        self,
        device: Optional[BinaryIO] = None,
        interval: float = 1.0,
        autostart: bool = True,
    ) -> None:
        self.i2c_device = I2C_BUS
        self.i2c_address = 0x40
        self.battery_percentage = 0
        self.battery_percentage_changed = Signal()
        self._device = device
        self._timer = _Ticker(interval, self.update_battery)
        if autostart and self.init():
            self._timer.start()

    def init(self) -> bool:
        return True

    def stop(self) -> None:
        self._timer.stop()

    def _read_voltage(self) -> float:
        buffer = bytes(2)
        if self._device is not None:
            buffer = self._device.read(2)
            if buffer is None or len(buffer) != 2:
                log.warning("Failed to read voltage")
                return -1.0
        raw = (buffer[0] << 8) | buffer[1]
        return raw * 0.001

    def update_battery(self) -> None:
        voltage = self._read_voltage()
        if voltage < 0:
            return
        percentage = convert_to_percentage(voltage)
        if percentage != self.battery_percentage:
            self.battery_percentage = percentage
            self.battery_percentage_changed.emit(percentage)
        log.debug("Voltage: %s -> %s%%", voltage, percentage)


class BatterySmoother:
    """Moving average of voltage readings; announces the percentage on large moves."""

    def __init__(self, window: int = 10, threshold: float = 2.0) -> None:
        self.window: deque[float] = deque(maxlen=window)
        self.threshold = threshold
        self.previous = 0.0
        self.average = 100.0
        self.percentage_changed = Signal()

    def push(self, value: float) -> int:
        """Add a voltage reading and return the smoothed percentage."""
        self.window.append(value)
        self.average = sum(self.window) / len(self.window)
        percentage = calculate_battery_percentage(self.average)
        if abs(percentage - self.previous) >= self.threshold:
            self.previous = percentage
            self.percentage_changed.emit(percentage)
        return percentage