# clusterhub

The core of a vehicle instrument cluster service. It has these parts:

- **Vehicle state** (`clusterhub.vehicle`)
  - `Gear`, `Mode`, `LRSign`, `Battery` and `Speed` hold the vehicle state.
  - `Pdc` is the park-distance controller.
  - They are linked by small `Signal` objects, which offer `connect`, `disconnect` and `emit`.
  - `Gear` emits `gear_r` when the gear becomes `"R"` and `gear_not_r` for any other gear.
  - `LRSign.send_lrsign` turns the indicator off when the active direction is requested again.
  - While `Pdc` is started, it re-emits the last distance every 0.3 s.
- **Providers** (`clusterhub.providers`)
  - `Clock.current_time()` returns the time as `HH:MM:SS`.
  - `SpeedProvider.generate_speed()` picks a random integer between `min_speed` and `max_speed`.
  - Both run on a background timer with `start` and `stop`.
- **Power** (`clusterhub.power`)
  - `read_register`, `read_voltage`, `read_current` and `read_power` read an INA219-style sensor through a file-like device object that you pass in.
  - `calculate_battery_percentage` maps a voltage onto 0–100 %, clamped and rounded. The scale runs from 9.0 V (0 %) to 12.6 V (100 %).
  - `convert_to_percentage` uses the same scale but truncates the result and does not clamp it.
  - `BatteryManager.update_battery()` reads two bytes from its device and emits `battery_percentage_changed` when the percentage changes. With no device, it reads a raw value of zero.
  - `BatterySmoother.push()` keeps a moving average over the last 10 readings. It emits `percentage_changed` when the percentage has moved by at least 2 since the last emission.
- **Services** (`clusterhub.services`)
  - `ICService` handles gear, mode and battery requests and fires status-changed signals.
  - `ICInterService` handles gear and turn-signal requests from the gamepad bridge.
  - Request methods return `0` on success and `-1` on failure.
  - `ICService.get_battery` returns a `(value, 0)` pair.
  - `ICInterService.set_lrsign_inter` returns nothing.
- **CAN** (`clusterhub.can`)
  - `CanFrame` packs and unpacks raw SocketCAN frames.
  - `decode_measurements` splits a payload into a speed float (bytes 0–3) and a distance float (bytes 4–7).
  - `Receiver` smooths those values with `ema`, using a factor of 0.4, and emits `speed_received` and `distance_received`.
  - `Sender.send_message` writes a frame and truncates the data to 8 bytes.
  - `Sender.changed_gear_to_r` and `Sender.changed_gear_to_not_r` each send the reverse flag 10 times on ID `0x123`.
  - Socket failures raise `CanError`.
- **Gauges** (`clusterhub.gauges`)
  - `BatteryGauge` (0–100) and `RpmGauge` (0–4000) return the arcs for a given size from `paint(width, height)`.
  - The result is two `Arc` values, a background and a progress arc, with angles in sixteenths of a degree.
- **App** (`clusterhub.app`)
  - `Cluster` builds all of the above and connects them.
  - It also keeps a `context` dictionary of the objects a display would bind to, plus the `elapsedTime` counter.

## Installing

```
pip install .
pip install .[test]    # with pytest
```

## Running

```
clusterhub [--interface can0] [--duration SECONDS] [-v]
```

This starts a `Cluster` and runs until you interrupt it, or until `--duration` seconds have passed. The `-v` flag turns on debug logging.

The CAN receiver and sender bind to the given interface. If SocketCAN or the interface is not available, a warning is logged and the rest keeps running.

## Example

```python
from clusterhub.vehicle import Gear, Pdc

gear = Gear()
pdc = Pdc()
gear.gear_r.connect(pdc.start)
gear.gear_not_r.connect(pdc.stop)

gear.receive_gear("R")   # starts periodic distance reports
gear.receive_gear("D")   # stops them
```

```python
from clusterhub.power import calculate_battery_percentage

calculate_battery_percentage(12.6)  # 100
calculate_battery_percentage(9.0)   # 0
```

## What it does not do

- **No display.** The package draws nothing on screen. The gauges only compute arc geometry, and `Cluster.context` only holds values for a display to read.
- **No network transport for the services.** `ICService` and `ICInterService` are plain Python objects. `Cluster.services` maps their domain and instance names to them, but nothing exposes them to remote clients.
- **No opening of the I2C bus.** The `clusterhub` command does not open `/dev/i2c-1`. Battery readings come only from a device object you pass to `BatteryManager` or to `Cluster`.