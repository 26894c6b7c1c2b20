import random
import threading
from datetime import datetime

from clusterhub.providers import Clock, SpeedProvider


def test_clock_formats_time():
    clock = Clock(now=lambda: datetime(2024, 1, 2, 7, 8, 9))
    assert clock.current_time() == "07:08:09"


def test_clock_update_time_emits():
    clock = Clock()
    seen = []
    clock.time_changed.connect(lambda: seen.append(True))
    clock.update_time()
    assert seen == [True]


def test_clock_ticks_while_running():
    clock = Clock(interval=0.01)
    ticked = threading.Event()
    clock.time_changed.connect(ticked.set)
    clock.start()
    try:
        assert ticked.wait(2.0)
    finally:
        clock.stop()


def test_set_min_speed_emits_only_on_change():
    provider = SpeedProvider()
    seen = []
    provider.min_speed_changed.connect(lambda: seen.append(True))
    provider.set_min_speed(10)
    provider.set_min_speed(10)
    assert provider.min_speed == 10
    assert seen == [True]


def test_set_max_speed_emits_only_on_change():
    provider = SpeedProvider()
    seen = []
    provider.max_speed_changed.connect(lambda: seen.append(True))
    provider.set_max_speed(200)
    provider.set_max_speed(200)
    assert provider.max_speed == 200
    assert seen == [True]


def test_generate_speed_stays_in_range():
    provider = SpeedProvider(rng=random.Random(1))
    provider.set_min_speed(0)
    provider.set_max_speed(200)
    values = []
    for _ in range(200):
        provider.generate_speed()
        values.append(provider.speed_value)
    assert all(0 <= v <= 200 for v in values)
    assert len(set(values)) > 1


def test_generate_speed_invalid_range_keeps_value_but_emits():
    provider = SpeedProvider(rng=random.Random(3))
    provider.set_min_speed(50)
    provider.set_max_speed(50)
    seen = []
    provider.speed_changed.connect(lambda: seen.append(True))
    provider.generate_speed()
    assert provider.speed_value == 0
    assert seen == [True]


def test_speed_provider_ticks_while_running():
    provider = SpeedProvider(interval=0.01, rng=random.Random(0))
    provider.set_max_speed(200)
    ticked = threading.Event()
    provider.speed_changed.connect(ticked.set)
    provider.start()
    try:
        assert ticked.wait(2.0)
    finally:
        provider.stop()
    assert 0 <= provider.speed_value <= 200