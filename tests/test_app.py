import struct
import threading

import pytest

from clusterhub.app import DOMAIN, INSTANCE, INSTANCE_INTER, Cluster, main
from clusterhub.can import GEAR_CAN_ID, CanFrame


class FakeSocket:
    def __init__(self, frames=()):
        self.frames = list(frames)
        self.sent = []
        self.bound = None
        self.closed = threading.Event()

    def bind(self, address):
        self.bound = address

    def send(self, data):
        self.sent.append(bytes(data))
        return len(data)

    def recv(self, size):
        if self.frames:
            return self.frames.pop(0)
        self.closed.wait(5)
        raise OSError("closed")

    def close(self):
        self.closed.set()


class Factory:
    def __init__(self, frames=()):
        self.frames = list(frames)
        self.sockets = []

    def __call__(self):
        # The receiver opens its socket first and gets the frames.
        sock = FakeSocket(self.frames if not self.sockets else ())
        self.sockets.append(sock)
        return sock


def _failing_factory():
    raise OSError("no CAN here")


@pytest.fixture
def cluster():
    factory = Factory()
    c = Cluster(interface="vcan9", socket_factory=factory)
    c.factory = factory
    c.start()
    yield c
    c.stop()


def _sender_frames(cluster):
    return [CanFrame.unpack(raw) for raw in cluster.factory.sockets[1].sent]


def test_reverse_gear_starts_pdc_and_sends_frames(cluster):
    forwarded = []
    cluster.inter_service.gear_status_changed.connect(forwarded.append)
    assert cluster.service.set_gear(None, "R") == 0
    assert cluster.gear.gear_value == "R"
    assert forwarded == ["R"]
    assert cluster.pdc.active
    frames = _sender_frames(cluster)
    assert len(frames) == 10
    assert all(f.can_id == GEAR_CAN_ID for f in frames)
    assert all(f.data == bytes(7) + b"\x01" for f in frames)


def test_leaving_reverse_stops_pdc(cluster):
    cluster.service.set_gear(None, "R")
    cluster.service.set_gear(None, "D")
    assert not cluster.pdc.active
    frames = _sender_frames(cluster)
    assert len(frames) == 20
    assert all(f.data == bytes(8) for f in frames[10:])


def test_inter_gear_reaches_gear_and_service(cluster):
    published = []
    cluster.service.gear_status_changed.connect(published.append)
    assert cluster.inter_service.set_gear_inter(None, "N") == 0
    assert cluster.gear.gear_value == "N"
    assert published == ["N"]


def test_invalid_gear_changes_nothing(cluster):
    assert cluster.service.set_gear(None, "X") == -1
    assert cluster.gear.gear_value == "P"


def test_lrsign_toggle_is_published(cluster):
    published = []
    cluster.service.lr_sign_status_changed.connect(published.append)
    cluster.inter_service.set_lrsign_inter(None, 1)
    assert cluster.lrsign.direction_value == 1
    cluster.inter_service.set_lrsign_inter(None, 1)
    assert cluster.lrsign.direction_value == 0
    assert published == [1, 0]


def test_mode_changes_theme_and_refreshes_gauge(cluster):
    refreshed = []
    cluster.gauge.outer_color_changed.connect(lambda: refreshed.append(True))
    assert cluster.service.set_mode(None, 1) == 0
    assert cluster.mode.mode_value == "#411414"
    assert refreshed == [True]
    assert cluster.gauge.mode is cluster.mode


def test_battery_value_is_published(cluster):
    published = []
    cluster.service.battery_status_changed.connect(published.append)
    cluster.battery.set_battery_value(50)
    assert published == [50]
    assert cluster.service.get_battery(None) == (50, 0)


def test_pdc_distance_is_published(cluster):
    published = []
    cluster.service.pdc_status_changed.connect(published.append)
    cluster.pdc.on_distance(42.7)
    cluster.pdc.send_dist_status()
    assert published == [42]


def test_received_distance_feeds_pdc():
    payload = struct.pack("=ff", 10.0, 50.0)
    factory = Factory([CanFrame(0x100, payload).pack()])
    c = Cluster(interface="vcan9", socket_factory=factory)
    got = threading.Event()
    c.receiver.distance_received.connect(lambda _d: got.set())
    c.start()
    try:
        assert got.wait(5)
        assert c.pdc.dist_value == c.receiver.dist_cm
        assert c.pdc.dist_value == pytest.approx(20.0)
    finally:
        c.stop()
    assert factory.sockets[0].bound == ("vcan9",)


def test_context_and_services(cluster):
    assert cluster.context["gearObject"] is cluster.gear
    assert cluster.context["speedProvider"] is cluster.speed_provider
    assert cluster.context["elapsedTime"] == 0
    assert cluster.services[(DOMAIN, INSTANCE)] is cluster.service
    assert cluster.services[(DOMAIN, INSTANCE_INTER)] is cluster.inter_service
    assert (cluster.speed_provider.min_speed, cluster.speed_provider.max_speed) == (0, 200)


def test_start_without_can_still_runs():
    c = Cluster(socket_factory=_failing_factory)
    c.start()
    try:
        assert c.running
        c.service.set_gear(None, "R")
        assert c.gear.gear_value == "R"
    finally:
        c.stop()
    assert not c.running


def test_context_manager_stops():
    with Cluster(socket_factory=Factory()) as c:
        assert c.running
    assert not c.running
    assert not c.pdc.active


def test_main_runs_for_duration():
    assert main(["--duration", "0", "--interface", "nonexistent0"]) == 0