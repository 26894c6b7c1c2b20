import pytest

from clusterhub.gauges import Arc, BatteryGauge, RpmGauge
from clusterhub.vehicle import Mode


def _counter(signal):
    calls = []
    signal.connect(lambda *a: calls.append(a))
    return calls


def test_battery_gauge_defaults():
    g = BatteryGauge()
    assert g.speedometer_size == 320
    assert g.start_angle == 50
    assert g.align_angle == 260
    assert g.lowest_range == 0
    assert g.highest_range == 100
    assert g.battery == 50
    assert g.arc_width == 30
    assert g.outer_color == "#00b890"
    assert g.inner_color == "#a2f2d9"
    assert g.text_color == "#ffffff"
    assert g.background_color == "transparent"


def test_rpm_gauge_defaults():
    g = RpmGauge()
    assert g.highest_range == 4000
    assert g.speed == 1000


def test_paint_angles_and_rect():
    g = BatteryGauge()
    background, progress = g.paint(400, 300)
    assert background.start == 480
    assert background.span == -4800
    assert progress.start == background.start
    assert (background.x, background.y) == (30, 30)
    assert background.width == 400 - 60
    assert background.height == 300 - 60
    assert background.color == g.inner_color
    assert progress.color == g.outer_color
    assert progress.pen_width == g.arc_width


def test_progress_is_fraction_of_span():
    g = BatteryGauge()
    g.battery = 100
    background, progress = g.paint(320, 320)
    assert progress.span == background.span
    g.battery = 0
    _, progress = g.paint(320, 320)
    assert progress.span == 0


def test_rpm_progress_fraction():
    g = RpmGauge()
    g.speed = 2000
    background, progress = g.paint(320, 320)
    assert progress.span == background.span // 2


def test_paint_zero_range_raises():
    g = BatteryGauge()
    g.highest_range = 0
    with pytest.raises(ValueError):
        g.paint(100, 100)


def test_battery_change_emits_once_and_requests_update():
    g = BatteryGauge()
    changed = _counter(g.battery_changed)
    updates = _counter(g.update_requested)
    g.battery = 50
    assert changed == [] and updates == []
    g.battery = 70
    assert len(changed) == 1 and len(updates) == 1
    assert g.battery == 70


def test_property_setters_only_emit_on_change():
    g = RpmGauge()
    calls = _counter(g.arc_width_changed)
    g.arc_width = 30
    g.arc_width = 12
    g.arc_width = 12
    assert len(calls) == 1
    assert g.arc_width == 12


def test_color_comparison_ignores_case():
    g = BatteryGauge()
    calls = _counter(g.outer_color_changed)
    g.outer_color = "#00B890"
    assert calls == []
    g.outer_color = "#ABCDEF"
    assert g.outer_color == "#abcdef"
    assert len(calls) == 1


def test_align_angle_writes_start_angle():
    g = BatteryGauge()
    align_calls = _counter(g.align_angle_changed)
    start_calls = _counter(g.start_angle_changed)
    g.align_angle = 90
    assert g.start_angle == 90
    assert g.align_angle == 260
    assert len(align_calls) == 1
    assert start_calls == []


def test_reset_color_emits_colour_signals():
    g = BatteryGauge()
    outer = _counter(g.outer_color_changed)
    inner = _counter(g.inner_color_changed)
    text = _counter(g.text_color_changed)
    background = _counter(g.background_color_changed)
    g.reset_color(1)
    assert (len(outer), len(inner), len(text), len(background)) == (1, 1, 1, 0)


def test_attach_mode_keeps_colours():
    g = BatteryGauge()
    mode = Mode()
    g.attach_mode(mode)
    mode.receive_mode(1)
    assert g.mode is mode
    assert g.inner_color == "#a2f2d9"


def test_paint_arcs_are_immutable():
    g = BatteryGauge()
    background, _ = g.paint(320, 320)
    original_span = background.span
    with pytest.raises(AttributeError):
        background.span = 5  # type: ignore[misc]
    assert background.span == original_span
    assert isinstance(background, Arc)