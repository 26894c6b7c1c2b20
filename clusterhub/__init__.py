"""Instrument cluster service core: vehicle state, CAN frames, battery estimation and gauge geometry."""

__version__ = "1.0.0"
__all__ = ["app", "can", "gauges", "power", "providers", "services", "vehicle"]