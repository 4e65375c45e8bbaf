"""Event bus for agent lifecycle events."""

from .bus import BusEvent, EventBus

__all__ = ["BusEvent", "EventBus"]
