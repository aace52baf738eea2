"""Elements Studio navigation and reactive-synchronization core."""

from .shared.core.event_bus import EventBus

__all__ = ["EventBus"]
