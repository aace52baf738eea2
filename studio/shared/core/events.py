"""Canonical event definitions for Elements Studio."""

from __future__ import annotations

import time
from typing import Any, Dict, Literal

from .event_bus import EventPayload

# Inbound (cross-boundary) topics
TOPIC_HOST_MESSAGE = "host.message"
TOPIC_ADDRESS_CHANGED = "address.hashchange"
TOPIC_USER_ACTION = "user.action"

# Navigation lifecycle
TOPIC_NAVIGATION_START = "navigation.start"
TOPIC_NAVIGATION_END = "navigation.end"
TOPIC_FRAGMENT_PUSHED = "navigation.fragment_pushed"

TOPIC_LOGS_EVENT = "logs.event"


def create_host_message_event(data: Any) -> EventPayload:
    """Wrap a raw ``postMessage`` body coming from the embedding host."""
    return {"data": data}


def create_address_changed_event(fragment: str) -> EventPayload:
    """Create a browser-level fragment change event (back/forward, manual edit)."""
    return {"fragment": fragment}


def create_user_action_event(action: str, meta: Dict[str, Any] | None = None) -> EventPayload:
    result: EventPayload = {"action": action}
    if meta:
        result["meta"] = dict(meta)
    return result


def create_navigation_event(fragment: str, mode: str, token: int) -> EventPayload:
    """Create a navigation start/end event.

    Args:
        fragment: Normalized fragment being applied
        mode: Route mode (``editor``, ``create`` or ``gallery``)
        token: Navigation token the event belongs to
    """
    return {
        "fragment": fragment,
        "mode": mode,
        "token": token,
    }


def create_fragment_pushed_event(fragment: str, host_notified: bool) -> EventPayload:
    return {
        "fragment": fragment,
        "host_notified": host_notified,
    }


def create_logs_event(
    message: str,
    level: Literal["info", "warning", "error", "success"] = "info",
    topic: str | None = None,
) -> EventPayload:
    """Create a Log event."""
    return {
        "message": message,
        "level": level,
        "topic": topic,
        "ts": time.time(),
    }
