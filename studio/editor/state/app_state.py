"""Application Shell State.

Holds the shell-level reactive fields: readiness, the global navigation
indicator, the open document and the creation dialog.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

from fletx.core import Reactive, RxBool, RxList, RxStr

from studio.shared.core import events
from studio.shared.core.event_bus import EventBus, EventPayload
from studio.shared.domain.models import DocumentRecord

MAX_LOG_ENTRIES = 200


class AppState:
    """Reactive State for the Application Shell.

    Fields are FletXr reactive primitives; watchers registered against them
    fire synchronously on every change.
    """

    def __init__(self, event_bus: EventBus, default_category: str = "templates") -> None:
        """Initialize application state.

        Args:
            event_bus: The shared event bus for cross-cutting concerns
            default_category: Initial creation dialog category
        """
        self.bus = event_bus

        self.is_ready: RxBool = RxBool(False)
        self.is_navigating: RxBool = RxBool(False)
        self.status_text: RxStr = RxStr("Initializing...")

        # Active document (None while on Home)
        self.current_element: Reactive[Optional[DocumentRecord]] = Reactive(None)

        # Creation dialog
        self.show_creation_dialog: RxBool = RxBool(False)
        self.creation_dialog_category: RxStr = RxStr(default_category)

        # Log entries (each is a dict: {message, level, ts})
        self.logs: RxList[Dict[str, Any]] = RxList([])

        self._started = False

    async def initialize(self) -> None:
        """Bind to EventBus events. Safe to call more than once."""
        if self._started:
            return
        await self.bus.subscribe(events.TOPIC_LOGS_EVENT, self._handle_log_event)
        self._started = True

    # --- Public Actions ---

    @property
    def is_editing_element(self) -> bool:
        return self.current_element.value is not None

    def set_is_ready(self, ready: bool) -> None:
        self.is_ready.value = bool(ready)

    def set_is_navigating(self, value: bool) -> None:
        self.is_navigating.value = bool(value)

    def set_status(self, text: str) -> None:
        self.status_text.value = str(text)

    def set_current_element(self, element: Optional[DocumentRecord]) -> None:
        self.current_element.value = element

    def set_show_creation_dialog(self, show: bool) -> None:
        self.show_creation_dialog.value = bool(show)

    def set_creation_dialog_category(self, category: str) -> None:
        self.creation_dialog_category.value = category

    async def publish(self, topic: str, payload: EventPayload) -> None:
        await self.bus.publish(topic, payload)

    async def push_log(self, message: str, level: str = "info") -> None:
        """Add a log message and broadcast it."""
        await self.publish(events.TOPIC_LOGS_EVENT, events.create_logs_event(message, level))

    # --- Event Handlers ---

    async def _handle_log_event(self, payload: EventPayload) -> None:
        if not payload:
            return
        entry = {
            "message": payload.get("message", ""),
            "level": payload.get("level", "info"),
            "ts": payload.get("ts", time.time()),
        }
        self.logs.value = (self.logs.value + [entry])[-MAX_LOG_ENTRIES:]
