"""Editor State.

Tracks the active document id, the canvas selection and the last recorded
actions. ``last_user_action`` is kept apart from ``last_action`` so that
programmatic updates never mask the user's original intent.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fletx.core import Reactive, RxBool

from studio.shared.core import events
from studio.shared.core.event_bus import EventBus
from studio.shared.domain.models import ActionEntry
from .debug_state import DebugState, component_for_action

logger = logging.getLogger(__name__)


class EditorState:
    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        debug: Optional[DebugState] = None,
        log_limit: int = 500,
    ) -> None:
        self.bus = event_bus
        self.debug = debug
        self.log_limit = log_limit

        self.current_element_id: Reactive[Optional[str]] = Reactive(None)

        # Canvas selection: element id plus optional slot name
        self.editing_element: Reactive[Optional[str]] = Reactive(None)
        self.current_slot: Reactive[Optional[str]] = Reactive(None)
        self.toolbar_visible: RxBool = RxBool(False)

        self.last_action: Reactive[Optional[ActionEntry]] = Reactive(None)
        self.last_user_action: Reactive[Optional[ActionEntry]] = Reactive(None)
        self.debug_logs: List[ActionEntry] = []

    def set_current_element_id(self, element_id: Optional[str]) -> None:
        self.current_element_id.value = element_id or None

    def select(self, element_id: Optional[str], slot: Optional[str] = None) -> None:
        self.current_slot.value = slot if element_id else None
        self.editing_element.value = element_id or None

    def clear_selection(self) -> None:
        self.select(None)

    def show_toolbar(self, element_id: str) -> None:
        if not self.toolbar_visible.value:
            self.toolbar_visible.value = True
            self.set_last_action("editor:toolbar:show", {"id": element_id})

    def hide_toolbar(self) -> None:
        if self.toolbar_visible.value:
            self.toolbar_visible.value = False
            self.set_last_action("editor:toolbar:hide")

    def set_last_action(
        self,
        action_type: str,
        meta: Optional[Dict[str, Any]] = None,
        user: bool = False,
    ) -> ActionEntry:
        """Record an action and forward it to the debug trace."""
        entry = ActionEntry(type=str(action_type or ""), meta=dict(meta or {}), user=user)
        self.last_action.value = entry
        if user:
            self.last_user_action.value = entry
            self._publish_user_action(entry)

        self.debug_logs.append(entry)
        if len(self.debug_logs) > self.log_limit:
            del self.debug_logs[: len(self.debug_logs) - self.log_limit]

        if self.debug is not None:
            self.debug.add_trace(component_for_action(entry.type), entry.type, {**entry.meta, "user": user})
        return entry

    def set_user_action(self, action_type: str, meta: Optional[Dict[str, Any]] = None) -> ActionEntry:
        return self.set_last_action(action_type, meta, user=True)

    def export_debug_logs(self) -> List[Dict[str, Any]]:
        return [entry.model_dump() for entry in self.debug_logs]

    def _publish_user_action(self, entry: ActionEntry) -> None:
        if self.bus is None:
            return
        self.bus.publish_nowait(events.TOPIC_USER_ACTION, events.create_user_action_event(entry.type, entry.meta))
