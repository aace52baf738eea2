"""Debug tracing with per-component capture flags.

Keeps a capped, in-memory trace of editor actions to help reconstruct the
steps that led to a bug report.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

from fletx.core import RxDict, RxList

CAPTURE_KEYS = ("treeNav", "topBar", "editor", "comments", "versions", "zoom")

# Action type prefix -> capture key
PREFIX_COMPONENTS = {
    "tree": "treeNav",
    "topbar": "topBar",
    "editor": "editor",
    "comment": "comments",
    "version": "versions",
}


def component_for_action(action_type: str) -> str:
    prefix = action_type.split(":", 1)[0] if ":" in action_type else "editor"
    return PREFIX_COMPONENTS.get(prefix, "editor")


class DebugState:
    def __init__(self, max_traces: int = 1000) -> None:
        self.max_traces = max_traces
        # All capture flags disabled by default
        self.capture: RxDict[bool] = RxDict({key: False for key in CAPTURE_KEYS})
        self.traces: RxList[Dict[str, Any]] = RxList([])
        self.started_at = time.time() * 1000

    def set_capture_flags(self, flags: Optional[Dict[str, bool]]) -> None:
        self.capture.value = {**self.capture.value, **{str(k): bool(v) for k, v in (flags or {}).items()}}

    def set_capture_for(self, key: str, enabled: bool) -> None:
        self.capture.value = {**self.capture.value, str(key): bool(enabled)}

    def enable_from_param(self, value: Optional[str]) -> None:
        """Enable capture from a ``debug=treeNav,comments`` style value (``all`` enables everything)."""
        keys = [part.strip() for part in (value or "").split(",") if part.strip()]
        if "all" in keys:
            keys = list(self.capture.value.keys())
        for key in keys:
            self.set_capture_for(key, True)

    def add_trace(self, component: str, action_type: str, meta: Optional[Dict[str, Any]] = None) -> None:
        key = str(component)
        if not self.capture.value.get(key):
            return
        entry = {
            "at": time.time() * 1000,
            "component": key,
            "type": str(action_type or ""),
            "meta": dict(meta or {}),
        }
        traces = self.traces.value + [entry]
        self.traces.value = traces[-self.max_traces:]

    def clear_traces(self) -> None:
        self.traces.value = []
        self.started_at = time.time() * 1000

    def export_traces(self) -> Dict[str, Any]:
        """Serializable snapshot of traces and flags."""
        return {
            "startedAt": self.started_at,
            "exportedAt": time.time() * 1000,
            "flags": dict(self.capture.value),
            "count": len(self.traces.value),
            "traces": list(self.traces.value),
        }
