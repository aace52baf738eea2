"""Comment panel interaction state (hover, selection, panel visibility)."""

from __future__ import annotations

from typing import Optional

from fletx.core import Reactive, RxBool


class CommentState:
    def __init__(self) -> None:
        self.hovered_comment_id: Reactive[Optional[str]] = Reactive(None)
        self.selected_comment_id: Reactive[Optional[str]] = Reactive(None)
        self.comments_panel_open: RxBool = RxBool(False)

    def set_hovered_comment(self, comment_id: Optional[str]) -> None:
        self.hovered_comment_id.value = comment_id or None

    def select_comment(self, comment_id: Optional[str]) -> None:
        self.selected_comment_id.value = comment_id or None

    def set_panel_open(self, is_open: bool) -> None:
        self.comments_panel_open.value = bool(is_open)

    def toggle_panel(self) -> None:
        self.comments_panel_open.value = not self.comments_panel_open.value
