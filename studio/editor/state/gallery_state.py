"""Home gallery state: view, search, folder scope and bulk selection.

Selection invariants:
- changing the view or the folder exits selection mode
- changing the search query (or reloading the list) prunes the selection to
  the visible items, exiting selection mode when nothing is left
- the selection is always a subset of ``visible_ids()`` after any of the
  above
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, FrozenSet, Iterable, List, Optional, Union

from fletx.core import Reactive, RxBool, RxList, RxStr

from studio.shared.core.configuration import GalleryConfig
from studio.shared.domain.gallery.filtering import filter_elements
from studio.shared.domain.models import DocumentRecord, FolderChainEntry, GalleryView


class GalleryState:
    """Reactive state of the Home gallery."""

    def __init__(
        self,
        config: Optional[GalleryConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.config = config or GalleryConfig()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self.gallery_view: Reactive[GalleryView] = Reactive(GalleryView.ALL)
        self.search_query: RxStr = RxStr("")

        # Folder scope (None = root) and its breadcrumb trail root→leaf
        self.current_folder_id: Reactive[Optional[str]] = Reactive(None)
        self.folder_crumbs: RxList[FolderChainEntry] = RxList([])

        self.saved_elements: RxList[DocumentRecord] = RxList([])

        # Bulk selection
        self.selection_mode: RxBool = RxBool(False)
        self.selected_ids: Reactive[FrozenSet[str]] = Reactive(frozenset())

    # --- Derived ---

    @property
    def filtered_elements(self) -> List[DocumentRecord]:
        return filter_elements(
            self.saved_elements.value,
            self.gallery_view.value,
            self.search_query.value,
            self.current_folder_id.value,
            now=self._clock(),
            recent_window_days=self.config.recent_window_days,
            recent_limit=self.config.recent_limit,
        )

    def visible_ids(self) -> FrozenSet[str]:
        return frozenset(el.id for el in self.filtered_elements)

    # --- View & search ---

    def set_gallery_view(self, view: Union[GalleryView, str]) -> None:
        self.gallery_view.value = GalleryView.parse(view)
        self._exit_selection()

    def set_search_query(self, query: str) -> None:
        self.search_query.value = query or ""
        self._prune_selection()

    def set_saved_elements(self, elements: Iterable[DocumentRecord]) -> None:
        self.saved_elements.value = list(elements or [])
        self._prune_selection()

    # --- Folder navigation ---

    def set_current_folder(self, folder_id: Optional[str], name: Optional[str] = None) -> None:
        """Move to ``folder_id``, appending it to the trail (None clears to root)."""
        normalized = folder_id or None
        if normalized is None:
            self.folder_crumbs.value = []
        else:
            crumbs = list(self.folder_crumbs.value)
            if not crumbs or crumbs[-1].id != normalized:
                crumbs.append(FolderChainEntry(id=normalized, name=name or "Folder"))
            self.folder_crumbs.value = crumbs
        self.current_folder_id.value = normalized
        self._exit_selection()

    def replace_folder_chain(self, folder_id: Optional[str], chain: Iterable[FolderChainEntry]) -> None:
        """Swap in a whole breadcrumb trail at once."""
        self.folder_crumbs.value = list(chain)
        self.current_folder_id.value = folder_id or None
        self._exit_selection()

    def enter_folder(self, record: Optional[DocumentRecord]) -> None:
        if record is None or not record.id:
            return
        self.set_current_folder(record.id, record.name or "Folder")
        # Keep the current view (Shared supports folder navigation too)
        self.set_gallery_view(self.gallery_view.value)

    def go_up_one(self) -> None:
        crumbs = list(self.folder_crumbs.value)
        if not crumbs:
            self.set_current_folder(None)
            return
        crumbs.pop()
        self.replace_folder_chain(crumbs[-1].id if crumbs else None, crumbs)

    def navigate_to_crumb(self, index: int) -> None:
        crumbs = list(self.folder_crumbs.value)
        if index < 0 or index >= len(crumbs):
            self.set_current_folder(None)
            return
        trail = crumbs[: index + 1]
        self.replace_folder_chain(trail[-1].id, trail)

    # --- Selection ---

    def set_selection_mode(self, on: bool) -> None:
        self.selection_mode.value = bool(on)
        if not self.selection_mode.value:
            self.selected_ids.value = frozenset()

    def toggle_select(self, item_id: str) -> None:
        """Flip membership of ``item_id``; visibility is the caller's concern."""
        if not item_id:
            return
        current = self.selected_ids.value
        self.selected_ids.value = current - {item_id} if item_id in current else current | {item_id}

    def clear_selection(self) -> None:
        self.selected_ids.value = frozenset()

    def select_all_visible(self) -> None:
        self.selected_ids.value = self.visible_ids()

    def _exit_selection(self) -> None:
        self.set_selection_mode(False)
        self.clear_selection()

    def _prune_selection(self) -> None:
        kept = self.selected_ids.value & self.visible_ids()
        self.selected_ids.value = kept
        if not kept:
            self.set_selection_mode(False)
