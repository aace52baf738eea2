"""Contracts of the collaborators the navigation core consumes.

Storage, the canvas, side panels and the host frame live outside this
package; these protocols are the whole surface the core relies on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional, Protocol, runtime_checkable

from fletx.core import RxBool

from studio.shared.domain.models import DocumentRecord, Rect

if TYPE_CHECKING:
    from studio.editor.state.app_state import AppState
    from studio.editor.state.gallery_state import GalleryState

Listener = Callable[[], None]


@runtime_checkable
class DocumentLookup(Protocol):
    async def get_document(self, document_id: str) -> Optional[DocumentRecord]:
        """Return the record, or None when it does not exist."""
        ...


@runtime_checkable
class GalleryLoader(Protocol):
    """Loads the Home list for the gallery's current view and folder."""

    is_saving: RxBool

    async def load_all_elements_into(self, gallery: "GalleryState", app: "AppState") -> None:
        ...


@runtime_checkable
class EventTarget(Protocol):
    """Something raw listeners can be attached to (window, scroll container)."""

    def add_listener(self, event: str, callback: Listener) -> None:
        ...

    def remove_listener(self, event: str, callback: Listener) -> None:
        ...


@runtime_checkable
class Canvas(Protocol):
    """The visual editor surface."""

    def load_editor_content(self) -> None:
        """Mount or remount the active document."""
        ...

    def scroll_side_nav_to_selection(self) -> None:
        ...

    def update_comments_overlay(self) -> None:
        ...

    def sync_comments_panel_view(self) -> None:
        ...

    def viewport_rect(self) -> Optional[Rect]:
        """Bounding rect of the designated viewport element."""
        ...

    def anchor_rect(self, element_id: str, slot: Optional[str] = None) -> Optional[Rect]:
        ...

    def center_on(self, element_id: str, slot: Optional[str] = None) -> None:
        ...

    def element_for_comment(self, comment_id: Optional[str]) -> Optional[str]:
        ...

    def select_element(self, element_id: Optional[str]) -> None:
        ...

    def set_comment_hover(self, element_id: str, hovered: bool) -> None:
        ...

    def scroll_container(self) -> Optional[EventTarget]:
        """The currently mounted scroll container, if any."""
        ...


@runtime_checkable
class SidePanels(Protocol):
    """Used-in and versions panels refreshed when a document opens."""

    def refresh_used_in(self, document_id: str) -> None:
        ...

    def refresh_versions(self) -> None:
        ...


@runtime_checkable
class AddressBar(Protocol):
    """This frame's own address fragment."""

    def read_fragment(self) -> str:
        ...

    def replace_fragment(self, fragment: str) -> None:
        """Replace the fragment without adding a history entry."""
        ...


@runtime_checkable
class HostFrame(Protocol):
    """Message channel to the embedding host."""

    def set_hash(self, value: str) -> None:
        ...


@runtime_checkable
class DocumentService(DocumentLookup, GalleryLoader, Protocol):
    """Storage as seen by the store: lookups plus gallery loading."""
