"""Global State Store - Service Locator Pattern.

Provides centralized access to all reactive state and to the document
service from any component. Also owns the two document actions the router
drives: opening and closing an element.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from studio.shared.core.collaborators import DocumentService
from studio.shared.core.configuration import SystemConfig
from studio.shared.core.event_bus import EventBus
from studio.shared.domain.navigation.fragment import NavigationState
from .app_state import AppState
from .comment_state import CommentState
from .debug_state import DebugState
from .editor_state import EditorState
from .gallery_state import GalleryState

logger = logging.getLogger(__name__)


class Store:
    """Global state store of the studio.

    Usage:
        # During app initialization
        Store.initialize(event_bus, documents, config)

        # In any component
        store = Store.get()
        store.gallery.set_search_query("card")
    """

    _instance: Optional['Store'] = None

    def __init__(
        self,
        event_bus: EventBus,
        documents: DocumentService,
        config: Optional[SystemConfig] = None,
    ) -> None:
        """Initialize store with event bus and document service.

        Note: Prefer Store.initialize() outside of tests.

        Args:
            event_bus: The shared event bus instance
            documents: Document lookup and gallery loader
            config: System configuration (defaults when omitted)
        """
        self.config = config or SystemConfig()
        self.bus = event_bus
        self.documents = documents

        self.debug = DebugState(max_traces=self.config.debug.max_traces)
        self.debug.enable_from_param(self.config.debug.capture)

        self.app = AppState(event_bus, self.config.navigation.default_creation_category)
        self.gallery = GalleryState(self.config.gallery)
        self.editor = EditorState(event_bus, self.debug, self.config.debug.editor_log_limit)
        self.comments = CommentState()

        self._open_token = 0

    @classmethod
    def initialize(
        cls,
        event_bus: EventBus,
        documents: DocumentService,
        config: Optional[SystemConfig] = None,
    ) -> 'Store':
        """Initialize the global store instance.

        Raises:
            RuntimeError: If store is already initialized
        """
        if cls._instance is not None:
            raise RuntimeError("Store already initialized!")

        cls._instance = cls(event_bus, documents, config)
        return cls._instance

    @classmethod
    def get(cls) -> 'Store':
        """Get the global store instance.

        Raises:
            RuntimeError: If store has not been initialized
        """
        if cls._instance is None:
            raise RuntimeError("Store not initialized! Call Store.initialize() first.")
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the store instance. Primarily used for testing."""
        cls._instance = None

    async def init(self) -> None:
        await self.app.initialize()

    # --- Derived ---

    @property
    def is_home(self) -> bool:
        """No active document and no creation dialog."""
        return not self.editor.current_element_id.value and not self.app.show_creation_dialog.value

    def navigation_state(self) -> NavigationState:
        """Project the addressable fields into a NavigationState."""
        return NavigationState(
            active_document_id=self.editor.current_element_id.value,
            gallery_view=self.gallery.gallery_view.value,
            search_query=self.gallery.search_query.value,
            creation_dialog_open=self.app.show_creation_dialog.value,
            creation_dialog_category=self.app.creation_dialog_category.value,
            current_folder_id=self.gallery.current_folder_id.value,
        )

    # --- Document actions ---

    async def open_element(
        self,
        element_id: Optional[str],
        is_current: Optional[Callable[[], bool]] = None,
    ) -> bool:
        """Open ``element_id`` in the editor.

        The id is published right away so dependent views skip the Home
        gallery; the record follows once the lookup resolves. A missing
        record or a failing lookup falls back to Home. Results of an open
        that was superseded (by a newer open, a close, or ``is_current``
        turning False) are discarded.

        Returns:
            True when the record was applied
        """
        target = (element_id or "").strip()
        if not target:
            self.close_element()
            return False
        if is_current is not None and not is_current():
            return False

        self._open_token += 1
        token = self._open_token

        if self.editor.current_element_id.value != target:
            self.editor.clear_selection()
            self.comments.select_comment(None)
        self.app.set_show_creation_dialog(False)
        self.editor.set_current_element_id(target)

        try:
            record = await self.documents.get_document(target)
        except Exception as e:
            logger.warning(f"Failed to load element '{target}': {e}")
            record = None

        if token != self._open_token or (is_current is not None and not is_current()):
            logger.debug(f"Discarding stale open of '{target}'")
            return False

        if record is None:
            logger.info(f"Element '{target}' not found, returning to Home")
            self.close_element()
            return False

        self.app.set_current_element(record)
        self.editor.set_last_action("editor:open", {"id": target})
        return True

    def close_element(self) -> None:
        """Leave the editor and return to Home."""
        self._open_token += 1
        self.editor.clear_selection()
        self.editor.hide_toolbar()
        self.comments.select_comment(None)
        self.comments.set_hovered_comment(None)
        self.editor.set_current_element_id(None)
        self.app.set_current_element(None)
