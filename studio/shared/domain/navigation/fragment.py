"""Address fragment grammar.

A fragment is an ordered ``key=value`` list, encoded like a query string:

    id=<document-id>                                         editor mode
    new=1&category=<c>&folder=<id>&view=<view>&q=<text>      creation mode
    view=<view>&q=<text>&folder=<id>                         gallery mode

Decoding never raises. Anything it cannot make sense of falls back to the
gallery with default filters.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, urlencode

from pydantic import BaseModel, ConfigDict

from studio.shared.domain.models import GalleryView

logger = logging.getLogger(__name__)

DOCUMENT_KEY = "id"
NEW_KEY = "new"
CATEGORY_KEY = "category"
FOLDER_KEY = "folder"
VIEW_KEY = "view"
QUERY_KEY = "q"

DEFAULT_CATEGORY = "templates"


class RouteMode(str, Enum):
    EDITOR = "editor"
    CREATE = "create"
    GALLERY = "gallery"


class NavigationState(BaseModel):
    """The addressable projection of the application state."""

    model_config = ConfigDict(frozen=True)

    active_document_id: Optional[str] = None
    gallery_view: GalleryView = GalleryView.ALL
    search_query: str = ""
    creation_dialog_open: bool = False
    creation_dialog_category: Optional[str] = None
    current_folder_id: Optional[str] = None

    @property
    def mode(self) -> RouteMode:
        if self.active_document_id:
            return RouteMode.EDITOR
        if self.creation_dialog_open:
            return RouteMode.CREATE
        return RouteMode.GALLERY

    def canonical(self, default_category: str = DEFAULT_CATEGORY) -> "NavigationState":
        """Drop everything the active mode does not carry in a fragment."""
        mode = self.mode
        if mode is RouteMode.EDITOR:
            return NavigationState(active_document_id=self.active_document_id)
        folder = self.current_folder_id or None
        if mode is RouteMode.CREATE:
            return NavigationState(
                gallery_view=self.gallery_view,
                search_query=self.search_query,
                creation_dialog_open=True,
                creation_dialog_category=self.creation_dialog_category or default_category,
                current_folder_id=folder,
            )
        return NavigationState(
            gallery_view=self.gallery_view,
            search_query=self.search_query,
            current_folder_id=folder,
        )


def normalize_fragment(value: Optional[str]) -> str:
    """Strip a leading ``#`` and/or ``?`` delimiter."""
    if not value:
        return ""
    fragment = str(value)
    if fragment.startswith("#"):
        fragment = fragment[1:]
    if fragment.startswith("?"):
        fragment = fragment[1:]
    return fragment


def encode_fragment(state: NavigationState, default_category: str = DEFAULT_CATEGORY) -> str:
    """Serialize ``state`` to its canonical fragment string."""
    state = state.canonical(default_category)
    pairs: List[Tuple[str, str]] = []
    mode = state.mode

    if mode is RouteMode.EDITOR:
        pairs.append((DOCUMENT_KEY, state.active_document_id))
    elif mode is RouteMode.CREATE:
        pairs.append((NEW_KEY, "1"))
        if state.creation_dialog_category != default_category:
            pairs.append((CATEGORY_KEY, state.creation_dialog_category))
        if state.current_folder_id:
            pairs.append((FOLDER_KEY, state.current_folder_id))
        if state.gallery_view is not GalleryView.ALL:
            pairs.append((VIEW_KEY, state.gallery_view.value))
        if state.search_query:
            pairs.append((QUERY_KEY, state.search_query))
    else:
        if state.gallery_view is not GalleryView.ALL:
            pairs.append((VIEW_KEY, state.gallery_view.value))
        if state.search_query:
            pairs.append((QUERY_KEY, state.search_query))
        if state.current_folder_id:
            pairs.append((FOLDER_KEY, state.current_folder_id))

    return urlencode(pairs)


def parse_params(fragment: str) -> Dict[str, str]:
    """Parse a normalized fragment; the first occurrence of a key wins."""
    params: Dict[str, str] = {}
    try:
        pairs = parse_qsl(fragment, keep_blank_values=True)
    except ValueError as e:
        logger.debug(f"Unparseable fragment {fragment!r}: {e}")
        return params
    for key, value in pairs:
        params.setdefault(key, value)
    return params


def decode_fragment(raw: Optional[str], default_category: str = DEFAULT_CATEGORY) -> NavigationState:
    """Parse a fragment into a NavigationState.

    Precedence: a document id beats the ``new`` flag, which beats plain
    gallery parameters. View and folder are decoded in every mode because
    the router applies them before finalizing the mode.
    """
    params = parse_params(normalize_fragment(raw))

    view = GalleryView.parse(params.get(VIEW_KEY) or None)
    folder = params.get(FOLDER_KEY, "").strip() or None
    document_id = params.get(DOCUMENT_KEY, "").strip()

    if document_id:
        return NavigationState(
            active_document_id=document_id,
            gallery_view=view,
            current_folder_id=folder,
        )

    query = params.get(QUERY_KEY, "")
    if NEW_KEY in params:
        return NavigationState(
            gallery_view=view,
            search_query=query,
            creation_dialog_open=True,
            creation_dialog_category=params.get(CATEGORY_KEY) or default_category,
            current_folder_id=folder,
        )

    return NavigationState(gallery_view=view, search_query=query, current_folder_id=folder)
