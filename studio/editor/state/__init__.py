"""FletXr Reactive State Management for the studio.

Architecture:
- AppState: shell state (readiness, navigation indicator, open document, creation dialog)
- GalleryState: Home gallery view, search, folder scope and bulk selection
- EditorState / CommentState: canvas selection, last actions, comment interaction
- DebugState: per-component action traces
- Store: Service locator aggregating the above plus the document service
"""

from .app_state import AppState
from .comment_state import CommentState
from .debug_state import DebugState
from .editor_state import EditorState
from .gallery_state import GalleryState
from .store import Store

__all__ = ["AppState", "CommentState", "DebugState", "EditorState", "GalleryState", "Store"]
