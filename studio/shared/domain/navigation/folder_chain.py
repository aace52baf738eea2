"""Folder breadcrumb reconstruction.

Rebuilds the root→leaf folder trail for a folder id by walking parent
pointers through the document lookup, one awaited lookup per hop.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from studio.shared.core.collaborators import DocumentLookup
from studio.shared.domain.models import FolderChainEntry

if TYPE_CHECKING:
    from studio.editor.state.gallery_state import GalleryState

logger = logging.getLogger(__name__)

DEFAULT_MAX_HOPS = 32


class FolderChainResolver:
    """Resolves folder ids into breadcrumb chains."""

    def __init__(self, lookup: DocumentLookup, max_hops: int = DEFAULT_MAX_HOPS) -> None:
        self.lookup = lookup
        self.max_hops = max_hops
        self._latest_token = 0

    async def resolve(self, folder_id: str) -> List[FolderChainEntry]:
        """Walk from ``folder_id`` up to the root and return the chain root→leaf.

        The walk stops at the root, at a missing record (the partial chain is
        kept), at the first repeated id, or after ``max_hops`` lookups.
        Lookup errors propagate to the caller.
        """
        chain: List[FolderChainEntry] = []
        seen: set[str] = set()
        cursor: Optional[str] = folder_id

        for _ in range(self.max_hops):
            if not cursor or cursor in seen:
                break
            seen.add(cursor)
            record = await self.lookup.get_document(cursor)
            if record is None:
                logger.debug(f"Folder chain broken at '{cursor}'")
                break
            chain.append(FolderChainEntry.from_record(record))
            cursor = record.parent_id

        if cursor and cursor in seen:
            logger.warning(f"Folder cycle detected while resolving '{folder_id}' (repeated '{cursor}')")

        chain.reverse()
        return chain

    async def sync(self, gallery: "GalleryState", folder_id: Optional[str]) -> bool:
        """Point ``gallery`` at ``folder_id`` with a freshly resolved breadcrumb trail.

        Returns False when nothing was applied: the folder was already
        current, or a newer request superseded this one while it was in
        flight.
        """
        target = folder_id.strip() if folder_id else None
        target = target or None
        self._latest_token += 1
        token = self._latest_token

        if gallery.current_folder_id.value == target:
            return False
        if target is None:
            gallery.set_current_folder(None)
            return True

        try:
            chain = await self.resolve(target)
        except Exception as e:
            logger.warning(f"Folder chain resolution failed for '{target}': {e}")
            chain = None

        if token != self._latest_token:
            logger.debug(f"Discarding stale folder chain for '{target}'")
            return False

        if not chain or chain[-1].id != target:
            # Flat fallback: keep the folder, show no trail
            gallery.replace_folder_chain(target, [])
        else:
            gallery.replace_folder_chain(target, chain)
        return True
