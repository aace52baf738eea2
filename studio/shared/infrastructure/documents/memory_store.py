"""In-memory document service.

Reference implementation of the document lookup and gallery loader
contracts. Records live in a dict; nothing is persisted. Writes are tracked
so ``is_saving`` stays up until the last one settles, and concurrent gallery
loads for the same scope share one in-flight task.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set, Tuple

from fletx.core import RxBool

from studio.shared.domain.models import DocumentRecord, GalleryView

logger = logging.getLogger(__name__)


class InMemoryDocumentStore:
    """Dict-backed documents and folders.

    Args:
        records: Initial records
        latency: Seconds every lookup and write waits, to simulate a network
    """

    def __init__(self, records: Optional[Iterable[DocumentRecord]] = None, latency: float = 0.0):
        self._records: Dict[str, DocumentRecord] = {r.id: r for r in (records or [])}
        self.latency = latency
        self.is_saving: RxBool = RxBool(False)
        self.is_loading_elements: RxBool = RxBool(False)
        self._writes: Set[asyncio.Task] = set()
        self._elements_load: Tuple[Optional[str], Optional[asyncio.Task]] = (None, None)

    async def _delay(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)
        else:
            await asyncio.sleep(0)

    # --- Reads ---

    async def get_document(self, document_id: str) -> Optional[DocumentRecord]:
        await self._delay()
        return self._records.get(document_id)

    async def get_documents(self, parent_id: Optional[str] = None) -> List[DocumentRecord]:
        """Direct children of ``parent_id`` (None is the root)."""
        await self._delay()
        return [r for r in self._records.values() if (r.parent_id or None) == (parent_id or None)]

    async def get_recent_documents(self, limit: Optional[int] = None) -> List[DocumentRecord]:
        """Documents (no folders), newest first."""
        await self._delay()
        docs = [r for r in self._records.values() if not r.is_folder]
        docs.sort(key=_modified_key, reverse=True)
        return docs[:limit] if limit is not None else docs

    async def get_shared_documents(self, parent_id: Optional[str] = None) -> List[DocumentRecord]:
        await self._delay()
        return [
            r for r in self._records.values()
            if r.is_shared and (r.parent_id or None) == (parent_id or None)
        ]

    # --- Gallery loading ---

    async def load_all_elements_into(self, gallery, app) -> List[DocumentRecord]:
        """Load the list for the gallery's view and folder into ``gallery``.

        A load already in flight for the same scope is joined, not repeated.
        """
        view = gallery.gallery_view.value
        folder = gallery.current_folder_id.value
        if view is GalleryView.SHARED:
            load_key = f"shared:{folder or 'root'}"
        elif view is GalleryView.FILES:
            load_key = f"files:{folder or 'root'}"
        else:
            load_key = "all"

        key, task = self._elements_load
        if task is not None and key == load_key and not task.done():
            return await task

        task = asyncio.ensure_future(self._load_elements(view, folder, gallery, app))
        self._elements_load = (load_key, task)
        self.is_loading_elements.value = True
        try:
            return await task
        finally:
            if self._elements_load[1] is task:
                self._elements_load = (None, None)
                self.is_loading_elements.value = False

    async def _load_elements(self, view, folder, gallery, app) -> List[DocumentRecord]:
        await self.wait_until_idle()
        if view is GalleryView.SHARED:
            docs = await self.get_shared_documents(folder)
        elif view is GalleryView.FILES:
            docs = await self.get_documents(folder)
        else:
            docs = await self.get_recent_documents()
        logger.debug(f"Loaded {len(docs)} element(s) for view '{view.value}'")
        gallery.set_saved_elements(docs)
        app.set_is_ready(True)
        return docs

    # --- Writes ---

    @property
    def is_busy(self) -> bool:
        return bool(self._writes)

    def _track_write(self, coro) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._writes.add(task)
        self.is_saving.value = True

        def _settled(done: asyncio.Task) -> None:
            self._writes.discard(done)
            if not self._writes:
                self.is_saving.value = False

        task.add_done_callback(_settled)
        return task

    async def wait_until_idle(self) -> None:
        """Wait until every tracked write has settled."""
        while self._writes:
            await asyncio.gather(*list(self._writes), return_exceptions=True)

    async def save_document(self, record: DocumentRecord) -> DocumentRecord:
        if not record.id:
            raise ValueError("save_document requires a document id")

        async def _write() -> DocumentRecord:
            await self._delay()
            now = datetime.now(timezone.utc)
            existing = self._records.get(record.id)
            stored = record.model_copy(update={
                "last_modified": now,
                "created": record.created or (existing.created if existing else None) or now,
            })
            self._records[stored.id] = stored
            return stored

        return await self._track_write(_write())

    async def create_folder(self, name: str, parent_id: Optional[str] = None) -> DocumentRecord:
        folder_id = (name or "").strip() or f"folder-{len(self._records) + 1}"
        return await self.save_document(
            DocumentRecord(id=folder_id, name=name or folder_id, parent_id=parent_id, is_folder=True)
        )

    async def delete_document(self, document_id: str) -> bool:
        if not document_id:
            raise ValueError("delete_document requires a document id")

        async def _delete() -> bool:
            await self._delay()
            return self._records.pop(document_id, None) is not None

        return await self._track_write(_delete())


def _modified_key(record: DocumentRecord) -> datetime:
    value = record.last_modified or record.created
    if value is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
