"""Home gallery filtering rules."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from studio.shared.domain.models import DocumentRecord, GalleryView

_ROOT_TAG = re.compile(r"<\s*([a-zA-Z0-9-]+)")

# Views that list folders alongside documents
FOLDER_VIEWS = {GalleryView.FILES, GalleryView.SHARED}


def root_tag(record: DocumentRecord) -> str:
    """Lower-cased tag name of the first element in the document HTML."""
    if not record.html:
        return ""
    match = _ROOT_TAG.search(record.html)
    return match.group(1).lower() if match else ""


def matches_query(record: DocumentRecord, query: str) -> bool:
    needle = query.lower()
    return needle in (record.name or "").lower() or needle in root_tag(record)


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def filter_elements(
    elements: Iterable[DocumentRecord],
    view: GalleryView,
    query: str = "",
    folder_id: Optional[str] = None,
    now: Optional[datetime] = None,
    recent_window_days: int = 7,
    recent_limit: int = 8,
) -> List[DocumentRecord]:
    """Return the elements visible under ``view``, ``query`` and ``folder_id``.

    - ``all`` and ``recent`` hide folders
    - ``recent`` keeps the last ``recent_window_days`` days, newest first,
      capped at ``recent_limit``
    - ``templates`` keeps templates only
    - ``files`` is scoped to the current folder (None is the root)
    - ``shared`` lists everything it was given
    """
    items = list(elements)

    if view not in FOLDER_VIEWS:
        items = [el for el in items if not el.is_folder]

    if query:
        items = [el for el in items if matches_query(el, query)]

    if view is GalleryView.RECENT:
        cutoff = _as_aware(now or datetime.now(timezone.utc)) - timedelta(days=recent_window_days)
        recent = [
            el for el in items
            if el.last_modified is not None and _as_aware(el.last_modified) > cutoff
        ]
        recent.sort(key=lambda el: _as_aware(el.last_modified), reverse=True)
        return recent[:recent_limit]
    if view is GalleryView.TEMPLATES:
        return [el for el in items if el.is_template]
    if view is GalleryView.FILES:
        return [el for el in items if (el.parent_id or None) == (folder_id or None)]
    return items
