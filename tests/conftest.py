import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from studio.editor.state import Store
from studio.shared.core.configuration import SystemConfig
from studio.shared.core.event_bus import EventBus
from studio.shared.domain.models import DocumentRecord, Rect
from studio.shared.infrastructure.documents import InMemoryDocumentStore

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_record(record_id: str, name: Optional[str] = None, **fields) -> DocumentRecord:
    return DocumentRecord(id=record_id, name=name or record_id, **fields)


def make_folder(record_id: str, parent_id: Optional[str] = None, name: Optional[str] = None) -> DocumentRecord:
    return DocumentRecord(id=record_id, name=name or record_id.title(), parent_id=parent_id, is_folder=True)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


class GatedDocumentStore(InMemoryDocumentStore):
    """Counts lookups; lookups of gated ids wait until the gate opens."""

    def __init__(self, records=None, latency: float = 0.0):
        super().__init__(records, latency)
        self.lookups: List[str] = []
        self.loads: List[str] = []
        self.gates: Dict[str, asyncio.Event] = {}

    def gate(self, document_id: str) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[document_id] = event
        return event

    async def get_document(self, document_id):
        self.lookups.append(document_id)
        gate = self.gates.get(document_id)
        if gate is not None:
            await gate.wait()
        return await super().get_document(document_id)

    async def load_all_elements_into(self, gallery, app):
        self.loads.append(gallery.gallery_view.value.value)
        return await super().load_all_elements_into(gallery, app)


class FailingDocumentStore(GatedDocumentStore):
    async def get_document(self, document_id):
        self.lookups.append(document_id)
        raise ConnectionError("storage unavailable")


class FakeEventTarget:
    def __init__(self, name: str = "target"):
        self.name = name
        self.listeners: Dict[str, List] = {}

    def add_listener(self, event, callback):
        self.listeners.setdefault(event, []).append(callback)

    def remove_listener(self, event, callback):
        if callback in self.listeners.get(event, []):
            self.listeners[event].remove(callback)

    def fire(self, event):
        for callback in list(self.listeners.get(event, [])):
            callback()

    def count(self, event) -> int:
        return len(self.listeners.get(event, []))


class FakeCanvas:
    def __init__(self):
        self.calls: List[tuple] = []
        self.viewport: Optional[Rect] = Rect(left=0, top=0, width=800, height=600)
        self.anchors: Dict[str, Rect] = {}
        self.comment_targets: Dict[str, str] = {}
        self.hovered: Dict[str, bool] = {}
        self.container: Optional[FakeEventTarget] = FakeEventTarget("canvas-container")

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    def load_editor_content(self):
        self.calls.append(("load_editor_content",))

    def scroll_side_nav_to_selection(self):
        self.calls.append(("scroll_side_nav_to_selection",))

    def update_comments_overlay(self):
        self.calls.append(("update_comments_overlay",))

    def sync_comments_panel_view(self):
        self.calls.append(("sync_comments_panel_view",))

    def viewport_rect(self):
        return self.viewport

    def anchor_rect(self, element_id, slot=None):
        return self.anchors.get(element_id)

    def center_on(self, element_id, slot=None):
        self.calls.append(("center_on", element_id, slot))

    def element_for_comment(self, comment_id):
        return self.comment_targets.get(comment_id) if comment_id else None

    def select_element(self, element_id):
        self.calls.append(("select_element", element_id))

    def set_comment_hover(self, element_id, hovered):
        self.hovered[element_id] = hovered

    def scroll_container(self):
        return self.container


class FakePanels:
    def __init__(self):
        self.used_in: List[str] = []
        self.versions_refreshes = 0

    def refresh_used_in(self, document_id):
        self.used_in.append(document_id)

    def refresh_versions(self):
        self.versions_refreshes += 1


class FakeAddressBar:
    def __init__(self, fragment: str = ""):
        self.fragment = fragment
        self.replacements: List[str] = []

    def read_fragment(self):
        return self.fragment

    def replace_fragment(self, fragment):
        self.fragment = fragment
        self.replacements.append(fragment)


class FakeHost:
    def __init__(self):
        self.hashes: List[str] = []

    def set_hash(self, value):
        self.hashes.append(value)


@pytest.fixture
def records():
    return [
        make_folder("root"),
        make_folder("mid", parent_id="root"),
        make_folder("leaf", parent_id="mid"),
        make_record("doc-42", "Hero Card", html="<merch-card>hero</merch-card>", last_modified=days_ago(1)),
        make_record("doc-7", "Price Banner", html="<inline-price></inline-price>", last_modified=days_ago(2),
                    parent_id="mid"),
        make_record("tpl-1", "Card Template", html="<merch-card></merch-card>", is_template=True,
                    last_modified=days_ago(30)),
        make_record("shared-1", "Shared Callout", html="<merch-callout></merch-callout>", is_shared=True,
                    last_modified=days_ago(3)),
    ]


@pytest.fixture
def documents(records):
    return GatedDocumentStore(records)


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def config():
    return SystemConfig()


@pytest.fixture
def store(bus, documents, config):
    Store.reset()
    yield Store(bus, documents, config)
    Store.reset()


@pytest.fixture
def canvas():
    return FakeCanvas()


@pytest.fixture
def window():
    return FakeEventTarget("window")


@pytest.fixture
def panels():
    return FakePanels()


@pytest.fixture
def address_bar():
    return FakeAddressBar()


@pytest.fixture
def host():
    return FakeHost()
