import asyncio

import pytest

from studio.editor.router import Router, host_message_fragment
from studio.shared.core import events
from studio.shared.domain.models import GalleryView
from studio.shared.domain.navigation.fragment import RouteMode, decode_fragment

from conftest import FakeAddressBar


async def start_router(store, fragment="", host=None):
    address_bar = FakeAddressBar(fragment)
    router = Router(store, address_bar, host=host)
    await router.start()
    await router.wait_until_idle()
    return router, address_bar


@pytest.mark.asyncio
async def test_empty_fragment_starts_in_gallery_without_pushing(store, host):
    router, address_bar = await start_router(store, host=host)

    assert store.is_home
    assert store.app.is_navigating.value is False
    assert host.hashes == []
    assert address_bar.replacements == []


@pytest.mark.asyncio
async def test_state_change_pushes_once(store, host):
    router, address_bar = await start_router(store, host=host)

    store.gallery.set_search_query("card")

    assert host.hashes == ["#q=card"]
    assert address_bar.fragment == "q=card"
    assert router.on_state_changed() is False
    assert router.on_state_changed() is False
    assert host.hashes == ["#q=card"]


@pytest.mark.asyncio
async def test_own_fragment_echoed_by_host_is_ignored(store, host):
    router, _ = await start_router(store, host=host)
    store.gallery.set_gallery_view(GalleryView.FILES)
    navigations = router.nav_token

    assert await router.on_host_message({"hash": "#view=files"}) is False
    assert await router.on_host_message({"action": "hashchange", "details": "view=files"}) is False

    assert router.nav_token == navigations
    assert host.hashes == ["#view=files"]


@pytest.mark.asyncio
async def test_deep_link_opens_document_once(store, documents):
    router, _ = await start_router(store, "id=doc-42")

    assert store.editor.current_element_id.value == "doc-42"
    assert store.app.current_element.value.id == "doc-42"
    assert documents.lookups == ["doc-42"]
    assert store.app.is_navigating.value is False


@pytest.mark.asyncio
async def test_new_with_category_opens_creation_dialog(store):
    router, _ = await start_router(store, "new=1&category=blank")

    assert store.app.show_creation_dialog.value is True
    assert store.app.creation_dialog_category.value == "blank"
    assert store.editor.current_element_id.value is None


@pytest.mark.asyncio
async def test_create_route_closes_the_open_document(store):
    router, address_bar = await start_router(store, "id=doc-42")
    assert store.app.current_element.value.id == "doc-42"

    assert await router.on_address_fragment_changed("new=1&category=blank") is True
    await router.wait_until_idle()

    assert store.editor.current_element_id.value is None
    assert store.app.current_element.value is None
    assert store.app.show_creation_dialog.value is True
    assert store.navigation_state().mode is RouteMode.CREATE

    store.gallery.set_search_query("x")
    pushed = decode_fragment(address_bar.fragment)
    assert pushed.mode is RouteMode.CREATE
    assert pushed.creation_dialog_category == "blank"
    assert pushed.search_query == "x"


@pytest.mark.asyncio
async def test_malformed_fragment_degrades_to_gallery(store):
    router, _ = await start_router(store, "%zz&&==&view=nope")

    assert store.is_home
    assert store.gallery.gallery_view.value is GalleryView.ALL
    assert store.gallery.search_query.value == ""


@pytest.mark.asyncio
async def test_address_change_routes_gallery_params(store):
    router, _ = await start_router(store, "id=doc-42")

    assert await router.on_address_fragment_changed("#view=files&q=price&folder=mid") is True
    await router.wait_until_idle()

    assert store.editor.current_element_id.value is None
    assert store.app.current_element.value is None
    assert store.gallery.gallery_view.value is GalleryView.FILES
    assert store.gallery.search_query.value == "price"
    assert store.gallery.current_folder_id.value == "mid"
    assert [c.id for c in store.gallery.folder_crumbs.value] == ["root", "mid"]


@pytest.mark.asyncio
async def test_same_fragment_is_not_routed_twice(store):
    router, _ = await start_router(store, "view=shared")
    token = router.nav_token

    assert await router.on_address_fragment_changed("#view=shared") is False
    assert router.nav_token == token


@pytest.mark.asyncio
async def test_missing_document_falls_back_to_gallery(store, host):
    router, address_bar = await start_router(store, "id=missing", host=host)

    assert store.editor.current_element_id.value is None
    assert store.is_home
    assert address_bar.fragment == ""
    assert host.hashes == [""]


@pytest.mark.asyncio
async def test_host_message_routes_new_fragment(store):
    router, _ = await start_router(store)

    assert await router.on_host_message({"action": "hashchange", "details": "#new=1"}) is True

    assert store.app.show_creation_dialog.value is True
    assert store.app.creation_dialog_category.value == "templates"


@pytest.mark.asyncio
async def test_host_messages_arrive_through_the_bus(store, bus):
    router, _ = await start_router(store)

    await bus.publish(events.TOPIC_HOST_MESSAGE, events.create_host_message_event({"hash": "#q=hero"}))
    await bus.wait_until_idle()

    assert store.gallery.search_query.value == "hero"


@pytest.mark.asyncio
async def test_address_changes_arrive_through_the_bus(store, bus):
    router, _ = await start_router(store)

    await bus.publish(events.TOPIC_ADDRESS_CHANGED, events.create_address_changed_event("#view=templates"))
    await bus.wait_until_idle()

    assert store.gallery.gallery_view.value is GalleryView.TEMPLATES


@pytest.mark.asyncio
async def test_state_changes_are_not_pushed_while_routing(store, documents, host):
    router, _ = await start_router(store, host=host)
    gate = documents.gate("leaf")

    routing = asyncio.create_task(router.on_address_fragment_changed("view=files&folder=leaf"))
    await asyncio.sleep(0)
    assert router.updating_from_address is True
    assert store.app.is_navigating.value is True
    assert router.on_state_changed() is False

    gate.set()
    await routing
    assert router.updating_from_address is False
    assert store.app.is_navigating.value is False
    assert host.hashes == []


@pytest.mark.asyncio
async def test_superseded_route_is_discarded(store, documents):
    router, _ = await start_router(store)
    gate = documents.gate("leaf")

    slow = asyncio.create_task(router.on_address_fragment_changed("view=files&folder=leaf&q=slow"))
    await asyncio.sleep(0)
    await router.on_address_fragment_changed("view=files&folder=root&q=fast")
    gate.set()
    await slow
    await router.wait_until_idle()

    assert store.gallery.current_folder_id.value == "root"
    assert store.gallery.search_query.value == "fast"
    assert store.app.is_navigating.value is False


@pytest.mark.asyncio
async def test_stale_document_open_is_discarded(store, documents):
    router, _ = await start_router(store)
    gate = documents.gate("doc-42")

    await router.on_address_fragment_changed("id=doc-42")
    await router.on_address_fragment_changed("id=doc-7")
    await asyncio.sleep(0.01)
    gate.set()
    await router.wait_until_idle()

    assert store.editor.current_element_id.value == "doc-7"
    assert store.app.current_element.value.id == "doc-7"


@pytest.mark.asyncio
async def test_connect_host_adopts_host_fragment(store, host):
    router, address_bar = await start_router(store)

    await router.connect_host(host, "#view=shared&q=callout")

    assert store.gallery.gallery_view.value is GalleryView.SHARED
    assert store.gallery.search_query.value == "callout"
    assert address_bar.fragment == "view=shared&q=callout"
    assert host.hashes == []


@pytest.mark.asyncio
async def test_cleanup_unsubscribes_and_stops_watching(store, bus, host):
    router, _ = await start_router(store, host=host)

    await router.cleanup()
    store.gallery.set_search_query("after")

    assert not bus.has_subscribers(events.TOPIC_HOST_MESSAGE)
    assert not bus.has_subscribers(events.TOPIC_ADDRESS_CHANGED)
    assert host.hashes == []


def test_host_message_shapes():
    assert host_message_fragment("#id=1") == "#id=1"
    assert host_message_fragment({"hash": "id=1"}) == "id=1"
    assert host_message_fragment({"action": "hashchange", "details": "id=2"}) == "id=2"
    assert host_message_fragment({"action": "other", "details": "id=2"}) is None
    assert host_message_fragment({"hash": 42}) is None
    assert host_message_fragment(None) is None
