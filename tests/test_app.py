import pytest

from studio.editor.app import StudioApp
from studio.editor.state import Store
from studio.shared.core import events

from conftest import FakeAddressBar


def make_app(documents, canvas, window, fragment="", **kwargs):
    return StudioApp(documents, canvas, window, FakeAddressBar(fragment), **kwargs)


@pytest.mark.asyncio
async def test_deep_link_mounts_editor_without_loading_home(documents, canvas, window, panels):
    app = make_app(documents, canvas, window, "id=doc-42", panels=panels)

    await app.start()
    await app.wait_until_idle()

    assert app.store.editor.current_element_id.value == "doc-42"
    assert app.store.app.current_element.value.name == "Hero Card"
    assert documents.loads == []
    assert canvas.count("load_editor_content") >= 1
    assert app.store.app.is_navigating.value is False
    assert app.store.app.status_text.value == "Ready"
    await app.stop()


@pytest.mark.asyncio
async def test_home_start_loads_gallery(documents, canvas, window):
    app = make_app(documents, canvas, window)

    await app.start()
    await app.wait_until_idle()

    assert documents.loads == ["all"]
    assert app.store.app.is_ready.value is True
    assert len(app.store.gallery.filtered_elements) == 4
    await app.stop()


@pytest.mark.asyncio
async def test_opening_and_closing_round_trips_through_the_address(documents, canvas, window, host):
    app = make_app(documents, canvas, window, host=host)
    await app.start()
    await app.wait_until_idle()

    await app.store.open_element("doc-7")
    app.store.close_element()
    await app.wait_until_idle()

    assert host.hashes == ["#id=doc-7", ""]
    assert documents.loads == ["all", "all"]
    await app.stop()


@pytest.mark.asyncio
async def test_stop_releases_everything(documents, canvas, window, bus):
    Store.reset()
    app = make_app(documents, canvas, window, event_bus=bus, use_global_store=True)
    await app.start()
    assert Store.get() is app.store

    await app.stop()

    assert window.count("resize") == 0
    assert canvas.container.count("scroll") == 0
    assert not bus.has_subscribers(events.TOPIC_HOST_MESSAGE)
    with pytest.raises(RuntimeError):
        Store.get()


@pytest.mark.asyncio
async def test_user_actions_are_delivered_before_idle(documents, canvas, window, bus):
    received = []

    async def on_action(payload):
        received.append(payload["action"])

    await bus.subscribe(events.TOPIC_USER_ACTION, on_action)
    app = make_app(documents, canvas, window, event_bus=bus)
    await app.start()

    app.store.editor.set_user_action("tree:select", {"id": "el-1"})
    assert await app.wait_until_idle() is True

    assert received == ["tree:select"]
    await app.stop()
