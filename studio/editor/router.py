"""Router: keeps the store and the address fragment in sync.

Three origins can change the route: local state (user actions, network
completions), the browser's own fragment (back/forward, manual edits) and
messages from the embedding host frame. Two guards stop a write made for one
side from being read back as a change by the other:

- ``updating_from_state`` is up while the router pushes a fragment
- ``updating_from_address`` is up while a fragment is applied to the store

Every routed navigation takes a token. Asynchronous work (folder chain,
document open) finishing under an outdated token is dropped.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Optional

from studio.shared.core import events
from studio.shared.core.collaborators import AddressBar, HostFrame
from studio.shared.core.configuration import NavigationConfig
from studio.shared.core.event_bus import EventBus, EventPayload
from studio.shared.domain.navigation.folder_chain import FolderChainResolver
from studio.shared.domain.navigation.fragment import (
    RouteMode,
    decode_fragment,
    encode_fragment,
    normalize_fragment,
)
from studio.editor.reactions import ReactionRegistry
from studio.editor.state.store import Store

logger = logging.getLogger(__name__)


def host_message_fragment(payload: Any) -> Optional[str]:
    """Extract the fragment carried by a host message, if any.

    Accepted shapes: a bare string, ``{"hash": str}`` and
    ``{"action": "hashchange", "details": str}``.
    """
    if isinstance(payload, str):
        return payload
    if not isinstance(payload, dict):
        return None
    if isinstance(payload.get("hash"), str):
        return payload["hash"]
    if payload.get("action") == "hashchange" and isinstance(payload.get("details"), str):
        return payload["details"]
    return None


class Router:
    """Bidirectional mapping between the store and the shared fragment."""

    def __init__(
        self,
        store: Store,
        address_bar: AddressBar,
        host: Optional[HostFrame] = None,
        event_bus: Optional[EventBus] = None,
        config: Optional[NavigationConfig] = None,
        resolver: Optional[FolderChainResolver] = None,
    ) -> None:
        self.store = store
        self.address_bar = address_bar
        self.host = host
        self.bus = event_bus or store.bus
        self.config = config or store.config.navigation
        self.resolver = resolver or FolderChainResolver(store.documents, self.config.folder_chain_max_hops)
        self.registry = ReactionRegistry()

        self.current_fragment = normalize_fragment(self._read_local())
        self.last_pushed = self.current_fragment
        self.updating_from_state = False
        # Depth counter: routes may overlap across awaits
        self._address_depth = 0
        self._nav_token = 0
        self._unsubscribers: List[Callable[[], Awaitable[None]]] = []
        self._started = False

    @property
    def updating_from_address(self) -> bool:
        return self._address_depth > 0

    @property
    def nav_token(self) -> int:
        return self._nav_token

    async def start(self) -> None:
        """Subscribe to inbound events, watch the store, apply the current fragment."""
        if self._started:
            return
        self._started = True
        self._unsubscribers.append(await self.bus.subscribe(events.TOPIC_HOST_MESSAGE, self._handle_host_event))
        self._unsubscribers.append(
            await self.bus.subscribe(events.TOPIC_ADDRESS_CHANGED, self._handle_address_event)
        )
        self.registry.register(
            self.store,
            lambda s: (
                s.editor.current_element_id.value,
                s.gallery.gallery_view.value,
                s.gallery.search_query.value,
                s.app.show_creation_dialog.value,
                s.app.creation_dialog_category.value,
                s.gallery.current_folder_id.value,
            ),
            lambda values: self.on_state_changed(),
            name="router_state",
        )
        await self.handle_route(self.current_fragment)

    # --- State -> address ---

    def on_state_changed(self) -> bool:
        """Push the fragment of the current state. Returns True when something was pushed."""
        if self.updating_from_address:
            return False
        self.updating_from_state = True
        try:
            fragment = encode_fragment(self.store.navigation_state(), self.config.default_creation_category)
            if fragment == self.last_pushed and fragment == self.current_fragment:
                return False
            self.last_pushed = fragment
            self.current_fragment = fragment
            host_notified = self._notify_host(fragment)
            self._replace_local(fragment)
            logger.debug(f"Pushed fragment '{fragment}' (host notified: {host_notified})")
            self._emit(events.TOPIC_FRAGMENT_PUSHED, events.create_fragment_pushed_event(fragment, host_notified))
            return True
        finally:
            self.updating_from_state = False

    # --- Address -> state ---

    async def on_address_fragment_changed(self, raw: Optional[str]) -> bool:
        """Apply a fragment coming from the browser. Returns True when it was routed."""
        if self.updating_from_state:
            return False
        fragment = normalize_fragment(raw)
        if fragment == self.current_fragment:
            return False
        await self.handle_route(fragment)
        return True

    async def on_host_message(self, payload: Any) -> bool:
        """Apply a fragment announced by the embedding host.

        Echoes of the fragment already in effect are dropped.
        """
        incoming = host_message_fragment(payload)
        if incoming is None:
            return False
        fragment = normalize_fragment(incoming)
        if fragment == self.current_fragment:
            return False
        return await self.on_address_fragment_changed(fragment)

    async def connect_host(self, host: HostFrame, initial_hash: Optional[str] = None) -> None:
        """Attach the host channel; its fragment, when given, becomes authoritative."""
        self.host = host
        if initial_hash is None:
            return
        fragment = normalize_fragment(initial_hash)
        self.last_pushed = fragment
        await self.handle_route(fragment)
        self._replace_local(fragment)

    async def handle_route(self, raw: Optional[str] = None) -> None:
        """Apply ``raw`` (or the local fragment) to the store.

        View and folder go first so everything that follows is scoped
        correctly, then the mode: document > creation > gallery.
        """
        fragment = normalize_fragment(self._read_local() if raw is None else raw)
        self._nav_token += 1
        token = self._nav_token
        self.current_fragment = fragment

        target = decode_fragment(fragment, self.config.default_creation_category)
        mode = target.mode
        app = self.store.app
        gallery = self.store.gallery

        self._address_depth += 1
        app.set_is_navigating(True)
        self._emit(events.TOPIC_NAVIGATION_START, events.create_navigation_event(fragment, mode.value, token))
        try:
            if gallery.gallery_view.value != target.gallery_view:
                gallery.set_gallery_view(target.gallery_view)

            await self.resolver.sync(gallery, target.current_folder_id)
            if token != self._nav_token:
                logger.debug(f"Route '{fragment}' superseded while resolving its folder")
                return

            if mode is RouteMode.EDITOR:
                self._route_editor(target.active_document_id, token)
            elif mode is RouteMode.CREATE:
                self._route_create(target.creation_dialog_category, target.search_query)
            else:
                self._route_gallery(target.search_query)
        finally:
            self._address_depth -= 1
            if token == self._nav_token:
                app.set_is_navigating(False)
                self._emit(events.TOPIC_NAVIGATION_END, events.create_navigation_event(fragment, mode.value, token))

    def _route_editor(self, document_id: str, token: int) -> None:
        app = self.store.app
        if app.show_creation_dialog.value:
            app.set_show_creation_dialog(False)
        # Editor first so a reload never flashes Home
        self.store.editor.set_current_element_id(document_id)
        self.registry.spawn(
            self.store.open_element(document_id, is_current=lambda: token == self._nav_token),
            name="open_element",
        )

    def _route_create(self, category: Optional[str], query: str) -> None:
        app = self.store.app
        # Only one mode at a time
        if self.store.editor.current_element_id.value:
            self.store.close_element()
        app.set_show_creation_dialog(True)
        app.set_creation_dialog_category(category or self.config.default_creation_category)
        if self.store.gallery.search_query.value != query:
            self.store.gallery.set_search_query(query)

    def _route_gallery(self, query: str) -> None:
        if self.store.editor.current_element_id.value:
            self.store.close_element()
        if self.store.app.show_creation_dialog.value:
            self.store.app.set_show_creation_dialog(False)
        if self.store.gallery.search_query.value != query:
            self.store.gallery.set_search_query(query)

    # --- Plumbing ---

    def _read_local(self) -> str:
        try:
            return self.address_bar.read_fragment() or ""
        except Exception as e:
            logger.debug(f"Address bar unreadable: {e}")
            return ""

    def _replace_local(self, fragment: str) -> None:
        try:
            self.address_bar.replace_fragment(fragment)
        except Exception as e:
            logger.debug(f"Local fragment update unsupported: {e}")

    def _notify_host(self, fragment: str) -> bool:
        if self.host is None:
            return False
        value = f"{self.config.host_hash_prefix}{fragment}" if fragment else ""
        try:
            self.host.set_hash(value)
        except Exception as e:
            logger.warning(f"Host frame rejected fragment '{value}': {e}")
            return False
        return True

    def _emit(self, topic: str, payload: EventPayload) -> None:
        if self.bus.has_subscribers(topic):
            self.registry.spawn(self.bus.publish(topic, payload), name=topic)

    async def _handle_host_event(self, payload: EventPayload) -> None:
        await self.on_host_message(payload.get("data"))

    async def _handle_address_event(self, payload: EventPayload) -> None:
        await self.on_address_fragment_changed(payload.get("fragment"))

    async def wait_until_idle(self, timeout: float = 10.0) -> bool:
        """Wait for spawned document opens and lifecycle events."""
        return await self.registry.wait_until_idle(timeout)

    async def cleanup(self) -> None:
        for unsubscribe in self._unsubscribers:
            await unsubscribe()
        self._unsubscribers.clear()
        self.registry.dispose()
        self._started = False
