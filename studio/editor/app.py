"""Studio application lifecycle.

Wires the store, the reactions and the router against the collaborators the
embedding page provides, and tears them down again.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from studio.shared.core.collaborators import AddressBar, Canvas, DocumentService, EventTarget, HostFrame, SidePanels
from studio.shared.core.configuration import SystemConfig
from studio.shared.core.event_bus import EventBus
from studio.shared.domain.navigation.fragment import RouteMode, decode_fragment
from studio.editor.reactions import ReactionRegistry, register_reactions
from studio.editor.router import Router
from studio.editor.state import Store

logger = logging.getLogger(__name__)


class StudioApp:
    """One studio instance: store, reactions and router."""

    def __init__(
        self,
        documents: DocumentService,
        canvas: Canvas,
        window: EventTarget,
        address_bar: AddressBar,
        host: Optional[HostFrame] = None,
        panels: Optional[SidePanels] = None,
        config: Optional[SystemConfig] = None,
        event_bus: Optional[EventBus] = None,
        use_global_store: bool = False,
    ) -> None:
        self.config = config or SystemConfig()
        self.bus = event_bus or EventBus()
        self.canvas = canvas
        self.window = window
        self.address_bar = address_bar
        self.host = host
        self.panels = panels
        self.use_global_store = use_global_store

        if use_global_store:
            self.store = Store.initialize(self.bus, documents, self.config)
        else:
            self.store = Store(self.bus, documents, self.config)
        self.registry = ReactionRegistry()
        self.router: Optional[Router] = None
        self._dispose_reactions: Optional[Callable[[], None]] = None

    async def start(self) -> None:
        """Prime deep links, register reactions, start routing, mount."""
        await self.store.init()
        self._prime_deep_link()

        self._dispose_reactions = register_reactions(
            self.store,
            self.canvas,
            self.window,
            panels=self.panels,
            config=self.config.reactions,
            registry=self.registry,
        )

        self.router = Router(self.store, self.address_bar, host=self.host, event_bus=self.bus)
        await self.router.start()

        await self._initial_mount()
        self.store.app.set_status("Ready")
        logger.info("Studio started")

    def _prime_deep_link(self) -> None:
        """Enter the editor before routing so a deep link never shows Home first."""
        try:
            fragment = self.address_bar.read_fragment()
        except Exception as e:
            logger.debug(f"No initial fragment: {e}")
            return
        target = decode_fragment(fragment, self.config.navigation.default_creation_category)
        if target.mode is RouteMode.EDITOR:
            self.store.editor.set_current_element_id(target.active_document_id)
            self.store.app.set_is_navigating(True)

    async def _initial_mount(self) -> None:
        # Watchers only see later changes; the first mount is explicit
        if self.store.editor.current_element_id.value:
            self.canvas.load_editor_content()
        elif self.store.is_home:
            try:
                await self.store.documents.load_all_elements_into(self.store.gallery, self.store.app)
            except Exception as e:
                logger.warning(f"Initial gallery load failed: {e}")

    async def connect_host(self, host: HostFrame, initial_hash: Optional[str] = None) -> None:
        self.host = host
        if self.router is not None:
            await self.router.connect_host(host, initial_hash)

    async def wait_until_idle(self, timeout: float = 10.0) -> bool:
        """Drain routing tasks, reaction tasks and bus handlers."""
        idle = True
        if self.router is not None:
            idle = await self.router.wait_until_idle(timeout) and idle
        idle = await self.registry.wait_until_idle(timeout) and idle
        idle = await self.bus.wait_until_idle(timeout) and idle
        return idle

    async def stop(self) -> None:
        if self.router is not None:
            await self.router.cleanup()
            self.router = None
        if self._dispose_reactions is not None:
            self._dispose_reactions()
            self._dispose_reactions = None
        if self.use_global_store:
            Store.reset()
        logger.info("Studio stopped")
