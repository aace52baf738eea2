"""Reaction Registry.

Watchers bind a selector over one or more State Containers to a side
effect. A watcher re-runs its selector on every notification of the
FletXr reactive fields it is bound to and fires its effect only when the
selected tuple changes (shallow, positional equality). Registration never
fires the effect.

Watchers are independent: none of them may assume another one has already
run. ``register_reactions`` wires the studio's reactions against the canvas
and returns one disposer for all of them.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from fletx.core import Reactive

from studio.shared.core.collaborators import Canvas, EventTarget, SidePanels
from studio.shared.core.configuration import ReactionConfig

logger = logging.getLogger(__name__)

Selector = Callable[[Any], Any]
Effect = Callable[[Tuple[Any, ...]], Optional[Awaitable[Any]]]
Disposer = Callable[[], None]


def reactive_sources(container: Any, depth: int = 1) -> List[Reactive]:
    """Collect the reactive fields of ``container``.

    Public attributes holding a ``Reactive`` are collected; other public
    attributes are searched ``depth`` more levels so a Store exposes the
    fields of its sub-states. Lists and tuples of containers are merged.
    """
    found: Dict[int, Reactive] = {}
    visited: Set[int] = set()

    def visit(obj: Any, level: int) -> None:
        if isinstance(obj, Reactive):
            found.setdefault(id(obj), obj)
            return
        if isinstance(obj, (list, tuple)):
            for item in obj:
                visit(item, level)
            return
        if id(obj) in visited:
            return
        visited.add(id(obj))
        for name, value in getattr(obj, "__dict__", {}).items():
            if name.startswith("_"):
                continue
            if isinstance(value, Reactive):
                found.setdefault(id(value), value)
            elif level > 0 and hasattr(value, "__dict__"):
                visit(value, level - 1)

    visit(container, depth)
    return list(found.values())


def values_equal(a: Optional[Tuple[Any, ...]], b: Optional[Tuple[Any, ...]]) -> bool:
    """Shallow positional equality of two selector results."""
    if a is None or b is None:
        return a is b
    if len(a) != len(b):
        return False
    return all(x is y or x == y for x, y in zip(a, b))


class Watcher:
    """A selector/effect pair bound to the reactive fields of a container."""

    def __init__(
        self,
        registry: "ReactionRegistry",
        container: Any,
        selector: Selector,
        effect: Effect,
        debounce_ms: int = 0,
        name: Optional[str] = None,
    ) -> None:
        self.registry = registry
        self.container = container
        self.selector = selector
        self.effect = effect
        self.debounce_ms = debounce_ms
        self.name = name or getattr(effect, "__name__", "reaction")
        self.disposed = False
        self._pending: Optional[asyncio.TimerHandle] = None

        self.last_value: Optional[Tuple[Any, ...]] = self._evaluate()
        self._observers = [source.listen(self._on_notify) for source in reactive_sources(container)]

    def _evaluate(self) -> Tuple[Any, ...]:
        result = self.selector(self.container)
        if isinstance(result, (tuple, list)):
            return tuple(result)
        return (result,)

    def _on_notify(self, *_: Any) -> None:
        if self.disposed:
            return
        if self.debounce_ms <= 0:
            self.check()
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.check()
            return
        if self._pending is not None:
            self._pending.cancel()
        self._pending = loop.call_later(self.debounce_ms / 1000, self._flush)

    def _flush(self) -> None:
        self._pending = None
        if not self.disposed:
            self.check()

    def check(self) -> bool:
        """Re-run the selector and fire the effect when the result changed."""
        try:
            values = self._evaluate()
        except Exception:
            logger.exception(f"Selector of reaction '{self.name}' failed")
            return False
        if values_equal(values, self.last_value):
            return False
        self.last_value = values
        self.registry.run_effect(self, values)
        return True

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        for observer in self._observers:
            observer.dispose()
        self._observers = []


class ReactionRegistry:
    """Owns watchers, raw listeners and the currently bound scroll target."""

    def __init__(self) -> None:
        self._watchers: List[Watcher] = []
        self._listeners: List[Tuple[EventTarget, str, Callable[[], None]]] = []
        self._tasks: Set[asyncio.Task] = set()
        self._scroll_target: Optional[EventTarget] = None
        self._scroll_callback: Optional[Callable[[], None]] = None

    @property
    def watchers(self) -> Sequence[Watcher]:
        return tuple(w for w in self._watchers if not w.disposed)

    @property
    def scroll_target(self) -> Optional[EventTarget]:
        return self._scroll_target

    def register(
        self,
        container: Any,
        selector: Selector,
        effect: Effect,
        debounce_ms: int = 0,
        name: Optional[str] = None,
    ) -> Disposer:
        """Bind ``effect`` to changes of ``selector(container)``.

        The selector is evaluated once now; the effect only runs on later
        changes. Returns a disposer for this watcher alone.
        """
        watcher = Watcher(self, container, selector, effect, debounce_ms, name)
        self._watchers.append(watcher)

        def _dispose() -> None:
            watcher.dispose()
            if watcher in self._watchers:
                self._watchers.remove(watcher)

        return _dispose

    def run_effect(self, watcher: Watcher, values: Tuple[Any, ...]) -> None:
        try:
            result = watcher.effect(values)
        except Exception:
            logger.exception(f"Reaction '{watcher.name}' failed")
            return
        if inspect.isawaitable(result):
            self.spawn(result, watcher.name)

    def spawn(self, awaitable: Awaitable[Any], name: str = "reaction") -> Optional[asyncio.Task]:
        """Run an awaitable effect as a tracked task."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"Reaction '{name}' returned an awaitable outside of a running loop; dropped")
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return None
        task = loop.create_task(self._guard(awaitable, name))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guard(self, awaitable: Awaitable[Any], name: str) -> None:
        try:
            await awaitable
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"Async reaction '{name}' failed")

    async def wait_until_idle(self, timeout: float = 10.0) -> bool:
        """Wait for spawned effects, including ones they spawn."""
        loop = asyncio.get_running_loop()
        start = loop.time()
        while self._tasks:
            if loop.time() - start > timeout:
                logger.warning(f"Timeout while waiting for {len(self._tasks)} reaction task(s)")
                return False
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
            await asyncio.sleep(0)
        return True

    # --- Raw listeners ---

    def listen(self, target: EventTarget, event: str, callback: Callable[[], None]) -> Disposer:
        """Attach a raw listener owned by the registry."""
        target.add_listener(event, callback)
        entry = (target, event, callback)
        self._listeners.append(entry)

        def _remove() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)
                target.remove_listener(event, callback)

        return _remove

    def bind_scroll_target(self, target: Optional[EventTarget], callback: Callable[[], None]) -> bool:
        """Move the scroll listener to ``target``. Returns True when it was rebound."""
        if target is None or target is self._scroll_target:
            return False
        self._unbind_scroll()
        target.add_listener("scroll", callback)
        self._scroll_target = target
        self._scroll_callback = callback
        return True

    def _unbind_scroll(self) -> None:
        if self._scroll_target is not None and self._scroll_callback is not None:
            self._scroll_target.remove_listener("scroll", self._scroll_callback)
        self._scroll_target = None
        self._scroll_callback = None

    def dispose(self) -> None:
        """Remove every watcher and raw listener; cancel pending effects."""
        for target, event, callback in self._listeners:
            target.remove_listener(event, callback)
        self._listeners.clear()
        self._unbind_scroll()
        for watcher in self._watchers:
            watcher.dispose()
        self._watchers.clear()
        for task in list(self._tasks):
            task.cancel()


def _intent_kind(action_type: str, prefixes: Iterable[str]) -> Optional[str]:
    for prefix in prefixes:
        if action_type.startswith(prefix):
            return prefix.rstrip(":")
    return None


def register_reactions(
    store: Any,
    canvas: Canvas,
    window: EventTarget,
    panels: Optional[SidePanels] = None,
    config: Optional[ReactionConfig] = None,
    registry: Optional[ReactionRegistry] = None,
) -> Disposer:
    """Register the studio reactions and return their aggregate disposer."""
    config = config or ReactionConfig()
    registry = registry or ReactionRegistry()
    editor = store.editor
    comments = store.comments
    app = store.app
    documents = store.documents

    # Deep-link or document switch mounts the canvas and refreshes panels
    def mount_document(values: Tuple[Any, ...]) -> None:
        (element_id,) = values
        canvas.load_editor_content()
        if panels is None:
            return
        try:
            if element_id:
                panels.refresh_used_in(element_id)
        except Exception as e:
            logger.warning(f"Used-in refresh failed for '{element_id}': {e}")
        try:
            panels.refresh_versions()
        except Exception as e:
            logger.warning(f"Versions refresh failed: {e}")

    registry.register(editor, lambda s: (s.current_element_id.value,), mount_document, name="mount_document")

    def remount_content(values: Tuple[Any, ...]) -> None:
        canvas.load_editor_content()

    registry.register(
        app,
        lambda s: (s.current_element.value.html if s.current_element.value else None,),
        remount_content,
        name="remount_content",
    )

    # Selection keeps side nav, overlay and toolbar in sync; centers on user intent
    def follow_selection(values: Tuple[Any, ...]) -> None:
        element_id, slot = values
        canvas.scroll_side_nav_to_selection()
        canvas.update_comments_overlay()
        if element_id:
            editor.show_toolbar(element_id)
        else:
            editor.hide_toolbar()

        last = editor.last_user_action.value
        if last is None or not last.user:
            return
        kind = _intent_kind(last.type, config.centering_action_prefixes)
        if kind is None or not element_id:
            return

        try:
            viewport = canvas.viewport_rect()
            anchor = canvas.anchor_rect(element_id, slot)
        except Exception as e:
            # Unmeasurable: never force a jump
            logger.debug(f"Centering measurement failed for '{element_id}': {e}")
            return

        if viewport is not None and anchor is not None and anchor.is_outside(viewport):
            canvas.center_on(element_id, slot)
            editor.set_last_action(f"{kind}:center-on-exec", {})
        else:
            editor.set_last_action(
                f"{kind}:center-on-skip",
                {
                    "reason": "visible",
                    "viewport": viewport.summary() if viewport else None,
                    "anchor": anchor.summary() if anchor else None,
                },
            )

    registry.register(
        editor,
        lambda s: (s.editing_element.value, s.current_slot.value),
        follow_selection,
        name="follow_selection",
    )

    # Comment hover highlights its element; only one element is highlighted at a time
    hovered: Dict[str, Optional[str]] = {"element": None}

    def update_comments(*_: Any) -> None:
        canvas.sync_comments_panel_view()
        canvas.update_comments_overlay()
        element_id = canvas.element_for_comment(comments.hovered_comment_id.value)
        last = hovered["element"]
        if last and last != element_id:
            canvas.set_comment_hover(last, False)
            hovered["element"] = None
        if element_id:
            canvas.set_comment_hover(element_id, True)
            hovered["element"] = element_id

    registry.register(
        comments,
        lambda s: (s.hovered_comment_id.value, s.comments_panel_open.value),
        update_comments,
        name="update_comments",
    )

    def select_commented_element(values: Tuple[Any, ...]) -> None:
        (comment_id,) = values
        canvas.select_element(canvas.element_for_comment(comment_id))

    registry.register(
        comments,
        lambda s: (s.selected_comment_id.value,),
        select_commented_element,
        name="select_commented_element",
    )

    # Overlay follows resizes and canvas scrolling
    def on_resize() -> None:
        update_comments()

    def on_scroll() -> None:
        update_comments()

    registry.listen(window, "resize", on_resize)

    def rebind_scroll(values: Tuple[Any, ...]) -> None:
        registry.bind_scroll_target(canvas.scroll_container(), on_scroll)

    registry.register(
        editor,
        lambda s: (s.current_element_id.value, s.editing_element.value),
        rebind_scroll,
        debounce_ms=config.scroll_debounce_ms,
        name="rebind_scroll",
    )

    # Landing on Home loads the gallery
    home: Dict[str, bool] = {"was_home": False}

    def load_on_home(values: Tuple[Any, ...]) -> Optional[Awaitable[None]]:
        if store.is_home and not home["was_home"]:
            home["was_home"] = True
            return documents.load_all_elements_into(store.gallery, app)
        if not store.is_home:
            home["was_home"] = False
        return None

    registry.register(
        store,
        lambda s: (s.editor.current_element_id.value, s.app.show_creation_dialog.value),
        load_on_home,
        name="load_on_home",
    )

    # Saves finishing while on Home refresh the list
    saving: Dict[str, bool] = {"previous": bool(documents.is_saving.value)}

    def reload_after_save(values: Tuple[Any, ...]) -> Optional[Awaitable[None]]:
        (now_saving,) = values
        was_saving = saving["previous"]
        saving["previous"] = bool(now_saving)
        if was_saving and not now_saving and store.is_home:
            return documents.load_all_elements_into(store.gallery, app)
        return None

    registry.register(documents, lambda s: (s.is_saving.value,), reload_after_save, name="reload_after_save")

    def reload_gallery(values: Tuple[Any, ...]) -> Optional[Awaitable[None]]:
        if store.is_home:
            return documents.load_all_elements_into(store.gallery, app)
        return None

    registry.register(
        store.gallery, lambda s: (s.current_folder_id.value,), reload_gallery, name="reload_on_folder"
    )
    registry.register(store.gallery, lambda s: (s.gallery_view.value,), reload_gallery, name="reload_on_view")

    return registry.dispose
