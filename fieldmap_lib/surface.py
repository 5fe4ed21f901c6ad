# -*- coding: utf-8 -*-
"""Rendering surface capability interface.

The subsystem drives an external, stateful map surface (tile rendering,
drawing, hit-testing) through the narrow :class:`RenderingSurface` and
:class:`DrawTool` protocols. Any implementation satisfying them works.

:class:`InMemorySurface` is a headless implementation that records what it
is told and lets callers simulate user events. Like real drawing tools, its
:class:`InMemoryDrawTool` reports a deletion event when its features are
cleared, whether the clear came from the user or from code.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any
from typing import Protocol

from geojson import Feature
from geojson import FeatureCollection

from fieldmap_lib.models import PointerEvent
from fieldmap_lib.models import Viewport

logger = logging.getLogger(__name__)

DrawHandler = Callable[[list[Feature]], None]
PointerHandler = Callable[[PointerEvent], None]
ViewHandler = Callable[[Viewport], None]
ReadyHandler = Callable[[], None]

Bounds = tuple[float, float, float, float]


class DrawTool(Protocol):
    """Protocol of the surface's stateful drawing tool."""

    def get_all(self) -> FeatureCollection:
        """Features currently held by the tool."""
        ...

    def delete_all(self) -> None:
        """Remove every feature (may fire a delete event)."""
        ...

    def add(self, feature: Feature) -> None:
        """Add a feature without firing a create event."""
        ...

    def change_mode(self, mode: str) -> None:
        """Switch the tool's internal mode (``draw_point``, ...)."""
        ...

    def set_interactive(self, enabled: bool) -> None:
        """Enable or neutralize user interaction with the tool."""
        ...


class RenderingSurface(Protocol):
    """Protocol of the interactive map surface."""

    draw_tool: DrawTool | None

    @property
    def ready(self) -> bool:
        """Whether sources and layers can be added."""
        ...

    def has_source(self, source_id: str) -> bool: ...

    def add_source(self, source_id: str, collection: FeatureCollection) -> None: ...

    def set_feature_collection(
        self, source_id: str, collection: FeatureCollection
    ) -> None: ...

    def has_layer(self, layer_id: str) -> bool: ...

    def add_layer(self, layer: dict[str, Any]) -> None: ...

    def remove_layer(self, layer_id: str) -> None: ...

    def fit_to_bounds(
        self, bounds: Bounds, *, padding: int = 0, max_zoom: float | None = None
    ) -> None: ...

    def on_ready(self, handler: ReadyHandler) -> None: ...

    def on_pointer_move(self, handler: PointerHandler) -> None: ...

    def on_click(self, handler: PointerHandler) -> None: ...

    def on_draw_create(self, handler: DrawHandler) -> None: ...

    def on_draw_update(self, handler: DrawHandler) -> None: ...

    def on_draw_delete(self, handler: DrawHandler) -> None: ...

    def on_view_change(self, handler: ViewHandler) -> None: ...


# -----------------------------------------------------------------------------
# In-memory implementation
# -----------------------------------------------------------------------------


class InMemoryDrawTool:
    """Headless drawing tool bound to an :class:`InMemorySurface`."""

    def __init__(self, surface: InMemorySurface) -> None:
        self._surface = surface
        self._features: list[Feature] = []
        self.mode = "simple_select"
        self.interactive = True
        self.mode_history: list[str] = []

    def get_all(self) -> FeatureCollection:
        return FeatureCollection(list(self._features))

    def delete_all(self) -> None:
        removed, self._features = self._features, []
        if removed:
            self._surface.fire_draw_delete(removed)

    def add(self, feature: Feature) -> None:
        self._features.append(feature)

    def change_mode(self, mode: str) -> None:
        self.mode = mode
        self.mode_history.append(mode)

    def set_interactive(self, enabled: bool) -> None:
        self.interactive = enabled

    # --- user simulation ---

    def user_create(self, feature: Feature) -> None:
        """Simulate the user drawing a new feature."""
        self._features.append(feature)
        self._surface.fire_draw_create([feature])

    def user_update(self, feature: Feature) -> None:
        """Simulate the user editing the (single) feature."""
        self._features = [feature]
        self._surface.fire_draw_update([feature])

    def user_delete(self) -> None:
        """Simulate the user pressing the trash control."""
        removed, self._features = self._features, []
        self._surface.fire_draw_delete(removed)


class InMemorySurface:
    """Headless :class:`RenderingSurface` recording every command."""

    def __init__(self, *, ready: bool = True, with_draw_tool: bool = True) -> None:
        self._ready = ready
        self.sources: dict[str, FeatureCollection] = {}
        self.layers: dict[str, dict[str, Any]] = {}
        self.push_counts: dict[str, int] = {}
        self.fitted_bounds: list[Bounds] = []
        self.fit_options: list[dict[str, Any]] = []
        self.draw_tool: InMemoryDrawTool | None = (
            InMemoryDrawTool(self) if with_draw_tool else None
        )
        self._handlers: dict[str, list[Callable[..., None]]] = {
            "ready": [],
            "pointer_move": [],
            "click": [],
            "draw_create": [],
            "draw_update": [],
            "draw_delete": [],
            "view_change": [],
        }

    @property
    def ready(self) -> bool:
        return self._ready

    # --- sources & layers ---

    def has_source(self, source_id: str) -> bool:
        return source_id in self.sources

    def add_source(self, source_id: str, collection: FeatureCollection) -> None:
        if source_id in self.sources:
            raise ValueError(f"Source already exists: {source_id}")
        self.sources[source_id] = collection

    def set_feature_collection(
        self, source_id: str, collection: FeatureCollection
    ) -> None:
        if source_id not in self.sources:
            raise KeyError(f"Unknown source: {source_id}")
        self.sources[source_id] = collection
        self.push_counts[source_id] = self.push_counts.get(source_id, 0) + 1

    def has_layer(self, layer_id: str) -> bool:
        return layer_id in self.layers

    def add_layer(self, layer: dict[str, Any]) -> None:
        layer_id = layer["id"]
        if layer_id in self.layers:
            raise ValueError(f"Layer already exists: {layer_id}")
        self.layers[layer_id] = layer

    def remove_layer(self, layer_id: str) -> None:
        self.layers.pop(layer_id, None)

    def fit_to_bounds(
        self, bounds: Bounds, *, padding: int = 0, max_zoom: float | None = None
    ) -> None:
        self.fitted_bounds.append(bounds)
        self.fit_options.append({"padding": padding, "max_zoom": max_zoom})

    # --- event registration ---

    def on_ready(self, handler: ReadyHandler) -> None:
        self._handlers["ready"].append(handler)

    def on_pointer_move(self, handler: PointerHandler) -> None:
        self._handlers["pointer_move"].append(handler)

    def on_click(self, handler: PointerHandler) -> None:
        self._handlers["click"].append(handler)

    def on_draw_create(self, handler: DrawHandler) -> None:
        self._handlers["draw_create"].append(handler)

    def on_draw_update(self, handler: DrawHandler) -> None:
        self._handlers["draw_update"].append(handler)

    def on_draw_delete(self, handler: DrawHandler) -> None:
        self._handlers["draw_delete"].append(handler)

    def on_view_change(self, handler: ViewHandler) -> None:
        self._handlers["view_change"].append(handler)

    # --- event emission ---

    def _fire(self, name: str, *args: Any) -> None:
        for handler in list(self._handlers[name]):
            handler(*args)

    def mark_ready(self) -> None:
        self._ready = True
        self._fire("ready")

    def fire_pointer_move(self, event: PointerEvent) -> None:
        self._fire("pointer_move", event)

    def fire_click(self, event: PointerEvent) -> None:
        self._fire("click", event)

    def fire_draw_create(self, features: list[Feature]) -> None:
        self._fire("draw_create", features)

    def fire_draw_update(self, features: list[Feature]) -> None:
        self._fire("draw_update", features)

    def fire_draw_delete(self, features: list[Feature]) -> None:
        self._fire("draw_delete", features)

    def fire_view_change(self, viewport: Viewport) -> None:
        self._fire("view_change", viewport)
