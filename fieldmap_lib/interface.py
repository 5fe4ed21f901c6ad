# -*- coding: utf-8 -*-
"""Unified interface of the map annotation subsystem.

:class:`FieldMapInterface` wires a rendering surface to the components that
are allowed to act on it:

1. :class:`~fieldmap_lib.features.FeatureSynchronizer` renders entities,
   work areas and survey boundaries
2. :class:`~fieldmap_lib.draw.DrawModeController` owns the drawing tool
3. :class:`~fieldmap_lib.overlay.OverlayController` shows entity detail
   served by a shared :class:`~fieldmap_lib.detail.DetailCache`

Surface events are synchronous callbacks; detail fetches they trigger run as
tasks on the running event loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from collections.abc import Coroutine
from typing import TYPE_CHECKING
from typing import Any

from fieldmap_lib.constants import CANONICAL_SYSTEM_KEY
from fieldmap_lib.detail.cache import DetailCache
from fieldmap_lib.draw import DraftMoveCallback
from fieldmap_lib.draw import DrawModeController
from fieldmap_lib.draw import PointPlacedCallback
from fieldmap_lib.draw import PolygonChangeCallback
from fieldmap_lib.enums import DrawMode
from fieldmap_lib.enums import OverlaySlot
from fieldmap_lib.features import FeatureSynchronizer
from fieldmap_lib.features import parse_areas
from fieldmap_lib.features import parse_entities
from fieldmap_lib.models import Area
from fieldmap_lib.models import Entity
from fieldmap_lib.models import Viewport
from fieldmap_lib.overlay import InspectCallback
from fieldmap_lib.overlay import OverlayController

if TYPE_CHECKING:
    import datetime
    from collections.abc import Iterable
    from collections.abc import Sequence

    from fieldmap_lib.detail.offline import OfflineStore
    from fieldmap_lib.detail.sources import DetailSource
    from fieldmap_lib.models import PointerEvent
    from fieldmap_lib.models import Position
    from fieldmap_lib.models import StationPoint
    from fieldmap_lib.surface import RenderingSurface

logger = logging.getLogger(__name__)

ViewChangeCallback = Callable[[Viewport], None]


class FieldMapInterface:
    """Map annotation subsystem bound to one rendering surface.

    Example:
        surface = InMemorySurface()
        source = HttpDetailSource("https://api.example.org/v1")
        fieldmap = FieldMapInterface(surface, source, on_entity_inspect=print)

        fieldmap.set_entities(rows)          # render + invalidate details
        fieldmap.draw.enter_mode("drawing_polygon")
        ring = fieldmap.draw.commit()        # raises if < 3 vertices
    """

    def __init__(
        self,
        surface: RenderingSurface,
        source: DetailSource,
        *,
        offline: OfflineStore | None = None,
        pointer_capable: bool = True,
        on_entity_inspect: InspectCallback | None = None,
        on_polygon_change: PolygonChangeCallback | None = None,
        on_point_placed: PointPlacedCallback | None = None,
        on_draft_move: DraftMoveCallback | None = None,
        on_view_change: ViewChangeCallback | None = None,
        today: Callable[[], datetime.date] | None = None,
    ) -> None:
        self.surface = surface
        self.synchronizer = FeatureSynchronizer(surface)
        self.cache = DetailCache(source, offline, today=today)
        self.overlay = OverlayController(
            self.cache,
            pointer_capable=pointer_capable,
            on_entity_inspect=on_entity_inspect,
        )
        self.draw = DrawModeController(
            surface.draw_tool,
            on_point_placed=on_point_placed,
            on_polygon_change=on_polygon_change,
            on_draft_move=on_draft_move,
        )
        self._on_view_change = on_view_change
        self._tasks: set[asyncio.Task[Any]] = set()
        self.entities: list[Entity] = []

        surface.on_ready(self.synchronizer.surface_ready)
        surface.on_pointer_move(self._handle_pointer_move)
        surface.on_click(self._handle_click)
        surface.on_view_change(self._handle_view_change)
        self.draw.bind(surface)
        self.synchronizer.attach()

    # -------------------------------------------------------------------------
    # Data
    # -------------------------------------------------------------------------

    def set_entities(self, entities: Iterable[Entity | dict[str, Any]]) -> bool:
        """Replace the entity list (a bulk refresh from the backing store).

        Every cached or in-flight detail is invalidated.

        Returns:
            True if the surface was updated
        """
        items = list(entities)
        rows = [item for item in items if isinstance(item, dict)]
        self.entities = [item for item in items if isinstance(item, Entity)]
        self.entities.extend(parse_entities(rows))

        self.cache.invalidate()
        self.overlay.set_entities(self.entities)
        return self.synchronizer.update_entities(self.entities)

    def set_areas(self, areas: Iterable[Area | dict[str, Any]]) -> bool:
        items = list(areas)
        parsed = [item for item in items if isinstance(item, Area)]
        parsed.extend(parse_areas(item for item in items if isinstance(item, dict)))
        return self.synchronizer.update_areas(parsed)

    def show_boundary(
        self,
        points: Sequence[Position],
        system_key: str = CANONICAL_SYSTEM_KEY,
    ) -> list[StationPoint]:
        """Render a survey boundary entered in ``system_key``."""
        return self.synchronizer.push_boundary(points, system_key)

    def fit_entities(self) -> bool:
        """Fit the view to every entity with a finite position."""
        return self.synchronizer.fit_to(entity.position for entity in self.entities)

    # -------------------------------------------------------------------------
    # Surface events
    # -------------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any] | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, dropping overlay update")
            coro.close()
            return None
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _handle_pointer_move(self, event: PointerEvent) -> None:
        if not self.overlay.pointer_capable:
            return
        if event.entity_id == self.overlay.current(OverlaySlot.HOVER):
            return
        self._spawn(self.overlay.hover(event.entity_id))

    def _handle_click(self, event: PointerEvent) -> None:
        if self.draw.mode != DrawMode.IDLE:
            # Clicks place geometry while drawing
            return
        self._spawn(self.overlay.click(event.entity_id))

    def _handle_view_change(self, viewport: Viewport) -> None:
        if self._on_view_change is None:
            return
        self._on_view_change(
            Viewport.from_camera(
                viewport.lng,
                viewport.lat,
                viewport.zoom,
                viewport.bearing,
                viewport.pitch,
            )
        )

    async def drain(self) -> None:
        """Wait for every overlay update triggered by surface events."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
