# -*- coding: utf-8 -*-
"""Hover and click overlays showing entity detail.

Two independent slots exist. ``HOVER`` follows the pointer (pointer capable
devices only) and closes when the pointer leaves every entity. ``CLICK``
stays open until dismissed or until a click on the background.

Opening a slot renders a ``LOADING`` view (with any cached detail) and then
upgrades it once the fetch completes, provided the slot still shows the
entity the fetch was issued for. Selecting another entity does not cancel
the fetch: its result still lands in the shared cache.

The controller keeps no detail of its own. Whatever it shows comes from the
cache, so invalidating the cache drops every record a later view could show.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from fieldmap_lib.enums import OverlaySlot
from fieldmap_lib.enums import OverlayState
from fieldmap_lib.errors import DetailFetchError
from fieldmap_lib.status import status_label

if TYPE_CHECKING:
    from collections.abc import Iterable

    from fieldmap_lib.detail.cache import DetailCache
    from fieldmap_lib.models import DetailRecord
    from fieldmap_lib.models import Entity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OverlayView:
    """What an overlay slot currently displays.

    Attributes:
        slot: Slot the view belongs to
        entity_id: Entity shown
        state: Loading / ready / offline / no data
        entity: Entity attributes, if the entity is known
        detail: Detail record (cached while loading), if any
    """

    slot: OverlaySlot
    entity_id: int
    state: OverlayState
    entity: Entity | None = None
    detail: DetailRecord | None = None

    @property
    def title(self) -> str:
        if self.entity is None:
            return f"#{self.entity_id}"
        return f"#{self.entity_id} - {status_label(self.entity.status)}"


InspectCallback = Callable[[OverlayView | None], None]


class OverlayController:
    """Drives the hover and click overlays from a :class:`DetailCache`.

    Args:
        cache: Shared detail cache
        pointer_capable: Whether the device reports hover (mouse, pen)
        on_entity_inspect: Called with every new view, or None when a slot
            is dismissed
    """

    def __init__(
        self,
        cache: DetailCache,
        *,
        pointer_capable: bool = True,
        on_entity_inspect: InspectCallback | None = None,
    ) -> None:
        self._cache = cache
        self.pointer_capable = pointer_capable
        self._on_entity_inspect = on_entity_inspect
        self._current: dict[OverlaySlot, int | None] = dict.fromkeys(OverlaySlot)
        self._views: dict[OverlaySlot, OverlayView | None] = dict.fromkeys(OverlaySlot)
        self._entities: dict[int, Entity] = {}

    def set_entities(self, entities: Iterable[Entity]) -> None:
        self._entities = {entity.id: entity for entity in entities}

    def current(self, slot: OverlaySlot) -> int | None:
        """Entity id the slot tracks."""
        return self._current[slot]

    def view(self, slot: OverlaySlot) -> OverlayView | None:
        return self._views[slot]

    def _emit(self, slot: OverlaySlot, view: OverlayView | None) -> None:
        self._views[slot] = view
        if self._on_entity_inspect is not None:
            self._on_entity_inspect(view)

    def dismiss(self, slot: OverlaySlot) -> None:
        if self._current[slot] is None and self._views[slot] is None:
            return
        self._current[slot] = None
        self._emit(slot, None)

    async def hover(self, entity_id: int | None) -> OverlayView | None:
        """Pointer moved over ``entity_id`` (None: over no entity)."""
        if not self.pointer_capable:
            return None
        if entity_id is None:
            self.dismiss(OverlaySlot.HOVER)
            return None
        if self._current[OverlaySlot.HOVER] == entity_id:
            return self._views[OverlaySlot.HOVER]
        return await self._open(OverlaySlot.HOVER, entity_id)

    async def click(self, entity_id: int | None) -> OverlayView | None:
        """Click on ``entity_id`` (None: click on the background)."""
        if entity_id is None:
            self.dismiss(OverlaySlot.CLICK)
            return None
        return await self._open(OverlaySlot.CLICK, entity_id)

    async def _open(self, slot: OverlaySlot, entity_id: int) -> OverlayView | None:
        self._current[slot] = entity_id
        entity = self._entities.get(entity_id)
        cached = self._cache.peek(entity_id)
        self._emit(
            slot,
            OverlayView(
                slot=slot,
                entity_id=entity_id,
                state=OverlayState.LOADING,
                entity=entity,
                detail=cached,
            ),
        )

        try:
            record = await self._cache.get_detail(entity_id)
        except DetailFetchError as e:
            logger.warning("No detail for entity %s: %s", entity_id, e)
            record = None

        if self._current[slot] != entity_id:
            logger.debug(
                "Discarding stale %s overlay for entity %s", slot.value, entity_id
            )
            return None

        if record is None:
            fallback = self._cache.peek(entity_id)
            state = OverlayState.NO_DATA if fallback is None else OverlayState.OFFLINE
        else:
            fallback = record
            state = OverlayState.OFFLINE if record.offline else OverlayState.READY

        view = OverlayView(
            slot=slot,
            entity_id=entity_id,
            state=state,
            entity=self._entities.get(entity_id),
            detail=fallback,
        )
        self._emit(slot, view)
        return view
