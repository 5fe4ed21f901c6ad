# -*- coding: utf-8 -*-
"""Draw-mode controller.

The rendering surface's drawing tool fires create/update/delete events for
user edits *and* for edits issued by code. This controller is the only
component allowed to edit the tool. Before clearing or replacing the tool's
content it arms a one-shot ``suppress_next_delete`` flag (only when the tool
holds at least one feature), so the delete event caused by its own edit is
swallowed instead of being reported as a user deletion.

The flag expires on the next event loop tick. Without a running loop it
expires as soon as the programmatic edit returns, which suits drawing tools
that fire their events synchronously.

Lifecycle::

    IDLE --enter_mode--> PLACING_POINT | DRAWING_POLYGON
         <--commit / cancel / set_active(False)--
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING
from typing import Any

from geojson import Feature
from geojson import Point
from geojson import Polygon

from fieldmap_lib.enums import DrawMode
from fieldmap_lib.errors import DrawingDisabledError
from fieldmap_lib.geometry import close_ring
from fieldmap_lib.geometry import is_placeholder
from fieldmap_lib.geometry import label_points
from fieldmap_lib.geometry import open_ring
from fieldmap_lib.geometry import valid_points
from fieldmap_lib.geometry import validate_ring
from fieldmap_lib.models import Position
from fieldmap_lib.models import StationPoint

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fieldmap_lib.surface import DrawTool
    from fieldmap_lib.surface import RenderingSurface

logger = logging.getLogger(__name__)

PointPlacedCallback = Callable[[Position | None], None]
PolygonChangeCallback = Callable[[list[StationPoint] | None], None]
DraftMoveCallback = Callable[[Position], None]
Scheduler = Callable[[Callable[[], None]], Any]

POLYGON_TYPES = ("Polygon", "MultiPolygon")


@dataclass
class DrawSession:
    """Ephemeral state of the current interaction.

    Attributes:
        mode: Current interaction mode
        suppress_next_delete: Swallow the next delete event from the tool
        pending: Unsaved geometry (a point or an open, labelled ring)
    """

    mode: DrawMode = DrawMode.IDLE
    suppress_next_delete: bool = False
    pending: Position | list[StationPoint] | None = None


def _feature_type(feature: dict[str, Any]) -> str | None:
    geometry = feature.get("geometry") or {}
    return geometry.get("type")


def _point_from_feature(feature: dict[str, Any]) -> Position:
    lng, lat = feature["geometry"]["coordinates"][:2]
    return Position(x=float(lng), y=float(lat))


def _ring_from_feature(feature: dict[str, Any]) -> list[StationPoint]:
    geometry = feature["geometry"]
    coordinates = geometry["coordinates"]
    if geometry["type"] == "MultiPolygon":
        coordinates = coordinates[0]
    outer = coordinates[0] if coordinates else []
    ring = [Position(x=float(c[0]), y=float(c[1])) for c in outer]
    finite = [p for p in ring if p.is_finite]
    if len(finite) != len(ring):
        logger.warning(
            "Dropping %d drawn vertices with non-finite coordinates",
            len(ring) - len(finite),
        )
    return label_points(open_ring(finite))


def _ring_key(points: Sequence[Position]) -> list[tuple[float, float]]:
    return [p.as_tuple() for p in points]


class DrawModeController:
    """Single authority over the drawing tool and the draw session.

    Args:
        tool: The surface drawing tool (None when the surface has none)
        on_point_placed: Called with the placed point, or None when cleared
        on_polygon_change: Called with the labelled open ring, or None
        on_draft_move: Called with the new draft position on drag end
        schedule: Runs a callback on the next tick. Defaults to
            ``loop.call_soon`` of the running loop.
    """

    def __init__(
        self,
        tool: DrawTool | None,
        *,
        on_point_placed: PointPlacedCallback | None = None,
        on_polygon_change: PolygonChangeCallback | None = None,
        on_draft_move: DraftMoveCallback | None = None,
        schedule: Scheduler | None = None,
    ) -> None:
        self._tool = tool
        self._on_point_placed = on_point_placed
        self._on_polygon_change = on_polygon_change
        self._on_draft_move = on_draft_move
        self._schedule = schedule

        self.session = DrawSession()
        self.active = True
        self.draft: Position | None = None
        self.committed: Position | list[StationPoint] | None = None
        self._reported_ring: list[tuple[float, float]] | None = None
        self._suppress_token = 0

    @property
    def mode(self) -> DrawMode:
        return self.session.mode

    def bind(self, surface: RenderingSurface) -> None:
        """Subscribe to the surface's draw events."""
        surface.on_draw_create(self.handle_draw_create)
        surface.on_draw_update(self.handle_draw_update)
        surface.on_draw_delete(self.handle_draw_delete)

    # -------------------------------------------------------------------------
    # Programmatic edits
    # -------------------------------------------------------------------------

    def _tool_features(self) -> list[dict[str, Any]]:
        if self._tool is None:
            return []
        return list(self._tool.get_all()["features"])

    def _arm_suppression(self) -> tuple[int, bool]:
        self.session.suppress_next_delete = True
        self._suppress_token += 1
        token = self._suppress_token

        if self._schedule is not None:
            self._schedule(lambda: self._expire_suppression(token))
            return token, True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return token, False
        loop.call_soon(self._expire_suppression, token)
        return token, True

    def _expire_suppression(self, token: int) -> None:
        if token == self._suppress_token and self.session.suppress_next_delete:
            logger.debug("Suppression flag expired without a delete event")
            self.session.suppress_next_delete = False

    def _replace_tool_content(self, features: Sequence[Feature]) -> None:
        """Clear the tool and add ``features`` without reporting a deletion."""
        tool = self._tool
        if tool is None:
            return

        deferred = True
        token = None
        if self._tool_features():
            token, deferred = self._arm_suppression()
        try:
            tool.delete_all()
            for feature in features:
                tool.add(feature)
        finally:
            if not deferred:
                self._expire_suppression(token)

    def clear(self) -> None:
        """Programmatically empty the drawing tool."""
        self._replace_tool_content([])

    # -------------------------------------------------------------------------
    # Modes
    # -------------------------------------------------------------------------

    def _keep_single_geometry(self) -> None:
        features = self._tool_features()
        if len(features) > 1:
            logger.debug("Keeping 1 of %d drawn features", len(features))
            self._replace_tool_content([features[-1]])

    def enter_mode(self, mode: DrawMode | str) -> bool:
        """Switch interaction mode.

        Re-issues the tool's mode command even when the mode is unchanged.

        Returns:
            False if the controller is disabled (nothing changes)
        """
        mode = DrawMode(mode)
        if not self.active:
            logger.debug("Ignoring mode switch to %s: drawing disabled", mode.value)
            return False

        if self.session.mode == DrawMode.DRAWING_POLYGON and mode != self.session.mode:
            self._keep_single_geometry()

        if mode != self.session.mode:
            self.session = DrawSession(
                mode=mode, suppress_next_delete=self.session.suppress_next_delete
            )
        if self._tool is not None:
            self._tool.change_mode(mode.tool_mode)
        return True

    def set_active(self, enabled: bool) -> None:
        """Enable or disable drawing.

        Disabling rejects commits and neutralizes the tool. Committed
        geometry stays; an uncommitted point draft is cleared.
        """
        if enabled == self.active:
            return
        self.active = enabled
        if self._tool is not None:
            self._tool.set_interactive(enabled)
        if enabled:
            return

        session = self.session
        uncommitted = session.pending is not None or self.draft is not None
        if session.mode == DrawMode.PLACING_POINT and uncommitted:
            self._replace_tool_content(self._committed_features())
            session.pending = None
            self.draft = None
            if self._on_point_placed is not None:
                self._on_point_placed(None)

        self.session = DrawSession(suppress_next_delete=session.suppress_next_delete)
        if self._tool is not None:
            self._tool.change_mode(DrawMode.IDLE.tool_mode)

    def _committed_features(self) -> list[Feature]:
        if isinstance(self.committed, Position):
            return [Feature(geometry=Point(self.committed.as_tuple()))]
        if self.committed:
            ring = [p.as_tuple() for p in close_ring(self.committed)]
            return [Feature(geometry=Polygon([ring]))]
        return []

    # -------------------------------------------------------------------------
    # Mirroring external state
    # -------------------------------------------------------------------------

    def set_draft(self, position: Position | None) -> None:
        """Mirror an externally owned draft point into the tool.

        ``None`` and the ``(0, 0)`` placeholder mean "no draft".
        """
        if position is not None and (is_placeholder(position) or not position.is_finite):
            position = None

        if position is None:
            if self.draft is not None:
                self.draft = None
                self.clear()
            return

        if self.draft is not None and self.draft.same_coordinates(position):
            return
        self.draft = position
        self._replace_tool_content([Feature(geometry=Point(position.as_tuple()))])

    def set_polygon(self, points: Sequence[Position] | None) -> bool:
        """Mirror manually entered boundary vertices into the tool.

        The echo of this controller's own last ``on_polygon_change`` report
        is ignored.

        Returns:
            True if the tool content was replaced
        """
        ring = open_ring(valid_points(points or []))
        key = _ring_key(ring)
        if self._reported_ring is not None and key == self._reported_ring:
            logger.debug("Ignoring echoed polygon (%d vertices)", len(key))
            return False

        self._reported_ring = key
        if len(ring) < 3:
            self.clear()
        else:
            closed = [p.as_tuple() for p in close_ring(ring)]
            self._replace_tool_content([Feature(geometry=Polygon([closed]))])
        return True

    # -------------------------------------------------------------------------
    # Tool events
    # -------------------------------------------------------------------------

    def _report_polygon(self, ring: list[StationPoint] | None) -> None:
        self._reported_ring = None if ring is None else _ring_key(ring)
        if self._on_polygon_change is not None:
            self._on_polygon_change(ring)

    def _accept_point(self, position: Position) -> None:
        if not position.is_finite:
            logger.warning("Ignoring drawn point with non-finite coordinates")
            return
        self.session.pending = position
        self._keep_single_geometry()
        if self._on_point_placed is not None:
            self._on_point_placed(position)

    def _accept_polygon(self, feature: dict[str, Any]) -> None:
        ring = _ring_from_feature(feature)
        self.session.pending = ring
        self._report_polygon(ring)

    def handle_draw_create(self, features: list[dict[str, Any]]) -> None:
        """Tool create event."""
        if not self.active:
            logger.debug("Ignoring draw create: drawing disabled")
            return
        for feature in features:
            kind = _feature_type(feature)
            if kind == "Point":
                position = _point_from_feature(feature)
                if self.draft is not None and self.draft.same_coordinates(position):
                    logger.debug("Ignoring create event for the current draft")
                    continue
                self._accept_point(position)
            elif kind in POLYGON_TYPES:
                self._accept_polygon(feature)

    def handle_draw_update(self, features: list[dict[str, Any]]) -> None:
        """Tool update event (vertex or point moved)."""
        if not self.active:
            logger.debug("Ignoring draw update: drawing disabled")
            return
        for feature in features:
            kind = _feature_type(feature)
            if kind == "Point":
                self._accept_point(_point_from_feature(feature))
            elif kind in POLYGON_TYPES:
                self._accept_polygon(feature)

    def handle_draw_delete(self, features: list[dict[str, Any]]) -> bool:
        """Tool delete event.

        Returns:
            True if the deletion was reported, False if it was suppressed
        """
        if self.session.suppress_next_delete:
            self.session.suppress_next_delete = False
            logger.debug("Suppressed delete event (%d features)", len(features))
            return False

        kinds = {_feature_type(f) for f in features}
        if not kinds:
            kinds = {
                DrawMode.PLACING_POINT: {"Point"},
                DrawMode.DRAWING_POLYGON: {"Polygon"},
            }.get(self.session.mode, set())

        self.session.pending = None
        if "Point" in kinds:
            self.draft = None
            if self._on_point_placed is not None:
                self._on_point_placed(None)
        if kinds & set(POLYGON_TYPES):
            self._report_polygon(None)
        return True

    def drag_draft_end(self, position: Position) -> bool:
        """Report the dragged draft position. Nothing is persisted.

        Returns:
            False if the position is not finite (and was not reported)
        """
        if not position.is_finite:
            logger.warning("Ignoring draft drag to non-finite coordinates")
            return False
        if self._on_draft_move is not None:
            self._on_draft_move(position)
        return True

    # -------------------------------------------------------------------------
    # Commit / cancel
    # -------------------------------------------------------------------------

    def commit(self) -> Position | list[StationPoint] | None:
        """Finalize the pending geometry and return to ``IDLE``.

        Returns:
            The committed point or open labelled ring (None if nothing was
            pending)

        Raises:
            DrawingDisabledError: If drawing is disabled
            InsufficientVerticesError: If a polygon has < 3 distinct vertices
        """
        if not self.active:
            raise DrawingDisabledError("Drawing is disabled")

        pending = self.session.pending
        if self.session.mode == DrawMode.DRAWING_POLYGON:
            ring = [p for p in pending if p.is_finite] if isinstance(pending, list) else []
            pending = label_points(validate_ring(ring))

        if pending is not None:
            self.committed = pending
        self._finish()
        return pending

    def cancel(self) -> None:
        """Drop the pending geometry and return to ``IDLE``."""
        session = self.session
        if session.pending is not None:
            self._replace_tool_content(self._committed_features())
            if isinstance(session.pending, Position):
                if self._on_point_placed is not None:
                    self._on_point_placed(None)
            else:
                self._report_polygon(None)
        self._finish()

    def _finish(self) -> None:
        self.session = DrawSession(
            suppress_next_delete=self.session.suppress_next_delete
        )
        if self._tool is not None:
            self._tool.change_mode(DrawMode.IDLE.tool_mode)
