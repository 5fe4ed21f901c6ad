# -*- coding: utf-8 -*-
"""Core data models for the annotation subsystem.

This module contains the Pydantic models shared by the CRS converter, the
feature synchronizer, the draw controller and the detail cache.
"""

from __future__ import annotations

import datetime
import math
from typing import Annotated
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic_extra_types.coordinate import Latitude
from pydantic_extra_types.coordinate import Longitude

from fieldmap_lib.constants import CANONICAL_SYSTEM_KEY
from fieldmap_lib.constants import VIEW_ANGLE_PRECISION
from fieldmap_lib.constants import VIEW_CENTER_PRECISION
from fieldmap_lib.enums import DetailOrigin
from fieldmap_lib.enums import DetailPart
from fieldmap_lib.status import is_task_done
from fieldmap_lib.status import is_task_overdue


class Position(BaseModel):
    """A coordinate pair tagged with the reference system it is expressed in.

    For the canonical system (``wgs84``), ``x`` is the longitude and ``y``
    the latitude. For projected systems, ``x`` is the easting and ``y`` the
    northing in metres.
    """

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    system: str = CANONICAL_SYSTEM_KEY

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    @property
    def is_canonical(self) -> bool:
        return self.system == CANONICAL_SYSTEM_KEY

    def same_coordinates(self, other: Position) -> bool:
        """Exact coordinate equality (the system tag is not compared)."""
        return self.x == other.x and self.y == other.y

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


class StationPoint(Position):
    """A labelled survey boundary vertex (``A``, ``B``, ... ``AA``)."""

    station: str

    def __str__(self) -> str:
        return f"{self.station}({self.x}, {self.y})"


class Entity(BaseModel):
    """A point entity (planted tree marker) as known to the backing store.

    Positions are geographic. Statuses are stored raw and normalized when
    rendered or compared.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    lng: float
    lat: float
    status: str = "healthy"
    species: str | None = None
    notes: str | None = None
    photo_url: str | None = None
    created_by: str | None = None
    planting_date: str | None = None

    @property
    def position(self) -> Position:
        return Position(x=self.lng, y=self.lat)


class Area(BaseModel):
    """A named work area (Polygon or MultiPolygon GeoJSON geometry).

    Which entities fall inside an area is computed by the backing store.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    name: str | None = None
    geometry: dict[str, Any] | None = None
    assignee: str | None = Field(default=None, alias="assignee_name")


def _coerce_date(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        # "2024-05-01T12:00:00Z" -> "2024-05-01"
        return value[:10]
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


class TaskRecord(BaseModel):
    """A maintenance task attached to an entity. Unknown fields are kept."""

    model_config = ConfigDict(extra="allow")

    id: int | None = None
    task_type: str | None = None
    status: str | None = None
    review_state: str | None = None
    due_date: datetime.date | None = None
    assignee_name: str | None = None
    completed_at: str | None = None
    notes: str | None = None
    photo_url: str | None = None

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, value: Any) -> Any:
        return _coerce_date(value)

    @property
    def done(self) -> bool:
        return is_task_done(self.status, self.review_state)


class TimelineEntry(BaseModel):
    """One event of an entity's visit timeline. Unknown fields are kept."""

    model_config = ConfigDict(extra="allow")

    event: str | None = None
    at: str | None = None
    actor: str | None = None
    notes: str | None = None


class MaintenanceSummary(BaseModel):
    """Aggregated task counts for one entity.

    Each task is counted exactly once: done, else overdue, else pending.
    """

    total: int = 0
    done: int = 0
    pending: int = 0
    overdue: int = 0

    @classmethod
    def from_tasks(
        cls,
        tasks: list[TaskRecord],
        today: datetime.date | None = None,
    ) -> MaintenanceSummary:
        today = today or datetime.date.today()
        done = overdue = 0
        for task in tasks:
            if task.done:
                done += 1
            elif is_task_overdue(task.status, task.review_state, task.due_date, today):
                overdue += 1
        return cls(
            total=len(tasks),
            done=done,
            overdue=overdue,
            pending=max(len(tasks) - done - overdue, 0),
        )


class DetailRecord(BaseModel):
    """Expensive auxiliary data for one entity (tasks, timeline, counts)."""

    entity_id: int
    tasks: list[TaskRecord] = Field(default_factory=list)
    timeline: list[TimelineEntry] = Field(default_factory=list)
    maintenance: MaintenanceSummary = Field(default_factory=MaintenanceSummary)
    sources: dict[DetailPart, DetailOrigin] = Field(default_factory=dict)

    @property
    def offline(self) -> bool:
        """True when at least one part was served from the offline copy."""
        return DetailOrigin.OFFLINE in self.sources.values()

    @property
    def complete(self) -> bool:
        """True when every part came from the network."""
        return all(
            self.sources.get(part) == DetailOrigin.NETWORK for part in DetailPart
        )


class Viewport(BaseModel):
    """Camera state reported by the rendering surface."""

    lng: Longitude
    lat: Latitude
    zoom: Annotated[float, Field(ge=0)]
    bearing: float = 0.0
    pitch: float = 0.0

    @classmethod
    def from_camera(
        cls,
        lng: float,
        lat: float,
        zoom: float,
        bearing: float = 0.0,
        pitch: float = 0.0,
    ) -> Viewport:
        """Build a viewport with display rounding applied."""
        return cls(
            lng=round(lng, VIEW_CENTER_PRECISION),
            lat=round(lat, VIEW_CENTER_PRECISION),
            zoom=round(zoom, VIEW_ANGLE_PRECISION),
            bearing=round(bearing, VIEW_ANGLE_PRECISION),
            pitch=round(pitch, VIEW_ANGLE_PRECISION),
        )


class PointerEvent(BaseModel):
    """A pointer move or click on the surface, already hit-tested.

    Attributes:
        position: Geographic position under the pointer
        entity_id: Entity under the pointer, if any
    """

    position: Position
    entity_id: int | None = None
