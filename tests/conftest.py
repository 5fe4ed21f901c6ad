# -*- coding: utf-8 -*-
"""Pytest configuration and fixtures.

This module provides the shared fixtures: a headless rendering surface, a
scriptable detail backend and sample entity / area records.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from typing import Any

import pytest

from fieldmap_lib.enums import DetailPart
from fieldmap_lib.surface import InMemorySurface

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


#: Reference date used for overdue computations
TODAY = datetime.date(2024, 6, 15)


# =============================================================================
# Fake detail backend
# =============================================================================


class FakeDetailSource:
    """Scriptable :class:`~fieldmap_lib.detail.DetailSource`.

    Attributes:
        tasks: Task rows per entity id
        timeline: Timeline rows per entity id
        fail_parts: Parts that raise ``ConnectionError``
        gates: Per-entity events a fetch waits on before answering
        calls: ``(part, entity_id)`` for every call, in order
    """

    def __init__(
        self,
        tasks: dict[int, list[dict[str, Any]]] | None = None,
        timeline: dict[int, list[dict[str, Any]]] | None = None,
    ) -> None:
        self.tasks = tasks or {}
        self.timeline = timeline or {}
        self.fail_parts: set[DetailPart] = set()
        self.gates: dict[int, asyncio.Event] = {}
        self.calls: list[tuple[str, int]] = []

    def fetch_count(self, part: DetailPart = DetailPart.TASKS) -> int:
        return sum(1 for name, _ in self.calls if name == part.value)

    async def _answer(
        self, part: DetailPart, entity_id: int, rows: dict[int, list[dict[str, Any]]]
    ) -> list[dict[str, Any]]:
        self.calls.append((part.value, entity_id))
        gate = self.gates.get(entity_id)
        if gate is not None:
            await gate.wait()
        else:
            await asyncio.sleep(0)
        if part in self.fail_parts:
            raise ConnectionError(f"{part.value} unavailable")
        return [dict(row) for row in rows.get(entity_id, [])]

    async def fetch_tasks(self, entity_id: int) -> list[dict[str, Any]]:
        return await self._answer(DetailPart.TASKS, entity_id, self.tasks)

    async def fetch_timeline(self, entity_id: int) -> list[dict[str, Any]]:
        return await self._answer(DetailPart.TIMELINE, entity_id, self.timeline)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def today() -> datetime.date:
    """Return the fixed reference date."""
    return TODAY


@pytest.fixture
def surface() -> InMemorySurface:
    """Return a ready headless surface with a drawing tool."""
    return InMemorySurface()


@pytest.fixture
def task_rows() -> dict[int, list[dict[str, Any]]]:
    """Return task rows for entity 7: 1 done, 1 overdue, 2 pending."""
    return {
        7: [
            {
                "id": 1,
                "task_type": "watering",
                "status": "Completed",
                "review_state": "approved",
                "due_date": "2024-06-01",
            },
            {
                "id": 2,
                "task_type": "pruning",
                "status": "pending",
                "due_date": "2024-06-10T08:00:00Z",
            },
            {
                "id": 3,
                "task_type": "inspection",
                "status": "done",
                "review_state": "pending",
                "due_date": "2024-07-01",
            },
            {"id": 4, "task_type": "mulching", "status": "in_progress"},
        ],
    }


@pytest.fixture
def timeline_rows() -> dict[int, list[dict[str, Any]]]:
    """Return timeline rows for entity 7."""
    return {
        7: [
            {"event": "planted", "at": "2024-03-02", "actor": "field team"},
            {"event": "watered", "at": "2024-05-30", "actor": "ada"},
        ],
    }


@pytest.fixture
def detail_source(task_rows, timeline_rows) -> FakeDetailSource:
    """Return a fake detail backend knowing entity 7."""
    return FakeDetailSource(tasks=task_rows, timeline=timeline_rows)


@pytest.fixture
def entity_rows() -> list[dict[str, Any]]:
    """Return raw entity records as served by the backend."""
    return [
        {"id": 7, "lng": 7.4951, "lat": 9.0579, "status": "alive", "species": "Neem"},
        {"id": 8, "lng": 7.4960, "lat": 9.0581, "status": "Needs-Replacement"},
        {"id": 9, "lng": 7.4972, "lat": 9.0590, "status": "dead"},
        {"id": 10, "lng": 7.4980, "lat": 9.0601, "status": "pending_planting"},
    ]


@pytest.fixture
def area_rows() -> list[dict[str, Any]]:
    """Return raw work area records (one valid, two malformed)."""
    return [
        {
            "id": 1,
            "name": "North block",
            "assignee_name": "ada",
            "geometry": {
                "type": "Polygon",
                "coordinates": [
                    [[7.49, 9.05], [7.50, 9.05], [7.50, 9.06], [7.49, 9.06], [7.49, 9.05]]
                ],
            },
        },
        {
            "id": 2,
            "name": "Bad type",
            "geometry": {"type": "Point", "coordinates": [7.49, 9.05]},
        },
        {
            "id": 3,
            "name": "Empty",
            "geometry": {"type": "Polygon", "coordinates": []},
        },
    ]
