# -*- coding: utf-8 -*-
"""Detail cache and request deduplicator.

Each entity id is in one of three states:

- absent: nothing known, the next :meth:`DetailCache.get_detail` fetches
- :class:`Pending`: a fetch is in flight, callers share its task
- :class:`Resolved`: the record is cached and returned immediately

A single map holds these entries, so there can never be two fetches in
flight for the same id. :meth:`DetailCache.invalidate` drops every entry;
a fetch that completes afterwards is returned to its callers but not
stored.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING
from typing import Any

import orjson
from pydantic import ValidationError

from fieldmap_lib.enums import DetailOrigin
from fieldmap_lib.enums import DetailPart
from fieldmap_lib.errors import DetailFetchError
from fieldmap_lib.models import DetailRecord
from fieldmap_lib.models import MaintenanceSummary
from fieldmap_lib.models import TaskRecord
from fieldmap_lib.models import TimelineEntry

if TYPE_CHECKING:
    from fieldmap_lib.detail.offline import OfflineStore
    from fieldmap_lib.detail.sources import DetailSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pending:
    """A fetch in flight."""

    task: asyncio.Task[DetailRecord]
    generation: int


@dataclass(frozen=True)
class Resolved:
    """A cached record."""

    record: DetailRecord


CacheEntry = Pending | Resolved


def _parse_rows(model: Any, rows: list[dict[str, Any]], what: str) -> list[Any]:
    parsed = []
    for row in rows:
        try:
            parsed.append(model.model_validate(row))
        except ValidationError:
            logger.warning("Skipping invalid %s row: %r", what, row)
    return parsed


class DetailCache:
    """Deduplicating cache of :class:`DetailRecord` keyed by entity id.

    Args:
        source: Backend providing the detail parts
        offline: Optional store of last known parts, used when a part fails
        today: Callable returning the reference date for overdue tasks
    """

    def __init__(
        self,
        source: DetailSource,
        offline: OfflineStore | None = None,
        *,
        today: Callable[[], datetime.date] | None = None,
    ) -> None:
        self._source = source
        self._offline = offline
        self._today = today or datetime.date.today
        self._entries: dict[int, CacheEntry] = {}
        self._generation = 0

    @property
    def generation(self) -> int:
        """Incremented on every invalidation."""
        return self._generation

    @property
    def in_flight(self) -> int:
        return sum(isinstance(e, Pending) for e in self._entries.values())

    def state(self, entity_id: int) -> CacheEntry | None:
        return self._entries.get(entity_id)

    def peek(self, entity_id: int) -> DetailRecord | None:
        """Cached record for ``entity_id`` without fetching."""
        entry = self._entries.get(entity_id)
        if isinstance(entry, Resolved):
            return entry.record
        return None

    def invalidate(self) -> None:
        """Forget every cached record and in-flight fetch.

        In-flight fetches keep running for their current callers.
        """
        if self._entries:
            logger.debug("Invalidating %d detail entries", len(self._entries))
        self._entries.clear()
        self._generation += 1

    async def get_detail(self, entity_id: int) -> DetailRecord:
        """Return the detail record of an entity.

        Raises:
            DetailFetchError: If no part could be fetched nor found offline
        """
        entry = self._entries.get(entity_id)
        if isinstance(entry, Resolved):
            return entry.record

        if isinstance(entry, Pending):
            task = entry.task
        else:
            task = asyncio.create_task(self._run(entity_id))
            task.add_done_callback(_retrieve_exception)
            self._entries[entity_id] = Pending(task=task, generation=self._generation)

        # A cancelled caller must not cancel the fetch shared with others
        return await asyncio.shield(task)

    async def _run(self, entity_id: int) -> DetailRecord:
        task = asyncio.current_task()
        try:
            record = await self._fetch(entity_id)
        except BaseException:
            self._settle(entity_id, task, None)
            raise
        self._settle(entity_id, task, record)
        return record

    def _settle(
        self,
        entity_id: int,
        task: asyncio.Task[Any] | None,
        record: DetailRecord | None,
    ) -> None:
        entry = self._entries.get(entity_id)
        if not isinstance(entry, Pending) or entry.task is not task:
            logger.debug("Discarding detail of entity %s: cache invalidated", entity_id)
            return
        if record is None:
            del self._entries[entity_id]
        else:
            self._entries[entity_id] = Resolved(record=record)

    async def _fetch(self, entity_id: int) -> DetailRecord:
        parts = (DetailPart.TASKS, DetailPart.TIMELINE)
        results = await asyncio.gather(
            self._source.fetch_tasks(entity_id),
            self._source.fetch_timeline(entity_id),
            return_exceptions=True,
        )

        rows: dict[DetailPart, list[dict[str, Any]]] = {}
        origins: dict[DetailPart, DetailOrigin] = {}
        causes: list[BaseException] = []
        for part, result in zip(parts, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning(
                    "Fetching %s of entity %s failed: %s", part.value, entity_id, result
                )
                causes.append(result)
                saved = await self._load_offline(entity_id, part)
                rows[part] = saved or []
                origins[part] = DetailOrigin.MISSING if saved is None else DetailOrigin.OFFLINE
            else:
                rows[part] = result
                origins[part] = DetailOrigin.NETWORK
                await self._save_offline(entity_id, part, result)

        if all(origin == DetailOrigin.MISSING for origin in origins.values()):
            raise DetailFetchError(entity_id, causes)

        tasks = _parse_rows(TaskRecord, rows[DetailPart.TASKS], "task")
        timeline = _parse_rows(TimelineEntry, rows[DetailPart.TIMELINE], "timeline")
        return DetailRecord(
            entity_id=entity_id,
            tasks=tasks,
            timeline=timeline,
            maintenance=MaintenanceSummary.from_tasks(tasks, self._today()),
            sources=origins,
        )

    async def _load_offline(
        self, entity_id: int, part: DetailPart
    ) -> list[dict[str, Any]] | None:
        if self._offline is None:
            return None
        try:
            return await asyncio.to_thread(self._offline.load, entity_id, part)
        except OSError as e:
            logger.warning(
                "Could not load offline %s of entity %s: %s", part.value, entity_id, e
            )
            return None

    async def _save_offline(
        self, entity_id: int, part: DetailPart, rows: list[dict[str, Any]]
    ) -> None:
        if self._offline is None:
            return
        # Store I/O runs off the event loop
        try:
            await asyncio.to_thread(self._offline.save, entity_id, part, rows)
        except (OSError, orjson.JSONEncodeError) as e:
            logger.warning(
                "Could not save offline %s of entity %s: %s", part.value, entity_id, e
            )


def _retrieve_exception(task: asyncio.Task[Any]) -> None:
    # Marks the failure as retrieved when every caller stopped waiting
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Detail fetch failed: %s", task.exception())
