# -*- coding: utf-8 -*-
"""Backends providing entity detail parts."""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from typing import Protocol

import requests

from fieldmap_lib.constants import TASKS_PATH
from fieldmap_lib.constants import TIMELINE_PATH
from fieldmap_lib.enums import DetailPart

logger = logging.getLogger(__name__)

Rows = list[dict[str, Any]]

# Keys under which list payloads may be wrapped
_ENVELOPE_KEYS = ("items", "data", "results", "events")


class DetailSource(Protocol):
    """Protocol of a detail backend. Each part fails independently."""

    async def fetch_tasks(self, entity_id: int) -> Rows:
        """Maintenance tasks of an entity."""
        ...

    async def fetch_timeline(self, entity_id: int) -> Rows:
        """Visit timeline of an entity."""
        ...


def extract_rows(payload: Any, part: DetailPart) -> Rows:
    """Return the list of records held by a response payload.

    Accepts a bare list or an object wrapping the list under the part name
    (``{"tasks": [...]}``) or a common envelope key (``items``, ``data``,
    ``results``, ``events``).

    Raises:
        ValueError: If no list of records can be found
    """
    if isinstance(payload, dict):
        for key in (DetailPart(part).value, *_ENVELOPE_KEYS):
            if isinstance(payload.get(key), list):
                payload = payload[key]
                break

    if not isinstance(payload, list):
        raise ValueError(
            f"Unexpected {DetailPart(part).value} payload: {type(payload).__name__}"
        )
    return [row for row in payload if isinstance(row, dict)]


class HttpDetailSource:
    """Fetch detail parts from the backend REST API.

    Requests are issued with ``requests`` on a worker thread so the event
    loop is never blocked.

    Args:
        base_url: API root, e.g. ``https://api.example.org/v1``
        session: Optional pre-configured session (auth headers, adapters)
        timeout: Per-request timeout in seconds (None: transport default)
    """

    def __init__(
        self,
        base_url: str,
        *,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get(self, path: str) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("GET %s", url)
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    async def _fetch(self, path: str, part: DetailPart) -> Rows:
        payload = await asyncio.to_thread(self._get, path)
        return extract_rows(payload, part)

    async def fetch_tasks(self, entity_id: int) -> Rows:
        return await self._fetch(TASKS_PATH.format(entity_id=entity_id), DetailPart.TASKS)

    async def fetch_timeline(self, entity_id: int) -> Rows:
        return await self._fetch(
            TIMELINE_PATH.format(entity_id=entity_id), DetailPart.TIMELINE
        )

    def close(self) -> None:
        self.session.close()
