# -*- coding: utf-8 -*-
"""Offline copies of entity detail parts.

Each successfully fetched part (tasks, timeline) is saved so that a later
failed fetch can still render the last known state.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from typing import Protocol

import orjson

from fieldmap_lib.enums import DetailPart
from fieldmap_lib.enums import FileExtension

logger = logging.getLogger(__name__)

Rows = list[dict[str, Any]]


class OfflineStore(Protocol):
    """Protocol for offline detail storage."""

    def load(self, entity_id: int, part: DetailPart) -> Rows | None:
        """Return the saved rows, or None when nothing is saved."""
        ...

    def save(self, entity_id: int, part: DetailPart, rows: Rows) -> None:
        """Replace the saved rows."""
        ...


class MemoryOfflineStore:
    """Process-local offline store."""

    def __init__(self) -> None:
        self._rows: dict[tuple[int, DetailPart], Rows] = {}

    def load(self, entity_id: int, part: DetailPart) -> Rows | None:
        rows = self._rows.get((entity_id, DetailPart(part)))
        return None if rows is None else list(rows)

    def save(self, entity_id: int, part: DetailPart, rows: Rows) -> None:
        self._rows[(entity_id, DetailPart(part))] = list(rows)

    def __len__(self) -> int:
        return len(self._rows)


class JsonOfflineStore:
    """Offline store keeping one JSON file per entity and part.

    Files are named ``<part>_<entity_id>.json`` inside ``directory``.
    """

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def path_for(self, entity_id: int, part: DetailPart) -> Path:
        part = DetailPart(part)
        return self.directory / f"{part.value}_{entity_id}{FileExtension.JSON.value}"

    def load(self, entity_id: int, part: DetailPart) -> Rows | None:
        path = self.path_for(entity_id, part)
        if not path.exists():
            return None
        try:
            data = orjson.loads(path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable offline copy %s: %s", path, e)
            return None
        if not isinstance(data, list):
            logger.warning("Ignoring offline copy %s: expected a list", path)
            return None
        return data

    def save(self, entity_id: int, part: DetailPart, rows: Rows) -> None:
        path = self.path_for(entity_id, part)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(orjson.dumps(rows, option=orjson.OPT_INDENT_2))
        logger.debug(
            "Saved offline %s for entity %s to %s", DetailPart(part).value, entity_id, path
        )
