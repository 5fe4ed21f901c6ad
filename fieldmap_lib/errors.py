# -*- coding: utf-8 -*-
"""Error handling for the annotation subsystem.

Recoverable problems (unknown reference system, projection failures,
dropped features) are reported as :class:`ConversionWarning` records next to
the value they concern. Only problems that require a user correction are
raised as exceptions.
"""

from dataclasses import dataclass

from fieldmap_lib.enums import WarningKind


@dataclass(frozen=True)
class ConversionWarning:
    """A recoverable coordinate or geometry problem.

    This is a data record, not an exception.

    Attributes:
        kind: What went wrong
        message: Human-readable message
        system_key: Reference system involved (if any)
    """

    kind: WarningKind
    message: str
    system_key: str | None = None

    def __str__(self) -> str:
        if self.system_key:
            return f"{self.kind.value}: {self.message} (system: {self.system_key})"
        return f"{self.kind.value}: {self.message}"


class FieldMapError(Exception):
    """Base class for all fieldmap_lib exceptions."""


class InsufficientVerticesError(FieldMapError, ValueError):
    """Raised when a ring has fewer than 3 distinct vertices.

    Attributes:
        distinct: Number of distinct finite vertices found
        required: Minimum number of vertices required
    """

    def __init__(self, distinct: int, required: int = 3):
        self.distinct = distinct
        self.required = required
        super().__init__(
            f"Need at least {required} distinct points to form a polygon, "
            f"got {distinct}"
        )


class MalformedGeometryError(FieldMapError, ValueError):
    """Raised when a single feature cannot be rendered.

    Callers building a batch catch it per item and drop the feature.
    """


class DetailFetchError(FieldMapError):
    """Raised when no part of an entity detail could be obtained.

    Attributes:
        entity_id: Entity whose detail was requested
        causes: Underlying exceptions, one per failed part
    """

    def __init__(self, entity_id: int, causes: list[BaseException] | None = None):
        self.entity_id = entity_id
        self.causes = list(causes or [])
        super().__init__(f"No detail available for entity {entity_id}")


class DrawingDisabledError(FieldMapError):
    """Raised when a commit is attempted while drawing is disabled."""
