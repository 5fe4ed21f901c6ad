# -*- coding: utf-8 -*-
"""Range sanity check for bulk coordinate uploads.

A bulk upload expressed in the wrong reference system is usually obvious:
most of its points fall outside the plausible range of the selected system.
When more than half of the points are out of range, the caller must ask the
user to confirm before proceeding.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from dataclasses import field
from typing import TYPE_CHECKING

from fieldmap_lib.constants import OUT_OF_RANGE_CONFIRM_RATIO
from fieldmap_lib.crs.definitions import get_reference_system

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fieldmap_lib.models import Position

logger = logging.getLogger(__name__)


@dataclass
class RangeCheckReport:
    """Outcome of :func:`check_ranges`."""

    system_key: str
    total: int = 0
    out_of_range: list[int] = field(default_factory=list)
    known_system: bool = True

    @property
    def out_of_range_count(self) -> int:
        return len(self.out_of_range)

    @property
    def requires_confirmation(self) -> bool:
        """True when more than half of the points are out of range."""
        if not self.total:
            return False
        return self.out_of_range_count > self.total * OUT_OF_RANGE_CONFIRM_RATIO

    def message(self) -> str:
        if not self.requires_confirmation:
            return ""
        return (
            f"{self.out_of_range_count} of {self.total} coordinates appear to be "
            f"outside the expected range for {self.system_key}. "
            "Please verify you selected the correct coordinate system."
        )


def check_ranges(points: Sequence[Position], system_key: str) -> RangeCheckReport:
    """Count points lying outside the plausible range of ``system_key``.

    Unknown systems are reported with ``known_system=False`` and no point is
    flagged.
    """
    report = RangeCheckReport(system_key=system_key, total=len(points))
    system = get_reference_system(system_key)
    if system is None:
        logger.warning("Range check skipped, unknown coordinate system: %s", system_key)
        report.known_system = False
        return report

    for index, point in enumerate(points):
        if not point.is_finite or not system.in_range(point.x, point.y):
            report.out_of_range.append(index)

    if report.requires_confirmation:
        logger.warning(report.message())
    return report
