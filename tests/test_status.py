# -*- coding: utf-8 -*-
"""Tests for status normalization and task state helpers."""

import datetime

import pytest

from fieldmap_lib.enums import EntityStatus
from fieldmap_lib.enums import StatusCategory
from fieldmap_lib.status import is_active_status
from fieldmap_lib.status import is_task_done
from fieldmap_lib.status import is_task_overdue
from fieldmap_lib.status import normalize_status
from fieldmap_lib.status import parse_status
from fieldmap_lib.status import status_category
from fieldmap_lib.status import status_label


class TestNormalizeStatus:
    """Tests for normalize_status."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("needs-replacement", "need_replacement"),
            ("needsreplacement", "need_replacement"),
            ("Needs Replacement", "need_replacement"),
            ("needreplacement", "need_replacement"),
            ("Diseased", "disease"),
            ("deseas", "disease"),
            ("  ALIVE ", "alive"),
            ("Need-Watering", "need_watering"),
            ("", "healthy"),
            (None, "healthy"),
        ],
    )
    def test_aliases_and_folding(self, raw, expected):
        """Test case, separator and alias folding."""
        assert normalize_status(raw) == expected

    def test_unknown_status_kept(self):
        """Test that an unknown status is folded but kept."""
        assert normalize_status("Under Review") == "under_review"

    def test_parse_status(self):
        """Test mapping onto the closed vocabulary."""
        assert parse_status("Needs-Replacement") is EntityStatus.NEED_REPLACEMENT

    def test_parse_unknown_status(self):
        """Test that unknown statuses are rejected by parse_status."""
        with pytest.raises(ValueError, match="Unknown entity status"):
            parse_status("teleported")


class TestStatusDisplay:
    """Tests for labels, halo flag and categories."""

    @pytest.mark.parametrize(
        ("raw", "label"),
        [
            ("need_replacement", "Need Replacement"),
            ("needs-replacement", "Need Replacement"),
            ("alive", "Alive"),
            ("pending_planting", "Pending Planting"),
            (None, "Healthy"),
        ],
    )
    def test_label(self, raw, label):
        """Test that labels capitalize each word of the key."""
        assert status_label(raw) == label

    @pytest.mark.parametrize(
        ("raw", "active"),
        [("alive", True), ("Healthy", True), ("dead", False), ("pest", False)],
    )
    def test_active(self, raw, active):
        """Test the healthy-like halo flag."""
        assert is_active_status(raw) is active

    @pytest.mark.parametrize(
        ("raw", "category"),
        [
            ("alive", StatusCategory.HEALTHY),
            ("removed", StatusCategory.DEAD),
            ("Diseased", StatusCategory.ATTENTION),
            ("need-protection", StatusCategory.ATTENTION),
            ("pending_planting", StatusCategory.PENDING),
            ("something new", StatusCategory.HEALTHY),
        ],
    )
    def test_category(self, raw, category):
        """Test the palette category of a status."""
        assert status_category(raw) is category


class TestTaskState:
    """Tests for task completion and overdue rules."""

    @pytest.mark.parametrize(
        ("status", "review", "done"),
        [
            ("done", "approved", True),
            ("Completed", None, True),
            ("closed", "none", True),
            ("done", "pending", False),
            ("done", "rejected", False),
            ("in_progress", "approved", False),
            (None, None, False),
        ],
    )
    def test_is_task_done(self, status, review, done):
        """Test that done requires an accepted review."""
        assert is_task_done(status, review) is done

    def test_overdue(self):
        """Test that an open task past its due date is overdue."""
        today = datetime.date(2024, 6, 15)
        assert is_task_overdue("pending", None, datetime.date(2024, 6, 14), today)
        assert not is_task_overdue("pending", None, datetime.date(2024, 6, 15), today)
        assert not is_task_overdue("done", "approved", datetime.date(2024, 1, 1), today)
        assert not is_task_overdue("pending", None, None, today)
