# -*- coding: utf-8 -*-
"""Entity detail fetching, caching and offline fallback."""

from fieldmap_lib.detail.cache import DetailCache
from fieldmap_lib.detail.cache import Pending
from fieldmap_lib.detail.cache import Resolved
from fieldmap_lib.detail.offline import JsonOfflineStore
from fieldmap_lib.detail.offline import MemoryOfflineStore
from fieldmap_lib.detail.offline import OfflineStore
from fieldmap_lib.detail.sources import DetailSource
from fieldmap_lib.detail.sources import HttpDetailSource
from fieldmap_lib.detail.sources import extract_rows

__all__ = [
    "DetailCache",
    "DetailSource",
    "HttpDetailSource",
    "JsonOfflineStore",
    "MemoryOfflineStore",
    "OfflineStore",
    "Pending",
    "Resolved",
    "extract_rows",
]
