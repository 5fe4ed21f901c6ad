# -*- coding: utf-8 -*-
"""Reference system definition table.

Every system a user can enter coordinates in is described by one
:class:`ReferenceSystem` entry, looked up by key. Adding a projected system
only requires registering a new entry::

    register_reference_system(
        ReferenceSystem(
            key="utm_30n",
            label="UTM Zone 30N",
            authority_code="EPSG:32630",
            proj_definition="+proj=utm +zone=30 +datum=WGS84 +units=m +no_defs",
            x_range=(100_000, 900_000),
            y_range=(0, 10_000_000),
        )
    )
"""

from __future__ import annotations

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import model_validator

from fieldmap_lib.constants import CANONICAL_AUTHORITY_CODE
from fieldmap_lib.constants import CANONICAL_SYSTEM_KEY

#: Datum shift from Minna (Clarke 1880) to WGS84 used by Nigerian surveys
MINNA_TOWGS84 = "-92,-93,122,0,0,0,0"

#: Plausible easting range (metres) for a UTM-like projected system
UTM_X_RANGE: tuple[float, float] = (100_000.0, 900_000.0)

#: Plausible northing range (metres) for a UTM-like projected system
UTM_Y_RANGE: tuple[float, float] = (0.0, 10_000_000.0)


class ReferenceSystem(BaseModel):
    """One entry of the reference system table.

    Attributes:
        key: Unique key used throughout the library (e.g. ``utm_32n``)
        label: Human-readable name
        authority_code: Authority code (e.g. ``EPSG:32632``)
        proj_definition: PROJ string; preferred over the authority code when
            set, so that datum shifts are exactly the ones listed here
        geographic: True for lon/lat systems
        utm_zone: UTM zone number, when the system is a UTM projection
        x_range: Plausible range for x (easting or longitude)
        y_range: Plausible range for y (northing or latitude)
    """

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    authority_code: str
    proj_definition: str | None = None
    geographic: bool = False
    utm_zone: int | None = None
    x_range: tuple[float, float] = UTM_X_RANGE
    y_range: tuple[float, float] = UTM_Y_RANGE

    @model_validator(mode="after")
    def check_ranges(self) -> ReferenceSystem:
        for name, (low, high) in (("x_range", self.x_range), ("y_range", self.y_range)):
            if low > high:
                raise ValueError(f"{name} lower bound exceeds upper bound: {low} > {high}")
        return self

    @property
    def crs_input(self) -> str:
        """Value handed to pyproj to build the CRS."""
        return self.proj_definition or self.authority_code

    def in_range(self, x: float, y: float) -> bool:
        return (
            self.x_range[0] <= x <= self.x_range[1]
            and self.y_range[0] <= y <= self.y_range[1]
        )


def _utm_wgs84(zone: int) -> ReferenceSystem:
    return ReferenceSystem(
        key=f"utm_{zone}n",
        label=f"UTM Zone {zone}N (WGS84)",
        authority_code=f"EPSG:{32600 + zone}",
        proj_definition=f"+proj=utm +zone={zone} +datum=WGS84 +units=m +no_defs",
        utm_zone=zone,
    )


def _utm_minna(zone: int) -> ReferenceSystem:
    return ReferenceSystem(
        key=f"minna_{zone}",
        label=f"Minna / UTM Zone {zone}N",
        authority_code=f"EPSG:{26300 + zone}",
        proj_definition=(
            f"+proj=utm +zone={zone} +ellps=clrk80 +towgs84={MINNA_TOWGS84} "
            "+units=m +no_defs"
        ),
        utm_zone=zone,
    )


WGS84 = ReferenceSystem(
    key=CANONICAL_SYSTEM_KEY,
    label="WGS84 (Lat/Lon)",
    authority_code=CANONICAL_AUTHORITY_CODE,
    proj_definition="+proj=longlat +datum=WGS84 +no_defs",
    geographic=True,
    x_range=(-180.0, 180.0),
    y_range=(-90.0, 90.0),
)

#: Reference systems known to the library, by key
REFERENCE_SYSTEMS: dict[str, ReferenceSystem] = {
    system.key: system
    for system in (
        WGS84,
        _utm_wgs84(31),
        _utm_wgs84(32),
        _utm_wgs84(33),
        _utm_minna(31),
        _utm_minna(32),
        _utm_minna(33),
    )
}


def get_reference_system(key: str) -> ReferenceSystem | None:
    """Look up a reference system by key (``None`` if unknown)."""
    return REFERENCE_SYSTEMS.get(key)


def register_reference_system(system: ReferenceSystem, *, replace: bool = False) -> None:
    """Add a reference system to the table.

    Raises:
        ValueError: If the key already exists and ``replace`` is False
    """
    if system.key in REFERENCE_SYSTEMS and not replace:
        raise ValueError(f"Reference system already registered: {system.key!r}")
    REFERENCE_SYSTEMS[system.key] = system


def unregister_reference_system(key: str) -> None:
    """Remove a reference system. The canonical system cannot be removed."""
    if key == CANONICAL_SYSTEM_KEY:
        raise ValueError("The canonical reference system cannot be removed")
    REFERENCE_SYSTEMS.pop(key, None)
