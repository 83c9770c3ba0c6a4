"""
hidr/validate.py

Typed model for one decoded HIDR.DAT hydro-plant record.

Responsibilities
----------------
- Define `HydroPlantBinaryRecord`, an immutable pydantic model carrying the
  111 stored fields of a 792-byte record (repeated groups as tuples).
- Check that every repeated group has exactly its layout length.
- Expose read-only derived views: active machine sets, installed capacity,
  tailrace polynomial families, polynomial evaluation, regulation type and
  parsed reference date.

Conventions
-----------
- Volumes in hm³, elevations and heads in m, power and losses in MW, flows
  in m³/s.
- Polynomial coefficients are ordered by power: ``c[0]`` is the constant
  term, evaluated as ``sum(c[i] * x**i)``.
- Only the first ``machine_set_count`` slots of the machine-set arrays are
  meaningful. Trailing slots are kept exactly as stored and may hold stale
  non-zero values.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from enum import Enum
from typing import NamedTuple

from dateutil import parser as dtp
from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

MACHINE_SET_SLOTS = 5
TAILRACE_FAMILIES = 6
TAILRACE_FAMILY_SIZE = 6

# Two fill-in dates that differ in every field; a reference date parsed
# against both must come out the same, or it was missing a part.
_DATE_FILLS = (datetime(2000, 1, 1), datetime(2001, 2, 2))

# Fixed lengths of the repeated groups in the binary layout.
GROUP_LENGTHS = {
    "volume_elevation_poly": 5,
    "elevation_area_poly": 5,
    "monthly_evaporation": 12,
    "units_per_set": MACHINE_SET_SLOTS,
    "effective_power": MACHINE_SET_SLOTS,
    "effective_head": MACHINE_SET_SLOTS,
    "effective_flow": MACHINE_SET_SLOTS,
    "tailrace_polys": TAILRACE_FAMILIES * TAILRACE_FAMILY_SIZE,
}


class RegulationType(str, Enum):
    """Reservoir regulation code stored in the last byte of a record."""

    MONTHLY = "M"
    SEASONAL = "S"
    DAILY = "D"


class MachineSet(NamedTuple):
    units: int
    power: float
    head: float
    flow: int


def evaluate_polynomial(coeffs: Sequence[float], x: float) -> float:
    """Evaluate ``sum(coeffs[i] * x**i)`` by Horner's rule."""
    total = 0.0
    for c in reversed(coeffs):
        total = total * x + c
    return total


class HydroPlantBinaryRecord(BaseModel):
    """Static characteristics of one hydro plant as stored in HIDR.DAT.

    A record with ``station_id == 0`` is a placeholder slot. It is still a
    valid record and keeps its position in the decoded list.
    """

    model_config = ConfigDict(frozen=True)

    # Identification
    name: str
    station_id: int
    database_id: int
    subsystem_id: int
    company_id: int
    downstream_station_id: int
    diversion_flag: int

    # Storage and elevation
    min_volume: float
    max_volume: float
    spillway_volume: float
    diversion_volume: float
    min_elevation: float
    max_elevation: float

    volume_elevation_poly: tuple[float, ...]
    elevation_area_poly: tuple[float, ...]
    monthly_evaporation: tuple[int, ...]

    # Machine sets
    machine_set_count: int
    units_per_set: tuple[int, ...]
    effective_power: tuple[float, ...]
    effective_head: tuple[float, ...]
    effective_flow: tuple[int, ...]

    # Performance
    specific_productivity: float
    hydraulic_losses: float
    tailrace_family_count: int
    tailrace_polys: tuple[float, ...]

    # Operational
    avg_tailrace_elevation: float
    spillage_influence: int
    max_load_factor: float
    min_load_factor: float
    historic_min_flow: int
    base_unit_count: int
    turbine_type: int
    set_representation: int
    forced_outage_rate: float
    maintenance_rate: float
    loss_type: int
    reference_date: str
    comment: str
    reference_volume: float
    regulation_type: str

    @field_validator(*GROUP_LENGTHS)
    @classmethod
    def check_group_length(cls, v, info: ValidationInfo):
        """Reject repeated groups that do not match the binary layout."""
        expected = GROUP_LENGTHS[info.field_name]
        if len(v) != expected:
            raise ValueError(f"{info.field_name} needs {expected} values, got {len(v)}")
        return v

    @property
    def is_placeholder(self) -> bool:
        return self.station_id == 0

    @property
    def has_downstream(self) -> bool:
        return self.downstream_station_id != 0

    def active_machine_sets(self) -> list[MachineSet]:
        """Return the machine sets in use, ignoring unused trailing slots."""
        n = max(0, min(self.machine_set_count, MACHINE_SET_SLOTS))
        return [
            MachineSet(
                self.units_per_set[i],
                self.effective_power[i],
                self.effective_head[i],
                self.effective_flow[i],
            )
            for i in range(n)
        ]

    @property
    def installed_capacity(self) -> float:
        """Total effective power (MW) over the active machine sets."""
        return float(sum(s.units * s.power for s in self.active_machine_sets()))

    def tailrace_polynomial(self, family: int) -> tuple[float, ...]:
        """Return the six coefficients of tailrace family ``family`` (0-based).

        Raises:
            IndexError: If ``family`` is outside ``0..TAILRACE_FAMILIES - 1``.
        """
        if not 0 <= family < TAILRACE_FAMILIES:
            raise IndexError(f"tailrace family {family} out of range 0..{TAILRACE_FAMILIES - 1}")
        start = family * TAILRACE_FAMILY_SIZE
        return self.tailrace_polys[start : start + TAILRACE_FAMILY_SIZE]

    def elevation_at(self, volume: float) -> float:
        """Upstream elevation (m) for a stored volume (hm³)."""
        return evaluate_polynomial(self.volume_elevation_poly, volume)

    def area_at(self, elevation: float) -> float:
        """Reservoir surface area for an upstream elevation (m)."""
        return evaluate_polynomial(self.elevation_area_poly, elevation)

    @property
    def regulation(self) -> RegulationType | None:
        try:
            return RegulationType(self.regulation_type.upper())
        except ValueError:
            return None

    @property
    def reference_date_value(self) -> date | None:
        """Parse ``reference_date`` (day first).

        Returns None if the field is blank, garbled or lacks a day, month or
        year, so the result never depends on the current date.
        """
        if not self.reference_date:
            return None
        try:
            parsed = {
                dtp.parse(self.reference_date, dayfirst=True, default=fill).date()
                for fill in _DATE_FILLS
            }
        except (ValueError, OverflowError):
            return None
        return parsed.pop() if len(parsed) == 1 else None
