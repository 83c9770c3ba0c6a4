"""
hidr/transform.py

Column mapping layer from decoded HIDR.DAT records to the warehouse schema.

Responsibilities
----------------
- Define `MAP_KEYS`, translating record attributes to warehouse columns.
- Provide `to_row` for turning a record into a warehouse-ready row.
- Provide `to_frame` for a tabular (pandas) view of a decoded file.
"""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from .validate import HydroPlantBinaryRecord

# Mapping from record attribute names to warehouse column names.
MAP_KEYS = {
    # Identification
    "name": "name",
    "station_id": "station_id",
    "database_id": "database_id",
    "subsystem_id": "subsystem_id",
    "company_id": "company_id",
    "downstream_station_id": "downstream_station_id",
    "diversion_flag": "diversion_flag",
    # Storage (hm3) and elevation (m)
    "min_volume": "min_volume_hm3",
    "max_volume": "max_volume_hm3",
    "spillway_volume": "spillway_volume_hm3",
    "diversion_volume": "diversion_volume_hm3",
    "min_elevation": "min_elevation_m",
    "max_elevation": "max_elevation_m",
    # Polynomials and monthly series (arrays)
    "volume_elevation_poly": "volume_elevation_poly",
    "elevation_area_poly": "elevation_area_poly",
    "monthly_evaporation": "monthly_evaporation",
    # Machine sets (5-slot arrays + active count)
    "machine_set_count": "machine_set_count",
    "units_per_set": "units_per_set",
    "effective_power": "effective_power_mw",
    "effective_head": "effective_head_m",
    "effective_flow": "effective_flow_m3s",
    # Performance
    "specific_productivity": "specific_productivity",
    "hydraulic_losses": "hydraulic_losses_mw",
    "tailrace_family_count": "tailrace_family_count",
    "tailrace_polys": "tailrace_polys",
    # Operational
    "avg_tailrace_elevation": "avg_tailrace_elevation_m",
    "spillage_influence": "spillage_influence",
    "max_load_factor": "max_load_factor",
    "min_load_factor": "min_load_factor",
    "historic_min_flow": "historic_min_flow_m3s",
    "base_unit_count": "base_unit_count",
    "turbine_type": "turbine_type",
    "set_representation": "set_representation",
    "forced_outage_rate": "forced_outage_rate",
    "maintenance_rate": "maintenance_rate",
    "loss_type": "loss_type",
    "reference_date": "reference_date",
    "comment": "comment",
    "reference_volume": "reference_volume_hm3",
    "regulation_type": "regulation_type",
}


def to_row(record: HydroPlantBinaryRecord, source_file: str, record_index: int) -> dict:
    """Return a warehouse-keyed row for one decoded record.

    Args:
        record: Decoded plant record.
        source_file: Identifier of the file the record came from (part of
            the natural key).
        record_index: 0-based position of the record in that file.

    Returns:
        dict: Row keyed by warehouse column names. Tuples are converted to
        lists so the DB driver binds them as arrays.
    """
    out = {"source_file": source_file, "record_index": record_index}
    for src, dst in MAP_KEYS.items():
        value = getattr(record, src)
        out[dst] = list(value) if isinstance(value, tuple) else value
    out["installed_capacity_mw"] = record.installed_capacity
    return out


def to_frame(records: Sequence[HydroPlantBinaryRecord]) -> pd.DataFrame:
    """Tabulate decoded records, one row per record in file order.

    The frame index is the record position, so placeholder rows keep their
    place. Array fields are left as tuples in object columns.
    """
    columns = list(MAP_KEYS.values()) + ["installed_capacity_mw"]
    rows = []
    for rec in records:
        row = {dst: getattr(rec, src) for src, dst in MAP_KEYS.items()}
        row["installed_capacity_mw"] = rec.installed_capacity
        rows.append(row)

    frame = pd.DataFrame(rows, columns=columns)
    frame.index.name = "record_index"
    return frame
