"""Pytest configuration shared across the test suite."""

from __future__ import annotations

import struct
import sys
from pathlib import Path

import pytest

# Ensure the project root is on sys.path so ``import hidr`` works when running
# the test suite without installing the package.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# (field, struct code) in on-disk order; "reserved" is the 300-byte gap.
LAYOUT = [
    ("name", "12s"),
    ("station_id", "i"),
    ("database_id", "q"),
    ("subsystem_id", "i"),
    ("company_id", "i"),
    ("downstream_station_id", "i"),
    ("diversion_flag", "i"),
    ("min_volume", "f"),
    ("max_volume", "f"),
    ("spillway_volume", "f"),
    ("diversion_volume", "f"),
    ("min_elevation", "f"),
    ("max_elevation", "f"),
    ("volume_elevation_poly", "5f"),
    ("elevation_area_poly", "5f"),
    ("monthly_evaporation", "12i"),
    ("machine_set_count", "i"),
    ("units_per_set", "5i"),
    ("effective_power", "5f"),
    ("reserved", "300s"),
    ("effective_head", "5f"),
    ("effective_flow", "5i"),
    ("specific_productivity", "f"),
    ("hydraulic_losses", "f"),
    ("tailrace_family_count", "i"),
    ("tailrace_polys", "36f"),
    ("avg_tailrace_elevation", "f"),
    ("spillage_influence", "i"),
    ("max_load_factor", "f"),
    ("min_load_factor", "f"),
    ("historic_min_flow", "i"),
    ("base_unit_count", "i"),
    ("turbine_type", "i"),
    ("set_representation", "i"),
    ("forced_outage_rate", "f"),
    ("maintenance_rate", "f"),
    ("loss_type", "i"),
    ("reference_date", "12s"),
    ("comment", "39s"),
    ("reference_volume", "f"),
    ("regulation_type", "1s"),
]


def _default(code: str):
    if code.endswith("s"):
        return b""
    count = int(code[:-1]) if len(code) > 1 else 1
    zero = 0.0 if code.endswith("f") else 0
    return (zero,) * count if count > 1 else zero


def pack_record(**fields) -> bytes:
    """Pack one 792-byte record; unspecified fields are zero / blank.

    String fields given as ``str`` are latin-1 encoded and space padded;
    ``bytes`` values are packed as-is (NUL padded by struct).
    """
    parts = []
    for name, code in LAYOUT:
        value = fields.get(name, _default(code))
        if code.endswith("s"):
            width = int(code[:-1])
            if isinstance(value, str):
                value = value.encode("latin-1").ljust(width, b" ")
            parts.append(struct.pack("<" + code, value))
        elif isinstance(value, tuple):
            parts.append(struct.pack("<" + code, *value))
        else:
            parts.append(struct.pack("<" + code, value))
    data = b"".join(parts)
    assert len(data) == 792
    return data


@pytest.fixture
def make_record():
    """Factory building synthetic HIDR.DAT records from keyword fields."""
    return pack_record


@pytest.fixture
def hidr_file(tmp_path):
    """Write the given records to a temporary ``hidr.dat`` and return its path."""

    def _write(*records: bytes):
        path = tmp_path / "hidr.dat"
        path.write_bytes(b"".join(records))
        return path

    return _write
