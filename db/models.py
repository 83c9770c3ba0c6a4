"""
db/models.py

SQLAlchemy table definitions mirroring the warehouse schema.

Responsibilities
----------------
- Provide a programmatic (SQLAlchemy Core) representation of the
  `hydro_plant` table so tests, migrations, or ad-hoc scripts can
  reference the schema without raw SQL.
- Keep column names/types aligned with `db/ddl.sql` and with
  `hidr.transform.MAP_KEYS`.

Conventions
-----------
- `(source_file, record_index)` is the primary key: station ids repeat
  (placeholders all carry 0), positions within a file do not.
- Repeated groups of the binary record are stored as Postgres arrays.
- `ingested_at` defaults to the current timestamp on the database server.
"""

from sqlalchemy import (
    TIMESTAMP,
    BigInteger,
    Column,
    Float,
    Integer,
    MetaData,
    Table,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY

metadata = MetaData()

# One row per 792-byte record of a decoded HIDR.DAT file.
hydro_plant = Table(
    "hydro_plant",
    metadata,
    # Natural key: which file, which slot.
    Column("source_file", Text, primary_key=True),
    Column("record_index", Integer, primary_key=True),
    # Identification
    Column("name", Text, nullable=False),
    Column("station_id", Integer, nullable=False, index=True),
    Column("database_id", BigInteger, nullable=False),
    Column("subsystem_id", Integer, nullable=False),
    Column("company_id", Integer, nullable=False),
    Column("downstream_station_id", Integer, nullable=False),
    Column("diversion_flag", Integer, nullable=False),
    # Storage (hm3) and elevation (m)
    Column("min_volume_hm3", Float(53)),
    Column("max_volume_hm3", Float(53)),
    Column("spillway_volume_hm3", Float(53)),
    Column("diversion_volume_hm3", Float(53)),
    Column("min_elevation_m", Float(53)),
    Column("max_elevation_m", Float(53)),
    # Polynomials and monthly series
    Column("volume_elevation_poly", ARRAY(Float(53))),
    Column("elevation_area_poly", ARRAY(Float(53))),
    Column("monthly_evaporation", ARRAY(Integer)),
    # Machine sets
    Column("machine_set_count", Integer, nullable=False),
    Column("units_per_set", ARRAY(Integer)),
    Column("effective_power_mw", ARRAY(Float(53))),
    Column("effective_head_m", ARRAY(Float(53))),
    Column("effective_flow_m3s", ARRAY(Integer)),
    # Performance
    Column("specific_productivity", Float(53)),
    Column("hydraulic_losses_mw", Float(53)),
    Column("tailrace_family_count", Integer),
    Column("tailrace_polys", ARRAY(Float(53))),
    # Operational
    Column("avg_tailrace_elevation_m", Float(53)),
    Column("spillage_influence", Integer),
    Column("max_load_factor", Float(53)),
    Column("min_load_factor", Float(53)),
    Column("historic_min_flow_m3s", Integer),
    Column("base_unit_count", Integer),
    Column("turbine_type", Integer),
    Column("set_representation", Integer),
    Column("forced_outage_rate", Float(53)),
    Column("maintenance_rate", Float(53)),
    Column("loss_type", Integer),
    Column("reference_date", Text),
    Column("comment", Text),
    Column("reference_volume_hm3", Float(53)),
    Column("regulation_type", Text),
    # Derived
    Column("installed_capacity_mw", Float(53)),
    # Ingestion metadata
    Column("ingested_at", TIMESTAMP(timezone=True), server_default=text("now()")),
)
