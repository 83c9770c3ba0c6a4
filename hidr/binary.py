"""
hidr/binary.py

Decoder for the binary HIDR.DAT hydro-plant registry.

Responsibilities
----------------
- Validate that a byte buffer holds a whole number of 792-byte records.
- Decode each record field by field with an explicit little-endian cursor,
  skipping the 300-byte reserved block at [196, 496).
- Read a registry file from disk in one scoped pass.
- Sniff whether a HIDR.DAT file is the binary or the text variant.

Notes
-----
- String fields default to "latin-1", which is ASCII compatible and never
  fails on stray bytes. Bytes another codec rejects raise DecodeError.
- The file has no header, footer or record-count prefix; the number of
  records is ``len(data) // RECORD_SIZE``.
- Records whose station id is 0 are placeholders and are emitted like any
  other record, so output positions match input positions.
"""

from __future__ import annotations

import logging
import os
import struct

from .validate import (
    MACHINE_SET_SLOTS,
    TAILRACE_FAMILIES,
    TAILRACE_FAMILY_SIZE,
    HydroPlantBinaryRecord,
)

logger = logging.getLogger(__name__)

# Encoding for name / date / comment / regulation code bytes.
ENCODING = "latin-1"

RECORD_SIZE = 792
RESERVED_OFFSET = 196
RESERVED_SIZE = 300

# Station ids accepted by `looks_binary` as a plausible first record.
_STATION_ID_RANGE = range(1, 10000)
# Slack allowed around a multiple of RECORD_SIZE when sniffing a file.
_SIZE_SLACK = 100


class DecodeError(ValueError):
    """Raised when a HIDR.DAT byte stream cannot be decoded."""


class InvalidLengthError(DecodeError):
    """The buffer length is not a whole number of records."""

    def __init__(self, actual_length: int, record_size: int = RECORD_SIZE):
        self.actual_length = actual_length
        self.record_size = record_size
        super().__init__(
            f"HIDR.DAT length {actual_length} is not a multiple of the "
            f"{record_size}-byte record size"
        )


class _Cursor:
    """Sequential little-endian reader over one record."""

    def __init__(self, buf, encoding: str):
        self.buf = buf
        self.pos = 0
        self.encoding = encoding

    def _unpack(self, fmt: str):
        value = struct.unpack_from(fmt, self.buf, self.pos)[0]
        self.pos += struct.calcsize(fmt)
        return value

    def int32(self) -> int:
        return self._unpack("<i")

    def int64(self) -> int:
        return self._unpack("<q")

    def float32(self) -> float:
        # struct widens float32 to a Python float (double) on read.
        return self._unpack("<f")

    def int32s(self, n: int) -> tuple[int, ...]:
        return tuple(self.int32() for _ in range(n))

    def float32s(self, n: int) -> tuple[float, ...]:
        return tuple(self.float32() for _ in range(n))

    def text(self, width: int) -> str:
        raw = bytes(self.buf[self.pos : self.pos + width])
        self.pos += width
        try:
            value = raw.decode(self.encoding)
        except UnicodeDecodeError as exc:
            raise DecodeError(
                f"{width}-byte string at offset {self.pos - width} is not valid {self.encoding}: {exc}"
            ) from exc
        return value.replace("\x00", "").strip()

    def skip(self, width: int) -> None:
        self.pos += width


def decode_one(chunk, encoding: str | None = None) -> HydroPlantBinaryRecord:
    """Decode a single 792-byte HIDR.DAT record.

    Fields are read strictly in byte-offset order. The reserved block is
    skipped without interpretation, so its contents never leak into any
    decoded value.

    Args:
        chunk: Bytes-like object of exactly ``RECORD_SIZE`` bytes.
        encoding: Codec for string fields; defaults to ``ENCODING``.

    Returns:
        HydroPlantBinaryRecord: The decoded plant.

    Raises:
        InvalidLengthError: If ``chunk`` is not exactly one record long.
        DecodeError: If the cursor does not finish on the record boundary,
            or a string field is not valid in ``encoding``.
    """
    if len(chunk) != RECORD_SIZE:
        raise InvalidLengthError(len(chunk))

    c = _Cursor(chunk, encoding or ENCODING)

    fields = {
        "name": c.text(12),
        "station_id": c.int32(),
        "database_id": c.int64(),
        "subsystem_id": c.int32(),
        "company_id": c.int32(),
        "downstream_station_id": c.int32(),
        "diversion_flag": c.int32(),
        "min_volume": c.float32(),
        "max_volume": c.float32(),
        "spillway_volume": c.float32(),
        "diversion_volume": c.float32(),
        "min_elevation": c.float32(),
        "max_elevation": c.float32(),
        "volume_elevation_poly": c.float32s(5),
        "elevation_area_poly": c.float32s(5),
        "monthly_evaporation": c.int32s(12),
        "machine_set_count": c.int32(),
        "units_per_set": c.int32s(MACHINE_SET_SLOTS),
        "effective_power": c.float32s(MACHINE_SET_SLOTS),
    }

    if c.pos != RESERVED_OFFSET:
        raise DecodeError(f"cursor at {c.pos}, expected reserved block at {RESERVED_OFFSET}")
    c.skip(RESERVED_SIZE)

    fields.update(
        effective_head=c.float32s(MACHINE_SET_SLOTS),
        effective_flow=c.int32s(MACHINE_SET_SLOTS),
        specific_productivity=c.float32(),
        hydraulic_losses=c.float32(),
        tailrace_family_count=c.int32(),
        tailrace_polys=c.float32s(TAILRACE_FAMILIES * TAILRACE_FAMILY_SIZE),
        avg_tailrace_elevation=c.float32(),
        spillage_influence=c.int32(),
        max_load_factor=c.float32(),
        min_load_factor=c.float32(),
        historic_min_flow=c.int32(),
        base_unit_count=c.int32(),
        turbine_type=c.int32(),
        set_representation=c.int32(),
        forced_outage_rate=c.float32(),
        maintenance_rate=c.float32(),
        loss_type=c.int32(),
        reference_date=c.text(12),
        comment=c.text(39),
        reference_volume=c.float32(),
        regulation_type=c.text(1),
    )

    # A mismatch here means a field width above is wrong; every later
    # record would be misaligned.
    if c.pos != RECORD_SIZE:
        raise DecodeError(f"cursor finished at {c.pos}, expected {RECORD_SIZE}")

    return HydroPlantBinaryRecord(**fields)


def decode_all(data, encoding: str | None = None) -> list[HydroPlantBinaryRecord]:
    """Decode every record of an in-memory HIDR.DAT buffer.

    Args:
        data: Bytes-like object holding N consecutive records.
        encoding: Codec for string fields; defaults to ``ENCODING``.

    Returns:
        list[HydroPlantBinaryRecord]: Exactly ``len(data) // RECORD_SIZE``
        records in input order, placeholders included.

    Raises:
        InvalidLengthError: If ``len(data)`` is not a multiple of
            ``RECORD_SIZE``. Nothing is decoded in that case.
    """
    size = len(data)
    if size % RECORD_SIZE:
        raise InvalidLengthError(size)

    view = memoryview(data)
    return [
        decode_one(view[start : start + RECORD_SIZE], encoding)
        for start in range(0, size, RECORD_SIZE)
    ]


def read_file(path, encoding: str | None = None) -> list[HydroPlantBinaryRecord]:
    """Read and decode a binary HIDR.DAT file.

    The whole file is read up front and the handle closed before decoding.
    ``OSError`` from the read propagates unchanged.
    """
    with open(path, "rb") as f:
        data = f.read()

    records = decode_all(data, encoding)
    logger.debug("Decoded %d HIDR.DAT records from %s", len(records), path)
    return records


def looks_binary(path) -> bool:
    """Return True if ``path`` appears to be the binary HIDR.DAT variant.

    The file must be at least one record long, its size must sit within
    ``_SIZE_SLACK`` bytes of a multiple of ``RECORD_SIZE``, and the int32 at
    offset 12 (first station id) must be a plausible station code. Text
    files put spaces there, which read as a huge integer.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """
    size = os.stat(path).st_size
    if size < RECORD_SIZE:
        return False

    remainder = size % RECORD_SIZE
    if _SIZE_SLACK < remainder < RECORD_SIZE - _SIZE_SLACK:
        return False

    with open(path, "rb") as f:
        head = f.read(16)

    station_id = struct.unpack_from("<i", head, 12)[0]
    if station_id not in _STATION_ID_RANGE:
        logger.debug("%s: first station id %d out of range, treating as text", path, station_id)
        return False
    return True
