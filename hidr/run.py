"""
hidr/run.py

End-to-end orchestrator for decoding a binary HIDR.DAT file.

Responsibilities
----------------
- Refuse files that look like the text HIDR.DAT variant.
- Read and decode a registry file into typed records.
- Optionally export the decoded records as CSV through pandas.
- Map records to warehouse rows and bulk upsert them into Postgres in
  buffered batches, then drop rows for slots the file no longer has.
- Expose a CLI for ad-hoc loads.

Environment Variables
---------------------
HIDR_BATCH_SIZE
    Number of rows written per upsert statement. Defaults to 500.
HIDR_ENCODING
    Codec for the fixed-width string fields. Defaults to "latin-1".

Conventions
-----------
- A file is identified in the warehouse by its resolved path unless an
  explicit ``source`` is given.
- Decoding is all or nothing: a malformed file writes no rows.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from .binary import ENCODING, DecodeError, looks_binary, read_file
from .load import count_rows, get_engine, prune_rows, upsert_rows
from .transform import to_frame, to_row

load_dotenv()

logger = logging.getLogger(__name__)

# Default number of rows to buffer before writing a batch to the database.
BATCH_WRITE_SIZE = 500


def batch_size_from_env() -> int:
    """Return ``HIDR_BATCH_SIZE`` as a positive int, or ``BATCH_WRITE_SIZE``.

    Raises:
        ValueError: If the variable is set but not a positive integer.
    """
    raw = os.getenv("HIDR_BATCH_SIZE")
    if not raw:
        return BATCH_WRITE_SIZE
    try:
        value = int(raw)
    except ValueError:
        value = 0
    if value <= 0:
        raise ValueError(f"HIDR_BATCH_SIZE must be a positive integer, got {raw!r}")
    return value


def run(
    path: str | Path,
    persist: bool = True,
    csv_path: str | Path | None = None,
    batch_size: int | None = None,
    source: str | None = None,
    encoding: str | None = None,
    check_format: bool = True,
) -> dict[str, int]:
    """Decode one HIDR.DAT file and deliver it to the requested sinks.

    Args:
        path: Binary HIDR.DAT file to decode.
        persist: If True, upsert the records into ``hydro_plant``.
        csv_path: Optional CSV destination for the tabulated records.
        batch_size: Rows per upsert statement; defaults to
            ``HIDR_BATCH_SIZE`` or ``BATCH_WRITE_SIZE``.
        source: Warehouse identifier of the file; defaults to the resolved
            ``path``.
        encoding: Codec for string fields; defaults to ``HIDR_ENCODING``
            or latin-1.
        check_format: If True, reject files that ``looks_binary`` takes for
            the text variant (for instance a first record with station 0).

    Returns:
        dict[str, int]: ``{"decoded", "placeholders", "upserted"}`` counts.

    Raises:
        DecodeError: If the file is not a whole number of records, has
            strings invalid in ``encoding``, or looks like the text variant.
        OSError: If the file cannot be read.
    """
    batch_size = batch_size or batch_size_from_env()
    encoding = encoding or os.getenv("HIDR_ENCODING", ENCODING)
    source = source or str(Path(path).resolve())

    records = read_file(path, encoding)
    if check_format and records and not looks_binary(path):
        raise DecodeError(f"{path} looks like the text HIDR.DAT variant")

    placeholders = sum(1 for r in records if r.is_placeholder)
    logger.info("Decoded %d records (%d placeholders) from %s", len(records), placeholders, path)

    if csv_path:
        to_frame(records).to_csv(csv_path)
        logger.info("Wrote %s", csv_path)

    total_ok = 0
    if persist:
        engine = get_engine()
        to_insert: list[dict] = []

        for idx, rec in enumerate(records):
            to_insert.append(to_row(rec, source, idx))
            if len(to_insert) >= batch_size:
                total_ok += upsert_rows(engine, to_insert)
                to_insert.clear()

        if to_insert:
            total_ok += upsert_rows(engine, to_insert)

        removed = prune_rows(engine, source, len(records))
        if removed:
            logger.info("Removed %d stale rows for %s", removed, source)
        logger.info("%s now holds %d rows", source, count_rows(engine, source))

    return {"decoded": len(records), "placeholders": placeholders, "upserted": total_ok}


def main(argv=None):
    """CLI entry point for decoding (and optionally loading) a file.

    Returns:
        int: Exit code (0 on success, 1 on a decode, read or config failure).
    """
    parser = argparse.ArgumentParser(description="Decode a binary HIDR.DAT file")
    parser.add_argument("path", help="Binary HIDR.DAT file")
    parser.add_argument("--no-db", action="store_true", help="Skip the database upsert")
    parser.add_argument("--csv", help="Write decoded records to this CSV file")
    parser.add_argument("--batch-size", type=int, help="Rows per upsert statement")
    parser.add_argument("--source", help="Warehouse identifier for the file")
    parser.add_argument("--encoding", help="Codec for string fields")
    parser.add_argument(
        "--skip-format-check",
        action="store_true",
        help="Decode even if the file looks like the text variant",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        stats = run(
            args.path,
            persist=not args.no_db,
            csv_path=args.csv,
            batch_size=args.batch_size,
            source=args.source,
            encoding=args.encoding,
            check_format=not args.skip_format_check,
        )
    except (ValueError, LookupError, OSError) as exc:
        # DecodeError and a bad HIDR_BATCH_SIZE are ValueErrors; an unknown
        # codec name is a LookupError.
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    print(f"Done. Stats: {stats}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
