"""Decoder and loader modules for the binary HIDR.DAT hydro-plant registry."""

from . import binary, load, run, transform, validate

__all__ = ["binary", "load", "run", "transform", "validate"]
