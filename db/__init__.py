"""Warehouse schema for decoded HIDR.DAT records."""
