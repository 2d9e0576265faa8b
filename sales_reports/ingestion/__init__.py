"""
Snapshot Ingestion Module
"""
from .snapshot import (
    FileFormat,
    SalesSnapshot,
    SnapshotLoader,
    conform_frame,
    load_snapshot_from_directory,
)

__all__ = [
    "FileFormat",
    "SalesSnapshot",
    "SnapshotLoader",
    "conform_frame",
    "load_snapshot_from_directory",
]
