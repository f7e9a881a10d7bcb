"""Public interface for the platform payload adapter."""

from __future__ import annotations

from .loader import load_batch_file, parse_batch
from .schema import PlatformUserBatch, PlatformUserPayload
from .translator import rejected_record, to_record

__all__ = [
    "PlatformUserBatch",
    "PlatformUserPayload",
    "load_batch_file",
    "parse_batch",
    "rejected_record",
    "to_record",
]
