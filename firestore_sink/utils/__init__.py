"""
Utilities package for the Firestore sink.

Exports shared helpers for logging and profiling. Keep this package free of
Firestore-specific logic.
"""

from firestore_sink.utils.logging import configure_logging, get_logger
from firestore_sink.utils.profiler import ProfileStats, profile_block

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
