"""
calendar-sync - Conflict reconciliation for mirrored calendar sessions.

Detects divergence between platform sessions and their linked calendar
events, alerts once per conflict, and applies the user's resolution.
"""

__version__ = "0.1.0"

from calendar_sync.core.engine import ConflictEngine

__all__ = ["ConflictEngine", "__version__"]
