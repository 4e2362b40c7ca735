"""
Conflict Detection and Resolution Module

Provides reconciliation of mirrored sessions with calendar events:
- Field comparators and ConflictClassifier: per-pair analysis
- ConflictDetector: detection passes with deduplicated alerts
- ConflictResolver: strategy-based resolution
- ConflictRegistry: open conflicts of a session
"""

from calendar_sync.conflict.classifier import (
    ConflictClassifier,
    classify_conflict,
    classify_severity,
)
from calendar_sync.conflict.comparators import (
    ALL_DAY_DEFAULT_TIME,
    DEFAULT_COMPARATORS,
    compare_date_time,
    compare_description,
    compare_location,
    remote_start_parts,
)
from calendar_sync.conflict.dedup import NotificationDeduplicator
from calendar_sync.conflict.detector import ConflictDetector
from calendar_sync.conflict.models import (
    Conflict,
    ConflictField,
    ConflictSeverity,
    ConflictStats,
    DetectionReport,
    Difference,
    EventTime,
    LocalRecord,
    MergedFields,
    NotifiedKey,
    RemoteEvent,
    ResolutionResult,
    ResolutionStatus,
    ResolutionStrategy,
    SyncMode,
)
from calendar_sync.conflict.registry import ConflictRegistry
from calendar_sync.conflict.resolver import ConflictResolver
from calendar_sync.conflict.strategies import (
    BaseStrategy,
    DismissStrategy,
    EventBodyBuilder,
    KeepLocalStrategy,
    KeepRemoteStrategy,
    MergeStrategy,
)

__all__ = [
    # Models
    "Conflict",
    "ConflictField",
    "ConflictSeverity",
    "ConflictStats",
    "DetectionReport",
    "Difference",
    "EventTime",
    "LocalRecord",
    "MergedFields",
    "NotifiedKey",
    "RemoteEvent",
    "ResolutionResult",
    "ResolutionStatus",
    "ResolutionStrategy",
    "SyncMode",
    # Comparators
    "ALL_DAY_DEFAULT_TIME",
    "DEFAULT_COMPARATORS",
    "compare_date_time",
    "compare_description",
    "compare_location",
    "remote_start_parts",
    # Classifier
    "ConflictClassifier",
    "classify_conflict",
    "classify_severity",
    # Detection
    "ConflictDetector",
    "NotificationDeduplicator",
    "ConflictRegistry",
    # Resolution
    "ConflictResolver",
    "BaseStrategy",
    "DismissStrategy",
    "EventBodyBuilder",
    "KeepLocalStrategy",
    "KeepRemoteStrategy",
    "MergeStrategy",
]
