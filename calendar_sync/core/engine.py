"""
Calendar conflict engine.

Session-scoped service object that owns the open-conflict registry and the
alert deduplication set, and exposes detection and resolution to the host
application.

Calls are not synchronised. The host must not run ``detect_all`` while a
``resolve`` on the same engine is in flight (detection replaces the registry
wholesale and would race with removal by id); serialise calls, or guard the
engine with an ``asyncio.Lock``.
"""

from collections.abc import Awaitable, Callable, Iterable

from loguru import logger

from calendar_sync.conflict.classifier import ConflictClassifier
from calendar_sync.conflict.dedup import NotificationDeduplicator
from calendar_sync.conflict.detector import ConflictDetector
from calendar_sync.conflict.models import (
    Conflict,
    ConflictStats,
    DetectionReport,
    LocalRecord,
    MergedFields,
    RemoteEvent,
    ResolutionStrategy,
)
from calendar_sync.conflict.registry import ConflictRegistry
from calendar_sync.conflict.resolver import ConflictResolver
from calendar_sync.core.config import Settings, get_settings
from calendar_sync.ports import AlertSink, CalendarService, RecordStore

TokenProvider = Callable[[], Awaitable[str | None]]


class ConflictEngine:
    """
    Detects and resolves divergence between mirrored sessions and events.

    Usage:
        engine = ConflictEngine(store, calendar, alerts, user_id="u-1")
        conflicts = await engine.detect_all(records, events)

        for conflict in conflicts:
            ok = await engine.resolve(conflict.id, "keep-remote")
    """

    def __init__(
        self,
        record_store: RecordStore,
        calendar_service: CalendarService,
        alert_sink: AlertSink,
        user_id: str,
        settings: Settings | None = None,
        access_token_provider: TokenProvider | None = None,
    ):
        """
        Initialize the engine.

        Args:
            record_store: Writes platform sessions
            calendar_service: Writes remote events
            alert_sink: Delivers user alerts
            user_id: Owner of the sessions, recipient of alerts
            settings: Optional settings override. Uses default if not provided.
            access_token_provider: Coroutine returning a current calendar token,
                consulted when resolve() is called without one
        """
        self.settings = settings or get_settings()
        self.user_id = user_id
        self._access_token_provider = access_token_provider

        self.registry = ConflictRegistry()
        self.deduplicator = NotificationDeduplicator(max_keys=self.settings.notified_keys_max)
        self.classifier = ConflictClassifier(
            default_time=self.settings.default_all_day_time,
            time_zone=self.settings.time_zone,
        )
        self.detector = ConflictDetector(
            classifier=self.classifier,
            deduplicator=self.deduplicator,
            registry=self.registry,
            alert_sink=alert_sink,
            user_id=user_id,
            default_client_name=self.settings.default_client_name,
        )
        self.resolver = ConflictResolver(record_store, calendar_service, self.settings)

    # =========================================================================
    # DETECTION
    # =========================================================================

    async def detect_all(
        self,
        local_records: Iterable[LocalRecord],
        remote_events: Iterable[RemoteEvent],
    ) -> list[Conflict]:
        """Run a full detection pass and return every conflict found."""
        return await self.detector.detect_all(local_records, remote_events)

    async def detect(
        self,
        local_records: Iterable[LocalRecord],
        remote_events: Iterable[RemoteEvent],
    ) -> DetectionReport:
        """Run a full detection pass and report new versus known conflicts."""
        return await self.detector.detect_all_report(local_records, remote_events)

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    async def resolve(
        self,
        conflict_id: str,
        strategy: ResolutionStrategy | str,
        merged_fields: MergedFields | dict | None = None,
        access_token: str | None = None,
    ) -> bool:
        """
        Resolve one open conflict.

        Args:
            conflict_id: Id of a conflict in the registry
            strategy: keep-local, keep-remote, merge or dismiss
            merged_fields: Values for merge; unset fields keep the local value
            access_token: Calendar credential; falls back to the provider

        Returns:
            True when the conflict was closed. On False it stays open.
        """
        conflict = self.registry.get(conflict_id)
        if conflict is None:
            logger.warning(f"Cannot resolve unknown conflict {conflict_id}")
            return False

        strategy = ResolutionStrategy(strategy)
        if access_token is None and strategy.requires_credential:
            access_token = await self._current_token()

        result = await self.resolver.resolve(conflict, strategy, merged_fields, access_token)

        if not result.succeeded:
            return False

        self._close(conflict)
        return True

    async def resolve_all(
        self,
        strategy: ResolutionStrategy | str,
        access_token: str | None = None,
    ) -> int:
        """
        Apply one strategy to every open conflict, one at a time.

        Returns:
            Number of conflicts resolved
        """
        strategy = ResolutionStrategy(strategy)
        if strategy == ResolutionStrategy.MERGE:
            raise ValueError("merge needs per-conflict fields and cannot be applied in bulk")

        success_count = 0
        conflicts = self.registry.list()

        for conflict in conflicts:
            if await self.resolve(conflict.id, strategy, access_token=access_token):
                success_count += 1

        logger.info(f"Resolved {success_count}/{len(conflicts)} conflicts with {strategy.value}")
        return success_count

    def dismiss(self, conflict_id: str) -> None:
        """Drop a conflict without touching either side."""
        conflict = self.registry.get(conflict_id)
        if conflict is not None:
            self._close(conflict)

    def clear_all(self) -> None:
        """Forget every open conflict. Alert keys are kept."""
        self.registry.clear()

    # =========================================================================
    # QUERIES
    # =========================================================================

    @property
    def conflicts(self) -> list[Conflict]:
        return self.registry.list()

    def get(self, conflict_id: str) -> Conflict | None:
        return self.registry.get(conflict_id)

    def stats(self) -> ConflictStats:
        return self.registry.stats()

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _close(self, conflict: Conflict) -> None:
        self.registry.remove_by_id(conflict.id)
        self.deduplicator.remove(conflict.notified_key)

    async def _current_token(self) -> str | None:
        if self._access_token_provider is None:
            return None
        try:
            return await self._access_token_provider()
        except Exception as e:
            logger.error(f"Access token provider failed: {e}")
            return None
