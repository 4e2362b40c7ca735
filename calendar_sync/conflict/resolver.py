"""
Conflict Resolution for mirrored calendar sessions.

Dispatches a conflict to the strategy chosen by the user and records the
outcome. Each invocation moves PENDING -> APPLYING -> RESOLVED | FAILED;
nothing is persisted in between.
"""

from loguru import logger
from pydantic import ValidationError

from calendar_sync.conflict.models import (
    Conflict,
    MergedFields,
    ResolutionResult,
    ResolutionStatus,
    ResolutionStrategy,
)
from calendar_sync.conflict.strategies import (
    BaseStrategy,
    DismissStrategy,
    EventBodyBuilder,
    KeepLocalStrategy,
    KeepRemoteStrategy,
    MergeStrategy,
)
from calendar_sync.core.config import Settings, get_settings
from calendar_sync.core.errors import MissingCredentialError
from calendar_sync.ports import CalendarService, RecordStore


class ConflictResolver:
    """
    Resolves conflicts using the requested strategy.

    Usage:
        resolver = ConflictResolver(store, calendar)
        result = await resolver.resolve(conflict, ResolutionStrategy.KEEP_REMOTE)

        if not result.succeeded:
            # Conflict stays open, caller may retry
            pass
    """

    def __init__(
        self,
        record_store: RecordStore,
        calendar_service: CalendarService,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.record_store = record_store
        self.calendar_service = calendar_service
        self._strategies: dict[ResolutionStrategy, BaseStrategy] = {}
        self._resolution_history: list[ResolutionResult] = []
        self._register_default_strategies()

    def _register_default_strategies(self):
        """Register the built-in strategy for each resolution choice."""
        builder = EventBodyBuilder(self.settings)

        self._strategies[ResolutionStrategy.KEEP_LOCAL] = KeepLocalStrategy(
            self.record_store, self.calendar_service, builder
        )
        self._strategies[ResolutionStrategy.KEEP_REMOTE] = KeepRemoteStrategy(
            self.record_store, self.settings
        )
        self._strategies[ResolutionStrategy.MERGE] = MergeStrategy(
            self.record_store, self.calendar_service, builder
        )
        self._strategies[ResolutionStrategy.DISMISS] = DismissStrategy()

    def register_strategy(self, strategy: ResolutionStrategy, handler: BaseStrategy):
        """Register a custom handler for a resolution choice."""
        self._strategies[strategy] = handler
        logger.info(f"Registered custom strategy for {strategy.value}")

    async def resolve(
        self,
        conflict: Conflict,
        strategy: ResolutionStrategy | str,
        merged_fields: MergedFields | dict | None = None,
        access_token: str | None = None,
    ) -> ResolutionResult:
        """
        Resolve a single conflict.

        Args:
            conflict: Conflict to resolve
            strategy: Resolution choice
            merged_fields: User-chosen values, required for merge
            access_token: Remote calendar credential for keep-local and merge

        Returns:
            ResolutionResult; transport failures are reported, not raised
        """
        strategy = ResolutionStrategy(strategy)
        result = ResolutionResult(conflict_id=conflict.id, strategy=strategy)

        if isinstance(merged_fields, dict):
            try:
                merged_fields = MergedFields.model_validate(merged_fields)
            except ValidationError as e:
                logger.warning(f"Rejected merged fields for {conflict.id}: {e}")
                result.fail(f"Invalid merged fields: {e}")
                self._resolution_history.append(result)
                return result

        handler = self._strategies.get(strategy)
        if handler is None:
            return result.fail(f"No strategy registered for {strategy.value}")

        logger.info(f"Resolving conflict {conflict.id}: {strategy.value}")
        result.status = ResolutionStatus.APPLYING

        try:
            result = await handler.resolve(conflict, result, merged_fields, access_token)
        except MissingCredentialError as e:
            logger.warning(f"Cannot resolve {conflict.id} with {strategy.value}: {e}")
            result.fail(str(e))
        except Exception as e:
            logger.error(f"Resolution failed for {conflict.id}: {e}")
            result.fail(str(e))

        self._resolution_history.append(result)

        if result.succeeded:
            logger.info(f"Resolved conflict {conflict.id} with {strategy.value}")

        return result

    def get_resolution_history(self) -> list[ResolutionResult]:
        """Get history of all resolution attempts."""
        return self._resolution_history.copy()

    def clear_history(self):
        """Clear resolution history."""
        self._resolution_history.clear()
