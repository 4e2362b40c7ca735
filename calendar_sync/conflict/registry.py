"""In-memory registry of open conflicts."""

from collections.abc import Iterable

from calendar_sync.conflict.models import Conflict, ConflictSeverity, ConflictStats


class ConflictRegistry:
    """
    Open conflicts of one engine session, in detection order.

    Not persisted and not shared between processes; a restart loses every
    open conflict until the next detection pass rediscovers it.
    """

    def __init__(self, conflicts: Iterable[Conflict] | None = None):
        self._conflicts: dict[str, Conflict] = {}
        if conflicts is not None:
            self.replace(conflicts)

    def get(self, conflict_id: str) -> Conflict | None:
        return self._conflicts.get(conflict_id)

    def replace(self, conflicts: Iterable[Conflict]) -> None:
        """Swap the whole contents for a fresh detection result."""
        self._conflicts = {c.id: c for c in conflicts}

    def remove_by_id(self, conflict_id: str) -> Conflict | None:
        return self._conflicts.pop(conflict_id, None)

    def clear(self) -> None:
        self._conflicts.clear()

    def by_severity(self, severity: ConflictSeverity) -> list[Conflict]:
        """Get conflicts by severity."""
        return [c for c in self._conflicts.values() if c.severity == severity]

    def stats(self) -> ConflictStats:
        stats = ConflictStats(total=len(self._conflicts))
        for conflict in self._conflicts.values():
            if conflict.severity == ConflictSeverity.HIGH:
                stats.high += 1
            elif conflict.severity == ConflictSeverity.MEDIUM:
                stats.medium += 1
            else:
                stats.low += 1
        return stats

    def list(self) -> list[Conflict]:
        return list(self._conflicts.values())

    def __contains__(self, conflict_id: object) -> bool:
        return conflict_id in self._conflicts

    def __len__(self) -> int:
        return len(self._conflicts)
