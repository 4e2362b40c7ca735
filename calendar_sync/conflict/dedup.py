"""
Alert deduplication.

Remembers which conflicts have already been announced to the user so that
repeated detection passes over the same unresolved divergence stay quiet.

Keys are sticky: a key is only forgotten when its conflict is resolved or
dismissed. With ``max_keys`` unset the set grows with every distinct
unresolved conflict for the life of the process; set a bound to evict the
oldest keys first.
"""

from collections import OrderedDict

from loguru import logger

from calendar_sync.conflict.models import NotifiedKey


class NotificationDeduplicator:
    """Process-lifetime set of already-alerted conflict identities."""

    def __init__(self, max_keys: int | None = None):
        if max_keys is not None and max_keys < 1:
            raise ValueError("max_keys must be positive")
        self.max_keys = max_keys
        self._keys: OrderedDict[NotifiedKey, None] = OrderedDict()

    def has(self, key: NotifiedKey) -> bool:
        return key in self._keys

    def add(self, key: NotifiedKey) -> None:
        if key in self._keys:
            self._keys.move_to_end(key)
            return

        self._keys[key] = None

        if self.max_keys is not None and len(self._keys) > self.max_keys:
            evicted, _ = self._keys.popitem(last=False)
            logger.debug(f"Evicted alert key {evicted.local_record_id}/{evicted.severity.value}")

    def remove(self, key: NotifiedKey) -> None:
        self._keys.pop(key, None)

    def remove_record(self, local_record_id: str) -> int:
        """Forget every key for a record, whatever its severity."""
        stale = [k for k in self._keys if k.local_record_id == local_record_id]
        for key in stale:
            del self._keys[key]
        return len(stale)

    def clear(self) -> None:
        self._keys.clear()

    def keys(self) -> list[NotifiedKey]:
        return list(self._keys)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)
