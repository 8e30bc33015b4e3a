"""
Rolling demo message quota persisted in key-value storage.
"""

import json
import time
from dataclasses import dataclass
from typing import Callable, Optional

from pydantic import ValidationError

from ollie.chat.models import QuotaRecord
from ollie.shared.config import settings
from ollie.shared.exceptions import StorageError
from ollie.shared.logging import get_logger
from ollie.storage.kv import KeyValueStore, InMemoryKeyValueStore

logger = get_logger(__name__)


@dataclass
class QuotaReading:
    """Count for the current window and whether the stored window is still open.

    available is False only when storage itself could not be read.
    """
    count: int
    timestamp_valid: bool
    available: bool = True


class QuotaRepository:
    """
    Demo message counter with a rolling expiry window.

    Persistence is best-effort: read failures report a count of 0 and
    write failures are dropped, so storage problems never block a learner.
    Concurrent writers are not coordinated.
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        key: Optional[str] = None,
        window_hours: Optional[int] = None,
        clock: Callable[[], float] = time.time
    ):
        self.store = store if store is not None else InMemoryKeyValueStore()
        self.key = key or settings.quota.storage_key
        hours = window_hours if window_hours is not None else settings.quota.window_hours
        self.window_ms = hours * 60 * 60 * 1000
        self.clock = clock

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def read(self) -> QuotaReading:
        """Return the count for the current window; expired windows read as 0."""
        try:
            raw = self.store.get(self.key)
        except StorageError as e:
            logger.warning(f"Quota read failed, assuming 0: {e}", extra={"action": "quota_read"})
            return QuotaReading(count=0, timestamp_valid=False, available=False)

        if raw is None:
            return QuotaReading(count=0, timestamp_valid=False)

        try:
            record = QuotaRecord.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            logger.warning(f"Malformed quota record, assuming 0: {e}", extra={"action": "quota_read"})
            return QuotaReading(count=0, timestamp_valid=False)

        if self._now_ms() - record.timestamp >= self.window_ms:
            return QuotaReading(count=0, timestamp_valid=False)

        return QuotaReading(count=record.count, timestamp_valid=True)

    def increment(self, new_count: int):
        """Persist new_count and restart the window at now."""
        record = QuotaRecord(count=new_count, timestamp=self._now_ms())
        try:
            self.store.set(self.key, record.model_dump_json())
        except StorageError as e:
            logger.warning(f"Quota write failed, keeping session-only count: {e}", extra={
                "action": "quota_write",
                "count": new_count
            })
