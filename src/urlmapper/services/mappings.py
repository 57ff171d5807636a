from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from urlmapper.core.errors import ShortCodeConflict, ShortCodeExhausted, StoreError
from urlmapper.core.records import MappingRecord
from urlmapper.services.codes import DEFAULT_CODE_LENGTH, generate_short_code
from urlmapper.stores.base import MappingStore

logger = logging.getLogger("urlmapper.service")


class MappingService:
    def __init__(
        self,
        store: MappingStore,
        code_length: int = DEFAULT_CODE_LENGTH,
        max_create_attempts: int = 5,
        code_factory: Optional[Callable[[int], str]] = None,
    ):
        self.store = store
        self.code_length = code_length
        self.max_create_attempts = max_create_attempts
        self.code_factory = code_factory or generate_short_code

    def create(self, long_url: str) -> MappingRecord:
        """
        Persists a new mapping under a freshly generated short code.

        A taken code is never overwritten: the insert is conditional and a
        conflict triggers a new code, up to max_create_attempts times.
        """
        for attempt in range(1, self.max_create_attempts + 1):
            record = MappingRecord(
                short_url=self.code_factory(self.code_length),
                long_url=long_url,
                created_at=datetime.now(timezone.utc),
                access_count=0,
            )
            try:
                self.store.put_if_absent(record)
            except ShortCodeConflict:
                logger.warning(
                    "Short code collision on %s (attempt %d/%d)",
                    record.short_url, attempt, self.max_create_attempts,
                )
                continue

            logger.info("Created mapping %s -> %s", record.short_url, long_url)
            return record

        raise ShortCodeExhausted(
            f"no free short code after {self.max_create_attempts} attempts"
        )

    def resolve(self, short_url: str) -> Optional[MappingRecord]:
        record = self.store.get(short_url)
        if record is None:
            logger.debug("Short code not found: %s", short_url)
        return record

    def record_access(self, short_url: str) -> None:
        """
        Best-effort counter bump, run after the redirect has been produced.
        Failures go to the log only.
        """
        try:
            count = self.store.increment(short_url, "access_count", 1)
        except StoreError:
            logger.warning("Failed to update access count for %s", short_url, exc_info=True)
            return
        logger.debug("Access count for %s is now %d", short_url, count)

    def healthy(self) -> bool:
        return self.store.ping()
