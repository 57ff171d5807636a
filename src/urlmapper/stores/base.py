from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional

from urlmapper.core.records import MappingRecord

# fields that increment() is allowed to touch
COUNTER_FIELDS = frozenset({"access_count"})


def check_counter_field(field: str) -> None:
    if field not in COUNTER_FIELDS:
        raise ValueError(f"{field!r} is not a counter field")


class MappingStore(ABC):
    """
    Key-value persistence for mapping records, keyed by short code.

    Implementations provide their own atomicity for put_if_absent and
    increment; callers do no locking. Backend failures surface as StoreError.
    """

    @abstractmethod
    def put_if_absent(self, record: MappingRecord) -> None:
        """Insert record; raise ShortCodeConflict if the key is taken."""

    @abstractmethod
    def get(self, short_url: str) -> Optional[MappingRecord]:
        """Point lookup. Returns None when no record exists."""

    @abstractmethod
    def increment(self, short_url: str, field: str = "access_count", delta: int = 1) -> int:
        """
        Atomically add delta to a counter field and return the new value.
        Raises RecordNotFoundError when the record does not exist.
        """

    @abstractmethod
    def ping(self) -> bool:
        ...

    def close(self) -> None:
        pass
