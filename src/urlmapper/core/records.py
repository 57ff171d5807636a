from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class MappingRecord:
    short_url: str
    long_url: str
    created_at: datetime
    access_count: int = 0
