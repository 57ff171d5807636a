from __future__ import annotations
from datetime import datetime
from typing import Optional

from redis import Redis, RedisError

from urlmapper.core.errors import RecordNotFoundError, ShortCodeConflict, StoreError
from urlmapper.core.records import MappingRecord
from urlmapper.stores.base import MappingStore, check_counter_field


PUT_IF_ABSENT_LUA = r"""
local key = KEYS[1]

if redis.call("EXISTS", key) == 1 then
  return 0
end

redis.call("HSET", key,
  "short_url", ARGV[1],
  "long_url", ARGV[2],
  "created_at", ARGV[3],
  "access_count", ARGV[4])

return 1
"""

INCREMENT_IF_EXISTS_LUA = r"""
local key = KEYS[1]

-- HINCRBY alone would create a partial hash for a missing record
if redis.call("EXISTS", key) == 0 then
  return false
end

return redis.call("HINCRBY", key, ARGV[1], ARGV[2])
"""


class RedisMappingStore(MappingStore):
    """
    One hash per record at "{namespace}:{short_url}".

    Insert-if-absent and increment-if-exists run as Lua scripts so each is a
    single atomic step on the server.
    """

    def __init__(self, r: Redis, namespace: str):
        self.r = r
        self.namespace = namespace

    def key_for(self, short_url: str) -> str:
        return f"{self.namespace}:{short_url}"

    def put_if_absent(self, record: MappingRecord) -> None:
        try:
            created = self.r.eval(
                PUT_IF_ABSENT_LUA,
                1,
                self.key_for(record.short_url),
                record.short_url,
                record.long_url,
                record.created_at.isoformat(),
                record.access_count,
            )
        except RedisError as exc:
            raise StoreError(f"redis write failed: {exc}") from exc

        if not int(created):
            raise ShortCodeConflict(record.short_url)

    def get(self, short_url: str) -> Optional[MappingRecord]:
        try:
            data = self.r.hgetall(self.key_for(short_url))
        except RedisError as exc:
            raise StoreError(f"redis read failed: {exc}") from exc

        if not data:
            return None

        try:
            return MappingRecord(
                short_url=data["short_url"],
                long_url=data["long_url"],
                created_at=datetime.fromisoformat(data["created_at"]),
                access_count=int(data.get("access_count", 0)),
            )
        except (KeyError, ValueError) as exc:
            raise StoreError(f"corrupt record at {self.key_for(short_url)}") from exc

    def increment(self, short_url: str, field: str = "access_count", delta: int = 1) -> int:
        check_counter_field(field)
        try:
            value = self.r.eval(
                INCREMENT_IF_EXISTS_LUA,
                1,
                self.key_for(short_url),
                field,
                delta,
            )
        except RedisError as exc:
            raise StoreError(f"redis increment failed: {exc}") from exc

        # Lua false comes back as None
        if value is None:
            raise RecordNotFoundError(short_url)
        return int(value)

    def ping(self) -> bool:
        try:
            return bool(self.r.ping())
        except RedisError:
            return False

    def close(self) -> None:
        self.r.close()
