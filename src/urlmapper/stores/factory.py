from urlmapper.core.config import Settings
from urlmapper.core.redis import get_redis_client
from urlmapper.db.session import make_engine
from urlmapper.stores.base import MappingStore
from urlmapper.stores.redis_store import RedisMappingStore
from urlmapper.stores.sql_store import SqlMappingStore


def build_store(settings: Settings) -> MappingStore:
    if settings.store_backend == "sql":
        return SqlMappingStore(make_engine(settings.database_url), settings.store_name)
    return RedisMappingStore(get_redis_client(settings.redis_url), settings.store_name)
