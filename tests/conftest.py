from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from urlmapper.core.config import Settings
from urlmapper.db.session import make_engine
from urlmapper.main import create_app
from urlmapper.stores.sql_store import SqlMappingStore


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        store_backend="sql",
        store_name="test_mappings",
        database_url="sqlite://",
        log_level="DEBUG",
    )


@pytest.fixture()
def store(settings: Settings) -> SqlMappingStore:
    """Fresh in-memory database per test."""
    return SqlMappingStore(make_engine(settings.database_url), settings.store_name)


@pytest.fixture()
def spy_store(store: SqlMappingStore) -> Mock:
    """
    Real store behind a Mock so tests can assert which store calls happened
    and inject failures with side_effect.
    """
    return Mock(wraps=store)


@pytest.fixture()
def client(settings: Settings, spy_store: Mock) -> TestClient:
    app = create_app(settings=settings, store=spy_store)
    with TestClient(app) as c:
        yield c
