import os
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

# Test defaults, set before anything reads Settings.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "INFO")
os.environ.setdefault("AUTH_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from fastapi.testclient import TestClient  # noqa: E402

from product_catalog.cache import ViewCache  # noqa: E402
from product_catalog.core.db import Base, build_engine, build_sessionmaker  # noqa: E402
from product_catalog.main import create_app  # noqa: E402
from product_catalog.repositories import ProductStore  # noqa: E402
from product_catalog.services import ProductCatalog  # noqa: E402


class TickingClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)) -> None:
        self.current = start

    def __call__(self) -> datetime:
        self.current = self.current + timedelta(seconds=1)
        return self.current


class CountingStore(ProductStore):
    """ProductStore that records how many writes reached the database."""

    def __init__(self, session_factory) -> None:
        super().__init__(session_factory)
        self.writes = 0

    def insert(self, values: dict[str, Any]) -> None:
        self.writes += 1
        super().insert(values)

    def update(self, product_id: str, values: dict[str, Any]) -> int:
        self.writes += 1
        return super().update(product_id, values)


@pytest.fixture()
def engine():
    eng = build_engine("sqlite://")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def store(engine) -> CountingStore:
    return CountingStore(build_sessionmaker(engine))


@pytest.fixture()
def broken_store(engine) -> CountingStore:
    # Same handle, but the table is gone: every statement fails in the driver.
    Base.metadata.drop_all(engine)
    return CountingStore(build_sessionmaker(engine))


@pytest.fixture()
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture()
def cache() -> ViewCache:
    return ViewCache()


@pytest.fixture()
def catalog(store, cache, clock) -> ProductCatalog:
    return ProductCatalog(store, cache, clock=clock)


@pytest.fixture()
def broken_catalog(broken_store, cache, clock) -> ProductCatalog:
    return ProductCatalog(broken_store, cache, clock=clock)


@pytest.fixture()
def client(catalog):
    with TestClient(create_app(catalog)) as c:
        yield c


# =========================
# Live HTTP checks (optional)
# =========================
@pytest.fixture(scope="session")
def base_url() -> str:
    """
    Base URL of a running instance. Tests using it are skipped when
    CATALOG_BASE_URL is not set.
    """
    url = os.getenv("CATALOG_BASE_URL", "").strip()
    if not url:
        pytest.skip("CATALOG_BASE_URL not set; live HTTP checks skipped")
    return url.rstrip("/")
