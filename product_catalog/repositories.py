from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from product_catalog.core.db import Base, build_engine, build_sessionmaker
from product_catalog.core.logging import get_logger
from product_catalog.models import Product

logger = get_logger(__name__)


class ProductStore:
    """
    Storage handle for the products table.

    Every method runs exactly one statement in its own transaction; SQLAlchemy
    errors propagate to the caller.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def insert(self, values: dict[str, Any]) -> None:
        with self._session_factory.begin() as db:
            db.execute(insert(Product).values(**values))

    def update(self, product_id: str, values: dict[str, Any]) -> int:
        """Apply ``values`` to the row with ``product_id``; returns the matched row count."""
        with self._session_factory.begin() as db:
            result = db.execute(
                update(Product)
                .where(Product.id == product_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount

    def read_active(self) -> list[Product]:
        stmt = (
            select(Product)
            .where(Product.deleted_at.is_(None))
            .order_by(Product.created_at.asc(), Product.id.asc())
        )
        with self._session_factory() as db:
            return list(db.execute(stmt).scalars().all())

    def get(self, product_id: str) -> Optional[Product]:
        with self._session_factory() as db:
            return db.get(Product, product_id)


@contextmanager
def open_store(database_url: str, *, create_schema: bool = False) -> Iterator[ProductStore]:
    """
    Open the storage handle for the lifetime of the process.

    The engine is disposed on exit, whatever happened inside the block.
    """
    engine: Engine = build_engine(database_url)
    if create_schema:
        Base.metadata.create_all(engine)
    logger.info("Product store opened (dialect=%s)", engine.dialect.name)
    try:
        yield ProductStore(build_sessionmaker(engine))
    finally:
        engine.dispose()
        logger.info("Product store closed")
