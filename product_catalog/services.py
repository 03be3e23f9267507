"""Product lifecycle and queries.

ProductCatalog owns the create / update / soft-delete transitions of a product
and the active-list view. Each public method returns an OperationResult:
storage failures are logged once here and replaced by a generic message.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError

from product_catalog.cache import ACTIVE_PRODUCTS_VIEW, ViewCache
from product_catalog.core.logging import get_logger
from product_catalog.exceptions import FormValidationError, MissingIdentifierError
from product_catalog.repositories import ProductStore
from product_catalog.schemas import (
    OperationResult,
    ProductCreateForm,
    ProductRead,
    ProductUpdateForm,
    to_column_values,
)
from product_catalog.validation import validate_create, validate_update

logger = get_logger(__name__)

CREATED_MESSAGE = "Product created"
UPDATED_MESSAGE = "Product updated"
CREATE_FAILED = "Failed to create product"
UPDATE_FAILED = "Failed to update product"
DELETE_FAILED = "Failed to delete product"
LIST_FAILED = "Failed to retrieve products"
READ_FAILED = "Failed to retrieve product"
NOT_FOUND = "Product not found"


def new_product_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProductCatalog:
    def __init__(
        self,
        store: ProductStore,
        cache: Optional[ViewCache] = None,
        *,
        id_factory: Callable[[], str] = new_product_id,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._cache = cache or ViewCache()
        self._new_id = id_factory
        self._now = clock

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create(self, form: ProductCreateForm) -> OperationResult:
        now = self._now()
        values: dict[str, Any] = {
            **to_column_values(form),
            "id": self._new_id(),
            "created_at": now,
            "updated_at": now,
            "deleted_at": None,
        }
        try:
            self._store.insert(values)
        except SQLAlchemyError as e:
            logger.exception("Database error creating product: %s", e)
            return OperationResult.fail(CREATE_FAILED)

        self._cache.invalidate(ACTIVE_PRODUCTS_VIEW)
        logger.info("Created product %s", values["id"])
        return OperationResult.ok(CREATED_MESSAGE, data=ProductRead.model_validate(values))

    def update(self, product_id: str, form: ProductUpdateForm) -> OperationResult:
        """
        Apply the submitted fields of ``form`` and refresh updated_at.

        Soft-deleted rows are updated like any other, and an unknown id is a no-op
        that still reports success.
        """
        if not product_id:
            return OperationResult.fail(MissingIdentifierError.message)

        values = {**to_column_values(form), "updated_at": self._now()}
        try:
            matched = self._store.update(product_id, values)
        except SQLAlchemyError as e:
            logger.exception("Database error updating product %s: %s", product_id, e)
            return OperationResult.fail(UPDATE_FAILED)

        if matched == 0:
            logger.warning("Update matched no product with id %s", product_id)

        self._cache.invalidate(ACTIVE_PRODUCTS_VIEW)
        logger.info("Updated product %s (fields=%s)", product_id, sorted(values))
        return OperationResult.ok(UPDATED_MESSAGE)

    def soft_delete(self, product_id: str, *, confirmed: bool = True) -> OperationResult:
        """
        Stamp deleted_at on the product.

        Re-deleting re-stamps the timestamp. ``confirmed=False`` means the caller
        backed out: nothing is written and a cancelled outcome is returned.
        """
        if not confirmed:
            return OperationResult.cancelled()
        if not product_id:
            return OperationResult.fail(MissingIdentifierError.message)

        now = self._now()
        try:
            matched = self._store.update(product_id, {"deleted_at": now, "updated_at": now})
        except SQLAlchemyError as e:
            logger.exception("Database error deleting product %s: %s", product_id, e)
            return OperationResult.fail(DELETE_FAILED)

        if matched == 0:
            logger.warning("Soft delete matched no product with id %s", product_id)

        self._cache.invalidate(ACTIVE_PRODUCTS_VIEW)
        logger.info("Soft deleted product %s", product_id)
        return OperationResult.ok()

    # ------------------------------------------------------------------
    # Form submissions (validation + command)
    # ------------------------------------------------------------------

    def submit_create(self, raw: Mapping[str, Any]) -> OperationResult:
        try:
            form = validate_create(raw)
        except FormValidationError as e:
            return OperationResult.fail(e.errors)
        return self.create(form)

    def submit_update(self, raw: Mapping[str, Any]) -> OperationResult:
        try:
            product_id, form = validate_update(raw)
        except MissingIdentifierError as e:
            return OperationResult.fail(str(e))
        except FormValidationError as e:
            return OperationResult.fail(e.errors)
        return self.update(product_id, form)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_active(self) -> OperationResult:
        """Products without a deletion stamp, oldest first."""
        try:
            rows = self._store.read_active()
        except SQLAlchemyError as e:
            logger.exception("Database error listing products: %s", e)
            return OperationResult.fail(LIST_FAILED)
        return OperationResult.ok(data=[ProductRead.model_validate(r) for r in rows])

    def active_view(self) -> OperationResult:
        """list_active() served from the view cache until the next mutation."""
        cached = self._cache.get(ACTIVE_PRODUCTS_VIEW)
        if cached is not None:
            return OperationResult.ok(data=cached)

        generation = self._cache.generation(ACTIVE_PRODUCTS_VIEW)
        result = self.list_active()
        if result.success:
            self._cache.set_if_fresh(ACTIVE_PRODUCTS_VIEW, result.data, generation)
        return result

    def get(self, product_id: str) -> OperationResult:
        """Look a product up by id, soft-deleted ones included."""
        try:
            row = self._store.get(product_id)
        except SQLAlchemyError as e:
            logger.exception("Database error reading product %s: %s", product_id, e)
            return OperationResult.fail(READ_FAILED)
        if row is None:
            return OperationResult.fail(NOT_FOUND)
        return OperationResult.ok(data=ProductRead.model_validate(row))
