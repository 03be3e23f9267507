from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_core import PydanticCustomError

_WHOLE_NUMBER = re.compile(r"-?[0-9]+")

# products.price is a signed 32-bit INTEGER column.
MAX_PRICE = 2_147_483_647


# -------------------------
# Persisted record shape
# -------------------------
class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    price: int
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at", "deleted_at")
    @classmethod
    def as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # SQLite hands timestamps back naive; they were written as UTC.
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


# -------------------------
# Accepted input shapes
# -------------------------
def _check_name(value: Any) -> str:
    if not isinstance(value, str):
        raise PydanticCustomError("name_type", "Name must be text")
    if not value.strip():
        raise PydanticCustomError("name_blank", "Name is required")
    return value


def _coerce_price(value: Any) -> int:
    # bool is an int subclass; a checkbox-ish value is not a price.
    if isinstance(value, bool):
        raise PydanticCustomError("price_type", "Price must be a whole number")

    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise PydanticCustomError("price_blank", "Price is required")
        if not _WHOLE_NUMBER.fullmatch(text):
            raise PydanticCustomError("price_type", "Price must be a whole number")
        number = int(text)
    else:
        raise PydanticCustomError("price_type", "Price must be a whole number")

    if number < 0:
        raise PydanticCustomError("price_negative", "Price must be zero or greater")
    if number > MAX_PRICE:
        raise PydanticCustomError("price_too_large", f"Price must be at most {MAX_PRICE}")
    return number


def _normalize_description(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise PydanticCustomError("description_type", "Description must be text")
    # An untouched textarea still posts the key.
    return value if value.strip() else None


class ProductCreateForm(BaseModel):
    """Fields a caller may submit to create a product. Everything else is dropped."""

    model_config = ConfigDict(extra="ignore")

    name: str
    price: int
    description: Optional[str] = None

    check_name = field_validator("name", mode="before")(_check_name)
    coerce_price = field_validator("price", mode="before")(_coerce_price)
    normalize_description = field_validator("description", mode="before")(_normalize_description)


class ProductUpdateForm(BaseModel):
    """Partial edit. Only the fields present in the payload end up in model_fields_set."""

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    price: Optional[int] = None
    description: Optional[str] = None

    check_name = field_validator("name", mode="before")(_check_name)
    coerce_price = field_validator("price", mode="before")(_coerce_price)
    normalize_description = field_validator("description", mode="before")(_normalize_description)


# input field -> products column
_FORM_TO_COLUMN = {
    "name": "name",
    "price": "price",
    "description": "description",
}


def to_column_values(form: Union[ProductCreateForm, ProductUpdateForm]) -> dict[str, Any]:
    """Map a validated input record onto products columns (submitted fields only for edits)."""
    partial = isinstance(form, ProductUpdateForm)
    data = form.model_dump(exclude_unset=partial)
    return {column: data[field] for field, column in _FORM_TO_COLUMN.items() if field in data}


# -------------------------
# Operation outcome
# -------------------------
class OperationStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"


FieldErrors = dict[str, list[str]]


class OperationResult(BaseModel):
    """
    Outcome of a catalog operation.

    A caller starts from ``pending()`` while a submission is in flight and maps
    the settled result (success, failure or cancelled) to its own presentation.
    ``error`` is a generic message, or a field -> messages map for validation.
    """

    status: OperationStatus
    message: Optional[str] = None
    error: Optional[Union[str, FieldErrors]] = None
    data: Any = None

    @classmethod
    def pending(cls) -> "OperationResult":
        return cls(status=OperationStatus.PENDING)

    @classmethod
    def ok(cls, message: Optional[str] = None, data: Any = None) -> "OperationResult":
        return cls(status=OperationStatus.SUCCESS, message=message, data=data)

    @classmethod
    def fail(cls, error: Union[str, FieldErrors]) -> "OperationResult":
        return cls(status=OperationStatus.FAILURE, error=error)

    @classmethod
    def cancelled(cls) -> "OperationResult":
        return cls(status=OperationStatus.CANCELLED)

    @property
    def success(self) -> bool:
        return self.status is OperationStatus.SUCCESS

    @property
    def settled(self) -> bool:
        return self.status is not OperationStatus.PENDING
