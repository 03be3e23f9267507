from __future__ import annotations

from typing import Any, Mapping, Type, TypeVar

from pydantic import BaseModel, ValidationError

from product_catalog.exceptions import FormValidationError, MissingIdentifierError
from product_catalog.schemas import ProductCreateForm, ProductUpdateForm

FormT = TypeVar("FormT", bound=BaseModel)

ID_FIELD = "id"

_LABELS = {
    "name": "Name",
    "price": "Price",
    "description": "Description",
}


def _field_errors(exc: ValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        field = str(err["loc"][0]) if err["loc"] else "__root__"
        if err["type"] == "missing":
            message = f"{_LABELS.get(field, field)} is required"
        else:
            message = err["msg"]
        errors.setdefault(field, []).append(message)
    return errors


def _parse(model: Type[FormT], raw: Mapping[str, Any]) -> FormT:
    try:
        return model.model_validate(dict(raw))
    except ValidationError as e:
        raise FormValidationError(_field_errors(e)) from e


def validate_create(raw: Mapping[str, Any]) -> ProductCreateForm:
    """
    Turn a raw creation payload into a ProductCreateForm.

    Raises FormValidationError listing every failing field. System-assigned keys
    (id, timestamps) in ``raw`` are ignored.
    """
    return _parse(ProductCreateForm, raw)


def extract_product_id(raw: Mapping[str, Any]) -> str:
    value = raw.get(ID_FIELD)
    if not isinstance(value, str) or not value.strip():
        raise MissingIdentifierError()
    return value.strip()


def validate_update(raw: Mapping[str, Any]) -> tuple[str, ProductUpdateForm]:
    """
    Split a raw edit payload into (product_id, ProductUpdateForm).

    The id is checked first: without it MissingIdentifierError is raised and no
    field is looked at. The remaining fields are all optional.
    """
    product_id = extract_product_id(raw)
    fields = {k: v for k, v in raw.items() if k != ID_FIELD}
    return product_id, _parse(ProductUpdateForm, fields)
