import pytest

from product_catalog.exceptions import FormValidationError, MissingIdentifierError
from product_catalog.schemas import ProductUpdateForm, to_column_values
from product_catalog.validation import validate_create, validate_update


def test_create_coerces_price_text_to_int():
    form = validate_create({"name": "Pen", "price": "100"})
    assert form.name == "Pen"
    assert form.price == 100
    assert isinstance(form.price, int)
    assert form.description is None


def test_create_accepts_int_price_and_ignores_surrounding_whitespace():
    assert validate_create({"name": "Pen", "price": 0}).price == 0
    assert validate_create({"name": "Pen", "price": " 42 "}).price == 42


def test_create_drops_system_assigned_fields():
    form = validate_create(
        {
            "name": "Pen",
            "price": "1",
            "id": "forged",
            "created_at": "2000-01-01T00:00:00",
            "deleted_at": "2000-01-01T00:00:00",
        }
    )
    assert to_column_values(form) == {"name": "Pen", "price": 1, "description": None}


def test_create_blank_description_is_null():
    assert validate_create({"name": "Pen", "price": "1", "description": "   "}).description is None
    assert validate_create({"name": "Pen", "price": "1", "description": "Blue ink"}).description == "Blue ink"


@pytest.mark.parametrize("price", ["-1", "abc", "1.5", "", "1e3", -5, 2.0, True, "\u0661\u0660\u0660", "\uff11"])
def test_create_rejects_bad_price(price):
    with pytest.raises(FormValidationError) as exc:
        validate_create({"name": "Pen", "price": price})
    assert list(exc.value.errors) == ["price"]
    assert exc.value.errors["price"]


def test_price_above_column_range_is_a_field_error():
    assert validate_create({"name": "Pen", "price": "2147483647"}).price == 2147483647

    with pytest.raises(FormValidationError) as exc:
        validate_create({"name": "Pen", "price": "99999999999999999999"})
    assert exc.value.errors == {"price": ["Price must be at most 2147483647"]}

    with pytest.raises(FormValidationError) as exc:
        validate_update({"id": "abc", "price": 2147483648})
    assert exc.value.errors == {"price": ["Price must be at most 2147483647"]}


def test_negative_price_message_is_not_a_type_error():
    with pytest.raises(FormValidationError) as exc:
        validate_create({"name": "Pen", "price": "-3"})
    assert exc.value.errors == {"price": ["Price must be zero or greater"]}


@pytest.mark.parametrize("name", ["", "   "])
def test_create_rejects_empty_name(name):
    with pytest.raises(FormValidationError) as exc:
        validate_create({"name": name, "price": "100"})
    assert exc.value.errors == {"name": ["Name is required"]}


def test_create_reports_every_failing_field_together():
    with pytest.raises(FormValidationError) as exc:
        validate_create({"name": "", "price": "-1"})
    assert set(exc.value.errors) == {"name", "price"}


def test_create_missing_fields_are_reported_as_required():
    with pytest.raises(FormValidationError) as exc:
        validate_create({})
    assert exc.value.errors == {
        "name": ["Name is required"],
        "price": ["Price is required"],
    }


def test_update_extracts_id_and_keeps_only_submitted_fields():
    product_id, form = validate_update({"id": "abc", "price": "200"})
    assert product_id == "abc"
    assert isinstance(form, ProductUpdateForm)
    assert to_column_values(form) == {"price": 200}


def test_update_description_can_be_cleared():
    _, form = validate_update({"id": "abc", "description": ""})
    assert to_column_values(form) == {"description": None}


@pytest.mark.parametrize("raw", [{}, {"id": ""}, {"id": "   "}, {"name": "X"}])
def test_update_without_id_fails_before_field_validation(raw):
    # price would be invalid too, but only the id is reported
    with pytest.raises(MissingIdentifierError):
        validate_update({**raw, "price": "-1"})


def test_update_applies_create_rules_to_submitted_fields():
    with pytest.raises(FormValidationError) as exc:
        validate_update({"id": "abc", "name": " ", "price": "ten"})
    assert set(exc.value.errors) == {"name", "price"}


def test_update_with_only_id_is_an_empty_edit():
    _, form = validate_update({"id": "abc"})
    assert to_column_values(form) == {}
