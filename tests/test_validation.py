"""
Validation tests for catalog-api.

Tests the declarative FieldRule tables and their error messages.
"""

from decimal import Decimal

import pytest

from catalog_api.api.rules import PRODUCT_CREATE_RULES, PRODUCT_UPDATE_RULES, REGISTER_RULES, UPLOAD_RULES
from catalog_api.core.errors import ErrorCode, ValidationFailed, summarize_errors
from catalog_api.core.validation import INTEGER, NUMERIC, FieldRule, validate
from catalog_api.imaging.upload import ImageUpload


# ============================================================================
# Scalar rules
# ============================================================================

@pytest.mark.unit
async def test_required_field_missing():
    with pytest.raises(ValidationFailed) as exc_info:
        await validate({}, {"name": FieldRule(required=True)})

    assert exc_info.value.errors == {"name": ["The name field is required."]}
    assert exc_info.value.status_code == 422
    assert exc_info.value.code == ErrorCode.VAL_FAILED


@pytest.mark.unit
async def test_blank_string_counts_as_missing():
    with pytest.raises(ValidationFailed) as exc_info:
        await validate({"name": "   "}, {"name": FieldRule(required=True)})

    assert "name" in exc_info.value.errors


@pytest.mark.unit
async def test_string_length_bounds():
    rules = {"password": FieldRule(required=True, min=8), "name": FieldRule(max=3)}

    with pytest.raises(ValidationFailed) as exc_info:
        await validate({"password": "short", "name": "toolong"}, rules)

    errors = exc_info.value.errors
    assert errors["password"] == ["The password field must be at least 8 characters."]
    assert errors["name"] == ["The name field must not be greater than 3 characters."]


@pytest.mark.unit
async def test_numeric_coercion_and_minimum():
    rules = {"price": FieldRule(required=True, kind=NUMERIC, min=0)}

    validated = await validate({"price": "9.99"}, rules)
    assert validated["price"] == Decimal("9.99")

    with pytest.raises(ValidationFailed) as exc_info:
        await validate({"price": "-1"}, rules)
    assert exc_info.value.errors["price"] == ["The price field must be at least 0."]

    with pytest.raises(ValidationFailed) as exc_info:
        await validate({"price": "cheap"}, rules)
    assert exc_info.value.errors["price"] == ["The price field must be a number."]


@pytest.mark.unit
@pytest.mark.parametrize("value", ["1.5", "abc", True, "\u00b2"])
async def test_integer_rejects_non_integers(value):
    with pytest.raises(ValidationFailed) as exc_info:
        await validate({"stock_quantity": value}, {"stock_quantity": FieldRule(kind=INTEGER)})

    assert exc_info.value.errors["stock_quantity"] == ["The stock quantity field must be an integer."]


@pytest.mark.unit
async def test_integer_accepts_digit_strings():
    validated = await validate({"stock_quantity": "5"}, {"stock_quantity": FieldRule(kind=INTEGER)})
    assert validated == {"stock_quantity": 5}


@pytest.mark.unit
async def test_nullable_present_but_empty_is_none():
    validated = await validate({"description": ""}, {"description": FieldRule(nullable=True)})
    assert validated == {"description": None}


@pytest.mark.unit
async def test_absent_optional_field_is_omitted():
    validated = await validate({}, {"description": FieldRule(nullable=True)})
    assert validated == {}


@pytest.mark.unit
async def test_sometimes_skips_absent_fields():
    validated = await validate({"price": "3"}, PRODUCT_UPDATE_RULES)
    assert validated == {"price": Decimal("3")}


@pytest.mark.unit
async def test_sometimes_still_requires_present_fields():
    with pytest.raises(ValidationFailed) as exc_info:
        await validate({"name": ""}, PRODUCT_UPDATE_RULES)

    assert exc_info.value.errors == {"name": ["The name field is required."]}


# ============================================================================
# Register rules
# ============================================================================

@pytest.mark.unit
async def test_register_confirmation_mismatch():
    payload = {
        "name": "Ada",
        "email": "ada@example.com",
        "password": "secret-password",
        "password_confirmation": "different",
    }

    with pytest.raises(ValidationFailed) as exc_info:
        await validate(payload, REGISTER_RULES)

    assert exc_info.value.errors == {"password": ["The password field confirmation does not match."]}


@pytest.mark.unit
async def test_register_unique_email():
    async def taken(field, value):
        return field == "email" and value == "ada@example.com"

    payload = {
        "name": "Ada",
        "email": "ada@example.com",
        "password": "secret-password",
        "password_confirmation": "secret-password",
    }

    with pytest.raises(ValidationFailed) as exc_info:
        await validate(payload, REGISTER_RULES, unique=taken)

    assert exc_info.value.errors == {"email": ["The email has already been taken."]}


@pytest.mark.unit
async def test_register_invalid_email_skips_unique_check():
    calls = []

    async def taken(field, value):
        calls.append(value)
        return False

    with pytest.raises(ValidationFailed) as exc_info:
        await validate({"name": "Ada", "email": "nope", "password": "x" * 8,
                        "password_confirmation": "x" * 8}, REGISTER_RULES, unique=taken)

    assert exc_info.value.errors["email"] == ["The email field must be a valid email address."]
    assert calls == []


@pytest.mark.unit
@pytest.mark.parametrize("email", [
    "ada@example..com",
    "ada@.example.com",
    "a\"b@example.com",
    "ada@example",
    "ada example.com",
])
async def test_email_rule_rejects_malformed_addresses(email):
    with pytest.raises(ValidationFailed) as exc_info:
        await validate({"email": email}, {"email": FieldRule(required=True, email=True)})

    assert exc_info.value.errors["email"] == ["The email field must be a valid email address."]


@pytest.mark.unit
@pytest.mark.parametrize("email", ["ada@example.com", "grace.hopper+navy@mail.example.org"])
async def test_email_rule_accepts_addresses(email):
    validated = await validate({"email": email}, {"email": FieldRule(required=True, email=True)})

    assert validated == {"email": email}


@pytest.mark.unit
async def test_price_and_stock_column_limits():
    rules = {"price": PRODUCT_CREATE_RULES["price"], "stock_quantity": PRODUCT_CREATE_RULES["stock_quantity"]}

    validated = await validate({"price": "99999999.99", "stock_quantity": "2147483647"}, rules)
    assert validated == {"price": Decimal("99999999.99"), "stock_quantity": 2147483647}

    with pytest.raises(ValidationFailed) as exc_info:
        await validate({"price": "100000000.00", "stock_quantity": "2147483648"}, rules)
    assert exc_info.value.errors == {
        "price": ["The price field must not be greater than 99999999.99."],
        "stock_quantity": ["The stock quantity field must not be greater than 2147483647."],
    }


# ============================================================================
# Image rules
# ============================================================================

@pytest.mark.unit
async def test_image_rule_accepts_png(image_bytes):
    image = ImageUpload(filename="a.png", data=image_bytes(fmt="PNG"))

    validated = await validate({"image": image}, UPLOAD_RULES)

    assert validated["image"] is image


@pytest.mark.unit
async def test_image_rule_rejects_non_image():
    image = ImageUpload(filename="notes.jpg", data=b"just some text")

    with pytest.raises(ValidationFailed) as exc_info:
        await validate({"image": image}, UPLOAD_RULES, message="Validation Error")

    assert exc_info.value.message == "Validation Error"
    messages = exc_info.value.errors["image"]
    assert "The image field must be an image." in messages
    assert "The image field must be a file of type: jpeg, png, jpg, gif." in messages


@pytest.mark.unit
async def test_image_rule_rejects_unlisted_format(image_bytes):
    image = ImageUpload(filename="a.bmp", data=image_bytes(fmt="BMP"))

    with pytest.raises(ValidationFailed) as exc_info:
        await validate({"image": image}, UPLOAD_RULES)

    assert exc_info.value.errors["image"] == ["The image field must be a file of type: jpeg, png, jpg, gif."]


@pytest.mark.unit
async def test_image_rule_rejects_oversized_file(image_bytes):
    data = image_bytes(fmt="PNG") + b"\0" * (3 * 1024 * 1024)
    image = ImageUpload(filename="big.png", data=data)

    with pytest.raises(ValidationFailed) as exc_info:
        await validate({"image": image}, UPLOAD_RULES)

    assert exc_info.value.errors["image"] == ["The image field must not be greater than 2048 kilobytes."]


@pytest.mark.unit
async def test_image_rule_size_limit_is_inclusive(image_bytes):
    data = image_bytes(fmt="PNG")
    data += b"\0" * (2048 * 1024 - len(data))

    validated = await validate({"image": ImageUpload(filename="limit.png", data=data)}, UPLOAD_RULES)
    assert validated["image"].size == 2048 * 1024

    with pytest.raises(ValidationFailed) as exc_info:
        await validate({"image": ImageUpload(filename="limit.png", data=data + b"\0")}, UPLOAD_RULES)
    assert exc_info.value.errors["image"] == ["The image field must not be greater than 2048 kilobytes."]


@pytest.mark.unit
async def test_image_rule_rejects_plain_string():
    with pytest.raises(ValidationFailed) as exc_info:
        await validate({"image": "photo.jpg"}, {"image": PRODUCT_CREATE_RULES["image"]})

    assert exc_info.value.errors["image"] == ["The image field must be an image."]


# ============================================================================
# Error summary
# ============================================================================

@pytest.mark.unit
def test_summarize_errors_counts_remaining():
    errors = {
        "name": ["The name field is required."],
        "price": ["The price field is required.", "The price field must be a number."],
    }

    assert summarize_errors(errors) == "The name field is required. (and 2 more errors)"


@pytest.mark.unit
def test_summarize_errors_single():
    assert summarize_errors({"name": ["The name field is required."]}) == "The name field is required."
