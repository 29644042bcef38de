"""Declarative request validation.

Each endpoint describes its input as a table of ``FieldRule`` entries::

    PRODUCT_RULES = {
        "name": FieldRule(required=True, max=255),
        "price": FieldRule(required=True, kind=NUMERIC, min=0),
    }

``validate`` evaluates the table against a raw payload and either returns the
validated (and coerced) values or raises ``ValidationFailed`` carrying every
violated constraint, keyed by field.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from catalog_api.core.errors import ValidationFailed
from catalog_api.imaging.upload import ImageUpload


STRING = "string"
NUMERIC = "numeric"
INTEGER = "integer"
IMAGE = "image"

email_adapter = TypeAdapter(EmailStr)

# (field, value) -> True when the value is already taken
UniqueCheck = Callable[[str, Any], Awaitable[bool]]


@dataclass(frozen=True)
class FieldRule:
    """Constraints for a single input field.

    ``min``/``max`` bound the length of strings, the value of numbers and the
    size in kilobytes of files. ``sometimes`` skips the field entirely when it
    is absent from the payload (partial updates).
    """

    required: bool = False
    sometimes: bool = False
    nullable: bool = False
    kind: str = STRING
    min: Optional[Union[float, Decimal]] = None
    max: Optional[Union[float, Decimal]] = None
    email: bool = False
    confirmed: bool = False
    unique: bool = False
    mimes: Tuple[str, ...] = ()


def _is_email(value: str) -> bool:
    try:
        email_adapter.validate_python(value)
    except PydanticValidationError:
        return False
    return True


def _label(field: str) -> str:
    return field.replace("_", " ")


def _fmt(bound: Union[float, Decimal]) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return False


def _coerce_numeric(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def _coerce_integer(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and re.fullmatch(r"\s*[-+]?[0-9]+\s*", value):
        try:
            return int(value)
        except ValueError:
            # Beyond the interpreter's int string-conversion limit
            return None
    return None


def _check_value(field: str, value: Any, rule: FieldRule) -> Tuple[Any, List[str]]:
    """Type and bounds checks for a present, non-empty value."""
    label = _label(field)
    errors: List[str] = []

    if rule.kind == STRING:
        if not isinstance(value, str):
            return value, [f"The {label} field must be a string."]
        if rule.email and not _is_email(value):
            errors.append(f"The {label} field must be a valid email address.")
        if rule.min is not None and len(value) < rule.min:
            errors.append(f"The {label} field must be at least {_fmt(rule.min)} characters.")
        if rule.max is not None and len(value) > rule.max:
            errors.append(f"The {label} field must not be greater than {_fmt(rule.max)} characters.")
        return value, errors

    if rule.kind in (NUMERIC, INTEGER):
        if rule.kind == NUMERIC:
            number = _coerce_numeric(value)
            if number is None:
                return value, [f"The {label} field must be a number."]
        else:
            number = _coerce_integer(value)
            if number is None:
                return value, [f"The {label} field must be an integer."]
        if rule.min is not None and number < rule.min:
            errors.append(f"The {label} field must be at least {_fmt(rule.min)}.")
        if rule.max is not None and number > rule.max:
            errors.append(f"The {label} field must not be greater than {_fmt(rule.max)}.")
        return number, errors

    if rule.kind == IMAGE:
        if not isinstance(value, ImageUpload):
            return value, [f"The {label} field must be an image."]
        detected = value.detected_format
        if detected is None:
            errors.append(f"The {label} field must be an image.")
        if rule.mimes and detected not in rule.mimes:
            errors.append(f"The {label} field must be a file of type: {', '.join(rule.mimes)}.")
        if rule.max is not None and value.size_kb > rule.max:
            errors.append(f"The {label} field must not be greater than {_fmt(rule.max)} kilobytes.")
        return value, errors

    raise ValueError(f"Unknown field kind: {rule.kind}")


async def validate(
    data: Mapping[str, Any],
    rules: Mapping[str, FieldRule],
    unique: Optional[UniqueCheck] = None,
    message: Optional[str] = None,
) -> Dict[str, Any]:
    """Validate ``data`` against ``rules``.

    Returns only the fields named in ``rules`` that are present in the
    payload, coerced to their Python types (``Decimal`` for numeric, ``int``
    for integer). Nullable fields that are present but empty come back as
    ``None``.

    Raises:
        ValidationFailed: with every violation, keyed by field
    """
    errors: Dict[str, List[str]] = {}
    validated: Dict[str, Any] = {}

    for field, rule in rules.items():
        label = _label(field)
        present = field in data

        if rule.sometimes and not present:
            continue

        value = data.get(field)
        if _is_empty(value):
            if rule.required:
                errors.setdefault(field, []).append(f"The {label} field is required.")
            elif present and rule.nullable:
                validated[field] = None
            continue

        value, field_errors = _check_value(field, value, rule)

        if not field_errors and rule.confirmed:
            if data.get(f"{field}_confirmation") != data.get(field):
                field_errors.append(f"The {label} field confirmation does not match.")

        if not field_errors and rule.unique and unique is not None:
            if await unique(field, value):
                field_errors.append(f"The {label} has already been taken.")

        if field_errors:
            errors[field] = field_errors
        else:
            validated[field] = value

    if errors:
        raise ValidationFailed(errors, message=message)

    return validated
