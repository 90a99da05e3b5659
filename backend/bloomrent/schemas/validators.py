"""Reusable validators for wizard forms.

Form messages are user-facing, so every check raises
``PydanticCustomError`` with the exact sentence to show rather than
letting pydantic produce its generic wording. ``validate_form`` then
flattens the errors to ``{field: message}``.
"""

import re
from typing import Any, ClassVar

from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticCustomError

E164_REGEX = re.compile(r"^\+[1-9]\d{1,14}$")
DIGITS_REGEX = re.compile(r"^\d+$")
EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
DATE_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class FormModel(BaseModel):
    """Base for wizard forms.

    ``error_fields`` maps the type of a model-level (cross-field) error to
    the form field it should be shown under.
    """
    error_fields: ClassVar[dict[str, str]] = {}

    model_config = {"str_strip_whitespace": True, "validate_default": True}


def fail(error_type: str, message: str) -> PydanticCustomError:
    return PydanticCustomError(error_type, message)


def blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def none_to_blank(value: Any) -> Any:
    return "" if value is None else value


def required_text(
    value: str,
    message: str,
    min_length: int = 1,
    max_length: int | None = None,
    max_message: str | None = None,
) -> str:
    value = (value or "").strip()
    if len(value) < min_length:
        raise fail("required", message)
    if max_length is not None and len(value) > max_length:
        raise fail("too_long", max_message or f"Keep this under {max_length} characters.")
    return value


def to_e164_phone(value: str) -> str:
    """Normalise a US phone number to E.164.

    Values already in E.164 pass through; 10 digits get ``+1``; 11 digits
    starting with 1 get ``+``. Anything else is returned trimmed, for the
    caller's format check to reject.
    """
    value = value.strip()
    if E164_REGEX.match(value):
        return value
    digits = re.sub(r"\D", "", value)
    if len(digits) == 10:
        return f"+1{digits}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"
    return value


def optional_phone(value: str | None) -> str | None:
    value = blank_to_none(value)
    if value is None:
        return None
    phone = to_e164_phone(str(value))
    if not E164_REGEX.match(phone):
        raise fail("phone_format", "Enter a valid phone number.")
    return phone


def optional_email(value: str | None) -> str | None:
    value = blank_to_none(value)
    if value is None:
        return None
    value = str(value).strip().lower()
    if len(value) > 254 or not EMAIL_REGEX.match(value):
        raise fail("email_format", "Enter a valid email address.")
    return value


def optional_numeric(value: Any) -> int | None:
    """Digits-only string (or int) -> int; blank -> None."""
    value = blank_to_none(value)
    if value is None:
        return None
    if isinstance(value, bool):
        raise fail("numeric", "Use numbers only.")
    if isinstance(value, int):
        text = str(value)
    else:
        text = str(value).strip().replace(",", "")
    if not DIGITS_REGEX.match(text):
        raise fail("numeric", "Use numbers only.")
    return int(text)


def validate_form(model_cls: type[FormModel], data: dict) -> tuple[FormModel | None, dict[str, str]]:
    """Validate ``data``; return ``(model, {})`` or ``(None, {field: message})``.

    Only the first message per field is kept.
    """
    try:
        return model_cls.model_validate(data), {}
    except ValidationError as exc:
        errors: dict[str, str] = {}
        for error in exc.errors():
            loc = [str(part) for part in error["loc"]]
            if loc:
                field = ".".join(loc)
            else:
                field = model_cls.error_fields.get(error["type"], "form")
            errors.setdefault(field, error["msg"])
        return None, errors
