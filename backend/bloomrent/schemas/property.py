"""Pydantic schemas for the add-property wizard and property views.

Form models take the raw strings a form posts (``"studio"``, ``"12+"``,
``"1500.00"``) and normalise them; the ``*Out`` models serialise rows.
"""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar

from pydantic import BaseModel, field_validator, model_validator

from bloomrent.models.enums import PropertyStatus, PropertyType, UnitType
from bloomrent.schemas.validators import (
    FormModel,
    blank_to_none,
    fail,
    none_to_blank,
    optional_email,
    optional_numeric,
    optional_phone,
    required_text,
)

US_STATES = frozenset({
    "AK", "AL", "AR", "AZ", "CA", "CO", "CT", "DC", "DE", "FL", "GA", "GU",
    "HI", "IA", "ID", "IL", "IN", "KS", "KY", "LA", "MA", "MD", "ME", "MI",
    "MN", "MO", "MS", "MT", "NC", "ND", "NE", "NH", "NJ", "NM", "NV", "NY",
    "OH", "OK", "OR", "PA", "PR", "RI", "SC", "SD", "TN", "TX", "UT", "VA",
    "VI", "VT", "WA", "WI", "WV", "WY",
})

DEFAULT_COUNTRY = "United States"
DEFAULT_UNIT_NUMBER = "Main Unit"
MIN_YEAR_BUILT = 1700
MAX_BEDROOMS = 12
MAX_BATHROOMS = Decimal("12")

AMOUNT_REGEX = re.compile(r"^\d+(\.\d{0,2})?$")
BATHROOM_REGEX = re.compile(r"^\d+(\.[05])?$")


# ── Conversions between form option values and stored numbers ──

def convert_bedrooms(value: str) -> int:
    """``studio`` -> 0, ``12+`` -> 12, digits -> int."""
    value = value.strip().lower()
    if value == "studio":
        return 0
    if value == "12+":
        return MAX_BEDROOMS
    if not value.isdigit() or not 1 <= int(value) <= MAX_BEDROOMS:
        raise fail("bedrooms", "Please select number of bedrooms.")
    return int(value)


def convert_bathrooms(value: str) -> Decimal:
    """``12+`` -> 12; otherwise a whole or half number."""
    value = value.strip()
    if value == "12+":
        return MAX_BATHROOMS
    if not BATHROOM_REGEX.match(value) or Decimal(value) > MAX_BATHROOMS:
        raise fail("bathrooms", "Please select number of bathrooms.")
    return Decimal(value).quantize(Decimal("0.1"))


def bedrooms_to_option(bedrooms: int | None) -> str:
    if bedrooms is None:
        return ""
    if bedrooms == 0:
        return "studio"
    if bedrooms >= MAX_BEDROOMS:
        return "12+"
    return str(bedrooms)


def bathrooms_to_option(bathrooms: Decimal | None) -> str:
    if bathrooms is None:
        return ""
    if bathrooms >= MAX_BATHROOMS:
        return "12+"
    return format(bathrooms.normalize(), "f")


def to_amount(value: str, negative_message: str) -> Decimal:
    value = value.strip()
    if value.startswith("-"):
        raise fail("amount_negative", negative_message)
    if not AMOUNT_REGEX.match(value):
        raise fail("amount_format", "Must be a valid amount (e.g., 1500.00).")
    return Decimal(value).quantize(Decimal("0.01"))


# ── Step 1: address ─────────────────────────────────────────

class AddressForm(FormModel):
    address_line1: str = ""
    address_line2: str | None = None
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = DEFAULT_COUNTRY

    _blank = field_validator(
        "address_line1", "city", "state", "zip_code", "country", mode="before"
    )(none_to_blank)

    @field_validator("address_line1")
    @classmethod
    def _line1(cls, v: str) -> str:
        return required_text(v, "Address line 1 is required.", min_length=2)

    @field_validator("address_line2", mode="before")
    @classmethod
    def _line2(cls, v):
        return blank_to_none(v)

    @field_validator("city")
    @classmethod
    def _city(cls, v: str) -> str:
        return required_text(v, "City is required.", min_length=2)

    @field_validator("state")
    @classmethod
    def _state(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in US_STATES:
            raise fail("state", "Select a US state or territory.")
        return v

    @field_validator("zip_code")
    @classmethod
    def _zip(cls, v: str) -> str:
        return required_text(v, "ZIP / Postal code is required.", min_length=3)

    @field_validator("country")
    @classmethod
    def _country(cls, v: str) -> str:
        return required_text(v, "Country is required.", min_length=2)


# ── Step 1 (details page): name, type, description, facts ───

class PropertyDetailsForm(FormModel):
    name: str = ""
    property_type: str = ""
    description: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    year_built: int | None = None
    building_sq_ft: int | None = None
    lot_sq_ft: int | None = None

    _blank = field_validator("name", "property_type", mode="before")(none_to_blank)

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return required_text(
            v,
            "Property name is required.",
            max_length=200,
            max_message="Keep the name under 200 characters.",
        )

    @field_validator("property_type")
    @classmethod
    def _property_type(cls, v: str) -> str:
        try:
            return PropertyType(v).value
        except ValueError:
            raise fail("property_type", "Please select a property type.")

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, v):
        v = blank_to_none(v)
        if v is not None and len(v.strip()) > 2000:
            raise fail("too_long", "Keep the description under 2000 characters.")
        return v

    @field_validator("contact_email", mode="before")
    @classmethod
    def _email(cls, v):
        return optional_email(v)

    @field_validator("contact_phone", mode="before")
    @classmethod
    def _phone(cls, v):
        return optional_phone(v)

    @field_validator("year_built", mode="before")
    @classmethod
    def _year(cls, v):
        year = optional_numeric(v)
        if year is not None and not MIN_YEAR_BUILT <= year <= date.today().year:
            raise fail(
                "year_built",
                f"Year built must be between {MIN_YEAR_BUILT} and {date.today().year}.",
            )
        return year

    @field_validator("building_sq_ft", "lot_sq_ft", mode="before")
    @classmethod
    def _sq_ft(cls, v):
        size = optional_numeric(v)
        if size is not None and size < 1:
            raise fail("positive", "Must be greater than 0.")
        return size


# ── Step 2: unit type ───────────────────────────────────────

class PropertyTypeForm(FormModel):
    unit_type: str = ""

    _blank = field_validator("unit_type", mode="before")(none_to_blank)

    @field_validator("unit_type")
    @classmethod
    def _unit_type(cls, v: str) -> str:
        try:
            return UnitType(v).value
        except ValueError:
            raise fail("unit_type", "Please select a unit type.")


# ── Step 3: units ───────────────────────────────────────────

class UnitForm(FormModel):
    id: str | None = None
    unit_number: str = ""
    bedrooms: str = ""
    bathrooms: str = ""
    rent_amount: str = ""
    security_deposit_amount: str | None = None

    # Filled by the after-validator
    bedrooms_value: int | None = None
    bathrooms_value: Decimal | None = None
    rent_value: Decimal | None = None
    deposit_value: Decimal | None = None

    _blank = field_validator(
        "unit_number", "bedrooms", "bathrooms", "rent_amount", mode="before"
    )(none_to_blank)

    @field_validator("id", "security_deposit_amount", mode="before")
    @classmethod
    def _optional(cls, v):
        return blank_to_none(v)

    @field_validator("bedrooms")
    @classmethod
    def _bedrooms(cls, v: str) -> str:
        required_text(v, "Please select number of bedrooms.")
        convert_bedrooms(v)
        return v

    @field_validator("bathrooms")
    @classmethod
    def _bathrooms(cls, v: str) -> str:
        required_text(v, "Please select number of bathrooms.")
        convert_bathrooms(v)
        return v

    @field_validator("rent_amount")
    @classmethod
    def _rent(cls, v: str) -> str:
        to_amount(v, "Rent amount must be 0 or greater.")
        return v

    @field_validator("security_deposit_amount")
    @classmethod
    def _deposit(cls, v):
        if v is not None:
            to_amount(v, "Security deposit must be 0 or greater.")
        return v

    @model_validator(mode="after")
    def _convert(self):
        self.bedrooms_value = convert_bedrooms(self.bedrooms)
        self.bathrooms_value = convert_bathrooms(self.bathrooms)
        self.rent_value = to_amount(self.rent_amount, "")
        if self.security_deposit_amount is not None:
            self.deposit_value = to_amount(self.security_deposit_amount, "")
        return self


class SingleUnitForm(UnitForm):
    @field_validator("unit_number")
    @classmethod
    def _unit_number(cls, v: str) -> str:
        return v.strip() or DEFAULT_UNIT_NUMBER


class MultiUnitItem(UnitForm):
    @field_validator("unit_number")
    @classmethod
    def _unit_number(cls, v: str) -> str:
        return required_text(v, "Unit name is required.")


class MultiUnitForm(FormModel):
    units: list[MultiUnitItem] = []

    error_fields: ClassVar[dict[str, str]] = {
        "units_required": "units",
        "duplicate_unit": "units",
    }

    @model_validator(mode="after")
    def _units(self):
        if not self.units:
            raise fail("units_required", "At least one unit is required.")
        seen: set[str] = set()
        for unit in self.units:
            key = unit.unit_number.lower()
            if key in seen:
                raise fail("duplicate_unit", f"Unit {unit.unit_number} is listed more than once.")
            seen.add(key)
        return self


# ── Output ──────────────────────────────────────────────────

class UnitOut(BaseModel):
    id: str
    property_id: str
    unit_number: str
    bedrooms: int
    bathrooms: Decimal
    rent_amount: Decimal
    security_deposit_amount: Decimal | None

    model_config = {"from_attributes": True}


class PropertySummary(BaseModel):
    id: str
    name: str | None
    address_line1: str
    city: str
    state: str
    zip_code: str
    property_type: PropertyType | None
    unit_type: UnitType | None
    property_status: PropertyStatus
    units_count: int = 0
    created_at: datetime

    model_config = {"from_attributes": True}


class PropertyOut(PropertySummary):
    address_line2: str | None
    country: str
    description: str | None
    contact_email: str | None
    contact_phone: str | None
    year_built: int | None
    building_sq_ft: int | None
    lot_sq_ft: int | None
    units: list[UnitOut] = []
