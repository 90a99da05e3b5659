"""Pydantic schemas for the add-tenant wizard and tenant views."""

from datetime import date, datetime
from typing import ClassVar

from pydantic import BaseModel, field_validator, model_validator

from bloomrent.models.enums import TenantStatus
from bloomrent.schemas.validators import (
    DATE_REGEX,
    FormModel,
    blank_to_none,
    fail,
    none_to_blank,
    optional_email,
    optional_phone,
    required_text,
)


def parse_form_date(value: str, field_label: str) -> date:
    if not DATE_REGEX.match(value):
        raise fail("date_format", f"{field_label} must be a date (YYYY-MM-DD).")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise fail("date_format", f"{field_label} must be a valid date.")


# ── Step 1: basic info ──────────────────────────────────────

class TenantBasicInfoForm(FormModel):
    first_name: str = ""
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None

    error_fields: ClassVar[dict[str, str]] = {"contact_required": "email"}

    _blank = field_validator("first_name", mode="before")(none_to_blank)

    @field_validator("first_name")
    @classmethod
    def _first_name(cls, v: str) -> str:
        return required_text(v, "First name is required.", max_length=100)

    @field_validator("last_name", mode="before")
    @classmethod
    def _last_name(cls, v):
        return blank_to_none(v)

    @field_validator("email", mode="before")
    @classmethod
    def _email(cls, v):
        return optional_email(v)

    @field_validator("phone", mode="before")
    @classmethod
    def _phone(cls, v):
        return optional_phone(v)

    @model_validator(mode="after")
    def _contact(self):
        if not self.email and not self.phone:
            raise fail("contact_required", "Either email or phone is required")
        return self

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()


# ── Step 2: lease dates ─────────────────────────────────────

class LeaseDatesForm(FormModel):
    lease_start_date: str = ""
    lease_end_date: str | None = None

    error_fields: ClassVar[dict[str, str]] = {"lease_dates_order": "lease_end_date"}

    _blank = field_validator("lease_start_date", mode="before")(none_to_blank)

    @field_validator("lease_start_date")
    @classmethod
    def _start(cls, v: str) -> str:
        v = required_text(v, "Lease start date is required.")
        parse_form_date(v, "Lease start date")
        return v

    @field_validator("lease_end_date", mode="before")
    @classmethod
    def _end(cls, v):
        v = blank_to_none(v)
        if v is not None:
            v = str(v).strip()
            parse_form_date(v, "Lease end date")
        return v

    @model_validator(mode="after")
    def _order(self):
        if self.end_date is not None and self.end_date <= self.start_date:
            raise fail("lease_dates_order", "Lease end date must be after start date.")
        return self

    @property
    def start_date(self) -> date:
        return date.fromisoformat(self.lease_start_date)

    @property
    def end_date(self) -> date | None:
        if self.lease_end_date is None:
            return None
        return date.fromisoformat(self.lease_end_date)


# ── Step 3: unit selection ──────────────────────────────────

class UnitSelectionForm(FormModel):
    property_id: str = ""
    unit_id: str = ""

    _blank = field_validator("property_id", "unit_id", mode="before")(none_to_blank)

    @field_validator("property_id")
    @classmethod
    def _property(cls, v: str) -> str:
        return required_text(v, "Please select a property.")

    @field_validator("unit_id")
    @classmethod
    def _unit(cls, v: str) -> str:
        return required_text(v, "Please select a unit.")


# ── Step 4: invitation choice ───────────────────────────────

class InvitationChoiceForm(FormModel):
    invitation_choice: str = ""

    _blank = field_validator("invitation_choice", mode="before")(none_to_blank)

    @field_validator("invitation_choice")
    @classmethod
    def _choice(cls, v: str) -> str:
        if v not in ("now", "later"):
            raise fail("invitation_choice", "Choose whether to send the invitation now or later.")
        return v


# ── Output ──────────────────────────────────────────────────

class TenantOut(BaseModel):
    id: str
    name: str
    email: str | None
    phone: str | None
    unit_id: str | None
    user_id: str | None
    lease_start_date: datetime | None
    lease_end_date: datetime | None
    tenant_status: TenantStatus
    created_at: datetime

    model_config = {"from_attributes": True}
