"""Wizard progress carried in the query string.

There is no server-side session for a wizard in flight: the draft id, the
number of steps already finished and the chosen unit-type branch travel
from page to page as query parameters. This module owns the value types
for that state and the pure encode/decode pair that maps them to and from
a query string, plus the progress-indicator builder the step views return.

The encoded state is a hint only. What is actually done lives in the
persisted draft and is re-derived by :mod:`bloomrent.wizard.resolver`.
"""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum
from urllib.parse import urlencode

from bloomrent.models.enums import UnitType

PROPERTY_WIZARD_ROOT = "/owners/properties/add-property"
TENANT_WIZARD_ROOT = "/owners/tenants/add-tenant"
PROPERTIES_LIST_ROUTE = "/owners/properties"
PROPERTY_DETAILS_ROUTE = "/owners/properties/details"
TENANTS_LIST_ROUTE = "/owners/tenants"


class PropertyStep(str, Enum):
    ADDRESS = "address"
    DETAILS = "property-name-and-description"
    PROPERTY_TYPE = "property-type"
    SINGLE_UNIT = "single-unit-option"
    MULTI_UNIT = "multi-unit-option"

    @property
    def path(self) -> str:
        return f"{PROPERTY_WIZARD_ROOT}/{self.value}"

    @property
    def number(self) -> int:
        return _PROPERTY_STEP_NUMBERS[self]


_PROPERTY_STEP_NUMBERS = {
    PropertyStep.ADDRESS: 1,
    PropertyStep.DETAILS: 1,
    PropertyStep.PROPERTY_TYPE: 2,
    PropertyStep.SINGLE_UNIT: 3,
    PropertyStep.MULTI_UNIT: 3,
}


class TenantStep(str, Enum):
    BASIC_INFO = "tenant-basic-info"
    LEASE_DATES = "lease-dates"
    UNIT_SELECTION = "unit-selection"
    INVITATION = "invitation"
    SENDING_INVITATION = "sending-invitation"

    @property
    def path(self) -> str:
        return f"{TENANT_WIZARD_ROOT}/{self.value}"

    @property
    def number(self) -> int:
        return _TENANT_STEP_NUMBERS[self]


_TENANT_STEP_NUMBERS = {
    TenantStep.BASIC_INFO: 1,
    TenantStep.LEASE_DATES: 2,
    TenantStep.UNIT_SELECTION: 3,
    TenantStep.INVITATION: 4,
    TenantStep.SENDING_INVITATION: 4,
}


def unit_step_for(unit_type: UnitType | str) -> PropertyStep:
    """The step-3 branch for a unit type; never the other branch."""
    if UnitType(unit_type) is UnitType.SINGLE_UNIT:
        return PropertyStep.SINGLE_UNIT
    return PropertyStep.MULTI_UNIT


# ── Decoding helpers ────────────────────────────────────────

def _clean_id(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _parse_completed(value) -> int:
    """Non-negative integer, anything else decodes to 0."""
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return 0
    return parsed if parsed >= 0 else 0


def _parse_unit_type(value) -> UnitType | None:
    try:
        return UnitType(value)
    except ValueError:
        return None


def build_href(path: str, params: list[tuple[str, object]]) -> str:
    """Path plus query string, skipping ``None`` values and keeping order."""
    pairs = [(k, str(v.value if isinstance(v, Enum) else v)) for k, v in params if v is not None]
    if not pairs:
        return path
    return f"{path}?{urlencode(pairs)}"


def displayed_completed_steps(url_value: int, current_step: int) -> int:
    """Completed count shown on a step page.

    Being on step N implies steps before N are done, so the URL value is
    raised to at least ``N - 1``. It is never raised beyond that.
    """
    return max(url_value, current_step - 1)


# ── Property wizard ─────────────────────────────────────────

@dataclass(frozen=True)
class WizardProgress:
    property_id: str | None = None
    completed_steps: int = 0
    unit_type: UnitType | None = None

    def query_params(self) -> list[tuple[str, object]]:
        return [
            ("propertyId", self.property_id),
            ("completedSteps", self.completed_steps if self.property_id else None),
            ("unitType", self.unit_type),
        ]

    def to_query(self) -> str:
        return build_href("", self.query_params()).lstrip("?")

    @classmethod
    def from_query(cls, params: Mapping[str, object]) -> "WizardProgress":
        return cls(
            property_id=_clean_id(params.get("propertyId")),
            completed_steps=_parse_completed(params.get("completedSteps")),
            unit_type=_parse_unit_type(params.get("unitType")),
        )

    def advanced_to(self, completed: int, **changes) -> "WizardProgress":
        """Progress after finishing a step; never lowers the completed count."""
        return replace(
            self,
            completed_steps=max(self.completed_steps, completed),
            **changes,
        )

    def href(self, step: PropertyStep) -> str:
        return build_href(step.path, self.query_params())


@dataclass(frozen=True)
class StepLink:
    number: int
    label: str
    status: str  # complete | current | upcoming
    href: str | None  # None = disabled, predecessor data missing


PROPERTY_STEP_LABELS = (
    (1, "Property Address"),
    (2, "Property Type"),
    (3, "Unit Details"),
)


def _status(number: int, current_step: int, completed: int) -> str:
    if number == current_step:
        return "current"
    if number <= completed:
        return "complete"
    return "upcoming"


def build_property_progress(current: PropertyStep, progress: WizardProgress) -> list[StepLink]:
    """Progress indicator for a property-wizard page.

    Links to property type and unit details stay disabled until a draft id
    exists; the unit link also needs the chosen unit type.
    """
    current_step = current.number
    completed = displayed_completed_steps(progress.completed_steps, current_step)
    shown = replace(progress, completed_steps=completed)

    hrefs = {
        1: shown.href(PropertyStep.ADDRESS),
        2: shown.href(PropertyStep.PROPERTY_TYPE) if shown.property_id else None,
        3: (
            shown.href(unit_step_for(shown.unit_type))
            if shown.property_id and shown.unit_type
            else None
        ),
    }
    return [
        StepLink(number, label, _status(number, current_step, completed), hrefs[number])
        for number, label in PROPERTY_STEP_LABELS
    ]


# ── Tenant wizard ───────────────────────────────────────────

@dataclass(frozen=True)
class TenantWizardProgress:
    tenant_id: str | None = None
    property_id: str | None = None
    unit_id: str | None = None
    completed_steps: int = 0

    def query_params(self) -> list[tuple[str, object]]:
        return [
            ("tenantId", self.tenant_id),
            ("propertyId", self.property_id),
            ("unitId", self.unit_id),
            ("completedSteps", self.completed_steps),
        ]

    def to_query(self) -> str:
        return build_href("", self.query_params()).lstrip("?")

    @classmethod
    def from_query(cls, params: Mapping[str, object]) -> "TenantWizardProgress":
        return cls(
            tenant_id=_clean_id(params.get("tenantId")),
            property_id=_clean_id(params.get("propertyId")),
            unit_id=_clean_id(params.get("unitId")),
            completed_steps=_parse_completed(params.get("completedSteps")),
        )

    def advanced_to(self, completed: int, **changes) -> "TenantWizardProgress":
        return replace(
            self,
            completed_steps=max(self.completed_steps, completed),
            **changes,
        )

    def href(self, step: TenantStep) -> str:
        return build_href(step.path, self.query_params())

    def sending_href(self) -> str:
        return build_href(
            TenantStep.SENDING_INVITATION.path,
            [("tenantId", self.tenant_id), ("unitId", self.unit_id), ("propertyId", self.property_id)],
        )


TENANT_STEP_LABELS = (
    (TenantStep.BASIC_INFO, "Tenant Info"),
    (TenantStep.LEASE_DATES, "Lease Dates"),
    (TenantStep.UNIT_SELECTION, "Unit Selection"),
    (TenantStep.INVITATION, "Invitation"),
)


def build_tenant_progress(current: TenantStep, progress: TenantWizardProgress) -> list[StepLink]:
    """Progress indicator for a tenant-wizard page.

    Step N+1 is reachable once N steps are complete and the ids that page
    reads are present: a tenant id from step 2 on, plus property and unit
    ids for the invitation step.
    """
    current_step = current.number
    completed = displayed_completed_steps(progress.completed_steps, current_step)
    shown = replace(progress, completed_steps=completed)
    has_ids = {
        TenantStep.BASIC_INFO: True,
        TenantStep.LEASE_DATES: bool(shown.tenant_id),
        TenantStep.UNIT_SELECTION: bool(shown.tenant_id),
        TenantStep.INVITATION: bool(shown.tenant_id and shown.property_id and shown.unit_id),
    }

    links = []
    for step, label in TENANT_STEP_LABELS:
        number = step.number
        href = shown.href(step) if completed >= number - 1 and has_ids[step] else None
        links.append(StepLink(number, label, _status(number, current_step, completed), href))
    return links
