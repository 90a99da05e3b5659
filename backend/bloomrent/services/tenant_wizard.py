"""Add-tenant wizard: step views and step submits.

Step order::

    tenant-basic-info -> lease-dates -> unit-selection -> invitation
                                                       -> sending-invitation

Unlike the property wizard there is no resume entry: the wizard always
starts at basic info, and a draft tenant is only reachable through the
``tenantId`` the steps pass along.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bloomrent.dal import properties as property_dal
from bloomrent.dal import tenants as tenant_dal
from bloomrent.middleware.exceptions import BloomRentException
from bloomrent.models.enums import TenantStatus
from bloomrent.models.tenant import Tenant
from bloomrent.models.user import User
from bloomrent.schemas.common import ActionResult, ProgressStepOut, ResultKind, StepView
from bloomrent.schemas.invite import SendingInvitationOut
from bloomrent.schemas.tenant import (
    InvitationChoiceForm,
    LeaseDatesForm,
    TenantBasicInfoForm,
    UnitSelectionForm,
)
from bloomrent.schemas.validators import validate_form
from bloomrent.services import invitations
from bloomrent.services.email import EmailSender
from bloomrent.wizard.progress import (
    TENANTS_LIST_ROUTE,
    TenantStep,
    TenantWizardProgress,
    build_tenant_progress,
    displayed_completed_steps,
)
from bloomrent.wizard.sender import InvitationSendRegistry, SendState

logger = logging.getLogger(__name__)

MISSING_TENANT_ID = "Missing tenant ID. Please start over from Step 1."
MISSING_REQUIRED_DATA = "Missing required data. Please start over from Step 1."
INVALID_FORM = "Please correct the highlighted fields."


# ── Helpers ──────────────────────────────────────────────────

def _view(
    step: TenantStep,
    progress: TenantWizardProgress,
    back_href: str | None,
    defaults: dict | None = None,
    message: str | None = None,
) -> StepView:
    return StepView(
        step=step.value,
        progress=[
            ProgressStepOut.model_validate(link)
            for link in build_tenant_progress(step, progress)
        ],
        completed_steps=displayed_completed_steps(progress.completed_steps, step.number),
        back_href=back_href,
        defaults=defaults or {},
        message=message,
        kind=ResultKind.MISSING_PREREQUISITE if message else None,
    )


def _invalid(errors: dict[str, str], data: dict) -> ActionResult:
    return ActionResult.fail(INVALID_FORM, ResultKind.VALIDATION, errors=errors, values=data)


async def _persistence_failed(
    db: AsyncSession, exc: Exception, data: dict, fallback: str
) -> ActionResult:
    if isinstance(exc, BloomRentException):
        message = exc.message
    else:
        logger.error(f"Tenant wizard write failed: {exc}", exc_info=True)
        await db.rollback()
        message = fallback
    return ActionResult.fail(message, ResultKind.PERSISTENCE, values=data)


def split_name(name: str) -> tuple[str, str]:
    first, _, last = (name or "").partition(" ")
    return first, last


def _has_invitation_data(progress: TenantWizardProgress) -> bool:
    return bool(progress.tenant_id and progress.property_id and progress.unit_id)


# ── Entry ────────────────────────────────────────────────────

def resolve_entry() -> str:
    return TenantStep.BASIC_INFO.path


# ── Step 1: basic info ───────────────────────────────────────

async def basic_info_view(
    db: AsyncSession, owner_id: str, progress: TenantWizardProgress
) -> StepView:
    defaults = {}
    if progress.tenant_id:
        tenant = await tenant_dal.get_owned_tenant(db, owner_id, progress.tenant_id)
        first, last = split_name(tenant.name)
        defaults = {
            "first_name": first,
            "last_name": last,
            "email": tenant.email or "",
            "phone": tenant.phone or "",
        }
    return _view(TenantStep.BASIC_INFO, progress, TENANTS_LIST_ROUTE, defaults)


async def save_basic_info(
    db: AsyncSession, owner_id: str, progress: TenantWizardProgress, data: dict
) -> ActionResult:
    form, errors = validate_form(TenantBasicInfoForm, data)
    if errors:
        return _invalid(errors, data)

    try:
        if progress.tenant_id:
            tenant = await tenant_dal.get_owned_tenant(db, owner_id, progress.tenant_id)
            await tenant_dal.update_tenant_basic_info(db, tenant, form)
        else:
            tenant = await tenant_dal.create_tenant_draft(db, owner_id, form)
    except (BloomRentException, SQLAlchemyError) as e:
        return await _persistence_failed(db, e, data, "Failed to save tenant information.")

    next_progress = progress.advanced_to(1, tenant_id=tenant.id)
    return ActionResult.ok(
        redirect_to=next_progress.href(TenantStep.LEASE_DATES),
        tenant_id=tenant.id,
    )


# ── Step 2: lease dates ──────────────────────────────────────

async def lease_dates_view(
    db: AsyncSession, owner_id: str, progress: TenantWizardProgress
) -> StepView:
    back = progress.href(TenantStep.BASIC_INFO)
    if not progress.tenant_id:
        return _view(TenantStep.LEASE_DATES, progress, back, message=MISSING_TENANT_ID)

    tenant = await tenant_dal.get_owned_tenant(db, owner_id, progress.tenant_id)
    defaults = {
        "lease_start_date": (
            tenant.lease_start_date.date().isoformat() if tenant.lease_start_date else ""
        ),
        "lease_end_date": (
            tenant.lease_end_date.date().isoformat() if tenant.lease_end_date else ""
        ),
    }
    return _view(TenantStep.LEASE_DATES, progress, back, defaults)


async def save_lease_dates(
    db: AsyncSession, owner_id: str, progress: TenantWizardProgress, data: dict
) -> ActionResult:
    if not progress.tenant_id:
        return ActionResult.fail(MISSING_TENANT_ID, ResultKind.MISSING_PREREQUISITE, values=data)

    form, errors = validate_form(LeaseDatesForm, data)
    if errors:
        return _invalid(errors, data)

    try:
        tenant = await tenant_dal.get_owned_tenant(db, owner_id, progress.tenant_id)
        await tenant_dal.update_lease_dates(db, tenant, form)
    except (BloomRentException, SQLAlchemyError) as e:
        return await _persistence_failed(db, e, data, "Failed to save lease dates.")

    next_progress = progress.advanced_to(2)
    return ActionResult.ok(
        redirect_to=next_progress.href(TenantStep.UNIT_SELECTION),
        tenant_id=tenant.id,
    )


# ── Step 3: unit selection ───────────────────────────────────

async def unit_selection_view(
    db: AsyncSession, owner_id: str, progress: TenantWizardProgress
) -> StepView:
    back = progress.href(TenantStep.LEASE_DATES)
    if not progress.tenant_id:
        return _view(TenantStep.UNIT_SELECTION, progress, back, message=MISSING_TENANT_ID)

    tenant = await tenant_dal.get_owned_tenant(db, owner_id, progress.tenant_id)
    unit_id = progress.unit_id or tenant.unit_id or ""
    property_id = progress.property_id or ""
    if unit_id and not property_id:
        _unit, prop = await property_dal.get_owned_unit(db, owner_id, unit_id)
        property_id = prop.id

    options = [
        {
            "id": prop.id,
            "name": prop.name or prop.address_line1,
            "units": [{"id": u.id, "unit_number": u.unit_number} for u in prop.units],
        }
        for prop in await property_dal.list_properties_with_units(db, owner_id)
    ]
    defaults = {"property_id": property_id, "unit_id": unit_id, "properties": options}
    return _view(TenantStep.UNIT_SELECTION, progress, back, defaults)


async def save_unit_selection(
    db: AsyncSession, owner_id: str, progress: TenantWizardProgress, data: dict
) -> ActionResult:
    if not progress.tenant_id:
        return ActionResult.fail(MISSING_TENANT_ID, ResultKind.MISSING_PREREQUISITE, values=data)

    form, errors = validate_form(UnitSelectionForm, data)
    if errors:
        return _invalid(errors, data)

    try:
        unit, prop = await property_dal.get_owned_unit(db, owner_id, form.unit_id)
        if prop.id != form.property_id:
            return _invalid({"unit_id": "Please select a unit."}, data)

        tenant = await tenant_dal.get_owned_tenant(db, owner_id, progress.tenant_id)
        already_placed = (
            tenant.tenant_status == TenantStatus.ACTIVE and tenant.unit_id == unit.id
        )
        if not already_placed:
            await tenant_dal.activate_tenant(db, owner_id, tenant.id, unit.id)
    except (BloomRentException, SQLAlchemyError) as e:
        return await _persistence_failed(db, e, data, "Failed to assign the unit.")

    next_progress = progress.advanced_to(3, property_id=prop.id, unit_id=unit.id)
    return ActionResult.ok(
        redirect_to=next_progress.href(TenantStep.INVITATION),
        tenant_id=tenant.id,
    )


# ── Step 4: invitation ───────────────────────────────────────

async def invitation_view(
    db: AsyncSession, owner_id: str, progress: TenantWizardProgress
) -> StepView:
    back = progress.href(TenantStep.UNIT_SELECTION)
    if not _has_invitation_data(progress):
        return _view(TenantStep.INVITATION, progress, back, message=MISSING_REQUIRED_DATA)

    tenant: Tenant = await tenant_dal.get_owned_tenant(db, owner_id, progress.tenant_id)
    defaults = {
        "invitation_choice": "now" if tenant.email else "later",
        "tenant_name": tenant.name,
        "tenant_email": tenant.email or "",
        "can_send_now": bool(tenant.email),
    }
    return _view(TenantStep.INVITATION, progress, back, defaults)


async def save_invitation(
    db: AsyncSession, owner_id: str, progress: TenantWizardProgress, data: dict
) -> ActionResult:
    """``now`` hands over to the sending page; ``later`` parks a pending invite."""
    if not _has_invitation_data(progress):
        return ActionResult.fail(
            MISSING_REQUIRED_DATA, ResultKind.MISSING_PREREQUISITE, values=data
        )

    form, errors = validate_form(InvitationChoiceForm, data)
    if errors:
        return _invalid(errors, data)

    if form.invitation_choice == "now":
        return ActionResult.ok(
            redirect_to=progress.sending_href(),
            tenant_id=progress.tenant_id,
        )

    result = await invitations.create_pending_invite(
        db, owner_id, progress.tenant_id, progress.property_id
    )
    if not result.success:
        # The tenant is saved either way; the invite can be created later
        logger.warning(f"Pending invite for tenant {progress.tenant_id} failed: {result.message}")
        return ActionResult.ok(
            f"Tenant added, but the invitation could not be created: {result.message}",
            kind=ResultKind.PARTIAL_SUCCESS,
            redirect_to=TENANTS_LIST_ROUTE,
            tenant_id=progress.tenant_id,
        )
    return result


# ── Terminal: sending invitation ─────────────────────────────

def _sending_out(snapshot) -> SendingInvitationOut:
    result: ActionResult | None = snapshot.result
    return SendingInvitationOut(
        state=snapshot.state.value,
        performed=snapshot.performed,
        success=result.success if result else None,
        message=result.message if result else None,
        kind=result.kind if result else None,
        invite_id=result.invite_id if result else None,
        redirect_to=result.redirect_to if result else None,
        can_retry=snapshot.state is SendState.FAILED,
    )


async def send_invitation(
    db: AsyncSession,
    owner: User,
    progress: TenantWizardProgress,
    registry: InvitationSendRegistry,
    sender: EmailSender,
    idempotency_key: str | None = None,
    retry: bool = False,
) -> SendingInvitationOut:
    """Fire the one-shot send for this tenant/unit/property.

    Repeated calls while a send is in flight or after it settled report the
    current state without sending again; ``retry`` only acts after a failure.
    """
    if not _has_invitation_data(progress):
        return SendingInvitationOut(
            state=SendState.IDLE.value,
            performed=False,
            success=False,
            message=MISSING_REQUIRED_DATA,
            kind=ResultKind.MISSING_PREREQUISITE,
        )

    key = registry.make_key(
        owner.id, progress.tenant_id, progress.unit_id, progress.property_id, idempotency_key
    )

    async def action() -> ActionResult:
        return await invitations.send_tenant_invitation(
            db,
            sender,
            owner,
            tenant_id=progress.tenant_id,
            unit_id=progress.unit_id,
            property_id=progress.property_id,
        )

    if retry:
        snapshot = await registry.retry(key, action)
    else:
        snapshot = await registry.trigger(key, action)
    return _sending_out(snapshot)
