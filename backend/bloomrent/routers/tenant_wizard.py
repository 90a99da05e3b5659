"""Add-tenant wizard routes.

Endpoints (under /api/owners/tenants/add-tenant):
  GET  /                            → always the basic-info step
  GET  /{step}, POST /{step}        → tenant-basic-info, lease-dates,
                                      unit-selection, invitation
  POST /sending-invitation          → one-shot invite + email
  POST /sending-invitation/retry    → retry after a failed send

Progress travels in the query string (``tenantId``, ``propertyId``,
``unitId``, ``completedSteps``).
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bloomrent.auth.deps import require_owner
from bloomrent.database import get_db
from bloomrent.models.user import User
from bloomrent.schemas.common import ActionResult, RedirectOut, StepView
from bloomrent.schemas.invite import SendingInvitationOut
from bloomrent.services import tenant_wizard as wizard
from bloomrent.services.email import EmailSender, get_email_sender
from bloomrent.wizard.progress import TenantWizardProgress
from bloomrent.wizard.sender import InvitationSendRegistry, get_invitation_registry

router = APIRouter()


def get_progress(request: Request) -> TenantWizardProgress:
    return TenantWizardProgress.from_query(request.query_params)


@router.get("", response_model=RedirectOut)
async def entry(user: User = Depends(require_owner)):
    return RedirectOut(redirect_to=wizard.resolve_entry())


# ── Step 1: basic info ───────────────────────────────────────

@router.get("/tenant-basic-info", response_model=StepView)
async def basic_info_view(
    progress: TenantWizardProgress = Depends(get_progress),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await wizard.basic_info_view(db, user.id, progress)


@router.post("/tenant-basic-info", response_model=ActionResult)
async def save_basic_info(
    data: dict[str, Any] = Body(default={}),
    progress: TenantWizardProgress = Depends(get_progress),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await wizard.save_basic_info(db, user.id, progress, data)


# ── Step 2: lease dates ──────────────────────────────────────

@router.get("/lease-dates", response_model=StepView)
async def lease_dates_view(
    progress: TenantWizardProgress = Depends(get_progress),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await wizard.lease_dates_view(db, user.id, progress)


@router.post("/lease-dates", response_model=ActionResult)
async def save_lease_dates(
    data: dict[str, Any] = Body(default={}),
    progress: TenantWizardProgress = Depends(get_progress),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await wizard.save_lease_dates(db, user.id, progress, data)


# ── Step 3: unit selection ───────────────────────────────────

@router.get("/unit-selection", response_model=StepView)
async def unit_selection_view(
    progress: TenantWizardProgress = Depends(get_progress),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await wizard.unit_selection_view(db, user.id, progress)


@router.post("/unit-selection", response_model=ActionResult)
async def save_unit_selection(
    data: dict[str, Any] = Body(default={}),
    progress: TenantWizardProgress = Depends(get_progress),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await wizard.save_unit_selection(db, user.id, progress, data)


# ── Step 4: invitation ───────────────────────────────────────

@router.get("/invitation", response_model=StepView)
async def invitation_view(
    progress: TenantWizardProgress = Depends(get_progress),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await wizard.invitation_view(db, user.id, progress)


@router.post("/invitation", response_model=ActionResult)
async def save_invitation(
    data: dict[str, Any] = Body(default={}),
    progress: TenantWizardProgress = Depends(get_progress),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await wizard.save_invitation(db, user.id, progress, data)


# ── Sending invitation ───────────────────────────────────────

@router.post("/sending-invitation", response_model=SendingInvitationOut)
async def send_invitation(
    progress: TenantWizardProgress = Depends(get_progress),
    idempotency_key: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
    registry: InvitationSendRegistry = Depends(get_invitation_registry),
    sender: EmailSender = Depends(get_email_sender),
):
    """Send once; repeated calls report the state of the first send."""
    return await wizard.send_invitation(
        db, user, progress, registry, sender, idempotency_key=idempotency_key
    )


@router.post("/sending-invitation/retry", response_model=SendingInvitationOut)
async def retry_invitation(
    progress: TenantWizardProgress = Depends(get_progress),
    idempotency_key: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
    registry: InvitationSendRegistry = Depends(get_invitation_registry),
    sender: EmailSender = Depends(get_email_sender),
):
    return await wizard.send_invitation(
        db, user, progress, registry, sender,
        idempotency_key=idempotency_key, retry=True,
    )
