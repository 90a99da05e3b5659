"""Invitation routes.

Owner side (``owner_router``, under /api/owners/invites):
  GET  /pending               → active (pending or sent) invites
  POST /{invite_id}/resend    → fresh invite + email for the same tenant
  POST /{invite_id}/revoke    → revoke; repeat calls are harmless

Invitee side (``router``, under /api/invite), no auth:
  GET  /accept?token=         → token check + invite details
  POST /accept/signup         → create a tenant account and accept
  POST /accept/login          → accept with an existing tenant account
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bloomrent.auth.deps import require_owner
from bloomrent.dal import invites as invite_dal
from bloomrent.database import get_db
from bloomrent.models.user import User
from bloomrent.schemas.common import ActionResult
from bloomrent.schemas.invite import (
    AcceptInviteResponse,
    AcceptWithLoginRequest,
    AcceptWithSignupRequest,
    InviteOut,
    InviteTokenCheck,
)
from bloomrent.services import invitations
from bloomrent.services.email import EmailSender, get_email_sender

owner_router = APIRouter()
router = APIRouter()


# ── Owner side ───────────────────────────────────────────────

@owner_router.get("/pending", response_model=list[InviteOut])
async def pending_invites(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await invite_dal.list_pending_invites(db, user.id)


@owner_router.post("/{invite_id}/resend", response_model=ActionResult)
async def resend_invite(
    invite_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
    sender: EmailSender = Depends(get_email_sender),
):
    return await invitations.resend_invitation(db, sender, user, invite_id)


@owner_router.post("/{invite_id}/revoke", response_model=ActionResult)
async def revoke_invite(
    invite_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await invitations.revoke_invitation(db, user.id, invite_id)


# ── Invitee side ─────────────────────────────────────────────

@router.get("/accept", response_model=InviteTokenCheck)
async def check_invite(
    token: str = Query(default=""),
    db: AsyncSession = Depends(get_db),
):
    return await invitations.check_token(db, token)


@router.post("/accept/signup", response_model=AcceptInviteResponse)
async def accept_with_signup(
    body: AcceptWithSignupRequest,
    db: AsyncSession = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
):
    return await invitations.accept_with_signup(db, sender, body)


@router.post("/accept/login", response_model=AcceptInviteResponse)
async def accept_with_login(
    body: AcceptWithLoginRequest,
    db: AsyncSession = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
):
    return await invitations.accept_with_login(db, sender, body)
