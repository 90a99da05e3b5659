"""Data access for tenant invitations.

A tenant has at most one active (pending or sent) invite: creating a new
one revokes whatever was active before.
"""

import logging
from datetime import timedelta

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from bloomrent.config import settings
from bloomrent.middleware.exceptions import BusinessLogicError, ResourceNotFoundError
from bloomrent.models.enums import InviteStatus, UserRole
from bloomrent.models.invite import Invite
from bloomrent.utils.timeutil import utcnow

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (InviteStatus.PENDING, InviteStatus.SENT)


async def get_owned_invite(db: AsyncSession, owner_id: str, invite_id: str) -> Invite:
    result = await db.execute(
        select(Invite).where(Invite.id == invite_id, Invite.owner_id == owner_id)
    )
    invite = result.scalar_one_or_none()
    if invite is None:
        raise ResourceNotFoundError("Invite", invite_id, "Invalid invitation ID.")
    return invite


async def get_invite_by_token(db: AsyncSession, token: str) -> Invite | None:
    result = await db.execute(select(Invite).where(Invite.token == token))
    return result.scalar_one_or_none()


async def list_pending_invites(db: AsyncSession, owner_id: str) -> list[Invite]:
    result = await db.execute(
        select(Invite)
        .where(Invite.owner_id == owner_id, Invite.status.in_(ACTIVE_STATUSES))
        .order_by(Invite.created_at.desc())
    )
    return list(result.scalars().all())


async def create_invite(
    db: AsyncSession,
    *,
    owner_id: str,
    property_id: str,
    tenant_id: str,
    email: str,
    name: str | None,
) -> Invite:
    email = email.strip().lower()

    accepted = await db.scalar(
        select(Invite.id).where(
            Invite.property_id == property_id,
            func.lower(Invite.invitee_email) == email,
            Invite.status == InviteStatus.ACCEPTED,
        ).limit(1)
    )
    if accepted:
        raise BusinessLogicError(
            "This tenant has already accepted an invitation for this property.",
            error_code="INVITE_ALREADY_ACCEPTED",
        )

    now = utcnow()
    await db.execute(
        update(Invite)
        .where(Invite.tenant_id == tenant_id, Invite.status.in_(ACTIVE_STATUSES))
        .values(status=InviteStatus.REVOKED, revoked_at=now, updated_at=now)
        .execution_options(synchronize_session="fetch")
    )

    invite = Invite(
        property_id=property_id,
        owner_id=owner_id,
        tenant_id=tenant_id,
        invitee_email=email,
        invitee_name=name,
        role=UserRole.TENANT,
        status=InviteStatus.PENDING,
        expires_at=now + timedelta(days=settings.invite_expiry_days),
    )
    db.add(invite)
    await db.flush()
    logger.info(f"Created invite {invite.id} for tenant {tenant_id}")
    return invite


async def mark_sent(db: AsyncSession, invite: Invite) -> None:
    if invite.status == InviteStatus.PENDING:
        invite.status = InviteStatus.SENT
        await db.flush()


async def mark_revoked(db: AsyncSession, invite: Invite) -> None:
    if invite.status != InviteStatus.REVOKED:
        invite.status = InviteStatus.REVOKED
        invite.revoked_at = utcnow()
        await db.flush()


async def mark_expired(db: AsyncSession, invite: Invite) -> None:
    invite.status = InviteStatus.EXPIRED
    await db.flush()


async def mark_accepted(db: AsyncSession, invite: Invite) -> None:
    invite.status = InviteStatus.ACCEPTED
    invite.accepted_at = utcnow()
    await db.flush()


async def expire_overdue_invites(db: AsyncSession) -> int:
    """Flip every active invite past its expiry to ``expired``."""
    now = utcnow()
    result = await db.execute(
        update(Invite)
        .where(Invite.status.in_(ACTIVE_STATUSES), Invite.expires_at < now)
        .values(status=InviteStatus.EXPIRED, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0
