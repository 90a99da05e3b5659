"""Tenant invitations: create, email, resend, revoke and accept.

Every operation returns a result object rather than raising, so the
sending page and the accept page can show the message as-is. Failures to
send the follow-up "accepted" emails are logged only; acceptance itself
has already happened by then.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bloomrent.auth.jwt import issue_tokens
from bloomrent.auth.password import hash_password, verify_password
from bloomrent.config import settings
from bloomrent.dal import invites as invite_dal
from bloomrent.dal import properties as property_dal
from bloomrent.dal import tenants as tenant_dal
from bloomrent.emails.templates import TemplateError
from bloomrent.middleware.exceptions import BloomRentException
from bloomrent.models.enums import InviteStatus, UserRole
from bloomrent.models.invite import Invite
from bloomrent.models.property import Property
from bloomrent.models.user import User
from bloomrent.schemas.common import ActionResult, ResultKind
from bloomrent.schemas.invite import (
    AcceptInviteResponse,
    AcceptWithLoginRequest,
    AcceptWithSignupRequest,
    InviteDetails,
    InviteTokenCheck,
)
from bloomrent.services.email import EmailSender
from bloomrent.utils.timeutil import utcnow
from bloomrent.wizard.progress import TENANTS_LIST_ROUTE

logger = logging.getLogger(__name__)

WELCOME_ROUTE = "/invite/welcome"
LOGIN_ROUTE = "/login"

NO_TENANT_EMAIL = "Tenant does not have an email address. Cannot send invitation."
EMAIL_FAILED = "Invitation created but email failed to send. You can resend later."
INVALID_TOKEN = "Invitation not found or has expired."
EXPIRED_TOKEN = "This invitation has expired. Please contact your landlord for a new invitation."
ALREADY_ACCEPTED = "This invitation has already been accepted. Please log in to continue."


def format_address(prop: Property) -> str:
    parts = [prop.address_line1, prop.address_line2, prop.city, f"{prop.state} {prop.zip_code}"]
    return ", ".join(p for p in parts if p)


def _property_label(prop: Property) -> str:
    return prop.name or prop.address_line1


def _first_name(name: str | None) -> str:
    return (name or "").split(" ")[0] or "there"


# ── Send ─────────────────────────────────────────────────────

async def send_tenant_invitation(
    db: AsyncSession,
    sender: EmailSender,
    owner: User,
    *,
    tenant_id: str,
    unit_id: str,
    property_id: str,
) -> ActionResult:
    """Create an invite for the tenant and email it.

    An email failure leaves the invite in place (``pending``) and reports a
    partial success so the owner can resend later.
    """
    try:
        tenant = await tenant_dal.get_owned_tenant(db, owner.id, tenant_id)
        prop = await property_dal.get_owned_property(db, owner.id, property_id)
        unit, unit_property = await property_dal.get_owned_unit(db, owner.id, unit_id)
    except BloomRentException as e:
        return ActionResult.fail(e.message, ResultKind.MISSING_PREREQUISITE, tenant_id=tenant_id)

    if unit_property.id != prop.id:
        return ActionResult.fail("Unit not found.", ResultKind.MISSING_PREREQUISITE, tenant_id=tenant_id)

    if not tenant.email:
        return ActionResult.fail(NO_TENANT_EMAIL, ResultKind.VALIDATION, tenant_id=tenant_id)

    try:
        invite = await invite_dal.create_invite(
            db,
            owner_id=owner.id,
            property_id=prop.id,
            tenant_id=tenant.id,
            email=tenant.email,
            name=tenant.name,
        )
    except BloomRentException as e:
        return ActionResult.fail(e.message, ResultKind.PERSISTENCE, tenant_id=tenant_id)

    result = await sender.send_template(
        invite.invitee_email,
        f"Action Required: Set up your rental at {_property_label(prop)}",
        "tenant-invitation",
        invite_url=f"{settings.app_base_url}/invite/accept?token={invite.token}",
        invitee_name=tenant.name,
        property_name=prop.name,
        property_address=format_address(prop),
        unit_number=unit.unit_number,
        owner_name=owner.name,
        expires_in_days=settings.invite_expiry_days,
    )
    if not result.success:
        logger.warning(
            f"Invite {invite.id} created but email failed: {result.error}",
            extra={"invite_id": invite.id, "tenant_id": tenant.id},
        )
        return ActionResult.fail(
            EMAIL_FAILED,
            ResultKind.PARTIAL_SUCCESS,
            invite_id=invite.id,
            tenant_id=tenant.id,
        )

    await invite_dal.mark_sent(db, invite)
    logger.info(f"Invite {invite.id} sent to tenant {tenant.id}")
    return ActionResult.ok(
        "Invitation sent successfully!",
        redirect_to=TENANTS_LIST_ROUTE,
        invite_id=invite.id,
        tenant_id=tenant.id,
    )


async def create_pending_invite(
    db: AsyncSession, owner_id: str, tenant_id: str, property_id: str
) -> ActionResult:
    """Invite without an email, for owners who choose "send later"."""
    try:
        tenant = await tenant_dal.get_owned_tenant(db, owner_id, tenant_id)
        prop = await property_dal.get_owned_property(db, owner_id, property_id)
        if not tenant.email:
            return ActionResult.fail(NO_TENANT_EMAIL, ResultKind.VALIDATION, tenant_id=tenant_id)
        invite = await invite_dal.create_invite(
            db,
            owner_id=owner_id,
            property_id=prop.id,
            tenant_id=tenant.id,
            email=tenant.email,
            name=tenant.name,
        )
    except BloomRentException as e:
        return ActionResult.fail(e.message, ResultKind.PERSISTENCE, tenant_id=tenant_id)

    return ActionResult.ok(
        "Invitation created. You can send it later from the tenant details.",
        redirect_to=TENANTS_LIST_ROUTE,
        invite_id=invite.id,
        tenant_id=tenant.id,
    )


# ── Resend / revoke ──────────────────────────────────────────

async def resend_invitation(
    db: AsyncSession, sender: EmailSender, owner: User, invite_id: str
) -> ActionResult:
    """Send a fresh invite to the tenant behind ``invite_id``.

    The unit comes from the tenant's current assignment, not from the old
    invite. The new invite revokes the old one.
    """
    try:
        invite = await invite_dal.get_owned_invite(db, owner.id, invite_id)
    except BloomRentException as e:
        return ActionResult.fail(e.message, ResultKind.VALIDATION)

    if not invite.tenant_id:
        return ActionResult.fail("Invitation is not linked to a tenant.", ResultKind.VALIDATION)

    tenant = await tenant_dal.get_tenant(db, invite.tenant_id)
    if tenant is None:
        return ActionResult.fail("Tenant not found.", ResultKind.VALIDATION)
    if not tenant.unit_id:
        return ActionResult.fail(
            "Tenant is not assigned to a unit.", ResultKind.MISSING_PREREQUISITE,
            tenant_id=tenant.id,
        )

    try:
        _unit, prop = await property_dal.get_owned_unit(db, owner.id, tenant.unit_id)
    except BloomRentException as e:
        return ActionResult.fail(e.message, ResultKind.MISSING_PREREQUISITE, tenant_id=tenant.id)

    return await send_tenant_invitation(
        db,
        sender,
        owner,
        tenant_id=tenant.id,
        unit_id=tenant.unit_id,
        property_id=prop.id,
    )


async def revoke_invitation(db: AsyncSession, owner_id: str, invite_id: str) -> ActionResult:
    try:
        invite = await invite_dal.get_owned_invite(db, owner_id, invite_id)
    except BloomRentException as e:
        return ActionResult.fail(e.message, ResultKind.VALIDATION)

    await invite_dal.mark_revoked(db, invite)
    logger.info(f"Invite {invite.id} revoked by owner {owner_id}")
    return ActionResult.ok("Invitation revoked successfully.", invite_id=invite.id)


# ── Token check ──────────────────────────────────────────────

async def _check(db: AsyncSession, token: str) -> tuple[Invite | None, InviteTokenCheck]:
    invite = await invite_dal.get_invite_by_token(db, token) if token else None
    if invite is None:
        return None, InviteTokenCheck(valid=False, kind=ResultKind.INVALID_TOKEN, message=INVALID_TOKEN)

    if invite.status == InviteStatus.ACCEPTED:
        return invite, InviteTokenCheck(
            valid=False, kind=ResultKind.ALREADY_ACCEPTED, message=ALREADY_ACCEPTED
        )

    # Expiry wins over the stored status: a swept invite reads as expired too
    if invite.status == InviteStatus.EXPIRED or invite.expires_at < utcnow():
        if invite.is_active:
            await invite_dal.mark_expired(db, invite)
            logger.info(f"Invite {invite.id} expired on access")
        return invite, InviteTokenCheck(
            valid=False, kind=ResultKind.EXPIRED_TOKEN, message=EXPIRED_TOKEN
        )

    if not invite.is_active:
        return invite, InviteTokenCheck(
            valid=False,
            kind=ResultKind.INVALID_TOKEN,
            message=(
                f"This invitation has been {invite.status.value}. If you believe "
                "this is an error, please contact your landlord."
            ),
        )

    prop = await db.get(Property, invite.property_id)
    owner = await db.get(User, invite.owner_id)
    details = InviteDetails(
        invitee_email=invite.invitee_email,
        invitee_name=invite.invitee_name,
        first_name=_first_name(invite.invitee_name),
        property_name=_property_label(prop),
        property_address=format_address(prop),
        landlord_name=owner.name if owner else None,
        expires_at=invite.expires_at,
    )
    return invite, InviteTokenCheck(valid=True, invite=details)


async def check_token(db: AsyncSession, token: str) -> InviteTokenCheck:
    _invite, check = await _check(db, token)
    return check


# ── Accept ───────────────────────────────────────────────────

def _rejected(message: str, kind: ResultKind) -> AcceptInviteResponse:
    return AcceptInviteResponse(success=False, message=message, kind=kind)


def _email_mismatch(invite: Invite, email: str) -> AcceptInviteResponse | None:
    if invite.invitee_email.lower() != email.strip().lower():
        return _rejected(
            f"This invitation was sent to {invite.invitee_email}. Please use that email address.",
            ResultKind.VALIDATION,
        )
    return None


async def _notify_accepted(sender: EmailSender, invite: Invite, user: User, prop: Property,
                           owner: User | None, unit_number: str | None) -> None:
    base = settings.app_base_url
    try:
        result = await sender.send_template(
            user.email,
            f"Welcome to {_property_label(prop)}",
            "tenant-invite-accepted",
            login_url=f"{base}{LOGIN_ROUTE}",
            first_name=_first_name(user.name),
            property_name=prop.name,
            property_address=format_address(prop),
            unit_number=unit_number,
        )
        if not result.success:
            logger.warning(f"Welcome email for invite {invite.id} failed: {result.error}")

        if owner is not None:
            result = await sender.send_template(
                owner.email,
                f"{user.name} accepted your invitation",
                "tenant-invite-accepted-landlord",
                tenants_url=f"{base}{TENANTS_LIST_ROUTE}",
                tenant_name=user.name,
                property_name=_property_label(prop),
                unit_number=unit_number,
                accepted_at=invite.accepted_at.strftime("%B %d, %Y") if invite.accepted_at else None,
            )
            if not result.success:
                logger.warning(f"Landlord email for invite {invite.id} failed: {result.error}")
    except TemplateError as e:
        logger.error(f"Could not render acceptance email for invite {invite.id}: {e}")


async def _complete_acceptance(
    db: AsyncSession, sender: EmailSender, invite: Invite, user: User
) -> AcceptInviteResponse:
    unit_number = None
    if invite.tenant_id:
        tenant = await tenant_dal.get_tenant(db, invite.tenant_id)
        if tenant is not None:
            tenant.user_id = user.id
            if tenant.unit_id:
                units = await property_dal.list_units(db, invite.property_id)
                unit_number = next((u.unit_number for u in units if u.id == tenant.unit_id), None)

    await invite_dal.mark_accepted(db, invite)
    logger.info(f"Invite {invite.id} accepted by user {user.id}")

    prop = await db.get(Property, invite.property_id)
    owner = await db.get(User, invite.owner_id)
    await _notify_accepted(sender, invite, user, prop, owner, unit_number)

    return AcceptInviteResponse(
        success=True,
        message="Invitation accepted! Welcome to Bloom Rent.",
        redirect_to=WELCOME_ROUTE,
        auth=issue_tokens(user),
    )


async def accept_with_signup(
    db: AsyncSession, sender: EmailSender, body: AcceptWithSignupRequest
) -> AcceptInviteResponse:
    """Create a tenant account for the invited email and accept."""
    invite, check = await _check(db, body.token)
    if not check.valid:
        return _rejected(check.message, check.kind)

    mismatch = _email_mismatch(invite, body.email)
    if mismatch:
        return mismatch

    if len(body.password) < 8:
        return _rejected("Password must be at least 8 characters", ResultKind.VALIDATION)
    if not body.name.strip():
        return _rejected("Name is required.", ResultKind.VALIDATION)

    email = body.email.lower()
    existing = await db.scalar(select(User.id).where(func.lower(User.email) == email))
    if existing:
        return _rejected(
            "An account with this email already exists. Please log in to accept the invitation.",
            ResultKind.VALIDATION,
        )

    user = User(
        email=email,
        hashed_password=hash_password(body.password),
        name=body.name.strip(),
        role=UserRole.TENANT,
    )
    db.add(user)
    await db.flush()
    return await _complete_acceptance(db, sender, invite, user)


async def accept_with_login(
    db: AsyncSession, sender: EmailSender, body: AcceptWithLoginRequest
) -> AcceptInviteResponse:
    """Accept with an existing tenant account."""
    invite, check = await _check(db, body.token)
    if not check.valid:
        return _rejected(check.message, check.kind)

    mismatch = _email_mismatch(invite, body.email)
    if mismatch:
        return mismatch

    user = await db.scalar(select(User).where(func.lower(User.email) == body.email.lower()))
    if not user or not user.is_active or not verify_password(body.password, user.hashed_password):
        return _rejected("Invalid email or password.", ResultKind.VALIDATION)

    if user.role != UserRole.TENANT:
        return _rejected(
            "Invitations can only be accepted with a tenant account.",
            ResultKind.VALIDATION,
        )

    return await _complete_acceptance(db, sender, invite, user)
