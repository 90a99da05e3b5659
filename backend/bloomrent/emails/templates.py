"""Transactional email templates.

Each renderer takes keyword context and returns ``RenderedEmail`` with an
HTML and a plain-text body. All interpolated values are HTML-escaped.
"""

from dataclasses import dataclass
from html import escape

BRAND_COLOR = "#007291"
LOGO_URL = "https://www.bloomrent.com/_next/static/media/bloom_rent_logo.c177ee65.svg"


class TemplateError(ValueError):
    """Unknown template or missing required context."""


@dataclass(frozen=True)
class RenderedEmail:
    html: str
    text: str


def _layout(preview: str, paragraphs: list[str], button: tuple[str, str] | None = None) -> str:
    body = "\n".join(f'<p style="font-size:14px;line-height:24px">{p}</p>' for p in paragraphs)
    if button:
        label, url = button
        body += (
            f'\n<p><a href="{escape(url, quote=True)}" '
            f'style="background:{BRAND_COLOR};color:#fff;padding:12px 20px;'
            f'border-radius:6px;text-decoration:none">{escape(label)}</a></p>'
        )
    return (
        "<!DOCTYPE html><html><head></head>"
        '<body style="font-family:Helvetica,Arial,sans-serif;background:#f6f9fc">'
        f'<div style="display:none">{escape(preview)}</div>'
        '<div style="max-width:560px;margin:0 auto;padding:24px;background:#fff">'
        f'<img src="{LOGO_URL}" width="16" height="26" alt="Bloom Rent Logo">'
        f"{body}"
        '<p style="font-size:14px">The Bloom Rent Team</p>'
        "</div></body></html>"
    )


def _location(default: str, property_name: str | None, unit_number: str | None,
              property_address: str | None = None) -> str:
    location = property_name or default
    if unit_number:
        location = f"{location} (Unit {unit_number})"
    if property_address:
        location = f"{location} at {property_address}"
    return location


def _require(context: dict, key: str, template: str) -> str:
    value = context.get(key)
    if not value:
        raise TemplateError(f"{key} is required for {template} emails")
    return value


# ── Tenant onboarding ───────────────────────────────────────

def tenant_invitation(
    invite_url: str,
    invitee_name: str | None = None,
    property_name: str | None = None,
    property_address: str | None = None,
    unit_number: str | None = None,
    owner_name: str | None = None,
    expires_in_days: int = 14,
    **_,
) -> RenderedEmail:
    location = _location("your new rental", property_name, unit_number, property_address)
    landlord = owner_name or "your landlord"
    preview = (
        f"Action Required: {owner_name + ' has invited you to ' if owner_name else ''}"
        f"set up your rental at {property_name or 'your property'}"
    )
    html = _layout(
        preview,
        [
            f"Hi {escape(invitee_name or 'there')},",
            f"Your landlord, <strong>{escape(landlord)}</strong>, has invited you to join "
            f"Bloom Rent to manage your new rental home at <strong>{escape(location)}</strong>.",
            "By setting up your account you can pay rent securely, submit requests "
            "and keep your lease documents in one place.",
            f"This invitation expires in {int(expires_in_days)} days.",
        ],
        button=("Set Up Your Account", invite_url),
    )
    text = (
        f"Hi {invitee_name or 'there'},\n\n"
        f"Your landlord, {landlord}, has invited you to join Bloom Rent to manage "
        f"your new rental home at {location}.\n\n"
        f"Set up your account: {invite_url}\n\n"
        f"This invitation expires in {int(expires_in_days)} days.\n"
    )
    return RenderedEmail(html, text)


def tenant_invite_accepted(
    login_url: str,
    first_name: str | None = None,
    property_name: str | None = None,
    property_address: str | None = None,
    unit_number: str | None = None,
    **_,
) -> RenderedEmail:
    location = _location("your rental", property_name, unit_number, property_address)
    html = _layout(
        f"Welcome to {property_name or 'your new home'}! Your account is ready.",
        [
            f"Hi {escape(first_name or 'there')},",
            "Welcome to Bloom Rent! Your account has been successfully created for "
            f"<strong>{escape(location)}</strong>.",
            "You can now log in to access your tenant dashboard and manage your rental.",
            "If you have any questions about your lease or the platform, please reach "
            "out to your landlord or contact our support team.",
        ],
        button=("Log In to Your Account", login_url),
    )
    text = (
        f"Hi {first_name or 'there'},\n\n"
        f"Welcome to Bloom Rent! Your account has been successfully created for {location}.\n\n"
        f"Log in: {login_url}\n"
    )
    return RenderedEmail(html, text)


def tenant_invite_accepted_landlord(
    tenants_url: str,
    tenant_name: str | None = None,
    property_name: str | None = None,
    unit_number: str | None = None,
    accepted_at: str | None = None,
    **_,
) -> RenderedEmail:
    location = _location("your property", property_name, unit_number)
    who = tenant_name or "Your tenant"
    html = _layout(
        f"{who} accepted your invitation to {location}",
        [
            "Good news!",
            f"<strong>{escape(who)}</strong> has accepted your invitation and created "
            f"their Bloom Rent account for <strong>{escape(location)}</strong>.",
            f"Accepted on: <strong>{escape(accepted_at or 'recently')}</strong>",
        ],
        button=("View Your Tenants", tenants_url),
    )
    text = (
        f"Good news! {who} has accepted your invitation and created their Bloom Rent "
        f"account for {location}.\nAccepted on: {accepted_at or 'recently'}\n"
    )
    return RenderedEmail(html, text)


# ── Account emails ──────────────────────────────────────────

def password_reset(first_name: str | None = None, reset_url: str | None = None, **_) -> RenderedEmail:
    html = _layout(
        "Bloom Rent. Reset your password",
        [
            f"Hi {escape(first_name or 'there')},",
            "Someone recently requested a password change for your Bloom Rent account. "
            "If this was you, you can set a new password here:",
            "If you don't want to change your password or didn't request this, just "
            "ignore and delete this message.",
        ],
        button=("Reset password", reset_url),
    )
    text = f"Hi {first_name or 'there'},\n\nReset your password: {reset_url}\n"
    return RenderedEmail(html, text)


def password_reset_confirmation(first_name: str | None = None, **_) -> RenderedEmail:
    html = _layout(
        "Your Bloom Rent password was changed",
        [
            f"Hi {escape(first_name or 'there')},",
            "Your Bloom Rent password was changed successfully. If you did not make "
            "this change, reset your password right away and contact support.",
        ],
    )
    text = f"Hi {first_name or 'there'},\n\nYour Bloom Rent password was changed successfully.\n"
    return RenderedEmail(html, text)


def email_verification(
    first_name: str | None = None, verification_url: str | None = None, **_
) -> RenderedEmail:
    html = _layout(
        "Verify your email for Bloom Rent",
        [
            f"Hi {escape(first_name or 'there')},",
            "Please confirm your email address to finish setting up your Bloom Rent account.",
        ],
        button=("Verify email", verification_url),
    )
    text = f"Hi {first_name or 'there'},\n\nVerify your email: {verification_url}\n"
    return RenderedEmail(html, text)


_RENDERERS = {
    "tenant-invitation": (tenant_invitation, ("invite_url",)),
    "tenant-invite-accepted": (tenant_invite_accepted, ("login_url",)),
    "tenant-invite-accepted-landlord": (tenant_invite_accepted_landlord, ("tenants_url",)),
    "reset": (password_reset, ("reset_url",)),
    "reset-confirmation": (password_reset_confirmation, ()),
    "email-verification": (email_verification, ("verification_url",)),
}

TEMPLATE_NAMES = frozenset(_RENDERERS)


def render(template: str, **context) -> RenderedEmail:
    """Render ``template``; raise ``TemplateError`` for unknown names or missing context."""
    try:
        renderer, required = _RENDERERS[template]
    except KeyError:
        raise TemplateError("Unsupported email template")
    for key in required:
        _require(context, key, template)
    return renderer(**context)
