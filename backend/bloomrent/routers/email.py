"""Transactional email endpoint.

  POST /api/send → render a named template and send it

Body keys are camelCase (``firstName``, ``resetUrl``, ``inviteUrl`` ...).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from bloomrent.auth.deps import get_current_user
from bloomrent.emails.templates import TemplateError
from bloomrent.models.user import User
from bloomrent.services.email import EmailSender, get_email_sender

logger = logging.getLogger(__name__)

router = APIRouter()


class SendEmailRequest(BaseModel):
    to: str | None = None
    subject: str | None = None
    template: str | None = None
    first_name: str = "there"

    reset_url: str | None = None
    verification_url: str | None = None
    invite_url: str | None = None
    login_url: str | None = None
    tenants_url: str | None = None

    invitee_name: str | None = None
    tenant_name: str | None = None
    owner_name: str | None = None
    property_name: str | None = None
    property_address: str | None = None
    unit_number: str | None = None

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


@router.post("/send")
async def send_email(
    body: SendEmailRequest,
    user: User = Depends(get_current_user),
    sender: EmailSender = Depends(get_email_sender),
):
    if not body.to or not body.subject or not body.template:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields 'to', 'subject', and 'template'.",
        )

    context = body.model_dump(exclude={"to", "subject", "template"}, exclude_none=True)
    try:
        result = await sender.send_template(body.to, body.subject, body.template, **context)
    except TemplateError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not result.success:
        logger.error(f"Email '{body.template}' to {body.to} failed: {result.error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=result.error or "Failed to send email",
        )
    return {"success": True, "id": result.id}
