from datetime import datetime

from pydantic import BaseModel, EmailStr

from bloomrent.models.enums import InviteStatus
from bloomrent.schemas.auth import TokenResponse
from bloomrent.schemas.common import ResultKind


class InviteOut(BaseModel):
    id: str
    property_id: str
    tenant_id: str | None
    invitee_email: str
    invitee_name: str | None
    status: InviteStatus
    expires_at: datetime
    accepted_at: datetime | None
    revoked_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class SendInvitationRequest(BaseModel):
    tenant_id: str
    unit_id: str
    property_id: str


class SendingInvitationOut(BaseModel):
    """State of a send triggered from the sending-invitation page."""
    state: str  # idle | sending | sent | failed
    performed: bool
    success: bool | None = None
    message: str | None = None
    kind: ResultKind | None = None
    invite_id: str | None = None
    redirect_to: str | None = None
    can_retry: bool = False


class InviteDetails(BaseModel):
    """What the accept page shows for a valid token."""
    invitee_email: str
    invitee_name: str | None
    first_name: str
    property_name: str
    property_address: str
    landlord_name: str | None
    expires_at: datetime


class InviteTokenCheck(BaseModel):
    valid: bool
    kind: ResultKind | None = None
    message: str | None = None
    invite: InviteDetails | None = None


class AcceptWithSignupRequest(BaseModel):
    token: str
    name: str
    email: EmailStr
    password: str


class AcceptWithLoginRequest(BaseModel):
    token: str
    email: EmailStr
    password: str


class AcceptInviteResponse(BaseModel):
    success: bool
    message: str
    kind: ResultKind | None = None
    redirect_to: str | None = None
    auth: TokenResponse | None = None
