import secrets
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from bloomrent.database import Base
from bloomrent.models.enums import InviteStatus, UserRole, db_enum
from bloomrent.utils.timeutil import utcnow


class Invite(Base):
    __tablename__ = "invites"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    property_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    owner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    tenant_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("tenants.id", ondelete="SET NULL"), index=True
    )
    invitee_email: Mapped[str] = mapped_column(String(255), nullable=False)
    invitee_name: Mapped[str | None] = mapped_column(String(255))
    role: Mapped[UserRole] = mapped_column(db_enum(UserRole), default=UserRole.TENANT)
    token: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False, index=True,
        default=lambda: secrets.token_urlsafe(32),
    )
    status: Mapped[InviteStatus] = mapped_column(
        db_enum(InviteStatus), default=InviteStatus.PENDING, index=True
    )

    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    @property
    def is_active(self) -> bool:
        return self.status in (InviteStatus.PENDING, InviteStatus.SENT)
