"""Initial schema: users, properties, units, tenants, invites.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-19

Enum columns are plain VARCHARs holding the enum values.
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(32), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ── Properties + units ───────────────────────────────────

    op.create_table(
        "properties",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("owner_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("property_type", sa.String(32), nullable=True),
        sa.Column("unit_type", sa.String(32), nullable=True),
        sa.Column("address_line1", sa.String(255), nullable=False),
        sa.Column("address_line2", sa.String(255), nullable=True),
        sa.Column("city", sa.String(120), nullable=False),
        sa.Column("state", sa.String(2), nullable=False),
        sa.Column("zip_code", sa.String(20), nullable=False),
        sa.Column("country", sa.String(80), nullable=True),
        sa.Column("contact_email", sa.String(255), nullable=True),
        sa.Column("contact_phone", sa.String(20), nullable=True),
        sa.Column("year_built", sa.Integer(), nullable=True),
        sa.Column("building_sq_ft", sa.Integer(), nullable=True),
        sa.Column("lot_sq_ft", sa.Integer(), nullable=True),
        sa.Column("property_status", sa.String(32), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_properties_owner_id", "properties", ["owner_id"])
    op.create_index("ix_properties_property_status", "properties", ["property_status"])

    op.create_table(
        "units",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "property_id", sa.String(36),
            sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("unit_number", sa.String(50), nullable=False),
        sa.Column("bedrooms", sa.Integer(), nullable=False),
        sa.Column("bathrooms", sa.Numeric(3, 1), nullable=False),
        sa.Column("rent_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("security_deposit_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("property_id", "unit_number", name="uq_units_property_unit_number"),
    )
    op.create_index("ix_units_property_id", "units", ["property_id"])

    # ── Tenants + invites ────────────────────────────────────

    op.create_table(
        "tenants",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("owner_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "unit_id", sa.String(36),
            sa.ForeignKey("units.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("lease_start_date", sa.DateTime(), nullable=True),
        sa.Column("lease_end_date", sa.DateTime(), nullable=True),
        sa.Column("tenant_status", sa.String(32), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_tenants_owner_id", "tenants", ["owner_id"])
    op.create_index("ix_tenants_unit_id", "tenants", ["unit_id"])
    op.create_index("ix_tenants_tenant_status", "tenants", ["tenant_status"])

    op.create_table(
        "invites",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "property_id", sa.String(36),
            sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("owner_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "tenant_id", sa.String(36),
            sa.ForeignKey("tenants.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("invitee_email", sa.String(255), nullable=False),
        sa.Column("invitee_name", sa.String(255), nullable=True),
        sa.Column("role", sa.String(32), nullable=True),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("status", sa.String(32), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("accepted_at", sa.DateTime(), nullable=True),
        sa.Column("revoked_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_invites_property_id", "invites", ["property_id"])
    op.create_index("ix_invites_owner_id", "invites", ["owner_id"])
    op.create_index("ix_invites_tenant_id", "invites", ["tenant_id"])
    op.create_index("ix_invites_token", "invites", ["token"], unique=True)
    op.create_index("ix_invites_status", "invites", ["status"])


def downgrade() -> None:
    op.drop_table("invites")
    op.drop_table("tenants")
    op.drop_table("units")
    op.drop_table("properties")
    op.drop_table("users")
