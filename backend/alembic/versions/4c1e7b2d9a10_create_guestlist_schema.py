"""create guestlist schema

Revision ID: 4c1e7b2d9a10
Revises:
Create Date: 2026-10-16
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "4c1e7b2d9a10"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    # -----------------------------------------------------
    # 1) Identities
    # -----------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("magic_code", sa.String(length=64), nullable=True),
        sa.Column("magic_code_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("full_name", sa.String(length=200), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "user_roles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"], unique=True)

    # -----------------------------------------------------
    # 2) Events
    # -----------------------------------------------------
    op.create_table(
        "events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time", sa.Time(), nullable=False),
        sa.Column("venue", sa.String(length=200), nullable=False),
        sa.Column("venue_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("capacity", sa.Integer(), server_default="0", nullable=False),
        sa.Column("image_url", sa.String(length=500), nullable=True),
        sa.Column("status", sa.String(length=20), server_default="upcoming", nullable=False),
        *_timestamps(),
        sa.CheckConstraint("status IN ('upcoming', 'live', 'past')", name="ck_events_status"),
    )
    op.create_index("ix_events_status", "events", ["status"])
    op.create_index("ix_events_status_date", "events", ["status", "date"])

    # -----------------------------------------------------
    # 3) Promoters + per-event attribution
    # -----------------------------------------------------
    op.create_table(
        "promoters",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("logo_url", sa.String(length=500), nullable=True),
        sa.Column("commission_percentage", sa.Numeric(12, 2), server_default="0", nullable=False),
        sa.Column("qr_code_identifier", sa.String(length=64), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("payout_details", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_promoters_user_id", "promoters", ["user_id"], unique=True)
    op.create_index("ix_promoters_email", "promoters", ["email"])
    op.create_index("ix_promoters_qr_code_identifier", "promoters", ["qr_code_identifier"], unique=True)

    op.create_table(
        "promoter_event_qr",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "promoter_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("promoters.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "event_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("qr_code_identifier", sa.String(length=100), nullable=False),
        sa.Column("scans_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("registrations_count", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("promoter_id", "event_id", name="uq_promoter_event_qr_promoter_event"),
        sa.UniqueConstraint("qr_code_identifier", name="uq_promoter_event_qr_token"),
    )
    op.create_index("ix_promoter_event_qr_promoter_id", "promoter_event_qr", ["promoter_id"])
    op.create_index("ix_promoter_event_qr_event_id", "promoter_event_qr", ["event_id"])

    op.create_table(
        "qr_scans",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "promoter_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("promoters.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "event_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("events.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("scanned_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_qr_scans_promoter_event", "qr_scans", ["promoter_id", "event_id"])

    # -----------------------------------------------------
    # 4) Guests
    # -----------------------------------------------------
    op.create_table(
        "guests",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("whatsapp_number", sa.String(length=40), nullable=True),
        sa.Column("whatsapp_digits", sa.String(length=32), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("nationality", sa.String(length=80), nullable=True),
        sa.Column(
            "event_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "promoter_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("promoters.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("attended", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("registration_date", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("event_id", "email", name="uq_guests_event_email"),
    )
    op.create_index("ix_guests_event_id", "guests", ["event_id"])
    op.create_index("ix_guests_promoter_id", "guests", ["promoter_id"])
    op.create_index("ix_guests_event_whatsapp_digits", "guests", ["event_id", "whatsapp_digits"])
    op.create_index("ix_guests_event_promoter", "guests", ["event_id", "promoter_id"])

    # -----------------------------------------------------
    # 5) Commission ledger
    # -----------------------------------------------------
    op.create_table(
        "commission_ledger",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "promoter_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("promoters.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "event_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("events.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("registrations_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("commission_rate", sa.Numeric(12, 2), server_default="0", nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), server_default="0", nullable=False),
        sa.Column("status", sa.String(length=20), server_default="pending", nullable=False),
        sa.Column(
            "approved_by",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_reference", sa.String(length=120), nullable=True),
        sa.Column("payout_notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status IN ('pending', 'approved', 'paid')", name="ck_commission_ledger_status"),
    )
    op.create_index(
        "ix_commission_ledger_promoter_created",
        "commission_ledger",
        ["promoter_id", "created_at"],
    )
    op.create_index("ix_commission_ledger_event", "commission_ledger", ["event_id"])
    op.create_index("ix_commission_ledger_status", "commission_ledger", ["status"])


def downgrade() -> None:
    op.drop_table("commission_ledger")
    op.drop_table("guests")
    op.drop_table("qr_scans")
    op.drop_table("promoter_event_qr")
    op.drop_table("promoters")
    op.drop_table("events")
    op.drop_table("user_roles")
    op.drop_table("users")
