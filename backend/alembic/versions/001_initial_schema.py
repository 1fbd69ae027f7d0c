# backend/alembic/versions/001_initial_schema.py
"""Initial schema - users, expertise posts, and escrowed bookings

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00.000000

Bookings snapshot the price, service fee, and total they were authorized for,
and reference exactly one Stripe PaymentIntent. The unique index on
stripe_payment_intent_id keeps one hold from backing two bookings.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, expertise_posts, and bookings."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("stripe_account_id", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "expertise_posts",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("price_per_submission", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("price_per_submission > 0", name="check_post_price_positive"),
    )
    op.create_index("ix_expertise_posts_id", "expertise_posts", ["id"])
    op.create_index("ix_expertise_posts_user_id", "expertise_posts", ["user_id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column(
            "booking_type",
            sa.String(40),
            nullable=False,
            server_default="SINGLE_TEXT_RESPONSE",
        ),
        sa.Column("expert_id", sa.String(26), nullable=False),
        sa.Column("customer_id", sa.String(26), nullable=False),
        sa.Column("expertise_post_id", sa.String(26), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING_RESPONSE"),
        sa.Column("customer_submission", sa.Text(), nullable=False),
        sa.Column("expert_response", sa.Text(), nullable=True),
        sa.Column("stripe_payment_intent_id", sa.String(255), nullable=False),
        sa.Column("price_per_submission", sa.Numeric(10, 2), nullable=False),
        sa.Column("service_fee", sa.Numeric(10, 2), nullable=False),
        sa.Column("total", sa.Numeric(10, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["expert_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["expertise_post_id"], ["expertise_posts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("stripe_payment_intent_id"),
        sa.CheckConstraint(
            "status IN ('PENDING_RESPONSE', 'COMPLETED', 'CANCELLED', 'EXPIRED')",
            name="ck_bookings_status",
        ),
        sa.CheckConstraint("price_per_submission > 0", name="check_price_positive"),
        sa.CheckConstraint("service_fee >= 0", name="check_service_fee_non_negative"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_expert_id", "bookings", ["expert_id"])
    op.create_index("ix_bookings_customer_id", "bookings", ["customer_id"])
    op.create_index("ix_bookings_expertise_post_id", "bookings", ["expertise_post_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_expert_status", "bookings", ["expert_id", "status"])


def downgrade() -> None:
    """Drop all booking tables."""
    op.drop_index("ix_bookings_expert_status", table_name="bookings")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_expertise_post_id", table_name="bookings")
    op.drop_index("ix_bookings_customer_id", table_name="bookings")
    op.drop_index("ix_bookings_expert_id", table_name="bookings")
    op.drop_index("ix_bookings_id", table_name="bookings")
    op.drop_table("bookings")

    op.drop_index("ix_expertise_posts_user_id", table_name="expertise_posts")
    op.drop_index("ix_expertise_posts_id", table_name="expertise_posts")
    op.drop_table("expertise_posts")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")
