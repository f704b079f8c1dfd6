"""Initial form tables: booking, partner, calculator, career.

Revision ID: 001_initial_forms
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, JSON, UUID

# revision identifiers, used by Alembic.
revision: str = "001_initial_forms"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id", UUID(as_uuid=True), nullable=False, server_default=sa.text("gen_random_uuid()")
    )


def _consent_columns() -> list[sa.Column]:
    return [
        sa.Column("consent_given", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("consent_timestamp", sa.DateTime(timezone=True), nullable=True),
    ]


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )


def upgrade() -> None:
    op.create_table(
        "booking_requests",
        _uuid_pk(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("service", sa.Text(), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        *_consent_columns(),
        sa.Column("marketing_consent", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_booking_requests"),
    )

    op.create_table(
        "partner_registrations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("company_name", sa.Text(), nullable=False),
        sa.Column("contact_person", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("phone", sa.Text(), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("website", sa.Text(), nullable=True),
        sa.Column("trades", ARRAY(sa.Text()), nullable=False),
        sa.Column("employees", sa.Text(), nullable=False),
        sa.Column("experience", sa.Text(), nullable=False),
        sa.Column("motivation", sa.Text(), nullable=False),
        sa.Column("certifications", sa.Text(), nullable=True),
        *_consent_columns(),
        sa.Column("status", sa.Text(), nullable=True, server_default=sa.text("'pending'")),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_partner_registrations"),
    )

    op.create_table(
        "calculator_submissions",
        _uuid_pk(),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("calculator_type", sa.Text(), nullable=False),
        sa.Column("inputs", JSON(), nullable=False),
        sa.Column("results", JSON(), nullable=False),
        *_consent_columns(),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_calculator_submissions"),
    )

    op.create_table(
        "career_applications",
        _uuid_pk(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("position", sa.Text(), nullable=False),
        sa.Column("experience", sa.Text(), nullable=True),
        sa.Column("motivation", sa.Text(), nullable=True),
        sa.Column("resume_url", sa.Text(), nullable=True),
        *_consent_columns(),
        sa.Column("status", sa.Text(), nullable=True, server_default=sa.text("'new'")),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_career_applications"),
    )


def downgrade() -> None:
    op.drop_table("career_applications")
    op.drop_table("calculator_submissions")
    op.drop_table("partner_registrations")
    op.drop_table("booking_requests")
