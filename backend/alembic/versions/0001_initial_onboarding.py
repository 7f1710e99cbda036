"""Initial schema: accounts, lawyer profiles, onboarding steps,
reference data and audit log.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-19
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa

# SQLAlchemy Enum columns store member names
user_role = sa.Enum("LAWYER", "CLIENT", "ADMIN", name="userrole")
profile_status = sa.Enum(
    "NOT_STARTED", "IN_PROGRESS", "PENDING_REVIEW", "VERIFIED", "REJECTED", "SUSPENDED",
    name="profilestatus",
)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("role", user_role, nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("phone_number", sa.String(20), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ── Reference data ───────────────────────────────────────
    for table in ("practice_areas", "specializations", "languages"):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("name", sa.String(100), nullable=False, unique=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
        )

    # ── Lawyer profile ───────────────────────────────────────
    op.create_table(
        "lawyer_profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id", sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("enrollment_number", sa.String(50), nullable=True, unique=True),
        sa.Column("year_of_call", sa.Integer(), nullable=True),
        sa.Column("law_school", sa.String(255), nullable=True),
        sa.Column("graduation_year", sa.Integer(), nullable=True),
        sa.Column("office_address", sa.String(500), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("consultation_fee", sa.Integer(), nullable=True),
        sa.Column("hourly_rate", sa.Integer(), nullable=True),
        sa.Column("availability", sa.JSON(), nullable=True),
        sa.Column("bar_certificate_path", sa.String(500), nullable=True),
        sa.Column("cv_path", sa.String(500), nullable=True),
        sa.Column("status", profile_status, nullable=False),
        sa.Column("submitted_for_review_at", sa.DateTime(), nullable=True),
        sa.Column("verified_at", sa.DateTime(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_lawyer_profiles_user_id", "lawyer_profiles", ["user_id"], unique=True)
    op.create_index("ix_lawyer_profiles_status", "lawyer_profiles", ["status"])

    for table, ref_table, ref_column in (
        ("lawyer_practice_areas", "practice_areas", "practice_area_id"),
        ("lawyer_specializations", "specializations", "specialization_id"),
        ("lawyer_languages", "languages", "language_id"),
    ):
        op.create_table(
            table,
            sa.Column(
                "lawyer_profile_id", sa.String(36),
                sa.ForeignKey("lawyer_profiles.id", ondelete="CASCADE"), primary_key=True,
            ),
            sa.Column(
                ref_column, sa.Integer(),
                sa.ForeignKey(f"{ref_table}.id", ondelete="CASCADE"), primary_key=True,
            ),
        )

    # ── Onboarding progress ──────────────────────────────────
    op.create_table(
        "onboarding_steps",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id", sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("step_name", sa.String(50), nullable=False),
        sa.Column("step_data", sa.JSON(), nullable=True),
        sa.Column("is_completed", sa.Boolean(), nullable=True),
        sa.Column("is_skipped", sa.Boolean(), nullable=True),
        sa.Column("skip_reason", sa.String(255), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("user_id", "step_name", name="uq_onboarding_steps_user_step"),
    )
    op.create_index(
        "ix_onboarding_steps_user_completed", "onboarding_steps", ["user_id", "is_completed"]
    )

    # ── Audit ────────────────────────────────────────────────
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(36), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("onboarding_steps")
    for table in ("lawyer_languages", "lawyer_specializations", "lawyer_practice_areas"):
        op.drop_table(table)
    op.drop_table("lawyer_profiles")
    for table in ("languages", "specializations", "practice_areas"):
        op.drop_table(table)
    op.drop_table("users")
    profile_status.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
