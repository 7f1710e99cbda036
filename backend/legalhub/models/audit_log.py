"""AuditLog: immutable audit trail for onboarding and review actions.

Records who did what, when, and to which entity.  Rows are written in
the same session as the change they describe, so a rolled-back change
leaves no audit entry behind.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from legalhub.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    # ── Who ────────────────────────────────────────────────────
    user_id: Mapped[str | None] = mapped_column(String(36), index=True)

    # ── What ───────────────────────────────────────────────────
    # onboarding_step_completed | onboarding_step_skipped |
    # onboarding_submitted | profile_verified | profile_rejected |
    # profile_suspended
    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    # ── Target ─────────────────────────────────────────────────
    # onboarding_step | lawyer_profile
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str | None] = mapped_column(String(36))

    # ── Context ────────────────────────────────────────────────
    summary: Mapped[str | None] = mapped_column(Text)
    details: Mapped[dict | None] = mapped_column(JSON)

    # ── Timestamp ──────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False, index=True
    )
