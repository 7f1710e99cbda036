"""Tracks onboarding progress per lawyer, one row per step.

Created on the first save or skip of a step and updated in place after
that (never deleted while onboarding is open), so the last accepted
payload can be reloaded for editing and drop-off points stay visible.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from legalhub.database import Base


class OnboardingStep(Base):
    __tablename__ = "onboarding_steps"
    __table_args__ = (
        UniqueConstraint("user_id", "step_name", name="uq_onboarding_steps_user_step"),
        Index("ix_onboarding_steps_user_completed", "user_id", "is_completed"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    step_name: Mapped[str] = mapped_column(String(50), nullable=False)
    # Last accepted payload for the step (merged field-by-field on re-save)
    step_data: Mapped[dict] = mapped_column(JSON, default=dict)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    is_skipped: Mapped[bool] = mapped_column(Boolean, default=False)
    skip_reason: Mapped[str | None] = mapped_column(String(255))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def mark_completed(self, data: dict) -> None:
        self.step_data = {**(self.step_data or {}), **data}
        self.is_completed = True
        self.is_skipped = False
        self.skip_reason = None
        self.completed_at = datetime.utcnow()

    def mark_skipped(self, reason: str | None) -> None:
        self.is_skipped = True
        self.skip_reason = reason
        self.is_completed = False
        self.completed_at = None
