"""Lawyer profile: the aggregate every onboarding step writes into.

One row per lawyer account.  Holds professional credentials, practice
classification (many-to-many), logistics (fees, weekly availability),
uploaded document references and the verification lifecycle status.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from legalhub.database import Base
from legalhub.models.reference import (
    Language,
    PracticeArea,
    Specialization,
    lawyer_languages,
    lawyer_practice_areas,
    lawyer_specializations,
)


class ProfileStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    PENDING_REVIEW = "pending_review"
    VERIFIED = "verified"
    REJECTED = "rejected"
    SUSPENDED = "suspended"

    @classmethod
    def _missing_(cls, value):
        # Older clients and records use these labels for the same states
        aliases = {
            "under_review": cls.PENDING_REVIEW,
            "approved": cls.VERIFIED,
            "pending_onboarding": cls.NOT_STARTED,
            "draft": cls.NOT_STARTED,
        }
        if isinstance(value, str):
            return aliases.get(value.lower())
        return None

    @property
    def can_edit(self) -> bool:
        return self in EDITABLE_STATUSES


# Statuses in which onboarding data may change (and be submitted)
EDITABLE_STATUSES = frozenset({
    ProfileStatus.NOT_STARTED,
    ProfileStatus.IN_PROGRESS,
    ProfileStatus.REJECTED,
})


class LawyerProfile(Base):
    __tablename__ = "lawyer_profiles"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"),
        unique=True, nullable=False, index=True,
    )

    # Professional credentials
    enrollment_number: Mapped[str | None] = mapped_column(String(50), unique=True)
    year_of_call: Mapped[int | None] = mapped_column(Integer)
    law_school: Mapped[str | None] = mapped_column(String(255))
    graduation_year: Mapped[int | None] = mapped_column(Integer)

    # Logistics: fees in the smallest currency unit
    office_address: Mapped[str | None] = mapped_column(String(500))
    bio: Mapped[str | None] = mapped_column(Text)
    consultation_fee: Mapped[int | None] = mapped_column(Integer)
    hourly_rate: Mapped[int | None] = mapped_column(Integer)
    # {"monday": {"start": "09:00", "end": "17:00"}, "tuesday": null, ...}
    availability: Mapped[dict | None] = mapped_column(JSON, default=None)

    # Document references returned by the storage backend
    bar_certificate_path: Mapped[str | None] = mapped_column(String(500))
    cv_path: Mapped[str | None] = mapped_column(String(500))

    # Verification lifecycle
    status: Mapped[ProfileStatus] = mapped_column(
        SAEnum(ProfileStatus), default=ProfileStatus.NOT_STARTED, nullable=False, index=True
    )
    submitted_for_review_at: Mapped[datetime | None] = mapped_column(DateTime)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime)
    rejection_reason: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    practice_areas: Mapped[list[PracticeArea]] = relationship(
        secondary=lawyer_practice_areas, lazy="selectin", order_by=PracticeArea.id
    )
    specializations: Mapped[list[Specialization]] = relationship(
        secondary=lawyer_specializations, lazy="selectin", order_by=Specialization.id
    )
    languages: Mapped[list[Language]] = relationship(
        secondary=lawyer_languages, lazy="selectin", order_by=Language.id
    )

    @property
    def can_edit(self) -> bool:
        return self.status.can_edit
