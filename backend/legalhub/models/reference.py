"""Reference data a lawyer picks from during onboarding.

Practice areas, specializations and languages are small lookup tables
seeded once (see `python -m legalhub.cli seed-reference`).  Profiles link
to them through the association tables below; the `professional_info`
step replaces the full set on every save.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column

from legalhub.database import Base


class PracticeArea(Base):
    __tablename__ = "practice_areas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class Specialization(Base):
    __tablename__ = "specializations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class Language(Base):
    __tablename__ = "languages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


# ── Profile associations ────────────────────────────────────

lawyer_practice_areas = Table(
    "lawyer_practice_areas",
    Base.metadata,
    Column(
        "lawyer_profile_id", ForeignKey("lawyer_profiles.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "practice_area_id", ForeignKey("practice_areas.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

lawyer_specializations = Table(
    "lawyer_specializations",
    Base.metadata,
    Column(
        "lawyer_profile_id", ForeignKey("lawyer_profiles.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "specialization_id", ForeignKey("specializations.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

lawyer_languages = Table(
    "lawyer_languages",
    Base.metadata,
    Column(
        "lawyer_profile_id", ForeignKey("lawyer_profiles.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "language_id", ForeignKey("languages.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)
