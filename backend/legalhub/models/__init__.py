"""Aggregate model imports for Alembic auto-detection."""

from legalhub.models.user import User, UserRole  # noqa: F401
from legalhub.models.reference import (  # noqa: F401
    Language,
    PracticeArea,
    Specialization,
    lawyer_languages,
    lawyer_practice_areas,
    lawyer_specializations,
)
from legalhub.models.lawyer_profile import LawyerProfile, ProfileStatus  # noqa: F401
from legalhub.models.onboarding_step import OnboardingStep  # noqa: F401
from legalhub.models.audit_log import AuditLog  # noqa: F401
