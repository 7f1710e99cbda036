"""Admin review of submitted lawyer profiles.

  pending_review → verified   (approve)
  pending_review → rejected   (reject, with reason)
  any but suspended → suspended   (suspend)

Each move is a conditional UPDATE on the allowed prior statuses, the
same guard submission uses, so concurrent reviewers cannot both win.
"""

import logging
from datetime import datetime

from fastapi import Depends
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from legalhub.database import get_db
from legalhub.middleware.exceptions import PermissionDeniedError, ResourceNotFoundError
from legalhub.models.lawyer_profile import LawyerProfile, ProfileStatus
from legalhub.models.user import User, UserRole
from legalhub.schemas.review import ReviewQueueItem, ReviewResult
from legalhub.services.onboarding.errors import InvalidStatusTransitionError
from legalhub.utils import events as event_names
from legalhub.utils.audit import record_audit
from legalhub.utils.events import EventBus, get_event_bus

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(self, db: AsyncSession, events: EventBus):
        self.db = db
        self.events = events

    @staticmethod
    def _ensure_admin(reviewer: User) -> None:
        if reviewer.role != UserRole.ADMIN:
            raise PermissionDeniedError(
                "Only administrators can review lawyer profiles", error_code="NOT_ADMIN"
            )

    async def _load_profile(self, user_id: str) -> LawyerProfile:
        profile = (
            await self.db.execute(
                select(LawyerProfile)
                .where(LawyerProfile.user_id == user_id)
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()
        if profile is None:
            raise ResourceNotFoundError("Lawyer profile", user_id, error_code="PROFILE_NOT_FOUND")
        return profile

    async def review_queue(self, reviewer: User) -> list[ReviewQueueItem]:
        """Profiles awaiting review, oldest submission first."""
        self._ensure_admin(reviewer)
        rows = (
            await self.db.execute(
                select(LawyerProfile, User)
                .join(User, User.id == LawyerProfile.user_id)
                .where(LawyerProfile.status == ProfileStatus.PENDING_REVIEW)
                .order_by(LawyerProfile.submitted_for_review_at.asc())
            )
        ).all()
        return [
            ReviewQueueItem(
                user_id=user.id,
                full_name=user.full_name,
                email=user.email,
                enrollment_number=profile.enrollment_number,
                submitted_for_review_at=profile.submitted_for_review_at,
            )
            for profile, user in rows
        ]

    async def _transition(
        self,
        reviewer: User,
        user_id: str,
        allowed_from: set[ProfileStatus],
        target: ProfileStatus,
        values: dict,
        action: str,
        event_name: str,
        reason: str | None = None,
    ) -> ReviewResult:
        self._ensure_admin(reviewer)
        reviewer_id = reviewer.id
        profile = await self._load_profile(user_id)
        profile_id = profile.id

        async with self.db.begin_nested():
            result = await self.db.execute(
                update(LawyerProfile)
                .where(
                    LawyerProfile.user_id == user_id,
                    LawyerProfile.status.in_(list(allowed_from)),
                )
                .values(status=target, **values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                current = await self.db.scalar(
                    select(LawyerProfile.status).where(LawyerProfile.user_id == user_id)
                )
                raise InvalidStatusTransitionError(current.value, target.value)

            record_audit(
                self.db, reviewer_id,
                action=action,
                entity_type="lawyer_profile",
                entity_id=profile_id,
                summary=f"Profile of user {user_id} moved to {target.value}",
                details={"user_id": user_id, "reason": reason},
            )

        logger.info("Reviewer %s moved profile of %s to %s", reviewer_id, user_id, target.value)
        await self.events.publish(event_name, {"user_id": user_id, "reason": reason})

        profile = await self._load_profile(user_id)
        return ReviewResult(
            user_id=user_id,
            status=profile.status.value,
            verified_at=profile.verified_at,
            rejection_reason=profile.rejection_reason,
        )

    async def approve(self, reviewer: User, user_id: str) -> ReviewResult:
        return await self._transition(
            reviewer, user_id,
            allowed_from={ProfileStatus.PENDING_REVIEW},
            target=ProfileStatus.VERIFIED,
            values={"verified_at": datetime.utcnow(), "rejection_reason": None},
            action="profile_verified",
            event_name=event_names.PROFILE_VERIFIED,
        )

    async def reject(self, reviewer: User, user_id: str, reason: str) -> ReviewResult:
        return await self._transition(
            reviewer, user_id,
            allowed_from={ProfileStatus.PENDING_REVIEW},
            target=ProfileStatus.REJECTED,
            values={"rejection_reason": reason},
            action="profile_rejected",
            event_name=event_names.PROFILE_REJECTED,
            reason=reason,
        )

    async def suspend(self, reviewer: User, user_id: str, reason: str | None = None) -> ReviewResult:
        return await self._transition(
            reviewer, user_id,
            allowed_from=set(ProfileStatus) - {ProfileStatus.SUSPENDED},
            target=ProfileStatus.SUSPENDED,
            values={},
            action="profile_suspended",
            event_name=event_names.PROFILE_SUSPENDED,
            reason=reason,
        )


def get_review_service(
    db: AsyncSession = Depends(get_db),
    events: EventBus = Depends(get_event_bus),
) -> ReviewService:
    return ReviewService(db, events)
