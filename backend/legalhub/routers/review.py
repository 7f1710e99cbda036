"""Admin review of lawyer profiles awaiting verification."""

from fastapi import APIRouter, Depends

from legalhub.auth.deps import require_role
from legalhub.models.user import User, UserRole
from legalhub.schemas.review import RejectRequest, ReviewQueueItem, ReviewResult, SuspendRequest
from legalhub.services.review import ReviewService, get_review_service

router = APIRouter()


@router.get("/review-queue", response_model=list[ReviewQueueItem])
async def review_queue(
    user: User = Depends(require_role(UserRole.ADMIN)),
    service: ReviewService = Depends(get_review_service),
):
    return await service.review_queue(user)


@router.post("/{user_id}/approve", response_model=ReviewResult)
async def approve(
    user_id: str,
    user: User = Depends(require_role(UserRole.ADMIN)),
    service: ReviewService = Depends(get_review_service),
):
    return await service.approve(user, user_id)


@router.post("/{user_id}/reject", response_model=ReviewResult)
async def reject(
    user_id: str,
    body: RejectRequest,
    user: User = Depends(require_role(UserRole.ADMIN)),
    service: ReviewService = Depends(get_review_service),
):
    return await service.reject(user, user_id, body.reason)


@router.post("/{user_id}/suspend", response_model=ReviewResult)
async def suspend(
    user_id: str,
    body: SuspendRequest | None = None,
    user: User = Depends(require_role(UserRole.ADMIN)),
    service: ReviewService = Depends(get_review_service),
):
    return await service.suspend(user, user_id, body.reason if body else None)
