from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ReviewQueueItem(BaseModel):
    user_id: str
    full_name: str
    email: str
    enrollment_number: str | None = None
    submitted_for_review_at: datetime | None = None


class RejectRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=1000)


class SuspendRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class ReviewResult(BaseModel):
    user_id: str
    status: str
    verified_at: datetime | None = None
    rejection_reason: str | None = None

    model_config = ConfigDict(from_attributes=True)
