"""Pydantic request/response schemas for the Feedback API.

These are separate from Protean commands (anti-corruption pattern).
The API layer is the external contract; commands are internal domain concepts.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class IssueReviewTokenRequest(BaseModel):
    event_id: str
    reviewer_club_id: str
    target_club_id: str
    validity_days: int | None = Field(default=None, ge=1)
    send_invitation: bool = False


class IssueEventReviewTokensRequest(BaseModel):
    host_club_id: str
    visiting_club_ids: list[str] = Field(min_length=1)
    validity_days: int | None = Field(default=None, ge=1)
    send_invitations: bool = True


class SubmitReviewRequest(BaseModel):
    token: str
    rating: int | None = None  # 1-5, range checked by the domain
    content: str | None = None
    complaint: str | None = None
    improvement_suggestion: str | None = None


class ReviewDecisionRequest(BaseModel):
    decision: str  # "approve" or "reject"
    reason: str | None = None
    expected_status: str | None = None


class UpdateConflictRequest(BaseModel):
    status: str | None = None
    priority: str | None = None
    admin_notes: str | None = None


class ResolveConflictRequest(BaseModel):
    resolution_type: str | None = None
    resolution_notes: str | None = None
    outcome: str = "RESOLVED"  # "RESOLVED" or "DISMISSED"


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class IssuedTokenResponse(BaseModel):
    token: str
    token_hash: str
    event_id: str
    reviewer_club_id: str
    target_club_id: str
    expires_at: datetime


class IssuedTokensResponse(BaseModel):
    event_id: str
    issued: list[IssuedTokenResponse]
    skipped: int
    invitations_sent: int = 0


class TokenStatusResponse(BaseModel):
    valid: bool
    state: str
    reason: str | None = None
    event_id: str | None = None
    event_name: str | None = None
    reviewer_club_id: str | None = None
    reviewer_club_name: str | None = None
    target_club_id: str | None = None
    target_club_name: str | None = None
    expires_at: datetime | None = None


class TokenContextResponse(BaseModel):
    token_hash: str
    event_id: str
    reviewer_club_id: str
    target_club_id: str
    issued_at: datetime
    expires_at: datetime
    redeemed_at: datetime | None = None
    review_id: str | None = None
    state: str


class SubmitReviewResponse(BaseModel):
    review_id: str
    status: str
    conflict_id: str | None = None


class ReviewStatusResponse(BaseModel):
    review_id: str
    status: str


class ReviewListItem(BaseModel):
    review_id: str
    event_id: str
    reviewer_club_id: str
    target_club_id: str
    rating: int
    content: str | None = None
    complaint: str | None = None
    improvement_suggestion: str | None = None
    status: str
    is_conflict: bool = False
    conflict_id: str | None = None
    conflict_status: str | None = None
    conflict_priority: str | None = None
    submitted_at: datetime | None = None
    updated_at: datetime | None = None


class ModerationQueueItem(BaseModel):
    review_id: str
    event_id: str
    reviewer_club_id: str
    target_club_id: str
    rating: int
    text: str | None = None
    status: str
    submitted_at: datetime | None = None
    platform_approved_at: datetime | None = None


class ConflictResponse(BaseModel):
    conflict_id: str
    review_id: str
    event_id: str
    complainant_club_id: str
    respondent_club_id: str
    status: str
    priority: str
    admin_notes: str | None = None
    resolution_type: str | None = None
    resolution_notes: str | None = None
    resolved_by: str | None = None
    resolved_at: datetime | None = None


class UpdateConflictResponse(BaseModel):
    conflict: ConflictResponse
    changed_fields: list[str]


class ResolveConflictResponse(BaseModel):
    conflict: ConflictResponse
    review_status: str


class ConflictListItem(ConflictResponse):
    rating: int | None = None
    complaint: str | None = None
    opened_at: datetime | None = None
    updated_at: datetime | None = None


class ConflictDetailResponse(BaseModel):
    conflict: ConflictListItem
    review: ReviewListItem | None = None


class ConflictStatsResponse(BaseModel):
    by_status: dict[str, int]
    active: int
    total: int


class ClubReviewSummaryResponse(BaseModel):
    club_id: str
    total: int
    average_rating: float
    rating_breakdown: dict[str, int]
    positive: int
    neutral: int
    negative: int
    published: int
    open_conflicts: int
    reviews: list[ReviewListItem]
