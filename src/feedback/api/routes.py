"""FastAPI routes for the Feedback bounded context.

Each route translates between Pydantic schemas (external contract) and
Protean commands or read-side queries. Admin routes take the caller's
identity from the ``X-Actor-*`` headers set by the authorization layer.
"""

import json

from fastapi import APIRouter, Header
from protean.utils.globals import current_domain

from feedback.api.schemas import (
    ClubReviewSummaryResponse,
    ConflictDetailResponse,
    ConflictListItem,
    ConflictResponse,
    ConflictStatsResponse,
    IssuedTokenResponse,
    IssuedTokensResponse,
    IssueEventReviewTokensRequest,
    IssueReviewTokenRequest,
    ModerationQueueItem,
    ResolveConflictRequest,
    ResolveConflictResponse,
    ReviewDecisionRequest,
    ReviewListItem,
    ReviewStatusResponse,
    SubmitReviewRequest,
    SubmitReviewResponse,
    TokenContextResponse,
    TokenStatusResponse,
    UpdateConflictRequest,
    UpdateConflictResponse,
)
from feedback.conflict.management import UpdateConflict
from feedback.conflict.resolution import ResolveConflictAndCloseReview
from feedback.notification.invitations import send_review_invitations
from feedback.projections.queries import (
    conflict_stats,
    get_club_review_summary,
    get_conflict_detail,
    list_conflicts,
    list_reviews_for_actor,
    moderation_queue,
)
from feedback.review.decision import AdminReviewDecision
from feedback.review.submission import SubmitReview
from feedback.token.issuance import IssueEventReviewTokens, IssueReviewToken
from feedback.token.lookup import validate_token
from feedback.token.redemption import RedeemReviewToken

token_router = APIRouter(prefix="/review-tokens", tags=["review-tokens"])
review_router = APIRouter(prefix="/reviews", tags=["reviews"])
conflict_router = APIRouter(prefix="/conflicts", tags=["conflicts"])
club_router = APIRouter(prefix="/clubs", tags=["clubs"])


def _conflict_response(data: dict) -> ConflictResponse:
    return ConflictResponse(
        conflict_id=str(data["id"]),
        review_id=str(data["review_id"]),
        event_id=str(data["event_id"]),
        complainant_club_id=str(data["complainant_club_id"]),
        respondent_club_id=str(data["respondent_club_id"]),
        status=data["status"],
        priority=data["priority"],
        admin_notes=data.get("admin_notes"),
        resolution_type=data.get("resolution_type"),
        resolution_notes=data.get("resolution_notes"),
        resolved_by=str(data["resolved_by"]) if data.get("resolved_by") else None,
        resolved_at=data.get("resolved_at"),
    )


# ---------------------------------------------------------------------------
# Review tokens
# ---------------------------------------------------------------------------
@token_router.post("", status_code=201, response_model=IssuedTokenResponse)
async def issue_review_token(body: IssueReviewTokenRequest) -> IssuedTokenResponse:
    """Issue a single review token for one reviewer/target pair."""
    command = IssueReviewToken(
        event_id=body.event_id,
        reviewer_club_id=body.reviewer_club_id,
        target_club_id=body.target_club_id,
        validity_days=body.validity_days,
    )
    issued = current_domain.process(command, asynchronous=False)
    if body.send_invitation:
        send_review_invitations([issued])
    return IssuedTokenResponse(**issued)


@token_router.post("/events/{event_id}", status_code=201, response_model=IssuedTokensResponse)
async def issue_event_review_tokens(event_id: str, body: IssueEventReviewTokensRequest) -> IssuedTokensResponse:
    """Issue tokens in both directions for every club at a concluded event."""
    command = IssueEventReviewTokens(
        event_id=event_id,
        host_club_id=body.host_club_id,
        visiting_club_ids=json.dumps(body.visiting_club_ids),
        validity_days=body.validity_days,
    )
    result = current_domain.process(command, asynchronous=False)
    invitations_sent = send_review_invitations(result["issued"]) if body.send_invitations else 0
    return IssuedTokensResponse(
        event_id=result["event_id"],
        issued=[IssuedTokenResponse(**item) for item in result["issued"]],
        skipped=result["skipped"],
        invitations_sent=invitations_sent,
    )


@token_router.get("/{token}", response_model=TokenStatusResponse)
async def get_token_status(token: str) -> TokenStatusResponse:
    """Check a token before showing the review form. Never consumes it."""
    return TokenStatusResponse(**validate_token(token))


@token_router.post("/{token}/redeem", response_model=TokenContextResponse)
async def redeem_review_token(token: str) -> TokenContextResponse:
    """Mark a token as used and return its context."""
    context = current_domain.process(RedeemReviewToken(token=token), asynchronous=False)
    return TokenContextResponse(**context.to_dict())


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------
@review_router.post("", status_code=201, response_model=SubmitReviewResponse)
async def submit_review(body: SubmitReviewRequest) -> SubmitReviewResponse:
    """Submit a review with a token. Ratings 1-2 also open a conflict."""
    command = SubmitReview(
        token=body.token,
        rating=body.rating,
        content=body.content,
        complaint=body.complaint,
        improvement_suggestion=body.improvement_suggestion,
    )
    result = current_domain.process(command, asynchronous=False)
    return SubmitReviewResponse(**result)


@review_router.put("/{review_id}/decision", response_model=ReviewStatusResponse)
async def decide_review(
    review_id: str,
    body: ReviewDecisionRequest,
    x_actor_role: str = Header(),
    x_actor_id: str = Header(),
    x_actor_club_id: str | None = Header(default=None),
) -> ReviewStatusResponse:
    """Approve or reject a review as a platform or club admin."""
    command = AdminReviewDecision(
        review_id=review_id,
        actor_role=x_actor_role,
        actor_id=x_actor_id,
        actor_club_id=x_actor_club_id,
        decision=body.decision,
        reason=body.reason,
        expected_status=body.expected_status,
    )
    result = current_domain.process(command, asynchronous=False)
    return ReviewStatusResponse(**result)


@review_router.get("", response_model=list[ReviewListItem])
async def get_reviews(
    target_club_id: str | None = None,
    status: str | None = None,
    is_conflict: bool | None = None,
    x_actor_role: str = Header(),
    x_actor_club_id: str | None = Header(default=None),
) -> list[ReviewListItem]:
    """List reviews, optionally filtered by club, status or dispute flag.

    Club admins only ever see their own club's reviews.
    """
    rows = list_reviews_for_actor(
        x_actor_role,
        club_id=x_actor_club_id,
        target_club_id=target_club_id,
        status=status,
        is_conflict=is_conflict,
    )
    return [ReviewListItem(**row) for row in rows]


@review_router.get("/moderation-queue", response_model=list[ModerationQueueItem])
async def get_moderation_queue(
    x_actor_role: str = Header(),
    x_actor_club_id: str | None = Header(default=None),
) -> list[ModerationQueueItem]:
    """Reviews waiting on the calling admin."""
    return [ModerationQueueItem(**row) for row in moderation_queue(x_actor_role, club_id=x_actor_club_id)]


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------
@conflict_router.put("/{conflict_id}", response_model=UpdateConflictResponse)
async def update_conflict(
    conflict_id: str,
    body: UpdateConflictRequest,
    x_actor_role: str = Header(),
    x_actor_id: str = Header(),
) -> UpdateConflictResponse:
    """Change an open conflict's status, priority or notes."""
    command = UpdateConflict(
        conflict_id=conflict_id,
        actor_role=x_actor_role,
        actor_id=x_actor_id,
        status=body.status,
        priority=body.priority,
        admin_notes=body.admin_notes,
    )
    result = current_domain.process(command, asynchronous=False)
    return UpdateConflictResponse(
        conflict=_conflict_response(result["conflict"]),
        changed_fields=result["changed_fields"],
    )


@conflict_router.post("/{conflict_id}/resolve", response_model=ResolveConflictResponse)
async def resolve_conflict(
    conflict_id: str,
    body: ResolveConflictRequest,
    x_actor_role: str = Header(),
    x_actor_id: str = Header(),
) -> ResolveConflictResponse:
    """Close a conflict and move its review to CONFLICT_RESOLVED."""
    command = ResolveConflictAndCloseReview(
        conflict_id=conflict_id,
        actor_role=x_actor_role,
        resolver_id=x_actor_id,
        resolution_type=body.resolution_type,
        resolution_notes=body.resolution_notes,
        outcome=body.outcome,
    )
    result = current_domain.process(command, asynchronous=False)
    return ResolveConflictResponse(
        conflict=_conflict_response(result["conflict"]),
        review_status=result["review_status"],
    )


@conflict_router.get("", response_model=list[ConflictListItem])
async def get_conflicts(status: str | None = None, active_only: bool = False) -> list[ConflictListItem]:
    """List conflicts for the platform dashboard."""
    return [ConflictListItem(**row) for row in list_conflicts(status=status, active_only=active_only)]


@conflict_router.get("/stats", response_model=ConflictStatsResponse)
async def get_conflict_stats() -> ConflictStatsResponse:
    return ConflictStatsResponse(**conflict_stats())


@conflict_router.get("/{conflict_id}", response_model=ConflictDetailResponse)
async def get_conflict(conflict_id: str) -> ConflictDetailResponse:
    """A conflict with the review it was opened for."""
    return ConflictDetailResponse(**get_conflict_detail(conflict_id))


# ---------------------------------------------------------------------------
# Club summaries
# ---------------------------------------------------------------------------
@club_router.get("/{club_id}/review-summary", response_model=ClubReviewSummaryResponse)
async def get_review_summary(club_id: str) -> ClubReviewSummaryResponse:
    """Rating statistics and reviews for a club."""
    return ClubReviewSummaryResponse(**get_club_review_summary(club_id))
