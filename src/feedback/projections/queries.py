"""Read-side queries over the feedback projections.

These never touch the aggregates. Projections are eventually consistent
with the write side, so a review submitted a moment ago may not show up
yet when event processing runs asynchronously.
"""

import json

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from feedback.conflict.conflict import ACTIVE_STATUSES, ConflictStatus, parse_choice
from feedback.projections.club_review_listing import ClubReviewListing
from feedback.projections.club_review_summary import ClubReviewSummary, default_distribution
from feedback.projections.conflict_dashboard import ConflictDashboard
from feedback.projections.moderation_queue import ModerationQueue
from feedback.review.review import ReviewStatus
from feedback.shared.errors import MissingRequiredField, NotFound
from feedback.shared.roles import ActorRole, parse_role


def _listing_row(row) -> dict:
    return {
        "review_id": str(row.review_id),
        "event_id": str(row.event_id),
        "reviewer_club_id": str(row.reviewer_club_id),
        "target_club_id": str(row.target_club_id),
        "rating": row.rating,
        "content": row.content,
        "complaint": row.complaint,
        "improvement_suggestion": row.improvement_suggestion,
        "status": row.status,
        "is_conflict": bool(row.is_conflict),
        "conflict_id": str(row.conflict_id) if row.conflict_id else None,
        "conflict_status": row.conflict_status,
        "conflict_priority": row.conflict_priority,
        "submitted_at": row.submitted_at,
        "updated_at": row.updated_at,
    }


def _conflict_row(row) -> dict:
    return {
        "conflict_id": str(row.conflict_id),
        "review_id": str(row.review_id),
        "event_id": str(row.event_id),
        "complainant_club_id": str(row.complainant_club_id),
        "respondent_club_id": str(row.respondent_club_id),
        "rating": row.rating,
        "complaint": row.complaint,
        "status": row.status,
        "priority": row.priority,
        "admin_notes": row.admin_notes,
        "resolution_type": row.resolution_type,
        "resolution_notes": row.resolution_notes,
        "resolved_by": str(row.resolved_by) if row.resolved_by else None,
        "opened_at": row.opened_at,
        "updated_at": row.updated_at,
        "resolved_at": row.resolved_at,
    }


def _queue_row(row) -> dict:
    return {
        "review_id": str(row.review_id),
        "event_id": str(row.event_id),
        "reviewer_club_id": str(row.reviewer_club_id),
        "target_club_id": str(row.target_club_id),
        "rating": row.rating,
        "text": row.text,
        "status": row.status,
        "submitted_at": row.submitted_at,
        "platform_approved_at": row.platform_approved_at,
    }


def list_reviews(target_club_id=None, status=None, is_conflict=None) -> list[dict]:
    """Reviews from the listing projection, newest first."""
    criteria = {}
    if target_club_id is not None:
        criteria["target_club_id"] = str(target_club_id)
    if status is not None:
        criteria["status"] = parse_choice(ReviewStatus, status, "status").value
    if is_conflict is not None:
        criteria["is_conflict"] = bool(is_conflict)

    query = current_domain.repository_for(ClubReviewListing)._dao.query
    if criteria:
        query = query.filter(**criteria)
    rows = query.order_by("-submitted_at").limit(None).all().items
    return [_listing_row(row) for row in rows]


def list_reviews_for_actor(actor_role, club_id=None, target_club_id=None, status=None, is_conflict=None) -> list[dict]:
    """Reviews an admin may browse.

    Platform admins list everything. Club admins only see reviews of the
    club they act for; asking for another club is refused.
    """
    role = parse_role(actor_role)
    if role == ActorRole.CLUB_ADMIN:
        if not club_id:
            raise MissingRequiredField("target_club_id", "Club admins must say which club they act for")
        if target_club_id is not None and str(target_club_id) != str(club_id):
            raise ValidationError({"target_club_id": ["Club admins can only list reviews of their own club"]})
        target_club_id = club_id
    elif role != ActorRole.PLATFORM_ADMIN:
        raise ValidationError({"actor_role": [f"{role.value} cannot list reviews"]})

    return list_reviews(target_club_id=target_club_id, status=status, is_conflict=is_conflict)


def get_club_review_summary(club_id) -> dict:
    """Rating statistics and reviews for one club. Unknown clubs read as all zeros."""
    club_id = str(club_id)
    summary = current_domain.repository_for(ClubReviewSummary).get_or_none(club_id)

    if summary is None:
        breakdown = default_distribution()
        return {
            "club_id": club_id,
            "total": 0,
            "average_rating": 0.0,
            "rating_breakdown": breakdown,
            "positive": 0,
            "neutral": 0,
            "negative": 0,
            "published": 0,
            "open_conflicts": 0,
            "reviews": [],
        }

    breakdown = default_distribution()
    breakdown.update(json.loads(summary.rating_distribution or "{}"))
    return {
        "club_id": club_id,
        "total": summary.total_reviews,
        "average_rating": summary.average_rating,
        "rating_breakdown": breakdown,
        "positive": summary.positive_count,
        "neutral": summary.neutral_count,
        "negative": summary.negative_count,
        "published": summary.published_count,
        "open_conflicts": summary.open_conflict_count,
        "reviews": list_reviews(target_club_id=club_id),
    }


def list_conflicts(status=None, active_only=False) -> list[dict]:
    """Conflicts from the dashboard projection, newest first.

    ``active_only`` drops RESOLVED and DISMISSED conflicts; it is ignored
    when an explicit ``status`` is given.
    """
    query = current_domain.repository_for(ConflictDashboard)._dao.query
    if status is not None:
        query = query.filter(status=parse_choice(ConflictStatus, status, "status").value)
    elif active_only:
        query = query.filter(status__in=[s.value for s in ACTIVE_STATUSES])
    rows = query.order_by("-opened_at").limit(None).all().items
    return [_conflict_row(row) for row in rows]


def moderation_queue(actor_role, club_id=None) -> list[dict]:
    """Reviews waiting on the given actor, oldest first.

    Platform admins see PENDING reviews (optionally for one target club).
    Club admins see reviews of their own club that a platform admin has
    already approved.
    """
    role = parse_role(actor_role)

    query = current_domain.repository_for(ModerationQueue)._dao.query
    if role == ActorRole.PLATFORM_ADMIN:
        query = query.filter(status=ReviewStatus.PENDING.value)
        if club_id is not None:
            query = query.filter(target_club_id=str(club_id))
    elif role == ActorRole.CLUB_ADMIN:
        if not club_id:
            raise MissingRequiredField("club_id", "Club admins must say which club they act for")
        query = query.filter(
            status=ReviewStatus.SUPER_ADMIN_APPROVED.value,
            target_club_id=str(club_id),
        )
    else:
        raise ValidationError({"actor_role": [f"{role.value} has no moderation queue"]})

    rows = query.order_by("submitted_at").limit(None).all().items
    return [_queue_row(row) for row in rows]


def get_conflict_detail(conflict_id) -> dict:
    """One dashboard conflict together with the listing row of its review."""
    row = current_domain.repository_for(ConflictDashboard).get_or_none(str(conflict_id))
    if row is None:
        raise NotFound("Conflict", str(conflict_id))

    listing = current_domain.repository_for(ClubReviewListing).get_or_none(str(row.review_id))
    return {
        "conflict": _conflict_row(row),
        "review": _listing_row(listing) if listing else None,
    }


def conflict_stats() -> dict:
    """Conflict counts per status for the dashboard header."""
    rows = current_domain.repository_for(ConflictDashboard)._dao.query.limit(None).all().items
    by_status = {s.value: 0 for s in ConflictStatus}
    for row in rows:
        by_status[row.status] = by_status.get(row.status, 0) + 1

    return {
        "by_status": by_status,
        "active": sum(by_status[s.value] for s in ACTIVE_STATUSES),
        "total": len(rows),
    }
