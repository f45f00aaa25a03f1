"""ClubReviewListing — one row per review, with its conflict state folded in."""

from protean.core.projector import on
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from feedback.conflict.conflict import Conflict
from feedback.conflict.events import ConflictOpened, ConflictResolved, ConflictUpdated
from feedback.domain import feedback
from feedback.review.events import (
    ReviewDisputeClosed,
    ReviewPlatformApproved,
    ReviewPublished,
    ReviewRejected,
    ReviewSubmitted,
)
from feedback.review.review import EventReview, ReviewStatus


@feedback.projection
class ClubReviewListing:
    review_id = Identifier(identifier=True, required=True)
    event_id = Identifier(required=True)
    reviewer_club_id = Identifier(required=True)
    target_club_id = Identifier(required=True)
    rating = Integer(required=True)
    content = Text()
    complaint = Text()
    improvement_suggestion = Text()
    status = String(required=True)
    is_conflict = Boolean(default=False)
    conflict_id = Identifier()
    conflict_status = String()
    conflict_priority = String()
    submitted_at = DateTime()
    updated_at = DateTime()


def _set_status(review_id, status, updated_at):
    repo = current_domain.repository_for(ClubReviewListing)
    row = repo.get_or_none(str(review_id))
    if row is None:
        return
    row.status = status
    row.updated_at = updated_at
    repo.add(row)


@feedback.projector(projector_for=ClubReviewListing, aggregates=[EventReview, Conflict])
class ClubReviewListingProjector:
    @on(ReviewSubmitted)
    def on_review_submitted(self, event):
        repo = current_domain.repository_for(ClubReviewListing)
        row = repo.get_or_none(str(event.review_id))
        if row is None:
            row = ClubReviewListing(
                review_id=event.review_id,
                event_id=event.event_id,
                reviewer_club_id=event.reviewer_club_id,
                target_club_id=event.target_club_id,
                rating=event.rating,
                status=event.status,
            )
        row.content = event.content
        row.complaint = event.complaint
        row.improvement_suggestion = event.improvement_suggestion
        row.status = event.status
        row.is_conflict = event.status == ReviewStatus.CONFLICT_OPEN.value
        row.submitted_at = event.submitted_at
        row.updated_at = event.submitted_at
        repo.add(row)

    @on(ReviewPlatformApproved)
    def on_review_platform_approved(self, event):
        _set_status(event.review_id, ReviewStatus.SUPER_ADMIN_APPROVED.value, event.approved_at)

    @on(ReviewPublished)
    def on_review_published(self, event):
        _set_status(event.review_id, ReviewStatus.APPROVED.value, event.published_at)

    @on(ReviewRejected)
    def on_review_rejected(self, event):
        _set_status(event.review_id, ReviewStatus.REJECTED.value, event.rejected_at)

    @on(ReviewDisputeClosed)
    def on_review_dispute_closed(self, event):
        _set_status(event.review_id, ReviewStatus.CONFLICT_RESOLVED.value, event.closed_at)

    @on(ConflictOpened)
    def on_conflict_opened(self, event):
        repo = current_domain.repository_for(ClubReviewListing)
        row = repo.get_or_none(str(event.review_id))
        if row is None:
            # Conflict event arrived first; the review event fills in the rest
            row = ClubReviewListing(
                review_id=event.review_id,
                event_id=event.event_id,
                reviewer_club_id=event.complainant_club_id,
                target_club_id=event.respondent_club_id,
                rating=event.rating,
                complaint=event.complaint,
                status=ReviewStatus.CONFLICT_OPEN.value,
                submitted_at=event.opened_at,
            )
        row.is_conflict = True
        row.conflict_id = event.conflict_id
        row.conflict_status = event.status
        row.conflict_priority = event.priority
        repo.add(row)

    @on(ConflictUpdated)
    def on_conflict_updated(self, event):
        repo = current_domain.repository_for(ClubReviewListing)
        row = repo.get_or_none(str(event.review_id))
        if row is None:
            return
        row.conflict_status = event.status
        row.conflict_priority = event.priority
        repo.add(row)

    @on(ConflictResolved)
    def on_conflict_resolved(self, event):
        repo = current_domain.repository_for(ClubReviewListing)
        row = repo.get_or_none(str(event.review_id))
        if row is None:
            return
        row.conflict_status = event.status
        repo.add(row)
