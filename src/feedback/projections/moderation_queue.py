"""ModerationQueue — reviews waiting on an admin decision.

PENDING rows wait on a platform admin, SUPER_ADMIN_APPROVED rows on the
target club. Rows leave the queue once the review is published or rejected.
Disputed reviews never enter it; they are handled through conflicts.
"""

from protean.core.projector import on
from protean.fields import DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from feedback.domain import feedback
from feedback.review.events import ReviewPlatformApproved, ReviewPublished, ReviewRejected, ReviewSubmitted
from feedback.review.review import EventReview, ReviewStatus


@feedback.projection
class ModerationQueue:
    review_id = Identifier(identifier=True, required=True)
    event_id = Identifier(required=True)
    reviewer_club_id = Identifier(required=True)
    target_club_id = Identifier(required=True)
    rating = Integer(required=True)
    text = Text()
    status = String(required=True)
    submitted_at = DateTime()
    platform_approved_at = DateTime()


def _dequeue(review_id):
    repo = current_domain.repository_for(ModerationQueue)
    row = repo.get_or_none(str(review_id))
    if row is not None:
        repo._dao.delete(row)


@feedback.projector(projector_for=ModerationQueue, aggregates=[EventReview])
class ModerationQueueProjector:
    @on(ReviewSubmitted)
    def on_review_submitted(self, event):
        if event.status != ReviewStatus.PENDING.value:
            return
        current_domain.repository_for(ModerationQueue).add(
            ModerationQueue(
                review_id=event.review_id,
                event_id=event.event_id,
                reviewer_club_id=event.reviewer_club_id,
                target_club_id=event.target_club_id,
                rating=event.rating,
                text=event.content or event.improvement_suggestion,
                status=ReviewStatus.PENDING.value,
                submitted_at=event.submitted_at,
            )
        )

    @on(ReviewPlatformApproved)
    def on_review_platform_approved(self, event):
        repo = current_domain.repository_for(ModerationQueue)
        row = repo.get_or_none(str(event.review_id))
        if row is None:
            return
        row.status = ReviewStatus.SUPER_ADMIN_APPROVED.value
        row.platform_approved_at = event.approved_at
        repo.add(row)

    @on(ReviewPublished)
    def on_review_published(self, event):
        _dequeue(event.review_id)

    @on(ReviewRejected)
    def on_review_rejected(self, event):
        _dequeue(event.review_id)
