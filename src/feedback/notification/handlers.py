"""Notification event handlers — email the clubs when a review changes hands.

Handlers run after the triggering transaction commits. Delivery failures
are logged by ``deliver`` and never propagate back into the workflow.
"""

import structlog
from protean.utils.mixins import handle

from feedback.conflict.conflict import Conflict
from feedback.conflict.events import ConflictOpened
from feedback.directory import get_directory
from feedback.domain import feedback
from feedback.notification.delivery import deliver
from feedback.notification.templates import DisputeOpenedTemplate, ReviewPublishedTemplate
from feedback.review.events import ReviewPublished
from feedback.review.review import EventReview

logger = structlog.get_logger(__name__)


@feedback.event_handler(part_of=EventReview)
class ReviewNotificationsHandler:
    """Tells the reviewer club its review went live. Rejections send nothing."""

    @handle(ReviewPublished)
    def on_review_published(self, event: ReviewPublished) -> None:
        directory = get_directory()
        reviewer_club_id = str(event.reviewer_club_id)
        target_club_id = str(event.target_club_id)

        message = ReviewPublishedTemplate.render(
            {
                "reviewer_club_name": directory.club_name(reviewer_club_id),
                "target_club_name": directory.club_name(target_club_id),
                "rating": event.rating,
            }
        )
        sent = deliver(
            directory.club_admin_emails(reviewer_club_id),
            message,
            review_id=str(event.review_id),
        )
        logger.info("review_published_notified", review_id=str(event.review_id), sent=sent)


@feedback.event_handler(part_of=Conflict)
class ConflictNotificationsHandler:
    """Alerts both clubs and the platform team when a dispute opens."""

    @handle(ConflictOpened)
    def on_conflict_opened(self, event: ConflictOpened) -> None:
        directory = get_directory()
        complainant = str(event.complainant_club_id)
        respondent = str(event.respondent_club_id)

        message = DisputeOpenedTemplate.render(
            {
                "conflict_id": str(event.conflict_id),
                "complainant_club_name": directory.club_name(complainant),
                "respondent_club_name": directory.club_name(respondent),
                "rating": event.rating,
                "priority": event.priority,
                "complaint": event.complaint,
            }
        )
        recipients = (
            directory.club_admin_emails(complainant)
            + directory.club_admin_emails(respondent)
            + directory.platform_admin_emails()
        )
        sent = deliver(recipients, message, conflict_id=str(event.conflict_id))
        logger.info("dispute_opened_notified", conflict_id=str(event.conflict_id), sent=sent)
