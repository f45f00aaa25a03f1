"""AdminReviewDecision — platform or club admin approves/rejects a review.

The caller's authorization layer has already established who the actor
is; the role arrives as an explicit claim and is checked against the
review's transition table. Approval is two-staged: a platform admin
first, then an admin of the reviewed club.
"""

import structlog
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from feedback.domain import feedback
from feedback.review.review import EventReview

logger = structlog.get_logger(__name__)


@feedback.command(part_of="EventReview")
class AdminReviewDecision:
    review_id = Identifier(required=True)
    actor_role = String(required=True, max_length=30)
    actor_id = Identifier(required=True)
    decision = String(required=True, max_length=20)  # "approve" or "reject"
    reason = Text()
    actor_club_id = Identifier()  # Club the admin acts for (club admins)
    expected_status = String(max_length=30)  # Status the admin was looking at


@feedback.command_handler(part_of=EventReview)
class AdminReviewDecisionHandler:
    @handle(AdminReviewDecision)
    def decide(self, command):
        repo = current_domain.repository_for(EventReview)
        review = repo.get_review(command.review_id)

        previous = review.status
        review.decide(
            actor_role=command.actor_role,
            decision=command.decision.lower(),
            actor_id=command.actor_id,
            reason=command.reason,
            actor_club_id=command.actor_club_id,
            expected_status=command.expected_status,
        )
        repo.add(review)

        logger.info(
            "review_decision_recorded",
            review_id=str(review.id),
            actor_role=command.actor_role,
            decision=command.decision,
            from_status=previous,
            to_status=review.status,
        )

        return {"review_id": str(review.id), "status": review.status}
