"""SubmitReview — turn a review token into a review.

Checks run before anything is written: the token must exist, be inside its
window and not have a review yet, and the text must match the rating's rule.
A rejected submission leaves the token untouched so the reviewer can fix
the input and try again.

The token, the review and (for ratings 1-2) the conflict are written in
the same unit of work. If any write fails, none of them is kept.
"""

import structlog
from protean.fields import Integer, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from feedback.conflict.conflict import Conflict
from feedback.domain import feedback
from feedback.review.review import EventReview
from feedback.review.rules import validate_submission
from feedback.token.token import ReviewToken

logger = structlog.get_logger(__name__)


@feedback.command(part_of="EventReview")
class SubmitReview:
    token = String(required=True, max_length=128)
    rating = Integer()
    content = Text()
    complaint = Text()
    improvement_suggestion = Text()


@feedback.command_handler(part_of=EventReview)
class SubmitReviewHandler:
    @handle(SubmitReview)
    def submit_review(self, command):
        token_repo = current_domain.repository_for(ReviewToken)
        review_repo = current_domain.repository_for(EventReview)
        conflict_repo = current_domain.repository_for(Conflict)

        token = token_repo.get_by_raw_token(command.token)
        token.ensure_open_for_submission()

        rule = validate_submission(
            command.rating,
            content=command.content,
            complaint=command.complaint,
            improvement_suggestion=command.improvement_suggestion,
        )

        context = token.context()
        review = EventReview.submit(
            context,
            rating=command.rating,
            content=command.content,
            complaint=command.complaint,
            improvement_suggestion=command.improvement_suggestion,
        )
        token.attach_review(review.id)

        token_repo.add(token)
        review_repo.add(review)

        conflict_id = None
        if rule.opens_conflict:
            conflict = Conflict.open_for(review)
            conflict_repo.add(conflict)
            conflict_id = str(conflict.id)

        logger.info(
            "review_submitted",
            review_id=str(review.id),
            token_hash=str(token.token_hash),
            rating=review.rating,
            status=review.status,
            conflict_id=conflict_id,
        )

        return {"review_id": str(review.id), "status": review.status, "conflict_id": conflict_id}
