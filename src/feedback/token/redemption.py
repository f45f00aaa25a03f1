"""RedeemReviewToken — claim a review invitation.

The read of the token and the write of ``redeemed_at`` are tied together by
the aggregate version: the save only lands if nobody else saved the token
since it was loaded. A caller that loses that race is retried on fresh
state and then fails with AlreadyUsed.
"""

import structlog
from protean.fields import String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from feedback.domain import feedback
from feedback.token.token import ReviewToken

logger = structlog.get_logger(__name__)


@feedback.command(part_of="ReviewToken")
class RedeemReviewToken:
    token = String(required=True, max_length=128)


@feedback.command_handler(part_of=ReviewToken)
class RedeemReviewTokenHandler:
    @handle(RedeemReviewToken)
    def redeem_review_token(self, command):
        repo = current_domain.repository_for(ReviewToken)
        token = repo.get_by_raw_token(command.token)

        context = token.redeem()
        repo.add(token)

        logger.info("review_token_redeemed", token_hash=context.token_hash, event_id=context.event_id)
        return context
