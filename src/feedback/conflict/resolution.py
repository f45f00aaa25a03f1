"""ResolveConflictAndCloseReview — close a conflict and its review in one transaction.

This is the only path out of CONFLICT_OPEN for a review: the conflict is
marked RESOLVED or DISMISSED and the review moves to CONFLICT_RESOLVED in
the same unit of work. If the review is not CONFLICT_OPEN at this point the
data is already inconsistent; the command refuses, raises an alert and
leaves both records as they were.
"""

import structlog
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from feedback.conflict.conflict import Conflict, ConflictStatus
from feedback.domain import feedback
from feedback.review.review import EventReview, ReviewStatus
from feedback.shared.errors import InvariantViolation

logger = structlog.get_logger(__name__)


@feedback.command(part_of="Conflict")
class ResolveConflictAndCloseReview:
    conflict_id = Identifier(required=True)
    actor_role = String(required=True, max_length=30)
    resolver_id = Identifier(required=True)
    resolution_type = String(max_length=30)
    resolution_notes = Text()
    outcome = String(max_length=30, default=ConflictStatus.RESOLVED.value)  # RESOLVED or DISMISSED


@feedback.command_handler(part_of=Conflict)
class ResolveConflictHandler:
    @handle(ResolveConflictAndCloseReview)
    def resolve_conflict(self, command):
        conflict_repo = current_domain.repository_for(Conflict)
        review_repo = current_domain.repository_for(EventReview)

        conflict = conflict_repo.get_conflict(command.conflict_id)
        conflict.check_resolution(
            command.actor_role,
            command.resolution_type,
            command.resolution_notes,
            command.outcome,
        )

        review = review_repo.get_or_none(str(conflict.review_id))
        if review is None or ReviewStatus(review.status) != ReviewStatus.CONFLICT_OPEN:
            found = review.status if review is not None else "missing"
            logger.critical(
                "conflict_review_out_of_sync",
                alert=True,
                conflict_id=str(conflict.id),
                conflict_status=conflict.status,
                review_id=str(conflict.review_id),
                review_status=found,
            )
            raise InvariantViolation(
                f"Conflict {conflict.id} is {conflict.status} but review {conflict.review_id} is {found}",
                extra_info={"conflict_id": str(conflict.id), "review_id": str(conflict.review_id)},
            )

        conflict.resolve(
            actor_role=command.actor_role,
            resolver_id=command.resolver_id,
            resolution_type=command.resolution_type,
            resolution_notes=command.resolution_notes,
            outcome=command.outcome,
        )
        conflict_repo.add(conflict)

        review.close_dispute(conflict.id)
        review_repo.add(review)

        logger.info(
            "conflict_resolved",
            conflict_id=str(conflict.id),
            review_id=str(review.id),
            status=conflict.status,
            resolution_type=conflict.resolution_type,
        )

        return {"conflict": conflict.to_dict(), "review_status": review.status}
