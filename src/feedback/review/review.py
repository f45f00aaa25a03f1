"""EventReview aggregate: feedback one club leaves on another after an event.

The rating decides the single text field a review carries and where it
starts (see ``feedback.review.rules``). From there the publication workflow
needs two sign-offs, platform admin first and target club second:

    PENDING --(platform admin approve)--> SUPER_ADMIN_APPROVED
    PENDING --(platform admin reject)---> REJECTED
    SUPER_ADMIN_APPROVED --(target club approve)--> APPROVED
    SUPER_ADMIN_APPROVED --(target club reject)---> REJECTED
    CONFLICT_OPEN --(system, on conflict resolution)--> CONFLICT_RESOLVED

APPROVED, REJECTED and CONFLICT_RESOLVED are terminal. A rejected review
cannot be resubmitted.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from feedback.domain import feedback
from feedback.review.events import (
    ReviewDisputeClosed,
    ReviewPlatformApproved,
    ReviewPublished,
    ReviewRejected,
    ReviewSubmitted,
)
from feedback.review.rules import (
    TEXT_FIELDS,
    RatingBucket,
    bucket_for,
    normalized_text,
    rule_for,
    validate_submission,
)
from feedback.shared.errors import InvalidTransition, NotPermitted
from feedback.shared.roles import ActorRole, parse_role


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ReviewStatus(Enum):
    PENDING = "PENDING"
    SUPER_ADMIN_APPROVED = "SUPER_ADMIN_APPROVED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CONFLICT_OPEN = "CONFLICT_OPEN"
    CONFLICT_RESOLVED = "CONFLICT_RESOLVED"


class ReviewDecision(Enum):
    APPROVE = "approve"
    REJECT = "reject"
    CLOSE_DISPUTE = "close_dispute"


def parse_decision(value) -> ReviewDecision:
    if isinstance(value, ReviewDecision):
        return value
    try:
        return ReviewDecision(str(value).lower())
    except ValueError:
        allowed = ", ".join(d.value for d in ReviewDecision)
        raise ValidationError({"decision": [f"Unknown decision {value!r}; expected one of {allowed}"]}) from None


TERMINAL_STATUSES = frozenset({ReviewStatus.APPROVED, ReviewStatus.REJECTED, ReviewStatus.CONFLICT_RESOLVED})

_DISPUTE_STATUSES = frozenset({ReviewStatus.CONFLICT_OPEN, ReviewStatus.CONFLICT_RESOLVED})


# ---------------------------------------------------------------------------
# State Machine
# ---------------------------------------------------------------------------
# (actor role, from status, decision) -> to status. Anything missing is refused.
_TRANSITIONS = {
    (ActorRole.PLATFORM_ADMIN, ReviewStatus.PENDING, ReviewDecision.APPROVE): ReviewStatus.SUPER_ADMIN_APPROVED,
    (ActorRole.PLATFORM_ADMIN, ReviewStatus.PENDING, ReviewDecision.REJECT): ReviewStatus.REJECTED,
    (ActorRole.CLUB_ADMIN, ReviewStatus.SUPER_ADMIN_APPROVED, ReviewDecision.APPROVE): ReviewStatus.APPROVED,
    (ActorRole.CLUB_ADMIN, ReviewStatus.SUPER_ADMIN_APPROVED, ReviewDecision.REJECT): ReviewStatus.REJECTED,
    (ActorRole.SYSTEM, ReviewStatus.CONFLICT_OPEN, ReviewDecision.CLOSE_DISPUTE): ReviewStatus.CONFLICT_RESOLVED,
}


def next_status(actor_role, current_status, decision) -> ReviewStatus | None:
    """Target status for a decision, or None when the table has no such edge."""
    return _TRANSITIONS.get((parse_role(actor_role), ReviewStatus(current_status), parse_decision(decision)))


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@feedback.aggregate
class EventReview:
    """Feedback submitted through a review token."""

    # References (owned elsewhere)
    event_id = Identifier(required=True)
    reviewer_club_id = Identifier(required=True)
    target_club_id = Identifier(required=True)
    token_hash = Identifier(required=True)

    # Content
    rating = Integer(required=True, min_value=1, max_value=5)
    content = Text()
    complaint = Text()
    improvement_suggestion = Text()

    # Workflow
    status = String(choices=ReviewStatus, required=True)
    last_actor_role = String(choices=ActorRole)
    platform_decision_by = Identifier()
    platform_decided_at = DateTime()
    club_decision_by = Identifier()
    club_decided_at = DateTime()
    rejection_reason = Text()

    # Timestamps
    submitted_at = DateTime(required=True)
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def exactly_one_text_field_for_rating(self):
        if self.rating is None:
            return
        populated = [f for f in TEXT_FIELDS if getattr(self, f)]
        required = rule_for(self.rating).required_field
        if populated != [required]:
            raise ValidationError({required: [f"A rating of {self.rating} carries only {required}"]})

    @invariant.post
    def dispute_status_only_for_low_ratings(self):
        if self.rating is None or self.status is None:
            return
        disputed = ReviewStatus(self.status) in _DISPUTE_STATUSES
        if disputed != (bucket_for(self.rating) == RatingBucket.NEGATIVE):
            raise ValidationError({"status": [f"Status {self.status} does not match a rating of {self.rating}"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def submit(
        cls,
        context,
        rating,
        content=None,
        complaint=None,
        improvement_suggestion=None,
        now=None,
    ):
        """Build a review from a token context, starting where the rating says."""
        rule = validate_submission(
            rating,
            content=content,
            complaint=complaint,
            improvement_suggestion=improvement_suggestion,
        )
        text = normalized_text(
            rule,
            content=content,
            complaint=complaint,
            improvement_suggestion=improvement_suggestion,
        )
        now = now or datetime.now(UTC)

        review = cls(
            event_id=context.event_id,
            reviewer_club_id=context.reviewer_club_id,
            target_club_id=context.target_club_id,
            token_hash=context.token_hash,
            rating=rating,
            status=rule.initial_status,
            submitted_at=now,
            updated_at=now,
            **text,
        )

        review.raise_(
            ReviewSubmitted(
                review_id=str(review.id),
                event_id=str(review.event_id),
                reviewer_club_id=str(review.reviewer_club_id),
                target_club_id=str(review.target_club_id),
                rating=rating,
                content=review.content,
                complaint=review.complaint,
                improvement_suggestion=review.improvement_suggestion,
                status=review.status,
                submitted_at=now,
            )
        )

        return review

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return ReviewStatus(self.status) in TERMINAL_STATUSES

    @property
    def is_disputed(self) -> bool:
        return ReviewStatus(self.status) in _DISPUTE_STATUSES

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _transition_for(self, actor_role, decision, expected_status=None):
        """Resolve the target status or raise InvalidTransition.

        ``expected_status`` is the status the caller saw; if the review has
        moved on since, the decision is refused.
        """
        current = ReviewStatus(self.status)
        if expected_status is not None and ReviewStatus(expected_status) != current:
            raise InvalidTransition(f"Review {self.id} is {current.value}, expected {ReviewStatus(expected_status).value}")

        target = next_status(actor_role, current, decision)
        if target is None:
            role = parse_role(actor_role)
            raise InvalidTransition(
                f"{role.value} cannot {parse_decision(decision).value} a review in {current.value}"
            )
        return target

    def decide(
        self,
        actor_role,
        decision,
        actor_id,
        reason=None,
        actor_club_id=None,
        expected_status=None,
        now=None,
    ):
        """Apply an admin approve/reject decision."""
        decision = parse_decision(decision)
        if decision == ReviewDecision.CLOSE_DISPUTE:
            raise InvalidTransition("Disputed reviews are closed by resolving their conflict")

        role = parse_role(actor_role)
        current = ReviewStatus(self.status)
        target = self._transition_for(role, decision, expected_status)

        if role == ActorRole.CLUB_ADMIN and actor_club_id is not None and str(actor_club_id) != str(self.target_club_id):
            raise NotPermitted("Only admins of the reviewed club can decide on this review")

        now = now or datetime.now(UTC)

        with atomic_change(self):
            self.status = target.value
            self.last_actor_role = role.value
            self.updated_at = now
            if role == ActorRole.PLATFORM_ADMIN:
                self.platform_decision_by = actor_id
                self.platform_decided_at = now
            else:
                self.club_decision_by = actor_id
                self.club_decided_at = now
            if target == ReviewStatus.REJECTED:
                self.rejection_reason = reason

        if target == ReviewStatus.SUPER_ADMIN_APPROVED:
            self.raise_(
                ReviewPlatformApproved(
                    review_id=str(self.id),
                    target_club_id=str(self.target_club_id),
                    approved_by=str(actor_id),
                    approved_at=now,
                )
            )
        elif target == ReviewStatus.APPROVED:
            self.raise_(
                ReviewPublished(
                    review_id=str(self.id),
                    event_id=str(self.event_id),
                    reviewer_club_id=str(self.reviewer_club_id),
                    target_club_id=str(self.target_club_id),
                    rating=self.rating,
                    approved_by=str(actor_id),
                    published_at=now,
                )
            )
        else:
            self.raise_(
                ReviewRejected(
                    review_id=str(self.id),
                    target_club_id=str(self.target_club_id),
                    rejected_by=str(actor_id),
                    rejected_by_role=role.value,
                    previous_status=current.value,
                    reason=reason,
                    rejected_at=now,
                )
            )

        return target

    def approve(self, actor_role, actor_id, actor_club_id=None, now=None):
        return self.decide(actor_role, ReviewDecision.APPROVE, actor_id, actor_club_id=actor_club_id, now=now)

    def reject(self, actor_role, actor_id, reason=None, actor_club_id=None, now=None):
        return self.decide(
            actor_role,
            ReviewDecision.REJECT,
            actor_id,
            reason=reason,
            actor_club_id=actor_club_id,
            now=now,
        )

    def close_dispute(self, conflict_id, now=None):
        """CONFLICT_OPEN -> CONFLICT_RESOLVED. Only conflict resolution calls this."""
        target = self._transition_for(ActorRole.SYSTEM, ReviewDecision.CLOSE_DISPUTE)
        now = now or datetime.now(UTC)

        with atomic_change(self):
            self.status = target.value
            self.last_actor_role = ActorRole.SYSTEM.value
            self.updated_at = now

        self.raise_(
            ReviewDisputeClosed(
                review_id=str(self.id),
                conflict_id=str(conflict_id),
                target_club_id=str(self.target_club_id),
                closed_at=now,
            )
        )
