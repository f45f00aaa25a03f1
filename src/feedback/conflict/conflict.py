"""Conflict aggregate: the dispute opened by a low-rated review.

One conflict per review with a rating of 1 or 2, created in the same
transaction as the review. Platform admins investigate it and eventually
close it, which is also the only way the review leaves CONFLICT_OPEN.

State Machine (5 states):
    OPEN <-> IN_PROGRESS <-> AWAITING_RESPONSE   (free movement, any order)
    any of the above -> RESOLVED | DISMISSED    (with resolution type + notes)
    RESOLVED, DISMISSED -> (terminal)

Priority and admin notes are metadata; they can change while the conflict
is open and carry no transition rules of their own. The resolution type is
independent of the closing status: a conflict can be RESOLVED with a
DISMISSED resolution type, or DISMISSED with MEDIATED.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text

from feedback.conflict.events import ConflictOpened, ConflictResolved, ConflictUpdated
from feedback.domain import feedback
from feedback.review.review import ReviewStatus
from feedback.shared.errors import (
    ConflictAlreadyClosed,
    InvalidTransition,
    MissingRequiredField,
    MissingResolutionType,
    NotPermitted,
)
from feedback.shared.roles import ActorRole, parse_role

# Sentinel for distinguishing "not provided" from None in partial updates
UNSET = object()


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ConflictStatus(Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    AWAITING_RESPONSE = "AWAITING_RESPONSE"
    RESOLVED = "RESOLVED"
    DISMISSED = "DISMISSED"


class ConflictPriority(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class ResolutionType(Enum):
    MEDIATED = "MEDIATED"
    REFUND_ISSUED = "REFUND_ISSUED"
    APOLOGY_ISSUED = "APOLOGY_ISSUED"
    NO_ACTION = "NO_ACTION"
    WARNING_ISSUED = "WARNING_ISSUED"
    DISMISSED = "DISMISSED"


ACTIVE_STATUSES = frozenset({ConflictStatus.OPEN, ConflictStatus.IN_PROGRESS, ConflictStatus.AWAITING_RESPONSE})
CLOSED_STATUSES = frozenset({ConflictStatus.RESOLVED, ConflictStatus.DISMISSED})

DEFAULT_PRIORITY = ConflictPriority.MEDIUM

_RESOLUTION_FIELDS = ("resolution_type", "resolution_notes", "resolved_at", "resolved_by")


def parse_choice(enum_cls, value, field):
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError({field: [f"Unknown {field} {value!r}; expected one of {allowed}"]}) from None


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@feedback.aggregate
class Conflict:
    """A tracked dispute between the reviewing club and the reviewed club."""

    review_id = Identifier(required=True)
    event_id = Identifier(required=True)
    complainant_club_id = Identifier(required=True)
    respondent_club_id = Identifier(required=True)

    status = String(choices=ConflictStatus, default=ConflictStatus.OPEN.value)
    priority = String(choices=ConflictPriority, default=DEFAULT_PRIORITY.value)
    admin_notes = Text()

    # Resolution
    resolution_type = String(choices=ResolutionType)
    resolution_notes = Text()
    resolved_at = DateTime()
    resolved_by = Identifier()

    # Timestamps
    opened_at = DateTime(required=True)
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def resolution_recorded_only_when_closed(self):
        if self.status is None:
            return
        closed = ConflictStatus(self.status) in CLOSED_STATUSES
        for field in _RESOLUTION_FIELDS:
            present = bool(getattr(self, field))
            if present != closed:
                state = "required once" if closed else "only allowed once"
                raise ValidationError({field: [f"{field} is {state} the conflict is closed"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def open_for(cls, review, priority=DEFAULT_PRIORITY, now=None):
        """Open the conflict for a review that has just entered CONFLICT_OPEN."""
        if ReviewStatus(review.status) != ReviewStatus.CONFLICT_OPEN:
            raise ValidationError({"review_id": [f"Review {review.id} is {review.status}, not CONFLICT_OPEN"]})

        now = now or datetime.now(UTC)
        priority = parse_choice(ConflictPriority, priority.value if isinstance(priority, Enum) else priority, "priority")

        conflict = cls(
            review_id=review.id,
            event_id=review.event_id,
            complainant_club_id=review.reviewer_club_id,
            respondent_club_id=review.target_club_id,
            status=ConflictStatus.OPEN.value,
            priority=priority.value,
            opened_at=now,
            updated_at=now,
        )

        conflict.raise_(
            ConflictOpened(
                conflict_id=str(conflict.id),
                review_id=str(review.id),
                event_id=str(review.event_id),
                complainant_club_id=str(review.reviewer_club_id),
                respondent_club_id=str(review.target_club_id),
                rating=review.rating,
                complaint=review.complaint,
                status=conflict.status,
                priority=conflict.priority,
                opened_at=now,
            )
        )

        return conflict

    # -------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------
    @property
    def is_closed(self) -> bool:
        return ConflictStatus(self.status) in CLOSED_STATUSES

    def _ensure_open(self):
        if self.is_closed:
            raise ConflictAlreadyClosed(f"Conflict {self.id} is already {self.status}")

    def _ensure_platform_admin(self, actor_role):
        if parse_role(actor_role) != ActorRole.PLATFORM_ADMIN:
            raise NotPermitted("Only platform admins can manage conflicts")

    # -------------------------------------------------------------------
    # Investigation
    # -------------------------------------------------------------------
    def update_details(self, actor_role, actor_id, status=None, priority=None, admin_notes=UNSET, now=None):
        """Edit status (among the open ones), priority or notes.

        Returns the names of the fields that changed.
        """
        self._ensure_open()
        self._ensure_platform_admin(actor_role)

        changes = {}
        if status is not None:
            new_status = parse_choice(ConflictStatus, status, "status")
            if new_status in CLOSED_STATUSES:
                raise InvalidTransition(
                    f"Conflicts are closed by resolving them, not by setting status {new_status.value}"
                )
            if new_status.value != self.status:
                changes["status"] = new_status.value
        if priority is not None:
            new_priority = parse_choice(ConflictPriority, priority, "priority")
            if new_priority.value != self.priority:
                changes["priority"] = new_priority.value
        if admin_notes is not UNSET and admin_notes != self.admin_notes:
            changes["admin_notes"] = admin_notes

        if not changes:
            return []

        now = now or datetime.now(UTC)
        with atomic_change(self):
            for field, value in changes.items():
                setattr(self, field, value)
            self.updated_at = now

        self.raise_(
            ConflictUpdated(
                conflict_id=str(self.id),
                review_id=str(self.review_id),
                status=self.status,
                priority=self.priority,
                admin_notes=self.admin_notes,
                changed_fields=json.dumps(sorted(changes)),
                updated_by=str(actor_id),
                updated_at=now,
            )
        )

        return sorted(changes)

    # -------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------
    def check_resolution(self, actor_role, resolution_type, resolution_notes, outcome=ConflictStatus.RESOLVED):
        """Validate a resolution request without changing anything.

        Returns the parsed ``(resolution_type, outcome)``.
        """
        self._ensure_open()
        self._ensure_platform_admin(actor_role)

        if not resolution_type:
            raise MissingResolutionType()
        resolution = parse_choice(ResolutionType, resolution_type, "resolution_type")

        if resolution_notes is None or not str(resolution_notes).strip():
            raise MissingRequiredField("resolution_notes", "Resolution notes are required to close a conflict")

        closing_status = parse_choice(
            ConflictStatus,
            outcome.value if isinstance(outcome, Enum) else (outcome or ConflictStatus.RESOLVED.value),
            "outcome",
        )
        if closing_status not in CLOSED_STATUSES:
            raise InvalidTransition(f"A conflict can only be closed as RESOLVED or DISMISSED, not {closing_status.value}")

        return resolution, closing_status

    def resolve(
        self,
        actor_role,
        resolver_id,
        resolution_type,
        resolution_notes,
        outcome=ConflictStatus.RESOLVED,
        now=None,
    ):
        """Close the conflict. The linked review must be closed in the same transaction."""
        resolution, closing_status = self.check_resolution(actor_role, resolution_type, resolution_notes, outcome)
        now = now or datetime.now(UTC)

        with atomic_change(self):
            self.status = closing_status.value
            self.resolution_type = resolution.value
            self.resolution_notes = str(resolution_notes).strip()
            self.resolved_by = resolver_id
            self.resolved_at = now
            self.updated_at = now

        self.raise_(
            ConflictResolved(
                conflict_id=str(self.id),
                review_id=str(self.review_id),
                complainant_club_id=str(self.complainant_club_id),
                respondent_club_id=str(self.respondent_club_id),
                status=self.status,
                resolution_type=self.resolution_type,
                resolution_notes=self.resolution_notes,
                resolved_by=str(resolver_id),
                resolved_at=now,
            )
        )
