"""Domain events for the Conflict aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from feedback.domain import feedback


@feedback.event(part_of="Conflict")
class ConflictOpened:
    """A low rating opened a dispute between the two clubs."""

    __version__ = 1

    conflict_id = Identifier(required=True)
    review_id = Identifier(required=True)
    event_id = Identifier(required=True)
    complainant_club_id = Identifier(required=True)
    respondent_club_id = Identifier(required=True)
    rating = Integer(required=True)
    complaint = Text(required=True)
    status = String(required=True)
    priority = String(required=True)
    opened_at = DateTime(required=True)


@feedback.event(part_of="Conflict")
class ConflictUpdated:
    """A platform admin changed the investigation status, priority or notes."""

    __version__ = 1

    conflict_id = Identifier(required=True)
    review_id = Identifier(required=True)
    status = String(required=True)
    priority = String(required=True)
    admin_notes = Text()
    changed_fields = Text(required=True)  # JSON array of field names
    updated_by = Identifier(required=True)
    updated_at = DateTime(required=True)


@feedback.event(part_of="Conflict")
class ConflictResolved:
    """A platform admin closed the conflict as RESOLVED or DISMISSED."""

    __version__ = 1

    conflict_id = Identifier(required=True)
    review_id = Identifier(required=True)
    complainant_club_id = Identifier(required=True)
    respondent_club_id = Identifier(required=True)
    status = String(required=True)
    resolution_type = String(required=True)
    resolution_notes = Text(required=True)
    resolved_by = Identifier(required=True)
    resolved_at = DateTime(required=True)
