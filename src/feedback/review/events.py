"""Domain events for the EventReview aggregate.

All events are versioned, immutable facts. Projectors build the club
summaries and queues from them; event handlers send the notification
emails.
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from feedback.domain import feedback


@feedback.event(part_of="EventReview")
class ReviewSubmitted:
    """A reviewer club submitted feedback on a target club after an event."""

    __version__ = 1

    review_id = Identifier(required=True)
    event_id = Identifier(required=True)
    reviewer_club_id = Identifier(required=True)
    target_club_id = Identifier(required=True)
    rating = Integer(required=True)
    content = Text()
    complaint = Text()
    improvement_suggestion = Text()
    status = String(required=True)
    submitted_at = DateTime(required=True)


@feedback.event(part_of="EventReview")
class ReviewPlatformApproved:
    """A platform admin signed off; the target club now decides."""

    __version__ = 1

    review_id = Identifier(required=True)
    target_club_id = Identifier(required=True)
    approved_by = Identifier(required=True)
    approved_at = DateTime(required=True)


@feedback.event(part_of="EventReview")
class ReviewPublished:
    """The target club approved the review; it is now publicly visible."""

    __version__ = 1

    review_id = Identifier(required=True)
    event_id = Identifier(required=True)
    reviewer_club_id = Identifier(required=True)
    target_club_id = Identifier(required=True)
    rating = Integer(required=True)
    approved_by = Identifier(required=True)
    published_at = DateTime(required=True)


@feedback.event(part_of="EventReview")
class ReviewRejected:
    """A platform admin or the target club declined to publish the review."""

    __version__ = 1

    review_id = Identifier(required=True)
    target_club_id = Identifier(required=True)
    rejected_by = Identifier(required=True)
    rejected_by_role = String(required=True)
    previous_status = String(required=True)
    reason = Text()
    rejected_at = DateTime(required=True)


@feedback.event(part_of="EventReview")
class ReviewDisputeClosed:
    """The review's conflict was resolved or dismissed."""

    __version__ = 1

    review_id = Identifier(required=True)
    conflict_id = Identifier(required=True)
    target_club_id = Identifier(required=True)
    closed_at = DateTime(required=True)
