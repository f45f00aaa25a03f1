"""Domain events for the ReviewToken aggregate.

Raw token values never appear in events; only the stored digest does.
"""

from protean.fields import DateTime, Identifier

from feedback.domain import feedback


@feedback.event(part_of="ReviewToken")
class ReviewTokenIssued:
    """A review invitation was issued for an event/club pair."""

    __version__ = 1

    token_hash = Identifier(required=True)
    event_id = Identifier(required=True)
    reviewer_club_id = Identifier(required=True)
    target_club_id = Identifier(required=True)
    issued_at = DateTime(required=True)
    expires_at = DateTime(required=True)


@feedback.event(part_of="ReviewToken")
class ReviewTokenRedeemed:
    """A review invitation was redeemed and can no longer be redeemed again."""

    __version__ = 1

    token_hash = Identifier(required=True)
    event_id = Identifier(required=True)
    reviewer_club_id = Identifier(required=True)
    target_club_id = Identifier(required=True)
    redeemed_at = DateTime(required=True)
