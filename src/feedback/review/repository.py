"""Repository for the EventReview aggregate."""

from feedback.domain import feedback
from feedback.review.review import EventReview
from feedback.shared.errors import NotFound


@feedback.repository(part_of=EventReview)
class EventReviewRepository:
    def get_review(self, review_id) -> EventReview:
        """Load a review or raise NotFound."""
        review = self.get_or_none(str(review_id)) if review_id else None
        if review is None:
            raise NotFound("EventReview", str(review_id))
        return review

    def find_by_token(self, token_hash) -> EventReview | None:
        return self.query.filter(token_hash=str(token_hash)).all().first

    def for_target_club(self, club_id) -> list[EventReview]:
        return self.query.filter(target_club_id=str(club_id)).order_by("-submitted_at").all().items
