"""Repository for the ReviewToken aggregate."""

from feedback.domain import feedback
from feedback.shared.errors import NotFound
from feedback.token.token import ReviewToken, hash_token


@feedback.repository(part_of=ReviewToken)
class ReviewTokenRepository:
    def get_by_raw_token(self, raw_token: str) -> ReviewToken:
        """Load a token from the raw value a reviewer presents. Raises NotFound."""
        token = self.get_or_none(hash_token(raw_token)) if raw_token else None
        if token is None:
            raise NotFound("ReviewToken")
        return token

    def exists_for_pair(self, event_id, reviewer_club_id, target_club_id) -> bool:
        return bool(
            self.query.filter(
                event_id=str(event_id),
                reviewer_club_id=str(reviewer_club_id),
                target_club_id=str(target_club_id),
            )
            .all()
            .items
        )

    def for_event(self, event_id) -> list[ReviewToken]:
        return self.query.filter(event_id=str(event_id)).order_by("issued_at").all().items
