"""Repository for the Conflict aggregate."""

from feedback.conflict.conflict import Conflict
from feedback.domain import feedback
from feedback.shared.errors import NotFound


@feedback.repository(part_of=Conflict)
class ConflictRepository:
    def get_conflict(self, conflict_id) -> Conflict:
        """Load a conflict or raise NotFound."""
        conflict = self.get_or_none(str(conflict_id)) if conflict_id else None
        if conflict is None:
            raise NotFound("Conflict", str(conflict_id))
        return conflict

    def for_review(self, review_id) -> Conflict | None:
        return self.query.filter(review_id=str(review_id)).all().first
