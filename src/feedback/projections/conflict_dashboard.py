"""ConflictDashboard — conflicts as platform admins triage them."""

from protean.core.projector import on
from protean.fields import DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from feedback.conflict.conflict import Conflict
from feedback.conflict.events import ConflictOpened, ConflictResolved, ConflictUpdated
from feedback.domain import feedback


@feedback.projection
class ConflictDashboard:
    conflict_id = Identifier(identifier=True, required=True)
    review_id = Identifier(required=True)
    event_id = Identifier(required=True)
    complainant_club_id = Identifier(required=True)
    respondent_club_id = Identifier(required=True)
    rating = Integer()
    complaint = Text()
    status = String(required=True)
    priority = String(required=True)
    admin_notes = Text()
    resolution_type = String()
    resolution_notes = Text()
    resolved_by = Identifier()
    opened_at = DateTime()
    updated_at = DateTime()
    resolved_at = DateTime()


@feedback.projector(projector_for=ConflictDashboard, aggregates=[Conflict])
class ConflictDashboardProjector:
    @on(ConflictOpened)
    def on_conflict_opened(self, event):
        current_domain.repository_for(ConflictDashboard).add(
            ConflictDashboard(
                conflict_id=event.conflict_id,
                review_id=event.review_id,
                event_id=event.event_id,
                complainant_club_id=event.complainant_club_id,
                respondent_club_id=event.respondent_club_id,
                rating=event.rating,
                complaint=event.complaint,
                status=event.status,
                priority=event.priority,
                opened_at=event.opened_at,
                updated_at=event.opened_at,
            )
        )

    @on(ConflictUpdated)
    def on_conflict_updated(self, event):
        repo = current_domain.repository_for(ConflictDashboard)
        row = repo.get_or_none(str(event.conflict_id))
        if row is None:
            return
        row.status = event.status
        row.priority = event.priority
        row.admin_notes = event.admin_notes
        row.updated_at = event.updated_at
        repo.add(row)

    @on(ConflictResolved)
    def on_conflict_resolved(self, event):
        repo = current_domain.repository_for(ConflictDashboard)
        row = repo.get_or_none(str(event.conflict_id))
        if row is None:
            return
        row.status = event.status
        row.resolution_type = event.resolution_type
        row.resolution_notes = event.resolution_notes
        row.resolved_by = event.resolved_by
        row.resolved_at = event.resolved_at
        row.updated_at = event.resolved_at
        repo.add(row)
