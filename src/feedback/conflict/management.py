"""UpdateConflict — platform admins move an open conflict through investigation.

Status can move freely between OPEN, IN_PROGRESS and AWAITING_RESPONSE;
priority and admin notes can be edited at any point before the conflict is
closed. Closing goes through ResolveConflict.
"""

import structlog
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from feedback.conflict.conflict import UNSET, Conflict
from feedback.domain import feedback

logger = structlog.get_logger(__name__)


@feedback.command(part_of="Conflict")
class UpdateConflict:
    conflict_id = Identifier(required=True)
    actor_role = String(required=True, max_length=30)
    actor_id = Identifier(required=True)
    status = String(max_length=30)
    priority = String(max_length=10)
    admin_notes = Text()


@feedback.command_handler(part_of=Conflict)
class UpdateConflictHandler:
    @handle(UpdateConflict)
    def update_conflict(self, command):
        repo = current_domain.repository_for(Conflict)
        conflict = repo.get_conflict(command.conflict_id)

        changed = conflict.update_details(
            actor_role=command.actor_role,
            actor_id=command.actor_id,
            status=command.status,
            priority=command.priority,
            admin_notes=command.admin_notes if command.admin_notes is not None else UNSET,
        )
        if changed:
            repo.add(conflict)

        logger.info(
            "conflict_updated",
            conflict_id=str(conflict.id),
            changed_fields=changed,
            status=conflict.status,
            priority=conflict.priority,
        )

        return {"conflict": conflict.to_dict(), "changed_fields": changed}
