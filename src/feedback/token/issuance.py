"""IssueReviewToken / IssueEventReviewTokens — hand out review invitations.

Event, reviewer club and target club must exist in the club directory.
The bulk command covers a whole concluded event: the host club reviews
each visiting club and each visiting club reviews the host. Pairs that
already hold a token are skipped, so re-running it is safe.
"""

import json

import structlog
from protean.fields import Identifier, Integer, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from feedback.directory import get_directory
from feedback.domain import feedback
from feedback.shared.errors import InvalidReference
from feedback.token.token import DEFAULT_VALIDITY_DAYS, ReviewToken

logger = structlog.get_logger(__name__)


@feedback.command(part_of="ReviewToken")
class IssueReviewToken:
    event_id = Identifier(required=True)
    reviewer_club_id = Identifier(required=True)
    target_club_id = Identifier(required=True)
    validity_days = Integer(min_value=1)


@feedback.command(part_of="ReviewToken")
class IssueEventReviewTokens:
    event_id = Identifier(required=True)
    host_club_id = Identifier(required=True)
    visiting_club_ids = Text(required=True)  # JSON array of club ids
    validity_days = Integer(min_value=1)


def configured_validity_days() -> int:
    """Token window from the domain's custom config, defaulting to 14 days."""
    custom = current_domain.config.get("custom", {}) or {}
    return int(custom.get("REVIEW_TOKEN_VALIDITY_DAYS", DEFAULT_VALIDITY_DAYS))


def check_references(event_id, reviewer_club_id, target_club_id):
    """Raise InvalidReference unless the directory knows all three ids."""
    directory = get_directory()
    errors = {}

    if not directory.event_exists(str(event_id)):
        errors["event_id"] = [f"Unknown event {event_id}"]
    if not directory.club_exists(str(reviewer_club_id)):
        errors["reviewer_club_id"] = [f"Unknown club {reviewer_club_id}"]
    if not directory.club_exists(str(target_club_id)):
        errors["target_club_id"] = [f"Unknown club {target_club_id}"]
    if str(reviewer_club_id) == str(target_club_id):
        errors.setdefault("target_club_id", []).append("A club cannot review itself")

    if errors:
        raise InvalidReference(errors)


def _issue(repo, event_id, reviewer_club_id, target_club_id, validity_days):
    token, raw_token = ReviewToken.issue(
        event_id=event_id,
        reviewer_club_id=reviewer_club_id,
        target_club_id=target_club_id,
        validity_days=validity_days,
    )
    repo.add(token)

    logger.info(
        "review_token_issued",
        token_hash=token.token_hash,
        event_id=str(event_id),
        reviewer_club_id=str(reviewer_club_id),
        target_club_id=str(target_club_id),
    )

    return {
        "token": raw_token,
        "token_hash": token.token_hash,
        "event_id": str(event_id),
        "reviewer_club_id": str(reviewer_club_id),
        "target_club_id": str(target_club_id),
        "expires_at": token.expires_at,
    }


@feedback.command_handler(part_of=ReviewToken)
class IssueReviewTokenHandler:
    @handle(IssueReviewToken)
    def issue_review_token(self, command):
        check_references(command.event_id, command.reviewer_club_id, command.target_club_id)

        repo = current_domain.repository_for(ReviewToken)
        return _issue(
            repo,
            command.event_id,
            command.reviewer_club_id,
            command.target_club_id,
            command.validity_days or configured_validity_days(),
        )

    @handle(IssueEventReviewTokens)
    def issue_event_review_tokens(self, command):
        visiting_club_ids = json.loads(command.visiting_club_ids) if command.visiting_club_ids else []
        host_club_id = str(command.host_club_id)

        pairs = []
        for visitor in visiting_club_ids:
            visitor = str(visitor)
            if visitor == host_club_id:
                continue
            pairs.append((host_club_id, visitor))
            pairs.append((visitor, host_club_id))

        for reviewer, target in pairs:
            check_references(command.event_id, reviewer, target)

        repo = current_domain.repository_for(ReviewToken)
        validity_days = command.validity_days or configured_validity_days()

        issued = []
        skipped = 0
        for reviewer, target in pairs:
            if repo.exists_for_pair(command.event_id, reviewer, target):
                skipped += 1
                continue
            issued.append(_issue(repo, command.event_id, reviewer, target, validity_days))

        logger.info(
            "event_review_tokens_issued",
            event_id=str(command.event_id),
            issued=len(issued),
            skipped=skipped,
        )
        return {"event_id": str(command.event_id), "issued": issued, "skipped": skipped}
