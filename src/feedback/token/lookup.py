"""Read-only token checks used to render or deny the review form."""

from protean.utils.globals import current_domain

from feedback.directory import get_directory
from feedback.shared.errors import AlreadyUsed, Expired, NotFound
from feedback.token.token import ReviewToken, TokenState


def validate_token(raw_token: str, now=None) -> dict:
    """Report whether a raw token can be used, without touching it.

    Returns ``{"valid", "state", "reason", ...context}``. Unknown tokens are
    reported as ``NOT_FOUND`` rather than raised, so the form can show the
    matching message.
    """
    repo = current_domain.repository_for(ReviewToken)
    try:
        token = repo.get_by_raw_token(raw_token)
    except NotFound as exc:
        return {
            "valid": False,
            "state": TokenState.NOT_FOUND.value,
            "reason": exc.public_message,
        }

    context = token.context(now)
    directory = get_directory()
    event = directory.get_event(context.event_id)

    return {
        "valid": context.valid,
        "state": context.state.value,
        "reason": _reason_for(context.state),
        "event_id": context.event_id,
        "event_name": event.name if event else None,
        "reviewer_club_id": context.reviewer_club_id,
        "reviewer_club_name": directory.club_name(context.reviewer_club_id),
        "target_club_id": context.target_club_id,
        "target_club_name": directory.club_name(context.target_club_id),
        "expires_at": context.expires_at,
    }


def _reason_for(state: TokenState) -> str | None:
    if state == TokenState.EXPIRED:
        return Expired.public_message
    if state == TokenState.ALREADY_USED:
        return AlreadyUsed.public_message
    return None
