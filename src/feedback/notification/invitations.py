"""Review invitations — email each issued token to the reviewer club's admins.

Raw tokens exist only in the issuance result, so invitations are sent by
whoever issued them, straight from that result.
"""

import structlog
from protean.utils.globals import current_domain

from feedback.directory import get_directory
from feedback.notification.delivery import deliver
from feedback.notification.templates import ReviewInvitationTemplate

logger = structlog.get_logger(__name__)

DEFAULT_LINK_BASE_URL = "http://localhost:3000/reviews"


def review_link(raw_token: str) -> str:
    custom = current_domain.config.get("custom", {}) or {}
    base_url = str(custom.get("REVIEW_LINK_BASE_URL", DEFAULT_LINK_BASE_URL)).rstrip("/")
    return f"{base_url}/{raw_token}"


def send_review_invitations(issued: list[dict]) -> int:
    """Send one invitation per issued token. Returns the number of emails sent."""
    directory = get_directory()
    sent = 0
    for item in issued:
        reviewer_club_id = str(item["reviewer_club_id"])
        target_club_id = str(item["target_club_id"])
        event = directory.get_event(str(item["event_id"]))
        expires_at = item["expires_at"]

        message = ReviewInvitationTemplate.render(
            {
                "event_name": event.name if event else str(item["event_id"]),
                "reviewer_club_name": directory.club_name(reviewer_club_id),
                "target_club_name": directory.club_name(target_club_id),
                "link": review_link(item["token"]),
                "expires_on": expires_at.date().isoformat() if hasattr(expires_at, "date") else str(expires_at),
            }
        )
        sent += deliver(
            directory.club_admin_emails(reviewer_club_id),
            message,
            token_hash=item["token_hash"],
        )

    logger.info("review_invitations_sent", tokens=len(issued), emails=sent)
    return sent
