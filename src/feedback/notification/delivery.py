"""Fire-and-forget email delivery.

A failed send is logged and never raised: the write that triggered the
email has already committed and must not be undone by a mail outage.
"""

import structlog

from feedback.notification import get_email

logger = structlog.get_logger(__name__)


def deliver(recipients, message: dict, **log_context) -> int:
    """Send ``message`` to each recipient. Returns the number of successful sends."""
    sent = 0
    adapter = get_email()
    for to in dict.fromkeys(recipients):
        try:
            result = adapter.send(to=to, subject=message["subject"], body=message["body"])
        except Exception as exc:
            logger.error("email_delivery_error", to=to, error=str(exc), **log_context)
            continue

        if result.get("status") == "sent":
            sent += 1
        else:
            logger.warning("email_delivery_failed", to=to, error=result.get("error"), **log_context)
    return sent
