"""Email adapter factory.

Provides get_email() / set_email() to swap implementations:
- FakeEmailAdapter for development and testing
- an SMTP or provider-backed adapter in production
"""

from feedback.notification.email_port import EmailPort
from feedback.notification.fake_email import FakeEmailAdapter

_current_email: EmailPort | None = None


def get_email() -> EmailPort:
    """Return the current email adapter. Defaults to the in-memory fake."""
    global _current_email
    if _current_email is None:
        _current_email = FakeEmailAdapter()
    return _current_email


def set_email(adapter: EmailPort) -> None:
    """Override the active email adapter (useful for tests)."""
    global _current_email
    _current_email = adapter


def reset_email() -> None:
    """Reset to the default adapter."""
    global _current_email
    _current_email = None
