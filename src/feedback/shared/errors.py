"""Error taxonomy for the feedback domain.

Every error carries a stable ``code``. Errors are layered on Protean's own
exception hierarchy (validation, not-found, invalid-state) so that generic
handlers keep working; the API maps the codes to responses.
"""

from protean.exceptions import (
    InvalidStateError,
    ObjectNotFoundError,
    ProteanException,
    ValidationError,
)

ALREADY_HANDLED = "This was already handled."
NOT_PERMITTED = "You are not allowed to take this action."


class FeedbackError(Exception):
    """Base for all feedback errors.

    ``public_message`` is shown to end users in place of the technical
    message when it is set.
    """

    code = "FEEDBACK_ERROR"
    public_message: str | None = None

    @property
    def message(self) -> str:
        return self.public_message or str(self)


# ---------------------------------------------------------------------------
# Token store
# ---------------------------------------------------------------------------
class NotFound(FeedbackError, ObjectNotFoundError):
    code = "NOT_FOUND"

    def __init__(self, kind: str, identifier: str | None = None):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found", extra_info={"kind": kind, "identifier": identifier})

    @property
    def public_message(self) -> str:
        if self.kind == "ReviewToken":
            return "This review link is not valid. Please check the link in your invitation email."
        return f"{self.kind} not found."


class Expired(FeedbackError, InvalidStateError):
    code = "EXPIRED"
    public_message = "This review link has expired. Review invitations are only valid for a limited time."


class AlreadyUsed(FeedbackError, InvalidStateError):
    code = "ALREADY_USED"
    public_message = "This review link has already been used. Each invitation allows a single review."


class InvalidReference(FeedbackError, ValidationError):
    code = "INVALID_REFERENCE"


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------
class InvalidRating(FeedbackError, ValidationError):
    code = "INVALID_RATING"

    def __init__(self, rating):
        self.rating = rating
        super().__init__({"rating": [f"Rating must be a whole number between 1 and 5, got {rating!r}"]})


class MissingRequiredField(FeedbackError, ValidationError):
    code = "MISSING_REQUIRED_FIELD"

    def __init__(self, field: str, reason: str | None = None):
        self.field = field
        super().__init__({field: [reason or f"{field} is required"]})


class UnexpectedField(FeedbackError, ValidationError):
    code = "UNEXPECTED_FIELD"

    def __init__(self, field: str, reason: str | None = None):
        self.field = field
        super().__init__({field: [reason or f"{field} is not accepted here"]})


# ---------------------------------------------------------------------------
# Lifecycle guards
# ---------------------------------------------------------------------------
class InvalidTransition(FeedbackError, InvalidStateError):
    code = "INVALID_TRANSITION"
    public_message = ALREADY_HANDLED


class NotPermitted(InvalidTransition):
    """The actor's role does not allow the action, whatever the state."""

    public_message = NOT_PERMITTED


class ConflictAlreadyClosed(FeedbackError, InvalidStateError):
    code = "CONFLICT_ALREADY_CLOSED"
    public_message = ALREADY_HANDLED


class MissingResolutionType(FeedbackError, ValidationError):
    code = "MISSING_RESOLUTION_TYPE"

    def __init__(self):
        super().__init__({"resolution_type": ["A resolution type is required to close a conflict"]})


class InvariantViolation(FeedbackError, ProteanException):
    """Cross-aggregate state that should be unreachable. Always alert on it."""

    code = "INVARIANT_VIOLATION"
    public_message = "An internal consistency error occurred. The platform team has been alerted."
