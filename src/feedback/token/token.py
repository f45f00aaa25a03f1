"""ReviewToken aggregate: single-use, time-limited review invitations.

A token authorises one reviewer club to review one target club for one
event. The raw value is handed out once at issuance (emailed as a link);
only its SHA-256 digest is stored and used as the aggregate identity.

Derived state:
    VALID        redeemed_at is null and now < expires_at
    EXPIRED      now >= expires_at (takes precedence over redemption)
    ALREADY_USED redeemed_at is set

Redemption is one-way. Tokens are never deleted.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier

from feedback.domain import feedback
from feedback.shared.errors import AlreadyUsed, Expired
from feedback.token.events import ReviewTokenIssued, ReviewTokenRedeemed

DEFAULT_VALIDITY_DAYS = 14


class TokenState(Enum):
    VALID = "VALID"
    EXPIRED = "EXPIRED"
    ALREADY_USED = "ALREADY_USED"
    NOT_FOUND = "NOT_FOUND"


def generate_raw_token() -> str:
    return secrets.token_hex(32)


def hash_token(raw_token: str) -> str:
    """Digest under which a raw token is stored and looked up."""
    return hashlib.sha256(str(raw_token).encode("utf-8")).hexdigest()


def _aware(value: datetime | None) -> datetime | None:
    # SQL providers may hand back naive datetimes; everything here is UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@dataclass(frozen=True)
class TokenContext:
    """What a token grants, as seen by the submission form and validator."""

    token_hash: str
    event_id: str
    reviewer_club_id: str
    target_club_id: str
    issued_at: datetime
    expires_at: datetime
    redeemed_at: datetime | None = None
    review_id: str | None = None
    state: TokenState = TokenState.VALID

    @property
    def valid(self) -> bool:
        return self.state == TokenState.VALID

    def to_dict(self) -> dict:
        return {
            "token_hash": self.token_hash,
            "event_id": self.event_id,
            "reviewer_club_id": self.reviewer_club_id,
            "target_club_id": self.target_club_id,
            "issued_at": self.issued_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "redeemed_at": self.redeemed_at.isoformat() if self.redeemed_at else None,
            "review_id": self.review_id,
            "state": self.state.value,
        }


@feedback.aggregate
class ReviewToken:
    """A single-use invitation to review a club after an event."""

    token_hash = Identifier(identifier=True)
    event_id = Identifier(required=True)
    reviewer_club_id = Identifier(required=True)
    target_club_id = Identifier(required=True)
    issued_at = DateTime(required=True)
    expires_at = DateTime(required=True)
    redeemed_at = DateTime()
    review_id = Identifier()

    @invariant.post
    def expiry_must_follow_issue(self):
        if self.issued_at and self.expires_at and _aware(self.expires_at) <= _aware(self.issued_at):
            raise ValidationError({"expires_at": ["Token must expire after it is issued"]})

    @invariant.post
    def review_requires_redemption(self):
        if self.review_id and self.redeemed_at is None:
            raise ValidationError({"review_id": ["A review can only be attached to a redeemed token"]})

    @invariant.post
    def reviewer_and_target_must_differ(self):
        if self.reviewer_club_id and str(self.reviewer_club_id) == str(self.target_club_id):
            raise ValidationError({"target_club_id": ["A club cannot review itself"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def issue(
        cls,
        event_id,
        reviewer_club_id,
        target_club_id,
        validity_days=DEFAULT_VALIDITY_DAYS,
        now=None,
    ):
        """Create a token. Returns ``(token, raw_token)``; the raw value is not kept."""
        now = now or datetime.now(UTC)
        raw_token = generate_raw_token()

        token = cls(
            token_hash=hash_token(raw_token),
            event_id=event_id,
            reviewer_club_id=reviewer_club_id,
            target_club_id=target_club_id,
            issued_at=now,
            expires_at=now + timedelta(days=int(validity_days)),
        )

        token.raise_(
            ReviewTokenIssued(
                token_hash=token.token_hash,
                event_id=str(event_id),
                reviewer_club_id=str(reviewer_club_id),
                target_club_id=str(target_club_id),
                issued_at=token.issued_at,
                expires_at=token.expires_at,
            )
        )

        return token, raw_token

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_expired(self, now=None) -> bool:
        now = now or datetime.now(UTC)
        return now >= _aware(self.expires_at)

    def state_at(self, now=None) -> TokenState:
        if self.is_expired(now):
            return TokenState.EXPIRED
        if self.redeemed_at is not None:
            return TokenState.ALREADY_USED
        return TokenState.VALID

    def is_redeemable(self, now=None) -> bool:
        return self.state_at(now) == TokenState.VALID

    def context(self, now=None, state=None) -> TokenContext:
        return TokenContext(
            token_hash=str(self.token_hash),
            event_id=str(self.event_id),
            reviewer_club_id=str(self.reviewer_club_id),
            target_club_id=str(self.target_club_id),
            issued_at=_aware(self.issued_at),
            expires_at=_aware(self.expires_at),
            redeemed_at=_aware(self.redeemed_at),
            review_id=str(self.review_id) if self.review_id else None,
            state=state or self.state_at(now),
        )

    # -------------------------------------------------------------------
    # Redemption
    # -------------------------------------------------------------------
    def ensure_redeemable(self, now=None):
        state = self.state_at(now)
        if state == TokenState.EXPIRED:
            raise Expired(f"Review token expired at {_aware(self.expires_at).isoformat()}")
        if state == TokenState.ALREADY_USED:
            raise AlreadyUsed(f"Review token was redeemed at {_aware(self.redeemed_at).isoformat()}")

    def redeem(self, now=None) -> TokenContext:
        """Mark the token redeemed. Fails with Expired or AlreadyUsed."""
        now = now or datetime.now(UTC)
        self.ensure_redeemable(now)

        self.redeemed_at = now

        self.raise_(
            ReviewTokenRedeemed(
                token_hash=str(self.token_hash),
                event_id=str(self.event_id),
                reviewer_club_id=str(self.reviewer_club_id),
                target_club_id=str(self.target_club_id),
                redeemed_at=now,
            )
        )

        # The caller holds the redemption it just made
        return self.context(now, state=TokenState.VALID)

    def ensure_open_for_submission(self, now=None):
        """A token accepts one review: unredeemed, or redeemed with no review yet."""
        if self.is_expired(now):
            raise Expired(f"Review token expired at {_aware(self.expires_at).isoformat()}")
        if self.review_id:
            raise AlreadyUsed(f"Review token already consumed by review {self.review_id}")

    def attach_review(self, review_id, now=None):
        """Consume the token for a review, redeeming it first if needed."""
        now = now or datetime.now(UTC)
        self.ensure_open_for_submission(now)
        if self.redeemed_at is None:
            self.redeem(now)
        self.review_id = review_id
