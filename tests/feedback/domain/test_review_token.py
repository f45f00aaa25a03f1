"""Tests for the ReviewToken aggregate: issuance, derived state and redemption."""

from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError

from feedback.shared.errors import AlreadyUsed, Expired
from feedback.token.events import ReviewTokenIssued, ReviewTokenRedeemed
from feedback.token.token import ReviewToken, TokenState, hash_token

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)


def _issue(now=NOW, validity_days=14):
    token, raw = ReviewToken.issue(
        event_id="evt-001",
        reviewer_club_id="club-a",
        target_club_id="club-b",
        validity_days=validity_days,
        now=now,
    )
    return token, raw


class TestIssue:
    def test_raw_token_is_64_hex_chars(self):
        _, raw = _issue()
        assert len(raw) == 64
        int(raw, 16)

    def test_only_the_hash_is_stored(self):
        token, raw = _issue()
        assert token.token_hash == hash_token(raw)
        assert raw not in token.to_dict().values()

    def test_tokens_are_unique(self):
        raws = {_issue()[1] for _ in range(20)}
        assert len(raws) == 20

    def test_expiry_window(self):
        token, _ = _issue(validity_days=3)
        assert token.expires_at == NOW + timedelta(days=3)

    def test_raises_issued_event(self):
        token, _ = _issue()
        assert len(token._events) == 1
        event = token._events[0]
        assert isinstance(event, ReviewTokenIssued)
        assert event.token_hash == token.token_hash

    def test_club_cannot_review_itself(self):
        with pytest.raises(ValidationError) as exc:
            ReviewToken.issue(event_id="evt-001", reviewer_club_id="club-a", target_club_id="club-a", now=NOW)
        assert "target_club_id" in exc.value.messages


class TestState:
    def test_fresh_token_is_valid(self):
        token, _ = _issue()
        assert token.state_at(NOW + timedelta(days=1)) == TokenState.VALID
        assert token.is_redeemable(NOW + timedelta(days=1))

    def test_expired_at_exact_expiry(self):
        token, _ = _issue()
        assert token.state_at(token.expires_at) == TokenState.EXPIRED

    def test_redeemed_token_is_already_used(self):
        token, _ = _issue()
        token.redeem(NOW + timedelta(hours=1))
        assert token.state_at(NOW + timedelta(hours=2)) == TokenState.ALREADY_USED

    def test_expiry_wins_over_redemption(self):
        token, _ = _issue()
        token.redeem(NOW + timedelta(hours=1))
        assert token.state_at(NOW + timedelta(days=30)) == TokenState.EXPIRED


class TestRedeem:
    def test_redeem_sets_timestamp_and_returns_context(self):
        token, _ = _issue()
        token._events.clear()
        when = NOW + timedelta(hours=1)

        context = token.redeem(when)

        assert token.redeemed_at == when
        assert context.valid
        assert context.event_id == "evt-001"
        assert context.reviewer_club_id == "club-a"
        assert context.target_club_id == "club-b"
        assert isinstance(token._events[0], ReviewTokenRedeemed)

    def test_second_redeem_fails(self):
        token, _ = _issue()
        token.redeem(NOW + timedelta(hours=1))
        with pytest.raises(AlreadyUsed):
            token.redeem(NOW + timedelta(hours=2))

    def test_expired_token_cannot_be_redeemed(self):
        token, _ = _issue()
        with pytest.raises(Expired):
            token.redeem(NOW + timedelta(days=15))

    def test_expired_and_redeemed_reports_expired(self):
        token, _ = _issue()
        token.redeem(NOW + timedelta(hours=1))
        with pytest.raises(Expired):
            token.redeem(NOW + timedelta(days=15))


class TestAttachReview:
    def test_attach_redeems_unredeemed_token(self):
        token, _ = _issue()
        token.attach_review("rev-1", NOW + timedelta(hours=1))
        assert token.redeemed_at == NOW + timedelta(hours=1)
        assert token.review_id == "rev-1"

    def test_attach_to_redeemed_token_keeps_redemption_time(self):
        token, _ = _issue()
        token.redeem(NOW + timedelta(hours=1))
        token.attach_review("rev-1", NOW + timedelta(hours=3))
        assert token.redeemed_at == NOW + timedelta(hours=1)

    def test_second_review_is_refused(self):
        token, _ = _issue()
        token.attach_review("rev-1", NOW + timedelta(hours=1))
        with pytest.raises(AlreadyUsed):
            token.ensure_open_for_submission(NOW + timedelta(hours=2))

    def test_expired_token_is_closed_for_submission(self):
        token, _ = _issue()
        with pytest.raises(Expired):
            token.ensure_open_for_submission(NOW + timedelta(days=14))

    def test_review_without_redemption_violates_invariant(self):
        token, _ = _issue()
        with pytest.raises(ValidationError):
            token.review_id = "rev-1"
