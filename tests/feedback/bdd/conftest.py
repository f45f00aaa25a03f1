"""Shared BDD fixtures and step definitions for the Feedback domain."""

import pytest
from pytest_bdd import given, parsers, then

from feedback.conflict.conflict import Conflict
from feedback.conflict.events import ConflictOpened, ConflictResolved, ConflictUpdated
from feedback.review.events import (
    ReviewDisputeClosed,
    ReviewPlatformApproved,
    ReviewPublished,
    ReviewRejected,
    ReviewSubmitted,
)
from feedback.review.review import EventReview
from feedback.token.events import ReviewTokenIssued, ReviewTokenRedeemed
from feedback.token.token import ReviewToken

_EVENT_CLASSES = {
    "ReviewTokenIssued": ReviewTokenIssued,
    "ReviewTokenRedeemed": ReviewTokenRedeemed,
    "ReviewSubmitted": ReviewSubmitted,
    "ReviewPlatformApproved": ReviewPlatformApproved,
    "ReviewPublished": ReviewPublished,
    "ReviewRejected": ReviewRejected,
    "ReviewDisputeClosed": ReviewDisputeClosed,
    "ConflictOpened": ConflictOpened,
    "ConflictUpdated": ConflictUpdated,
    "ConflictResolved": ConflictResolved,
}

_TEXT_FOR_RATING = {
    1: {"complaint": "The course was never marked out."},
    2: {"complaint": "Kick-off was an hour late."},
    3: {"improvement_suggestion": "Post the schedule earlier."},
    4: {"content": "Well organised."},
    5: {"content": "Best regatta of the season."},
}


@pytest.fixture()
def error():
    """Container for captured domain errors."""
    return {"exc": None}


def submitted_review(rating):
    token, _ = ReviewToken.issue(event_id="evt-bdd", reviewer_club_id="club-visitor", target_club_id="club-host")
    review = EventReview.submit(token.context(), rating=rating, **_TEXT_FOR_RATING[rating])
    review._events.clear()
    return review


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('a review token for club "{reviewer}" reviewing club "{target}"'),
    target_fixture="token",
)
def review_token(reviewer, target):
    token, _ = ReviewToken.issue(event_id="evt-bdd", reviewer_club_id=reviewer, target_club_id=target)
    token._events.clear()
    return token


@given("a pending review", target_fixture="review")
def pending_review():
    return submitted_review(4)


@given("a review approved by a platform admin", target_fixture="review")
def platform_approved_review():
    review = submitted_review(5)
    review.approve(actor_role="PLATFORM_ADMIN", actor_id="ops-1")
    review._events.clear()
    return review


@given(parsers.cfparse("a disputed review with rating {rating:d}"), target_fixture="review")
def disputed_review(rating):
    return submitted_review(rating)


@given("the conflict opened for that review", target_fixture="conflict")
def conflict_for_review(review):
    conflict = Conflict.open_for(review)
    conflict._events.clear()
    return conflict


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the review status is "{status}"'))
def review_status_is(review, status):
    assert review.status == status


@then(parsers.cfparse('the conflict status is "{status}"'))
def conflict_status_is(conflict, status):
    assert conflict.status == status


@then(parsers.cfparse("the action is refused with {error_name}"))
def action_refused(error, error_name):
    assert error["exc"] is not None, f"Expected {error_name} but nothing was raised"
    assert type(error["exc"]).__name__ == error_name


@then(parsers.cfparse("a {event_type} event is raised on the review"))
def review_event_raised(review, event_type):
    event_cls = _EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in review._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in review._events]}"


@then(parsers.cfparse("a {event_type} event is raised on the conflict"))
def conflict_event_raised(conflict, event_type):
    event_cls = _EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in conflict._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in conflict._events]}"
