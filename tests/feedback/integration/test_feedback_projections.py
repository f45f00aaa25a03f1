"""Integration tests for the feedback read models and queries."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from feedback.conflict.management import UpdateConflict
from feedback.conflict.resolution import ResolveConflictAndCloseReview
from feedback.projections.club_review_listing import ClubReviewListing
from feedback.projections.club_review_summary import ClubReviewSummary, recalculate_average
from feedback.projections.conflict_dashboard import ConflictDashboard
from feedback.projections.moderation_queue import ModerationQueue
from feedback.projections.queries import (
    conflict_stats,
    get_club_review_summary,
    get_conflict_detail,
    list_conflicts,
    list_reviews,
    list_reviews_for_actor,
    moderation_queue,
)
from feedback.review.decision import AdminReviewDecision
from feedback.review.submission import SubmitReview
from feedback.shared.errors import MissingRequiredField, NotFound
from feedback.token.issuance import IssueReviewToken

TEXT = {
    1: {"complaint": "Nobody met us at the gate."},
    2: {"complaint": "The boats we were lent leaked."},
    3: {"improvement_suggestion": "Start the heats on time."},
    4: {"content": "Good racing."},
    5: {"content": "Perfect day on the water."},
}


def _review(rating, reviewer="club-visitor", target="club-host"):
    issued = current_domain.process(
        IssueReviewToken(event_id="evt-spring-derby", reviewer_club_id=reviewer, target_club_id=target),
        asynchronous=False,
    )
    return current_domain.process(SubmitReview(token=issued["token"], rating=rating, **TEXT[rating]), asynchronous=False)


def _decide(review_id, role, decision, **extra):
    current_domain.process(
        AdminReviewDecision(review_id=review_id, actor_role=role, actor_id="admin-1", decision=decision, **extra),
        asynchronous=False,
    )


def _publish(review_id):
    _decide(review_id, "PLATFORM_ADMIN", "approve")
    _decide(review_id, "CLUB_ADMIN", "approve", actor_club_id="club-host")


def _resolve(conflict_id):
    current_domain.process(
        ResolveConflictAndCloseReview(
            conflict_id=conflict_id,
            actor_role="PLATFORM_ADMIN",
            resolver_id="ops-1",
            resolution_type="WARNING_ISSUED",
            resolution_notes="Host club warned.",
        ),
        asynchronous=False,
    )


class TestClubReviewSummary:
    def test_counts_by_bucket(self, directory):
        for rating in (5, 4, 3, 1):
            _review(rating)

        summary = current_domain.repository_for(ClubReviewSummary).get("club-host")
        assert summary.total_reviews == 4
        assert summary.positive_count == 2
        assert summary.neutral_count == 1
        assert summary.negative_count == 1
        assert summary.open_conflict_count == 1
        assert summary.average_rating == 3.25

    def test_published_and_resolved_counters(self, directory):
        positive = _review(5)
        negative = _review(2)

        _publish(positive["review_id"])
        _resolve(negative["conflict_id"])

        summary = current_domain.repository_for(ClubReviewSummary).get("club-host")
        assert summary.published_count == 1
        assert summary.open_conflict_count == 0

    def test_summary_query_for_unknown_club(self, directory):
        summary = get_club_review_summary("club-nobody")
        assert summary["total"] == 0
        assert summary["average_rating"] == 0.0
        assert summary["rating_breakdown"] == {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0}

    def test_recalculate_average(self):
        assert recalculate_average({"1": 0, "2": 0, "3": 0, "4": 0, "5": 0}) == 0.0
        assert recalculate_average({"1": 1, "2": 0, "3": 0, "4": 0, "5": 2}) == 3.67


class TestClubReviewListing:
    def test_conflict_fields_follow_the_conflict(self, directory):
        submitted = _review(1)
        row = current_domain.repository_for(ClubReviewListing).get(submitted["review_id"])
        assert row.is_conflict is True
        assert row.conflict_id == submitted["conflict_id"]
        assert row.conflict_status == "OPEN"
        assert row.conflict_priority == "MEDIUM"

        current_domain.process(
            UpdateConflict(
                conflict_id=submitted["conflict_id"],
                actor_role="PLATFORM_ADMIN",
                actor_id="ops-1",
                priority="HIGH",
            ),
            asynchronous=False,
        )
        row = current_domain.repository_for(ClubReviewListing).get(submitted["review_id"])
        assert row.conflict_priority == "HIGH"

        _resolve(submitted["conflict_id"])
        row = current_domain.repository_for(ClubReviewListing).get(submitted["review_id"])
        assert row.status == "CONFLICT_RESOLVED"
        assert row.conflict_status == "RESOLVED"

    def test_list_reviews_filters(self, directory):
        positive = _review(4)
        negative = _review(2, reviewer="club-other")
        _review(5, reviewer="club-host", target="club-visitor")

        host_reviews = list_reviews(target_club_id="club-host")
        assert {r["review_id"] for r in host_reviews} == {positive["review_id"], negative["review_id"]}

        disputed = list_reviews(is_conflict=True)
        assert [r["review_id"] for r in disputed] == [negative["review_id"]]

        pending = list_reviews(status="pending", target_club_id="club-host")
        assert [r["review_id"] for r in pending] == [positive["review_id"]]

    def test_list_reviews_rejects_unknown_status(self, directory):
        with pytest.raises(ValidationError):
            list_reviews(status="ARCHIVED")

    def test_platform_admin_lists_every_club(self, directory):
        _review(4)
        _review(5, reviewer="club-host", target="club-visitor")
        assert len(list_reviews_for_actor("PLATFORM_ADMIN")) == 2
        assert len(list_reviews_for_actor("PLATFORM_ADMIN", target_club_id="club-visitor")) == 1

    def test_club_admin_is_scoped_to_own_club(self, directory):
        own = _review(4)
        _review(5, reviewer="club-host", target="club-visitor")

        rows = list_reviews_for_actor("CLUB_ADMIN", club_id="club-host")
        assert [r["review_id"] for r in rows] == [own["review_id"]]

        same = list_reviews_for_actor("CLUB_ADMIN", club_id="club-host", target_club_id="club-host")
        assert [r["review_id"] for r in same] == [own["review_id"]]

    def test_club_admin_cannot_list_another_club(self, directory):
        with pytest.raises(ValidationError) as exc:
            list_reviews_for_actor("CLUB_ADMIN", club_id="club-host", target_club_id="club-visitor")
        assert "target_club_id" in exc.value.messages

    def test_club_admin_needs_a_club(self, directory):
        with pytest.raises(MissingRequiredField) as exc:
            list_reviews_for_actor("CLUB_ADMIN")
        assert exc.value.field == "target_club_id"

    @pytest.mark.parametrize("role", ["SYSTEM", "GUEST"])
    def test_other_roles_cannot_list(self, directory, role):
        with pytest.raises(ValidationError) as exc:
            list_reviews_for_actor(role)
        assert "actor_role" in exc.value.messages


class TestConflictDashboard:
    def test_dashboard_tracks_lifecycle(self, directory):
        submitted = _review(2)
        row = current_domain.repository_for(ConflictDashboard).get(submitted["conflict_id"])
        assert row.status == "OPEN"
        assert row.complainant_club_id == "club-visitor"
        assert row.respondent_club_id == "club-host"
        assert row.complaint == TEXT[2]["complaint"]

        _resolve(submitted["conflict_id"])
        row = current_domain.repository_for(ConflictDashboard).get(submitted["conflict_id"])
        assert row.status == "RESOLVED"
        assert row.resolution_type == "WARNING_ISSUED"
        assert row.resolved_by == "ops-1"

    def test_active_only_listing(self, directory):
        open_one = _review(1)
        closed_one = _review(2, reviewer="club-other")
        _resolve(closed_one["conflict_id"])

        active = list_conflicts(active_only=True)
        assert [c["conflict_id"] for c in active] == [open_one["conflict_id"]]

        resolved = list_conflicts(status="resolved")
        assert [c["conflict_id"] for c in resolved] == [closed_one["conflict_id"]]

        assert len(list_conflicts()) == 2

    def test_conflict_detail_joins_review(self, directory):
        submitted = _review(1)
        detail = get_conflict_detail(submitted["conflict_id"])
        assert detail["conflict"]["conflict_id"] == submitted["conflict_id"]
        assert detail["conflict"]["status"] == "OPEN"
        assert detail["review"]["review_id"] == submitted["review_id"]
        assert detail["review"]["conflict_id"] == submitted["conflict_id"]

    def test_conflict_detail_for_unknown_conflict(self, directory):
        with pytest.raises(NotFound) as exc:
            get_conflict_detail("missing-conflict")
        assert exc.value.kind == "Conflict"

    def test_conflict_stats(self, directory):
        assert conflict_stats()["total"] == 0

        _review(1)
        closed = _review(2, reviewer="club-other")
        _resolve(closed["conflict_id"])

        stats = conflict_stats()
        assert stats["total"] == 2
        assert stats["active"] == 1
        assert stats["by_status"]["OPEN"] == 1
        assert stats["by_status"]["RESOLVED"] == 1
        assert stats["by_status"]["IN_PROGRESS"] == 0


class TestModerationQueue:
    def test_queue_moves_from_platform_to_club(self, directory):
        submitted = _review(4)
        review_id = submitted["review_id"]

        assert [r["review_id"] for r in moderation_queue("PLATFORM_ADMIN")] == [review_id]
        assert moderation_queue("CLUB_ADMIN", club_id="club-host") == []

        _decide(review_id, "PLATFORM_ADMIN", "approve")
        assert moderation_queue("PLATFORM_ADMIN") == []
        club_queue = moderation_queue("CLUB_ADMIN", club_id="club-host")
        assert [r["review_id"] for r in club_queue] == [review_id]
        assert club_queue[0]["platform_approved_at"] is not None

        _decide(review_id, "CLUB_ADMIN", "approve", actor_club_id="club-host")
        assert moderation_queue("CLUB_ADMIN", club_id="club-host") == []
        assert current_domain.repository_for(ModerationQueue).get_or_none(review_id) is None

    def test_rejected_reviews_leave_the_queue(self, directory):
        submitted = _review(3)
        _decide(submitted["review_id"], "PLATFORM_ADMIN", "reject", reason="Off topic")
        assert moderation_queue("PLATFORM_ADMIN") == []

    def test_disputed_reviews_are_not_queued(self, directory):
        _review(1)
        assert moderation_queue("PLATFORM_ADMIN") == []

    def test_platform_queue_can_be_filtered_by_club(self, directory):
        _review(5)
        other = _review(5, reviewer="club-host", target="club-visitor")
        rows = moderation_queue("PLATFORM_ADMIN", club_id="club-visitor")
        assert [r["review_id"] for r in rows] == [other["review_id"]]

    def test_club_admin_must_name_a_club(self, directory):
        with pytest.raises(MissingRequiredField):
            moderation_queue("CLUB_ADMIN")

    @pytest.mark.parametrize("role", ["SYSTEM", "REFEREE"])
    def test_other_roles_have_no_queue(self, directory, role):
        with pytest.raises(ValidationError):
            moderation_queue(role)
