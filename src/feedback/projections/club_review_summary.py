"""ClubReviewSummary — rating statistics per reviewed club."""

import json

from protean.core.projector import on
from protean.fields import DateTime, Float, Identifier, Integer, Text
from protean.utils.globals import current_domain

from feedback.domain import feedback
from feedback.review.events import ReviewDisputeClosed, ReviewPublished, ReviewSubmitted
from feedback.review.review import EventReview, ReviewStatus
from feedback.review.rules import RatingBucket, bucket_for


@feedback.projection
class ClubReviewSummary:
    club_id = Identifier(identifier=True, required=True)
    total_reviews = Integer(default=0)
    average_rating = Float(default=0.0)
    rating_distribution = Text()  # JSON: {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0}
    positive_count = Integer(default=0)  # ratings 4-5
    neutral_count = Integer(default=0)  # rating 3
    negative_count = Integer(default=0)  # ratings 1-2
    published_count = Integer(default=0)
    open_conflict_count = Integer(default=0)
    updated_at = DateTime()


def default_distribution():
    return {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0}


def recalculate_average(distribution):
    total = sum(distribution.values())
    if total == 0:
        return 0.0
    weighted_sum = sum(int(rating) * count for rating, count in distribution.items())
    return round(weighted_sum / total, 2)


_BUCKET_COUNTERS = {
    RatingBucket.POSITIVE: "positive_count",
    RatingBucket.NEUTRAL: "neutral_count",
    RatingBucket.NEGATIVE: "negative_count",
}


def _load_or_new(repo, club_id):
    summary = repo.get_or_none(str(club_id))
    if summary is None:
        summary = ClubReviewSummary(
            club_id=str(club_id),
            total_reviews=0,
            average_rating=0.0,
            rating_distribution=json.dumps(default_distribution()),
            positive_count=0,
            neutral_count=0,
            negative_count=0,
            published_count=0,
            open_conflict_count=0,
        )
    return summary


@feedback.projector(projector_for=ClubReviewSummary, aggregates=[EventReview])
class ClubReviewSummaryProjector:
    @on(ReviewSubmitted)
    def on_review_submitted(self, event):
        repo = current_domain.repository_for(ClubReviewSummary)
        summary = _load_or_new(repo, event.target_club_id)

        distribution = json.loads(summary.rating_distribution or "{}") or default_distribution()
        rating_key = str(event.rating)
        distribution[rating_key] = distribution.get(rating_key, 0) + 1

        counter = _BUCKET_COUNTERS[bucket_for(event.rating)]
        setattr(summary, counter, getattr(summary, counter) + 1)

        summary.total_reviews = summary.total_reviews + 1
        summary.rating_distribution = json.dumps(distribution)
        summary.average_rating = recalculate_average(distribution)
        if event.status == ReviewStatus.CONFLICT_OPEN.value:
            summary.open_conflict_count = summary.open_conflict_count + 1
        summary.updated_at = event.submitted_at

        repo.add(summary)

    @on(ReviewPublished)
    def on_review_published(self, event):
        repo = current_domain.repository_for(ClubReviewSummary)
        summary = _load_or_new(repo, event.target_club_id)
        summary.published_count = summary.published_count + 1
        summary.updated_at = event.published_at
        repo.add(summary)

    @on(ReviewDisputeClosed)
    def on_review_dispute_closed(self, event):
        repo = current_domain.repository_for(ClubReviewSummary)
        summary = repo.get_or_none(str(event.target_club_id))
        if summary is None:
            return
        summary.open_conflict_count = max(0, summary.open_conflict_count - 1)
        summary.updated_at = event.closed_at
        repo.add(summary)
