"""Rating rules: which text field a review must carry, keyed by rating bucket.

    rating 1-2 -> complaint               -> CONFLICT_OPEN + Conflict(OPEN, MEDIUM)
    rating 3   -> improvement_suggestion  -> PENDING
    rating 4-5 -> content (<= 500 chars)  -> PENDING

``RATING_RULES`` is the only place this mapping lives. The aggregate and the
submission handler both read it.
"""

from dataclasses import dataclass
from enum import Enum

from protean.exceptions import ValidationError

from feedback.shared.errors import InvalidRating, MissingRequiredField, UnexpectedField

TEXT_FIELDS = ("content", "complaint", "improvement_suggestion")
CONTENT_MAX_LENGTH = 500


class RatingBucket(Enum):
    NEGATIVE = "NEGATIVE"
    NEUTRAL = "NEUTRAL"
    POSITIVE = "POSITIVE"


@dataclass(frozen=True)
class RatingRule:
    bucket: RatingBucket
    required_field: str
    initial_status: str
    opens_conflict: bool
    max_length: int | None = None

    @property
    def forbidden_fields(self) -> tuple[str, ...]:
        return tuple(f for f in TEXT_FIELDS if f != self.required_field)


RATING_RULES: dict[RatingBucket, RatingRule] = {
    RatingBucket.NEGATIVE: RatingRule(
        bucket=RatingBucket.NEGATIVE,
        required_field="complaint",
        initial_status="CONFLICT_OPEN",
        opens_conflict=True,
    ),
    RatingBucket.NEUTRAL: RatingRule(
        bucket=RatingBucket.NEUTRAL,
        required_field="improvement_suggestion",
        initial_status="PENDING",
        opens_conflict=False,
    ),
    RatingBucket.POSITIVE: RatingRule(
        bucket=RatingBucket.POSITIVE,
        required_field="content",
        initial_status="PENDING",
        opens_conflict=False,
        max_length=CONTENT_MAX_LENGTH,
    ),
}

_BUCKET_FOR_RATING = {
    1: RatingBucket.NEGATIVE,
    2: RatingBucket.NEGATIVE,
    3: RatingBucket.NEUTRAL,
    4: RatingBucket.POSITIVE,
    5: RatingBucket.POSITIVE,
}


def bucket_for(rating) -> RatingBucket:
    """Bucket for a rating. Anything but an integer 1-5 raises InvalidRating."""
    if isinstance(rating, bool) or not isinstance(rating, int) or rating not in _BUCKET_FOR_RATING:
        raise InvalidRating(rating)
    return _BUCKET_FOR_RATING[rating]


def rule_for(rating) -> RatingRule:
    return RATING_RULES[bucket_for(rating)]


def _is_blank(value) -> bool:
    return value is None or not str(value).strip()


def validate_submission(rating, content=None, complaint=None, improvement_suggestion=None) -> RatingRule:
    """Check a submission against the rating table and return the matching rule.

    Raises InvalidRating, UnexpectedField or MissingRequiredField. Nothing is
    written; callers run this before touching the token.
    """
    rule = rule_for(rating)
    values = {
        "content": content,
        "complaint": complaint,
        "improvement_suggestion": improvement_suggestion,
    }

    for field in rule.forbidden_fields:
        if not _is_blank(values[field]):
            raise UnexpectedField(field, f"{field} is not accepted for a rating of {rating}")

    required = values[rule.required_field]
    if _is_blank(required):
        raise MissingRequiredField(
            rule.required_field,
            f"{rule.required_field} is required for a rating of {rating}",
        )

    if rule.max_length is not None and len(required.strip()) > rule.max_length:
        raise ValidationError(
            {rule.required_field: [f"{rule.required_field} must be at most {rule.max_length} characters"]}
        )

    return rule


def normalized_text(rule: RatingRule, content=None, complaint=None, improvement_suggestion=None) -> dict:
    """Field values to store: the required one stripped, the others absent."""
    values = {
        "content": content,
        "complaint": complaint,
        "improvement_suggestion": improvement_suggestion,
    }
    return {field: (values[field].strip() if field == rule.required_field else None) for field in TEXT_FIELDS}
