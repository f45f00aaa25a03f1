"""Feedback domain API package."""

from feedback.api.errors import register_feedback_exception_handlers
from feedback.api.routes import club_router, conflict_router, review_router, token_router

__all__ = [
    "token_router",
    "review_router",
    "conflict_router",
    "club_router",
    "register_feedback_exception_handlers",
]
