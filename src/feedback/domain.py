"""Feedback bounded context: post-event reviews, moderation and disputes.

Handles single-use review tokens, rating-driven submission rules, the
dual-approval publication workflow and the conflict (dispute) lifecycle
for low-rated reviews. Club and event records live in an external
directory and are referenced by id only.
"""

import os

from protean.domain import Domain

from feedback.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging(log_dir=os.getenv("LOG_DIR"), log_file_prefix="feedback")

logger = get_logger(__name__)

# Domain Composition Root
feedback = Domain(name="feedback")
