"""Integration tests for feedback emails: invitations, publication and disputes."""

from protean import current_domain

import feedback.notification.delivery as delivery
from feedback.notification import set_email
from feedback.notification.email_port import EmailPort
from feedback.notification.invitations import review_link, send_review_invitations
from feedback.review.decision import AdminReviewDecision
from feedback.review.review import EventReview, ReviewStatus
from feedback.review.submission import SubmitReview
from feedback.token.issuance import IssueEventReviewTokens, IssueReviewToken


class ExplodingEmail(EmailPort):
    def send(self, to, subject, body):
        raise ConnectionError("SMTP relay unreachable")


class LogRecorder:
    def __init__(self):
        self.calls = []

    def __getattr__(self, level):
        def log(event, **kw):
            self.calls.append((level, event, kw))

        return log


def _issue(reviewer="club-visitor", target="club-host"):
    return current_domain.process(
        IssueReviewToken(event_id="evt-spring-derby", reviewer_club_id=reviewer, target_club_id=target),
        asynchronous=False,
    )


def _submit(rating, **text):
    issued = _issue()
    return current_domain.process(SubmitReview(token=issued["token"], rating=rating, **text), asynchronous=False)


def _publish(review_id):
    for role, club in (("PLATFORM_ADMIN", None), ("CLUB_ADMIN", "club-host")):
        current_domain.process(
            AdminReviewDecision(
                review_id=review_id,
                actor_role=role,
                actor_id="admin-1",
                actor_club_id=club,
                decision="approve",
            ),
            asynchronous=False,
        )


class TestInvitations:
    def test_invitation_carries_single_use_link(self, directory, mailbox):
        issued = _issue()
        sent = send_review_invitations([issued])

        assert sent == 1
        [email] = mailbox.sent_to("admin@visitor.example")
        assert "Spring Derby" in email["subject"]
        assert "Host Rowing Club" in email["subject"]
        assert review_link(issued["token"]) in email["body"]
        assert issued["expires_at"].date().isoformat() in email["body"]

    def test_link_uses_configured_base_url(self, directory, monkeypatch):
        monkeypatch.setitem(current_domain.config, "custom", {"REVIEW_LINK_BASE_URL": "https://clubs.example/review/"})
        assert review_link("abc123") == "https://clubs.example/review/abc123"

    def test_bulk_issuance_invites_both_sides(self, directory, mailbox):
        result = current_domain.process(
            IssueEventReviewTokens(
                event_id="evt-spring-derby",
                host_club_id="club-host",
                visiting_club_ids='["club-visitor"]',
            ),
            asynchronous=False,
        )
        assert send_review_invitations(result["issued"]) == 2
        assert len(mailbox.sent_to("admin@host.example")) == 1
        assert len(mailbox.sent_to("admin@visitor.example")) == 1


class TestWorkflowEmails:
    def test_publication_emails_the_reviewer_club(self, directory, mailbox):
        submitted = _submit(5, content="Lovely regatta.")
        _publish(submitted["review_id"])

        [email] = mailbox.sent_to("admin@visitor.example")
        assert "is live" in email["subject"]
        assert "5-star" in email["body"]
        assert mailbox.sent_to("admin@host.example") == []

    def test_platform_approval_alone_sends_nothing(self, directory, mailbox):
        submitted = _submit(4, content="Solid event.")
        current_domain.process(
            AdminReviewDecision(
                review_id=submitted["review_id"],
                actor_role="PLATFORM_ADMIN",
                actor_id="ops-1",
                decision="approve",
            ),
            asynchronous=False,
        )
        assert mailbox.sent_emails == []

    def test_rejection_sends_nothing(self, directory, mailbox):
        submitted = _submit(4, content="Solid event.")
        current_domain.process(
            AdminReviewDecision(
                review_id=submitted["review_id"],
                actor_role="PLATFORM_ADMIN",
                actor_id="ops-1",
                decision="reject",
            ),
            asynchronous=False,
        )
        assert mailbox.sent_emails == []

    def test_dispute_alerts_both_clubs_and_platform(self, directory, mailbox):
        submitted = _submit(1, complaint="Our cox was injured on an unmarked buoy.")

        recipients = {email["to"] for email in mailbox.sent_emails}
        assert recipients == {"admin@visitor.example", "admin@host.example", "ops@platform.example"}
        email = mailbox.sent_to("ops@platform.example")[0]
        assert submitted["conflict_id"] in email["body"]
        assert "unmarked buoy" in email["body"]


class TestDeliveryFailures:
    def test_failed_send_does_not_undo_the_review(self, directory, mailbox, monkeypatch):
        recorder = LogRecorder()
        monkeypatch.setattr(delivery, "logger", recorder)
        mailbox.configure(should_succeed=False, failure_reason="Mailbox full")

        submitted = _submit(2, complaint="Changing rooms were locked.")

        review = current_domain.repository_for(EventReview).get(submitted["review_id"])
        assert review.status == ReviewStatus.CONFLICT_OPEN.value
        warnings = [c for c in recorder.calls if c[0] == "warning"]
        assert len(warnings) == 3
        assert all(c[2]["error"] == "Mailbox full" for c in warnings)

    def test_adapter_exception_is_logged_not_raised(self, directory, monkeypatch):
        recorder = LogRecorder()
        monkeypatch.setattr(delivery, "logger", recorder)
        set_email(ExplodingEmail())

        submitted = _submit(5, content="Great hosts.")
        _publish(submitted["review_id"])

        review = current_domain.repository_for(EventReview).get(submitted["review_id"])
        assert review.status == ReviewStatus.APPROVED.value
        errors = [c for c in recorder.calls if c[1] == "email_delivery_error"]
        assert len(errors) == 1
        assert errors[0][2]["to"] == "admin@visitor.example"
