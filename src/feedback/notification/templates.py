"""Email templates for the feedback workflows.

Each template renders a subject and a plain-text body from a context dict.
"""


class ReviewInvitationTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        return {
            "subject": f"How was {context['event_name']}? Review {context['target_club_name']}",
            "body": (
                f"Hello {context['reviewer_club_name']},\n\n"
                f"{context['event_name']} is over. Tell us how it went with "
                f"{context['target_club_name']}:\n\n"
                f"{context['link']}\n\n"
                f"This link can be used once and expires on {context['expires_on']}.\n"
            ),
        }


class ReviewPublishedTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        return {
            "subject": f"Your review of {context['target_club_name']} is live",
            "body": (
                f"Hello {context['reviewer_club_name']},\n\n"
                f"Your {context['rating']}-star review of {context['target_club_name']} "
                "has been approved by both the platform and the club, and is now published.\n\n"
                "Thank you for your feedback.\n"
            ),
        }


class DisputeOpenedTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        return {
            "subject": f"Dispute opened: {context['complainant_club_name']} and {context['respondent_club_name']}",
            "body": (
                f"A {context['rating']}-star review of {context['respondent_club_name']} by "
                f"{context['complainant_club_name']} has opened a dispute "
                f"(priority {context['priority']}).\n\n"
                f"Complaint:\n{context['complaint']}\n\n"
                "The platform team will follow up with both clubs. "
                f"Reference: {context['conflict_id']}\n"
            ),
        }
