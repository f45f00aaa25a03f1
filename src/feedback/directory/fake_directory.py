"""In-memory club directory for development and tests."""

from feedback.directory.port import ClubDirectory, ClubRecord, EventRecord


class InMemoryClubDirectory(ClubDirectory):
    """Directory backed by plain dicts. Seed it with ``add_club``/``add_event``."""

    def __init__(self):
        self.clubs: dict[str, ClubRecord] = {}
        self.events: dict[str, EventRecord] = {}
        self.platform_admins: list[str] = []

    def add_club(self, club_id: str, name: str | None = None, admin_emails=()) -> ClubRecord:
        record = ClubRecord(club_id=str(club_id), name=name or str(club_id), admin_emails=tuple(admin_emails))
        self.clubs[record.club_id] = record
        return record

    def add_event(self, event_id: str, name: str | None = None, host_club_id: str | None = None) -> EventRecord:
        record = EventRecord(event_id=str(event_id), name=name or str(event_id), host_club_id=host_club_id)
        self.events[record.event_id] = record
        return record

    def add_platform_admin(self, email: str) -> None:
        self.platform_admins.append(email)

    def get_club(self, club_id: str) -> ClubRecord | None:
        return self.clubs.get(str(club_id))

    def get_event(self, event_id: str) -> EventRecord | None:
        return self.events.get(str(event_id))

    def platform_admin_emails(self) -> list[str]:
        return list(self.platform_admins)

    def reset(self) -> None:
        self.clubs.clear()
        self.events.clear()
        self.platform_admins.clear()
