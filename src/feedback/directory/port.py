"""Club directory port (abstract interface).

Clubs, events and admin contact details are owned by the marketplace's
CRUD side. The feedback domain only needs to know that the ids it is
handed exist and whom to email, so it reads them through this port.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ClubRecord:
    club_id: str
    name: str
    admin_emails: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class EventRecord:
    event_id: str
    name: str
    host_club_id: str | None = None


class ClubDirectory(ABC):
    """Read-only lookups against the external club/event store."""

    @abstractmethod
    def get_club(self, club_id: str) -> ClubRecord | None: ...

    @abstractmethod
    def get_event(self, event_id: str) -> EventRecord | None: ...

    @abstractmethod
    def platform_admin_emails(self) -> list[str]: ...

    def club_exists(self, club_id: str) -> bool:
        return self.get_club(club_id) is not None

    def event_exists(self, event_id: str) -> bool:
        return self.get_event(event_id) is not None

    def club_admin_emails(self, club_id: str) -> list[str]:
        club = self.get_club(club_id)
        return list(club.admin_emails) if club else []

    def club_name(self, club_id: str) -> str:
        club = self.get_club(club_id)
        return club.name if club else str(club_id)
