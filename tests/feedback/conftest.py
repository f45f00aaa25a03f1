import pytest
from protean.integrations.pytest import DomainFixture

from feedback.directory import set_directory
from feedback.directory.fake_directory import InMemoryClubDirectory
from feedback.notification import set_email
from feedback.notification.fake_email import FakeEmailAdapter

EVENT_ID = "evt-spring-derby"
HOST_CLUB = "club-host"
VISITOR_CLUB = "club-visitor"
OTHER_CLUB = "club-other"


@pytest.fixture(scope="session")
def feedback_bed():
    from feedback.domain import feedback

    bed = DomainFixture(feedback)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(feedback_bed):
    with feedback_bed.domain_context():
        yield


@pytest.fixture()
def directory():
    """A directory that knows one event and three clubs, each with one admin."""
    directory = InMemoryClubDirectory()
    directory.add_club(HOST_CLUB, name="Host Rowing Club", admin_emails=["admin@host.example"])
    directory.add_club(VISITOR_CLUB, name="Visitor Rowing Club", admin_emails=["admin@visitor.example"])
    directory.add_club(OTHER_CLUB, name="Other Rowing Club", admin_emails=["admin@other.example"])
    directory.add_event(EVENT_ID, name="Spring Derby", host_club_id=HOST_CLUB)
    directory.add_platform_admin("ops@platform.example")
    set_directory(directory)
    return directory


@pytest.fixture()
def mailbox():
    adapter = FakeEmailAdapter()
    set_email(adapter)
    return adapter
