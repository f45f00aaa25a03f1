"""Club directory factory.

Provides get_directory() / set_directory() to swap implementations:
- InMemoryClubDirectory for development and testing
- a marketplace-backed adapter in production
"""

from feedback.directory.fake_directory import InMemoryClubDirectory
from feedback.directory.port import ClubDirectory

_current_directory: ClubDirectory | None = None


def get_directory() -> ClubDirectory:
    """Return the current club directory. Defaults to an empty in-memory one."""
    global _current_directory
    if _current_directory is None:
        _current_directory = InMemoryClubDirectory()
    return _current_directory


def set_directory(directory: ClubDirectory) -> None:
    """Override the active club directory (useful for tests)."""
    global _current_directory
    _current_directory = directory


def reset_directory() -> None:
    """Reset to default directory."""
    global _current_directory
    _current_directory = None
