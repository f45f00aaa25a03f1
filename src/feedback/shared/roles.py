"""Actor roles recognised by the feedback workflows.

Roles are claims asserted by the caller's authorization layer. The domain
never looks them up; it checks them against its transition tables and
records them for audit.
"""

from enum import Enum

from protean.exceptions import ValidationError


class ActorRole(Enum):
    PLATFORM_ADMIN = "PLATFORM_ADMIN"
    CLUB_ADMIN = "CLUB_ADMIN"
    SYSTEM = "SYSTEM"


def parse_role(value) -> ActorRole:
    """Coerce a role claim into an ``ActorRole``.

    Unknown claims raise a ``ValidationError`` on ``actor_role``.
    """
    if isinstance(value, ActorRole):
        return value
    try:
        return ActorRole(str(value).upper())
    except ValueError:
        allowed = ", ".join(r.value for r in ActorRole)
        raise ValidationError({"actor_role": [f"Unknown actor role {value!r}; expected one of {allowed}"]}) from None
