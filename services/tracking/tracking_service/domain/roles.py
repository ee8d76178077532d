from enum import Enum

class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"
    GUEST = "guest"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def at_least(self, other: "Role") -> bool:
        return self.rank >= other.rank

_RANKS = {Role.GUEST: 0, Role.USER: 1, Role.ADMIN: 2}

DEFAULT_ROLE = Role.GUEST
