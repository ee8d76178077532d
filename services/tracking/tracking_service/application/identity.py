from dataclasses import dataclass

ANONYMOUS_IDENTITY = "anonymous"
# "me" is taken by the /users/me/... routes
RESERVED_IDENTITIES = frozenset({ANONYMOUS_IDENTITY, "me"})

@dataclass(frozen=True)
class CallerContext:
    """Who is making a request. Passed explicitly into every service operation."""
    identity: str
    authenticated: bool = True

    @classmethod
    def anonymous(cls) -> "CallerContext":
        return cls(identity=ANONYMOUS_IDENTITY, authenticated=False)
