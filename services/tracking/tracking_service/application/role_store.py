import hashlib
import hmac
from typing import Optional
from sqlalchemy import select, update
from sqlalchemy.orm import Session
from tracking_service.domain.models import UserRoleAssignment, UserProfile, BootstrapState, SINGLETON_ID
from tracking_service.domain.roles import Role, DEFAULT_ROLE
from tracking_service.domain.errors import AlreadyBootstrapped, InvalidToken
from tracking_service.infrastructure.clock import get_clock
from .schemas import UserProfileSchema

def tokens_match(provided: Optional[str], expected: Optional[str]) -> bool:
    """Compare tokens without leaking length or prefix through timing.

    Both sides are hashed first so the comparison always runs over two
    equal-length digests. An empty expected token never matches.
    """
    if not expected:
        return False
    provided_digest = hashlib.sha256((provided or "").encode("utf-8")).digest()
    expected_digest = hashlib.sha256(expected.encode("utf-8")).digest()
    return hmac.compare_digest(provided_digest, expected_digest)

class RoleStore:
    """Identity to role mapping, user profiles and the bootstrap state.

    Callers are expected to have been authorized already and to run
    mutations inside ``atomic``.
    """

    def __init__(self, db: Session, clock=None):
        self.db = db
        self.clock = clock or get_clock()

    def get_role(self, identity: str) -> Role:
        value = self.db.scalar(
            select(UserRoleAssignment.role).where(UserRoleAssignment.identity == identity)
        )
        return Role(value) if value else DEFAULT_ROLE

    def assign_role(self, identity: str, role: Role) -> None:
        assignment = self.db.get(UserRoleAssignment, identity)
        if assignment is None:
            self.db.add(UserRoleAssignment(identity=identity, role=role.value))
        else:
            assignment.role = role.value
        self.db.flush()

    def list_roles(self) -> list[UserRoleAssignment]:
        stmt = select(UserRoleAssignment).order_by(UserRoleAssignment.identity)
        return list(self.db.scalars(stmt.execution_options(populate_existing=True)))

    def is_bootstrapped(self) -> bool:
        consumed = self.db.scalar(
            select(BootstrapState.consumed).where(BootstrapState.id == SINGLETON_ID)
        )
        if consumed is None:
            self.db.add(BootstrapState(id=SINGLETON_ID, consumed=False))
            self.db.flush()
            return False
        return bool(consumed)

    def set_initial_admin(self, identity: str, provided_token: str, expected_token: str) -> None:
        if self.is_bootstrapped():
            raise AlreadyBootstrapped("Initial admin has already been assigned")
        if not tokens_match(provided_token, expected_token):
            raise InvalidToken("Admin token does not match")
        # Compare-and-set: only one caller can flip consumed from false to true
        result = self.db.execute(
            update(BootstrapState)
            .where(BootstrapState.id == SINGLETON_ID, BootstrapState.consumed.is_(False))
            .values(consumed=True, admin_identity=identity, consumed_at=self.clock.now_ns())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise AlreadyBootstrapped("Initial admin has already been assigned")
        self.assign_role(identity, Role.ADMIN)

    def get_profile(self, identity: str) -> Optional[UserProfile]:
        return self.db.get(UserProfile, identity, populate_existing=True)

    def save_profile(self, identity: str, data: UserProfileSchema) -> UserProfile:
        profile = self.db.get(UserProfile, identity)
        if profile is None:
            profile = UserProfile(identity=identity)
            self.db.add(profile)
        profile.name = data.name
        profile.email = data.email
        profile.phone = data.phone
        self.db.flush()
        return profile
