"""Authorization matrix for every service operation.

All decisions come from the ``POLICY`` table below; service code never
checks roles inline.
"""

from dataclasses import dataclass
from enum import Enum
from tracking_service.domain.roles import Role
from tracking_service.domain.errors import Forbidden
from .identity import CallerContext

class Operation(str, Enum):
    READ_SHIPMENT = "read_shipment"
    READ_LATEST_EVENT = "read_latest_event"
    READ_TIMELINE = "read_timeline"
    READ_ALL_SHIPMENTS = "read_all_shipments"
    CREATE_SHIPMENT = "create_shipment"
    ADD_TRACKING_EVENT = "add_tracking_event"
    GENERATE_TRACKING_NUMBER = "generate_tracking_number"
    SEED_TEST_DATA = "seed_test_data"
    READ_OWN_ROLE = "read_own_role"
    ASSIGN_ROLE = "assign_role"
    LIST_ROLES = "list_roles"
    BOOTSTRAP_ADMIN = "bootstrap_admin"
    READ_OWN_PROFILE = "read_own_profile"
    SAVE_OWN_PROFILE = "save_own_profile"
    READ_OTHER_PROFILE = "read_other_profile"

@dataclass(frozen=True)
class Policy:
    min_role: Role
    requires_authentication: bool = False

POLICY = {
    Operation.READ_SHIPMENT: Policy(Role.GUEST),
    Operation.READ_LATEST_EVENT: Policy(Role.GUEST),
    Operation.READ_TIMELINE: Policy(Role.GUEST),
    Operation.READ_OWN_ROLE: Policy(Role.GUEST),
    Operation.READ_ALL_SHIPMENTS: Policy(Role.ADMIN, True),
    Operation.CREATE_SHIPMENT: Policy(Role.ADMIN, True),
    Operation.ADD_TRACKING_EVENT: Policy(Role.ADMIN, True),
    Operation.GENERATE_TRACKING_NUMBER: Policy(Role.ADMIN, True),
    Operation.SEED_TEST_DATA: Policy(Role.ADMIN, True),
    Operation.ASSIGN_ROLE: Policy(Role.ADMIN, True),
    Operation.LIST_ROLES: Policy(Role.ADMIN, True),
    # Gated by the bootstrap state rather than by role
    Operation.BOOTSTRAP_ADMIN: Policy(Role.GUEST, True),
    Operation.READ_OWN_PROFILE: Policy(Role.USER, True),
    Operation.SAVE_OWN_PROFILE: Policy(Role.USER, True),
    Operation.READ_OTHER_PROFILE: Policy(Role.ADMIN, True),
}

def is_allowed(caller: CallerContext, role: Role, operation: Operation) -> bool:
    policy = POLICY[operation]
    if policy.requires_authentication and not caller.authenticated:
        return False
    return role.at_least(policy.min_role)

def authorize(caller: CallerContext, role: Role, operation: Operation) -> None:
    """Raise Forbidden unless ``caller`` holding ``role`` may run ``operation``."""
    if not is_allowed(caller, role, operation):
        policy = POLICY[operation]
        if policy.requires_authentication and not caller.authenticated:
            raise Forbidden(f"{operation.value} requires an authenticated caller")
        raise Forbidden(f"{operation.value} requires role {policy.min_role.value}")
