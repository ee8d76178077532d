from typing import Optional
from sqlalchemy.orm import Session
from tracking_service.core_settings import get_settings
from tracking_service.domain.models import Shipment, TrackingEvent, UserProfile, UserRoleAssignment
from tracking_service.domain.roles import Role, DEFAULT_ROLE
from tracking_service.domain.errors import Forbidden, ValidationError
from tracking_service.infrastructure.clock import get_clock
from tracking_service.infrastructure.db import atomic
from shared.core import get_logger
from .access import Operation, authorize
from .identity import CallerContext, RESERVED_IDENTITIES
from .role_store import RoleStore
from .shipment_store import ShipmentStore
from .tracking_numbers import TrackingNumberGenerator
from .schemas import TrackingEventCreate, UserProfileSchema

logger = get_logger(__name__)

# Sample data for populating a fresh environment. Offsets are seconds before "now".
TEST_SHIPMENTS = [
    {
        "origin": "New York, NY",
        "destination": "Los Angeles, CA",
        "recipient": "John Smith",
        "events": [
            {"status": "Picked Up", "location": "New York, NY", "date": "2024-01-15", "time": "09:30", "offset": 172800, "note": "Package received at origin facility"},
            {"status": "In Transit", "location": "Chicago, IL", "date": "2024-01-16", "time": "14:15", "offset": 86400, "note": None},
            {"status": "Out for Delivery", "location": "Los Angeles, CA", "date": "2024-01-17", "time": "08:00", "offset": 3600, "note": None},
        ],
    },
    {
        "origin": "Seattle, WA",
        "destination": "Miami, FL",
        "recipient": "Maria Garcia",
        "events": [
            {"status": "Picked Up", "location": "Seattle, WA", "date": "2024-01-18", "time": "11:00", "offset": 7200, "note": None},
        ],
    },
    {
        "origin": "Austin, TX",
        "destination": "Boston, MA",
        "recipient": None,
        "events": [],
    },
]

NS_PER_SECOND = 1_000_000_000

def _require(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()

def _optional(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None

class TrackingService:
    """Entry point for every tracking operation.

    Each call resolves the caller's role, checks it against the access
    policy and only then touches a store. Mutations run in a single
    ``atomic`` block, so a failed call leaves no partial writes behind.
    """

    def __init__(self, db: Session, settings=None, clock=None):
        self.db = db
        self.settings = settings or get_settings()
        self.clock = clock or get_clock()
        self.roles = RoleStore(db, self.clock)
        self.shipments = ShipmentStore(db, self.clock)
        self.tracking_numbers = TrackingNumberGenerator(db, self.settings.TRACKING_PREFIX)

    def _role_of(self, caller: CallerContext) -> Role:
        if not caller.authenticated:
            return DEFAULT_ROLE
        return self.roles.get_role(caller.identity)

    def _authorize(self, caller: CallerContext, operation: Operation) -> Role:
        role = self._role_of(caller)
        try:
            authorize(caller, role, operation)
        except Forbidden:
            logger.warning(
                f"Access denied: {operation.value}",
                extra={'extra_fields': {'identity': caller.identity, 'role': role.value, 'operation': operation.value}}
            )
            raise
        return role

    # Shipments

    def create_shipment(
        self,
        caller: CallerContext,
        tracking_number: Optional[str],
        origin: str,
        destination: str,
        recipient: Optional[str] = None,
    ) -> Shipment:
        with atomic(self.db):
            self._authorize(caller, Operation.CREATE_SHIPMENT)
            origin = _require(origin, "origin")
            destination = _require(destination, "destination")
            number = (tracking_number or "").strip()
            if not number:
                number = self.tracking_numbers.generate()
            shipment = self.shipments.create(number, origin, destination, _optional(recipient))
        logger.info(
            f"Shipment created: {number}",
            extra={'extra_fields': {'tracking_number': number, 'identity': caller.identity}}
        )
        return shipment

    def add_tracking_event(self, caller: CallerContext, tracking_number: str, event: TrackingEventCreate) -> TrackingEvent:
        with atomic(self.db):
            self._authorize(caller, Operation.ADD_TRACKING_EVENT)
            _require(event.status, "status")
            if event.timestamp is None:
                event = event.model_copy(update={"timestamp": self.clock.now_ns()})
            stored = self.shipments.add_event(tracking_number, event)
        logger.info(
            f"Tracking event added: {tracking_number}",
            extra={'extra_fields': {'tracking_number': tracking_number, 'status': stored.status, 'sequence': stored.sequence}}
        )
        return stored

    def generate_tracking_number(self, caller: CallerContext) -> str:
        with atomic(self.db):
            self._authorize(caller, Operation.GENERATE_TRACKING_NUMBER)
            return self.tracking_numbers.generate()

    def get_shipment(self, caller: CallerContext, tracking_number: str) -> Shipment:
        self._authorize(caller, Operation.READ_SHIPMENT)
        return self.shipments.get(tracking_number)

    def get_latest_tracking_event(self, caller: CallerContext, tracking_number: str) -> TrackingEvent:
        self._authorize(caller, Operation.READ_LATEST_EVENT)
        return self.shipments.get_latest_event(tracking_number)

    def get_tracking_timeline(self, caller: CallerContext, tracking_number: str) -> list[TrackingEvent]:
        self._authorize(caller, Operation.READ_TIMELINE)
        return self.shipments.get_timeline(tracking_number)

    def get_all_shipments(self, caller: CallerContext) -> list[Shipment]:
        self._authorize(caller, Operation.READ_ALL_SHIPMENTS)
        return self.shipments.get_all()

    def add_test_shipments(self, caller: CallerContext) -> list[Shipment]:
        """Populate sample shipments, always under freshly generated numbers."""
        created = []
        with atomic(self.db):
            self._authorize(caller, Operation.SEED_TEST_DATA)
            now = self.clock.now_ns()
            for sample in TEST_SHIPMENTS:
                number = self.tracking_numbers.generate()
                shipment = self.shipments.create(number, sample["origin"], sample["destination"], sample["recipient"])
                for item in sample["events"]:
                    self.shipments.add_event(number, TrackingEventCreate(
                        status=item["status"],
                        location=item["location"],
                        date=item["date"],
                        time=item["time"],
                        timestamp=now - item["offset"] * NS_PER_SECOND,
                        note=item["note"],
                    ))
                created.append(shipment)
        logger.info(
            "Test shipments added",
            extra={'extra_fields': {'tracking_numbers': [s.tracking_number for s in created]}}
        )
        return created

    # Roles

    def get_caller_user_role(self, caller: CallerContext) -> Role:
        return self._authorize(caller, Operation.READ_OWN_ROLE)

    def is_caller_admin(self, caller: CallerContext) -> bool:
        return self.get_caller_user_role(caller) == Role.ADMIN

    def assign_user_role(self, caller: CallerContext, identity: str, role: Role) -> None:
        with atomic(self.db):
            self._authorize(caller, Operation.ASSIGN_ROLE)
            target = _require(identity, "identity")
            if target in RESERVED_IDENTITIES:
                raise ValidationError(f"Cannot assign a role to the reserved identity {target}")
            self.roles.assign_role(target, Role(role))
        logger.info(
            f"Role assigned: {target} -> {Role(role).value}",
            extra={'extra_fields': {'identity': target, 'role': Role(role).value, 'assigned_by': caller.identity}}
        )

    def list_user_roles(self, caller: CallerContext) -> list[UserRoleAssignment]:
        self._authorize(caller, Operation.LIST_ROLES)
        return self.roles.list_roles()

    def set_initial_admin(self, caller: CallerContext, provided_token: str, expected_token: Optional[str] = None) -> None:
        if expected_token is None:
            expected_token = self.settings.ADMIN_TOKEN
        with atomic(self.db):
            self._authorize(caller, Operation.BOOTSTRAP_ADMIN)
            self.roles.set_initial_admin(caller.identity, provided_token, expected_token)
        logger.info(
            "Initial admin assigned",
            extra={'extra_fields': {'identity': caller.identity}}
        )

    # Profiles

    def get_caller_user_profile(self, caller: CallerContext) -> Optional[UserProfile]:
        self._authorize(caller, Operation.READ_OWN_PROFILE)
        return self.roles.get_profile(caller.identity)

    def get_user_profile(self, caller: CallerContext, identity: str) -> Optional[UserProfile]:
        if identity == caller.identity:
            self._authorize(caller, Operation.READ_OWN_PROFILE)
        else:
            self._authorize(caller, Operation.READ_OTHER_PROFILE)
        return self.roles.get_profile(identity)

    def save_caller_user_profile(self, caller: CallerContext, profile: UserProfileSchema) -> UserProfile:
        with atomic(self.db):
            self._authorize(caller, Operation.SAVE_OWN_PROFILE)
            profile = profile.model_copy(update={
                "name": _require(profile.name, "name"),
                "email": _optional(profile.email),
                "phone": _optional(profile.phone),
            })
            saved = self.roles.save_profile(caller.identity, profile)
        return saved
