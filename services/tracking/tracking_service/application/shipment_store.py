from typing import Optional
from sqlalchemy import select, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from tracking_service.domain.models import Shipment, TrackingEvent
from tracking_service.domain.errors import Conflict, NotFound, NoEvents
from tracking_service.infrastructure.clock import get_clock
from .schemas import TrackingEventCreate

def latest_of(events: list[TrackingEvent]) -> TrackingEvent:
    """Event with the highest timestamp; on a tie the one appended last."""
    return max(events, key=lambda e: (e.timestamp, e.sequence))

class ShipmentStore:
    """Shipments and their append-only tracking history.

    Mutations flush but do not commit; the service wraps them in ``atomic``.
    """

    def __init__(self, db: Session, clock=None):
        self.db = db
        self.clock = clock or get_clock()

    def _load(self, tracking_number: str, for_update: bool = False) -> Shipment:
        stmt = (
            select(Shipment)
            .options(selectinload(Shipment.events))
            .where(Shipment.tracking_number == tracking_number)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        shipment = self.db.scalars(stmt).first()
        if shipment is None:
            raise NotFound(f"Shipment {tracking_number} not found")
        return shipment

    def exists(self, tracking_number: str) -> bool:
        return bool(self.db.scalar(
            select(exists().where(Shipment.tracking_number == tracking_number))
        ))

    def create(self, tracking_number: str, origin: str, destination: str, recipient: Optional[str] = None) -> Shipment:
        if self.exists(tracking_number):
            raise Conflict(f"Shipment {tracking_number} already exists")
        shipment = Shipment(
            tracking_number=tracking_number,
            origin=origin,
            destination=destination,
            recipient=recipient,
            created_at=self.clock.now_ns(),
            events=[],
        )
        self.db.add(shipment)
        try:
            self.db.flush()
        except IntegrityError as e:
            # Lost a race with a writer in another process
            raise Conflict(f"Shipment {tracking_number} already exists") from e
        return shipment

    def add_event(self, tracking_number: str, data: TrackingEventCreate) -> TrackingEvent:
        if data.timestamp is None:
            raise ValueError("event timestamp must be set before it is stored")
        shipment = self._load(tracking_number, for_update=True)
        event = TrackingEvent(
            sequence=len(shipment.events),
            status=data.status,
            location=data.location,
            date=data.date,
            time=data.time,
            timestamp=data.timestamp,
            note=data.note,
        )
        shipment.events.append(event)
        self.db.flush()
        return event

    def get(self, tracking_number: str) -> Shipment:
        return self._load(tracking_number)

    def get_all(self) -> list[Shipment]:
        stmt = (
            select(Shipment)
            .options(selectinload(Shipment.events))
            .order_by(Shipment.created_at, Shipment.id)
            .execution_options(populate_existing=True)
        )
        return list(self.db.scalars(stmt))

    def get_latest_event(self, tracking_number: str) -> TrackingEvent:
        shipment = self._load(tracking_number)
        if not shipment.events:
            raise NoEvents(f"Shipment {tracking_number} has no tracking events")
        return latest_of(shipment.events)

    def get_timeline(self, tracking_number: str) -> list[TrackingEvent]:
        """Events newest first, as shown on a tracking timeline."""
        shipment = self._load(tracking_number)
        return sorted(shipment.events, key=lambda e: (e.timestamp, e.sequence), reverse=True)
