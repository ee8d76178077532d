from sqlalchemy import select, update
from sqlalchemy.orm import Session
from tracking_service.domain.models import TrackingSequence, SINGLETON_ID
from .shipment_store import ShipmentStore

class TrackingNumberGenerator:
    """Sequence-based tracking numbers in the form PREFIX-000001.

    The counter lives in the database and is advanced with a single atomic
    UPDATE, so concurrent generators never observe the same value. Numbers
    already taken by a manually created shipment are skipped.
    """

    def __init__(self, db: Session, prefix: str = "TRK"):
        self.db = db
        self.prefix = prefix
        self.shipments = ShipmentStore(db)

    def _advance(self) -> int:
        result = self.db.execute(
            update(TrackingSequence)
            .where(TrackingSequence.id == SINGLETON_ID)
            .values(value=TrackingSequence.value + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.add(TrackingSequence(id=SINGLETON_ID, value=1))
            self.db.flush()
            return 1
        return self.db.scalar(select(TrackingSequence.value).where(TrackingSequence.id == SINGLETON_ID))

    def format(self, value: int) -> str:
        return f"{self.prefix}-{value:06d}"

    def generate(self) -> str:
        while True:
            candidate = self.format(self._advance())
            if not self.shipments.exists(candidate):
                return candidate
