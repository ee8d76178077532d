from typing import Optional
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy import String, ForeignKey, BigInteger, Boolean, UniqueConstraint

class Base(DeclarativeBase):
    pass

class Shipment(Base):
    __tablename__ = "shipments"
    id: Mapped[int] = mapped_column(primary_key=True)
    tracking_number: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    origin: Mapped[str] = mapped_column(String(200))
    destination: Mapped[str] = mapped_column(String(200))
    recipient: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    # Nanoseconds since the epoch, set once by the service clock
    created_at: Mapped[int] = mapped_column(BigInteger)
    # Append order; display order is by timestamp
    events: Mapped[list["TrackingEvent"]] = relationship(
        "TrackingEvent",
        back_populates="shipment",
        order_by="TrackingEvent.sequence",
        cascade="all, delete-orphan",
    )

class TrackingEvent(Base):
    __tablename__ = "tracking_events"
    __table_args__ = (UniqueConstraint("shipment_id", "sequence", name="uq_tracking_events_shipment_sequence"),)
    id: Mapped[int] = mapped_column(primary_key=True)
    shipment_id: Mapped[int] = mapped_column(ForeignKey("shipments.id"), index=True)
    sequence: Mapped[int] = mapped_column()
    status: Mapped[str] = mapped_column(String(100))
    location: Mapped[str] = mapped_column(String(200))
    date: Mapped[str] = mapped_column(String(30))
    time: Mapped[str] = mapped_column(String(30))
    timestamp: Mapped[int] = mapped_column(BigInteger)
    note: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    shipment: Mapped[Shipment] = relationship("Shipment", back_populates="events")

class UserRoleAssignment(Base):
    __tablename__ = "user_roles"
    identity: Mapped[str] = mapped_column(String(200), primary_key=True)
    role: Mapped[str] = mapped_column(String(16))

class UserProfile(Base):
    __tablename__ = "user_profiles"
    identity: Mapped[str] = mapped_column(String(200), primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

class BootstrapState(Base):
    """Single row (id=1) recording whether the initial admin grant was used."""
    __tablename__ = "bootstrap_state"
    id: Mapped[int] = mapped_column(primary_key=True)
    consumed: Mapped[bool] = mapped_column(Boolean, default=False)
    admin_identity: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    consumed_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

class TrackingSequence(Base):
    __tablename__ = "tracking_sequence"
    id: Mapped[int] = mapped_column(primary_key=True)
    value: Mapped[int] = mapped_column(BigInteger, default=0)

SINGLETON_ID = 1
