from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..session import Base


class BookingStatus(str, PyEnum):
    confirmed = "confirmed"
    cancelled = "cancelled"
    # Declared for a future waitlist; nothing creates or promotes it yet
    waitlist = "waitlist"


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_booking_end_after_start"),
        Index("ix_booking_court_window", "court_id", "start_time", "end_time"),
        Index("ix_booking_coach_window", "coach_id", "start_time", "end_time"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    court_id: Mapped[int] = mapped_column(ForeignKey("courts.id", ondelete="CASCADE"))
    coach_id: Mapped[int | None] = mapped_column(ForeignKey("coaches.id", ondelete="SET NULL"))
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus), default=BookingStatus.confirmed, index=True
    )

    # Pricing breakdown, frozen at commit time
    base_price: Mapped[float] = mapped_column(Numeric(10, 2), default=0)
    price_after_rules: Mapped[float] = mapped_column(Numeric(10, 2), default=0)
    rule_adjustments: Mapped[list] = mapped_column(JSON, default=list)
    equipment_fee: Mapped[float] = mapped_column(Numeric(10, 2), default=0)
    coach_fee: Mapped[float] = mapped_column(Numeric(10, 2), default=0)
    total: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_by: Mapped[int | None] = mapped_column(Integer)

    user = relationship("User")
    court = relationship("Court")
    coach = relationship("Coach")
    equipment_items = relationship(
        "BookingEquipment",
        back_populates="booking",
        cascade="all, delete-orphan",
    )


class BookingEquipment(Base):
    __tablename__ = "booking_equipment"
    __table_args__ = (
        UniqueConstraint("booking_id", "equipment_id", name="uq_booking_equipment_item"),
        CheckConstraint("quantity > 0", name="ck_booking_equipment_quantity_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    booking_id: Mapped[int] = mapped_column(ForeignKey("bookings.id", ondelete="CASCADE"))
    equipment_id: Mapped[int] = mapped_column(
        ForeignKey("equipment.id", ondelete="RESTRICT"), index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    booking = relationship("Booking", back_populates="equipment_items")
    equipment = relationship("Equipment")
