"""Domain Entities - Aggregates"""
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID, uuid4
from datetime import datetime, date, timezone
from typing import Optional, List
from decimal import Decimal, InvalidOperation

from domain.enums import (
    RoomType, RoomStatus, ReservationStatus, PaymentStatus, PaymentType,
    RESERVATION_TRANSITIONS, PAYMENT_TRANSITIONS
)
from domain.exceptions import InvalidArgumentError, InvalidStateError
from domain.value_objects import DateRange


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_positive_amount(amount, message: str) -> Decimal:
    """Money in: finite and strictly positive, else InvalidArgumentError"""
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidArgumentError(message, details={"amount": str(amount)}) from None
    if not (value.is_finite() and value > 0):
        raise InvalidArgumentError(message, details={"amount": str(amount)})
    return value


class Room(BaseModel):
    """Room Entity - a bookable resource"""
    model_config = ConfigDict(from_attributes=True, validate_assignment=True)

    # Identity
    room_number: str = Field(min_length=1)

    room_type: RoomType
    rate_per_night: Decimal = Field(gt=0)
    max_occupancy: int = Field(ge=1)
    description: str = ""

    # Cached, maintained by the reservation ledger
    status: RoomStatus = RoomStatus.AVAILABLE

    def update_status(self, status: RoomStatus) -> None:
        self.status = status

    def update_rate(self, rate: Decimal) -> None:
        """Change the nightly rate; existing reservations keep their frozen cost"""
        self.rate_per_night = ensure_positive_amount(rate, "Rate must be greater than zero")

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match over number, type and description"""
        needle = query.lower()
        return (
            needle in self.room_number.lower()
            or needle in self.room_type.value.lower()
            or needle in self.description.lower()
        )


class Guest(BaseModel):
    """Guest Entity"""
    model_config = ConfigDict(from_attributes=True)

    # Identity
    guest_id: str = Field(min_length=1)

    name: str
    email: str = ""
    phone: str = ""

    # Back-references only; the reservation ledger owns the reservations
    reservation_ids: List[UUID] = Field(default_factory=list)

    def update_contact_info(self, email: str, phone: str) -> None:
        self.email = email
        self.phone = phone

    def add_reservation(self, reservation_id: UUID) -> None:
        if reservation_id not in self.reservation_ids:
            self.reservation_ids.append(reservation_id)

    def matches(self, query: str) -> bool:
        needle = query.lower()
        return any(
            needle in field.lower()
            for field in (self.name, self.guest_id, self.email, self.phone)
        )


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""
    model_config = ConfigDict(from_attributes=True)

    # Identity
    reservation_id: UUID = Field(default_factory=uuid4)

    # References to other aggregates
    room_number: str
    guest_id: str

    # Snapshot of the room category at booking time, used for revenue grouping
    room_type: RoomType

    # Value Objects
    date_range: DateRange
    party_size: int = Field(ge=1)
    total_cost: Decimal

    # Status
    status: ReservationStatus = ReservationStatus.ACTIVE

    # Metadata
    created_at: datetime = Field(default_factory=_utcnow)
    cancelled_at: Optional[datetime] = None

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        room: Room,
        guest_id: str,
        date_range: DateRange,
        party_size: int
    ) -> "Reservation":
        """Create new reservation, pricing it from the room's current rate"""
        Reservation._validate_party_size(party_size, room)

        return Reservation(
            room_number=room.room_number,
            guest_id=guest_id,
            room_type=room.room_type,
            date_range=date_range,
            party_size=party_size,
            total_cost=date_range.nights() * room.rate_per_night,
            status=ReservationStatus.ACTIVE
        )

    # ==================== STATE TRANSITION METHODS ====================
    def cancel(self) -> None:
        """Cancel reservation; cancelled is terminal"""
        self._transition(ReservationStatus.CANCELLED)
        self.cancelled_at = _utcnow()

    def _transition(self, target: ReservationStatus) -> None:
        if target not in RESERVATION_TRANSITIONS[self.status]:
            raise InvalidStateError(
                f"Cannot move reservation from {self.status.value} to {target.value}"
            )
        self.status = target

    # ==================== QUERY METHODS ====================
    @property
    def is_cancelled(self) -> bool:
        return self.status == ReservationStatus.CANCELLED

    @property
    def is_active(self) -> bool:
        return self.status == ReservationStatus.ACTIVE

    @property
    def check_in(self) -> date:
        return self.date_range.check_in

    @property
    def check_out(self) -> date:
        return self.date_range.check_out

    def get_nights(self) -> int:
        """Get number of nights"""
        return self.date_range.nights()

    def conflicts_with(self, date_range: DateRange) -> bool:
        """Active reservations block any overlapping stay"""
        return self.is_active and self.date_range.overlaps(date_range)

    def covers(self, day: date) -> bool:
        return self.is_active and self.date_range.contains(day)

    # ==================== PRIVATE VALIDATION METHODS ====================
    @staticmethod
    def _validate_party_size(party_size: int, room: Room) -> None:
        if party_size < 1:
            raise InvalidArgumentError("Number of guests must be greater than zero")
        if party_size > room.max_occupancy:
            raise InvalidArgumentError(
                f"Number of guests exceeds room capacity of {room.max_occupancy}"
            )


class Payment(BaseModel):
    """Payment Aggregate Root Entity"""
    model_config = ConfigDict(from_attributes=True)

    # Identity
    payment_id: UUID = Field(default_factory=uuid4)

    # Reference to the reservation being paid
    reservation_id: UUID

    amount: Decimal = Field(gt=0)
    payment_type: PaymentType = PaymentType.CASH

    status: PaymentStatus = PaymentStatus.PENDING
    created_at: datetime = Field(default_factory=_utcnow)
    processed_at: Optional[datetime] = None

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        reservation_id: UUID,
        amount: Decimal,
        payment_type: PaymentType = PaymentType.CASH
    ) -> "Payment":
        """Create a pending payment"""
        amount = ensure_positive_amount(amount, "Payment amount must be greater than zero")

        return Payment(
            reservation_id=reservation_id,
            amount=amount,
            payment_type=payment_type,
            status=PaymentStatus.PENDING
        )

    # ==================== STATE TRANSITION METHODS ====================
    def complete(self) -> None:
        self._transition(PaymentStatus.COMPLETED)

    def fail(self) -> None:
        self._transition(PaymentStatus.FAILED)

    def _transition(self, target: PaymentStatus) -> None:
        if target not in PAYMENT_TRANSITIONS[self.status]:
            raise InvalidStateError(
                f"Payment is already {self.status.value.lower()}",
                details={"payment_id": str(self.payment_id), "target": target.value}
            )
        self.status = target
        self.processed_at = _utcnow()

    # ==================== QUERY METHODS ====================
    @property
    def is_completed(self) -> bool:
        return self.status == PaymentStatus.COMPLETED

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING
