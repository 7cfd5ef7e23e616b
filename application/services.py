"""Application Services - Business use cases"""
import asyncio
import logging
from uuid import UUID
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, Iterator, List, Optional

from domain.repositories import RoomRepository, GuestRepository, ReservationRepository, PaymentRepository
from domain.entities import Room, Guest, Reservation, Payment, ensure_positive_amount
from domain.enums import RoomType, RoomStatus, PaymentStatus, PaymentType
from domain.exceptions import (
    NotFoundError, DuplicateKeyError, InvalidArgumentError, ConflictError
)
from domain.value_objects import DateRange
from application.reports import Report, OccupancyReport, RevenueReport

logger = logging.getLogger(__name__)

Clock = Callable[[], date]


def _validated_range(check_in: date, check_out: date) -> DateRange:
    if check_in >= check_out:
        raise InvalidArgumentError("Check-out date must be after check-in date")
    return DateRange(check_in=check_in, check_out=check_out)


def _as_utc(moment: datetime) -> datetime:
    # Naive datetimes are taken as UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class RoomService:
    """Room Registry: catalog of bookable rooms and their cached status"""

    def __init__(self,
                 repository: RoomRepository,
                 reservation_repo: ReservationRepository,
                 lock: asyncio.Lock):
        self.repository = repository
        self.reservation_repo = reservation_repo
        # Shared with ReservationService
        self._lock = lock

    async def add_room(
        self,
        room_number: str,
        room_type: RoomType,
        rate_per_night: Decimal,
        max_occupancy: int,
        description: str = ""
    ) -> Room:
        """Add a room to the registry; it starts AVAILABLE"""
        if not room_number:
            raise InvalidArgumentError("Room number is required")
        rate_per_night = ensure_positive_amount(rate_per_night, "Rate must be greater than zero")
        if max_occupancy < 1:
            raise InvalidArgumentError("Maximum occupancy must be at least 1")

        async with self._lock:
            if await self.repository.find_by_number(room_number):
                raise DuplicateKeyError(
                    "Room with this number already exists",
                    details={"room_number": room_number}
                )
            room = Room(
                room_number=room_number,
                room_type=room_type,
                rate_per_night=rate_per_night,
                max_occupancy=max_occupancy,
                description=description,
                status=RoomStatus.AVAILABLE
            )
            await self.repository.save(room)

        logger.info("Room %s added (%s, %s/night)", room_number, room_type.value, rate_per_night)
        return room

    async def get_room(self, room_number: str) -> Room:
        room = await self.repository.find_by_number(room_number)
        if not room:
            raise NotFoundError("Room not found", details={"room_number": room_number})
        return room

    async def remove_room(self, room_number: str) -> None:
        """Remove a room; occupied rooms must be vacated first"""
        async with self._lock:
            room = await self.get_room(room_number)
            if room.status == RoomStatus.OCCUPIED:
                logger.warning("Refused to remove occupied room %s", room_number)
                raise ConflictError(
                    "Cannot remove an occupied room",
                    details={"room_number": room_number}
                )
            await self.repository.delete(room_number)

        logger.info("Room %s removed", room_number)

    async def set_status(self, room_number: str, status: RoomStatus) -> Room:
        """Direct status override, e.g. for maintenance workflows"""
        async with self._lock:
            room = await self.get_room(room_number)
            room.update_status(status)
            await self.repository.update(room)

        logger.info("Room %s status set to %s", room_number, status.value)
        return room

    async def update_rate(self, room_number: str, rate: Decimal) -> Room:
        async with self._lock:
            room = await self.get_room(room_number)
            room.update_rate(rate)
            await self.repository.update(room)

        logger.info("Room %s rate changed to %s", room_number, rate)
        return room

    async def search(self, query: str) -> Iterator[Room]:
        """Case-insensitive match over number, type and description, in insertion order"""
        rooms = await self.repository.find_all()
        return (room for room in rooms if room.matches(query))

    async def list_rooms(self) -> List[Room]:
        return await self.repository.find_all()

    async def list_occupied(self) -> List[Room]:
        rooms = await self.repository.find_all()
        return [r for r in rooms if r.status == RoomStatus.OCCUPIED]

    async def list_in_maintenance(self) -> List[Room]:
        rooms = await self.repository.find_all()
        return [r for r in rooms if r.status == RoomStatus.MAINTENANCE]

    async def list_available_for_interval(self, check_in: date, check_out: date) -> List[Room]:
        """Rooms not under maintenance with no active reservation overlapping [check_in, check_out)"""
        date_range = _validated_range(check_in, check_out)
        available = []
        for room in await self.repository.find_all():
            if room.status == RoomStatus.MAINTENANCE:
                continue
            reservations = await self.reservation_repo.find_by_room(room.room_number)
            if not any(r.conflicts_with(date_range) for r in reservations):
                available.append(room)
        return available


class GuestService:
    """Guest Directory"""

    def __init__(self,
                 repository: GuestRepository,
                 reservation_repo: ReservationRepository,
                 lock: asyncio.Lock):
        self.repository = repository
        self.reservation_repo = reservation_repo
        self._lock = lock

    async def register(
        self,
        guest_id: str,
        name: str,
        email: str = "",
        phone: str = ""
    ) -> Guest:
        """Register a guest"""
        if not guest_id:
            raise InvalidArgumentError("Guest ID is required")

        async with self._lock:
            if await self.repository.find_by_id(guest_id):
                raise DuplicateKeyError(
                    "Guest with this ID already exists",
                    details={"guest_id": guest_id}
                )
            guest = Guest(guest_id=guest_id, name=name, email=email, phone=phone)
            await self.repository.save(guest)

        logger.info("Guest %s registered", guest_id)
        return guest

    async def get_guest(self, guest_id: str) -> Guest:
        guest = await self.repository.find_by_id(guest_id)
        if not guest:
            raise NotFoundError("Guest not found", details={"guest_id": guest_id})
        return guest

    async def remove(self, guest_id: str) -> None:
        """Remove a guest that holds no active reservation"""
        async with self._lock:
            await self.get_guest(guest_id)
            reservations = await self.reservation_repo.find_by_guest_id(guest_id)
            if any(r.is_active for r in reservations):
                logger.warning("Refused to remove guest %s with active reservations", guest_id)
                raise ConflictError(
                    "Cannot remove guest with active reservations",
                    details={"guest_id": guest_id}
                )
            await self.repository.delete(guest_id)

        logger.info("Guest %s removed", guest_id)

    async def update_contact_info(self, guest_id: str, email: str, phone: str) -> Guest:
        async with self._lock:
            guest = await self.get_guest(guest_id)
            guest.update_contact_info(email, phone)
            await self.repository.update(guest)
        return guest

    async def search(self, query: str) -> Iterator[Guest]:
        """Case-insensitive match over name, ID, email and phone"""
        guests = await self.repository.find_all()
        return (guest for guest in guests if guest.matches(query))

    async def list_guests(self) -> List[Guest]:
        return await self.repository.find_all()


class ReservationService:
    """
    Reservation Ledger.

    Creates and cancels bookings while keeping the active reservations of
    each room pairwise disjoint. Every mutation runs under the booking lock
    shared with RoomService and GuestService, and all validation happens
    before the first write.
    """

    def __init__(self,
                 repository: ReservationRepository,
                 room_repo: RoomRepository,
                 guest_repo: GuestRepository,
                 lock: asyncio.Lock,
                 clock: Clock = date.today):
        self.repository = repository
        self.room_repo = room_repo
        self.guest_repo = guest_repo
        self._lock = lock
        self._clock = clock

    async def create_reservation(
        self,
        room_number: str,
        guest_id: str,
        check_in: date,
        check_out: date,
        party_size: int
    ) -> Reservation:
        """Book a room for [check_in, check_out)"""
        date_range = _validated_range(check_in, check_out)
        if party_size < 1:
            raise InvalidArgumentError("Number of guests must be greater than zero")

        async with self._lock:
            room = await self.room_repo.find_by_number(room_number)
            if not room:
                raise NotFoundError("Room not found", details={"room_number": room_number})
            guest = await self.guest_repo.find_by_id(guest_id)
            if not guest:
                raise NotFoundError("Guest not found", details={"guest_id": guest_id})

            if party_size > room.max_occupancy:
                raise InvalidArgumentError(
                    f"Number of guests exceeds room capacity of {room.max_occupancy}"
                )
            if room.status == RoomStatus.MAINTENANCE:
                logger.warning("Booking refused: room %s is under maintenance", room_number)
                raise ConflictError(
                    "Room is under maintenance",
                    details={"room_number": room_number}
                )

            existing = await self.repository.find_by_room(room_number)
            clash = next((r for r in existing if r.conflicts_with(date_range)), None)
            if clash:
                logger.warning(
                    "Booking refused: room %s already booked %s..%s",
                    room_number, clash.check_in, clash.check_out
                )
                raise ConflictError(
                    "Room is not available for the selected dates",
                    details={"room_number": room_number, "reservation_id": str(clash.reservation_id)}
                )

            reservation = Reservation.create(room, guest.guest_id, date_range, party_size)

            await self.repository.save(reservation)
            room.update_status(RoomStatus.OCCUPIED)
            await self.room_repo.update(room)
            guest.add_reservation(reservation.reservation_id)
            await self.guest_repo.update(guest)

        logger.info(
            "Reservation %s created: room %s, guest %s, %s..%s, total %s",
            reservation.reservation_id, room_number, guest_id,
            check_in, check_out, reservation.total_cost
        )
        return reservation

    async def cancel_reservation(self, reservation_id: UUID) -> Reservation:
        """Cancel an active reservation. Cancelling twice is an error."""
        async with self._lock:
            reservation = await self.repository.find_by_id(reservation_id)
            if not reservation or reservation.is_cancelled:
                raise NotFoundError(
                    "Active reservation not found",
                    details={"reservation_id": str(reservation_id)}
                )

            reservation.cancel()
            await self.repository.update(reservation)

            room = await self.room_repo.find_by_number(reservation.room_number)
            if room:
                await self._refresh_room_status(room, self._clock())

        logger.info("Reservation %s cancelled", reservation_id)
        return reservation

    async def get_reservation(self, reservation_id: UUID) -> Reservation:
        reservation = await self.repository.find_by_id(reservation_id)
        if not reservation:
            raise NotFoundError(
                "Reservation not found",
                details={"reservation_id": str(reservation_id)}
            )
        return reservation

    async def list_reservations(self) -> List[Reservation]:
        return await self.repository.find_all()

    def today(self) -> date:
        """Current date on the ledger's clock"""
        return self._clock()

    async def list_upcoming(self, now: Optional[date] = None) -> List[Reservation]:
        """Active reservations starting on or after now, earliest first"""
        now = now or self._clock()
        reservations = await self.repository.find_all()
        upcoming = [r for r in reservations if r.is_active and r.check_in >= now]
        return sorted(upcoming, key=lambda r: r.check_in)

    async def list_history_for_guest(self, guest_id: str) -> List[Reservation]:
        """All reservations of a guest, active and cancelled, earliest first"""
        if not await self.guest_repo.find_by_id(guest_id):
            raise NotFoundError("Guest not found", details={"guest_id": guest_id})
        reservations = await self.repository.find_by_guest_id(guest_id)
        return sorted(reservations, key=lambda r: r.check_in)

    async def list_for_room(self, room_number: str) -> List[Reservation]:
        reservations = await self.repository.find_by_room(room_number)
        return sorted(reservations, key=lambda r: r.check_in)

    async def reconcile_room_statuses(self, today: Optional[date] = None) -> List[Room]:
        """Recompute every cached status from the reservations covering today; returns changed rooms"""
        today = today or self._clock()
        changed = []
        async with self._lock:
            for room in await self.room_repo.find_all():
                previous = room.status
                await self._refresh_room_status(room, today)
                if room.status != previous:
                    changed.append(room)

        if changed:
            logger.info("Reconciled %d room statuses for %s", len(changed), today)
        return changed

    async def _refresh_room_status(self, room: Room, today: date) -> None:
        # Maintenance is owned by external workflows
        if room.status == RoomStatus.MAINTENANCE:
            return
        reservations = await self.repository.find_by_room(room.room_number)
        occupied = any(r.covers(today) for r in reservations)
        room.update_status(RoomStatus.OCCUPIED if occupied else RoomStatus.AVAILABLE)
        await self.room_repo.update(room)


class PaymentService:
    """Payment Ledger: one Pending -> Completed | Failed machine per payment"""

    def __init__(self,
                 repository: PaymentRepository,
                 reservation_repo: ReservationRepository,
                 booking_lock: asyncio.Lock,
                 lock: Optional[asyncio.Lock] = None):
        self.repository = repository
        self.reservation_repo = reservation_repo
        self._booking_lock = booking_lock
        self._lock = lock or asyncio.Lock()

    async def create_payment(
        self,
        reservation_id: UUID,
        amount: Decimal,
        payment_type: PaymentType = PaymentType.CASH
    ) -> Payment:
        """Create a pending payment against an active reservation"""
        # Booking lock first, then payment lock
        async with self._booking_lock:
            await self._require_active_reservation(reservation_id)
            async with self._lock:
                payment = Payment.create(reservation_id, amount, payment_type)
                await self.repository.save(payment)

        logger.info("Payment %s created for reservation %s: %s", payment.payment_id, reservation_id, amount)
        return payment

    async def process_payment(
        self,
        reservation_id: UUID,
        amount: Decimal,
        payment_type: PaymentType = PaymentType.CASH
    ) -> Payment:
        """Create and immediately complete a payment"""
        async with self._booking_lock:
            await self._require_active_reservation(reservation_id)
            async with self._lock:
                payment = Payment.create(reservation_id, amount, payment_type)
                payment.complete()
                await self.repository.save(payment)

        logger.info("Payment %s processed for reservation %s: %s", payment.payment_id, reservation_id, amount)
        return payment

    async def complete(self, payment_id: UUID) -> Payment:
        async with self._lock:
            payment = await self.get_payment(payment_id)
            payment.complete()
            await self.repository.update(payment)

        logger.info("Payment %s completed", payment_id)
        return payment

    async def fail(self, payment_id: UUID) -> Payment:
        async with self._lock:
            payment = await self.get_payment(payment_id)
            payment.fail()
            await self.repository.update(payment)

        logger.info("Payment %s failed", payment_id)
        return payment

    async def get_payment(self, payment_id: UUID) -> Payment:
        payment = await self.repository.find_by_id(payment_id)
        if not payment:
            raise NotFoundError("Payment not found", details={"payment_id": str(payment_id)})
        return payment

    async def payment_history(self) -> List[Payment]:
        payments = await self.repository.find_all()
        return sorted(payments, key=lambda p: p.created_at)

    async def payments_for_reservation(self, reservation_id: UUID) -> List[Payment]:
        return await self.repository.find_by_reservation_id(reservation_id)

    async def total_revenue(self) -> Decimal:
        """Sum of completed payment amounts"""
        payments = await self.repository.find_all()
        return sum((p.amount for p in payments if p.is_completed), Decimal("0"))

    async def _require_active_reservation(self, reservation_id: UUID) -> Reservation:
        reservation = await self.reservation_repo.find_by_id(reservation_id)
        if not reservation or reservation.is_cancelled:
            logger.warning("Payment refused: reservation %s is not active", reservation_id)
            raise NotFoundError(
                "Active reservation not found",
                details={"reservation_id": str(reservation_id)}
            )
        return reservation


class ReportingService:
    """Read-only views over rooms, reservations and payments"""

    def __init__(self,
                 room_service: RoomService,
                 reservation_repo: ReservationRepository,
                 payment_repo: PaymentRepository):
        self.room_service = room_service
        self.reservation_repo = reservation_repo
        self.payment_repo = payment_repo
        self._history: List[Report] = []

    async def occupancy_rate(self) -> Decimal:
        """Occupied / total rooms from the cached room status"""
        rooms = await self.room_service.list_rooms()
        if not rooms:
            return Decimal("0")
        occupied = sum(1 for r in rooms if r.status == RoomStatus.OCCUPIED)
        return Decimal(occupied) / Decimal(len(rooms))

    async def revenue_by_room_type(self) -> Dict[RoomType, Decimal]:
        payments = await self.payment_repo.find_all()
        return await self._group_by_room_type(p for p in payments if p.is_completed)

    async def occupancy_report(self, start_date: date, end_date: date) -> OccupancyReport:
        rooms = await self.room_service.list_rooms()
        available = await self.room_service.list_available_for_interval(start_date, end_date)
        report = OccupancyReport(
            generated_at=datetime.now(timezone.utc),
            start_date=start_date,
            end_date=end_date,
            total_rooms=len(rooms),
            occupied_rooms=sum(1 for r in rooms if r.status == RoomStatus.OCCUPIED),
            available_rooms=len(available),
            maintenance_rooms=sum(1 for r in rooms if r.status == RoomStatus.MAINTENANCE)
        )
        self._history.append(report)
        return report

    async def revenue_report(self, start: datetime, end: datetime) -> RevenueReport:
        start, end = _as_utc(start), _as_utc(end)
        if start > end:
            raise InvalidArgumentError("Report start must not be after its end")

        payments = [
            p for p in await self.payment_repo.find_all()
            if p.status == PaymentStatus.COMPLETED and start <= p.created_at <= end
        ]
        by_payment_type: Dict[PaymentType, Decimal] = {}
        for payment in payments:
            by_payment_type[payment.payment_type] = (
                by_payment_type.get(payment.payment_type, Decimal("0")) + payment.amount
            )

        report = RevenueReport(
            generated_at=datetime.now(timezone.utc),
            start=start,
            end=end,
            total_revenue=sum((p.amount for p in payments), Decimal("0")),
            revenue_by_payment_type=by_payment_type,
            revenue_by_room_type=await self._group_by_room_type(payments)
        )
        self._history.append(report)
        return report

    def report_history(self, start: datetime, end: datetime) -> List[Report]:
        """Reports generated inside [start, end], newest first"""
        start, end = _as_utc(start), _as_utc(end)
        reports = [r for r in self._history if start <= r.generated_at <= end]
        return sorted(reports, key=lambda r: r.generated_at, reverse=True)

    async def _group_by_room_type(self, payments) -> Dict[RoomType, Decimal]:
        totals: Dict[RoomType, Decimal] = {}
        for payment in payments:
            reservation = await self.reservation_repo.find_by_id(payment.reservation_id)
            if not reservation:
                continue
            totals[reservation.room_type] = (
                totals.get(reservation.room_type, Decimal("0")) + payment.amount
            )
        return totals
