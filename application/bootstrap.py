"""Engine composition root: builds repositories, locks and services once"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List

from application.services import (
    Clock, RoomService, GuestService, ReservationService, PaymentService, ReportingService
)
from domain.entities import Room, Guest, Reservation, Payment
from domain.exceptions import ConflictError, DuplicateKeyError, NotFoundError
from infrastructure.repositories.in_memory_repositories import (
    InMemoryRoomRepository, InMemoryGuestRepository,
    InMemoryReservationRepository, InMemoryPaymentRepository
)

logger = logging.getLogger(__name__)


@dataclass
class HotelEngine:
    """All engine services sharing one set of repositories"""
    room_repo: InMemoryRoomRepository
    guest_repo: InMemoryGuestRepository
    reservation_repo: InMemoryReservationRepository
    payment_repo: InMemoryPaymentRepository
    booking_lock: asyncio.Lock
    payment_lock: asyncio.Lock
    rooms: RoomService
    guests: GuestService
    reservations: ReservationService
    payments: PaymentService
    reports: ReportingService

    async def restore(
        self,
        rooms: Iterable[Room] = (),
        guests: Iterable[Guest] = (),
        reservations: Iterable[Reservation] = (),
        payments: Iterable[Payment] = ()
    ) -> None:
        """
        Replay previously persisted records into an engine.

        The whole batch is validated before anything is inserted: duplicate
        identifiers raise DuplicateKeyError, dangling references raise
        NotFoundError and overlapping active reservations on a room raise
        ConflictError. Room statuses and reservation costs are taken as
        stored. Guest back-references are rebuilt from the reservations.
        """
        rooms, guests = list(rooms), list(guests)
        reservations, payments = list(reservations), list(payments)

        async with self.booking_lock:
            async with self.payment_lock:
                known_rooms = self._index_new(
                    await self.room_repo.find_all(), rooms, lambda r: r.room_number, "Room"
                )
                known_guests = self._index_new(
                    await self.guest_repo.find_all(), guests, lambda g: g.guest_id, "Guest"
                )
                known_reservations = self._index_new(
                    await self.reservation_repo.find_all(), reservations, lambda r: r.reservation_id, "Reservation"
                )
                self._index_new(
                    await self.payment_repo.find_all(), payments, lambda p: p.payment_id, "Payment"
                )

                for reservation in reservations:
                    if reservation.room_number not in known_rooms:
                        raise NotFoundError(
                            "Room not found",
                            details={"room_number": reservation.room_number}
                        )
                    if reservation.guest_id not in known_guests:
                        raise NotFoundError("Guest not found", details={"guest_id": reservation.guest_id})
                self._check_disjoint(list(known_reservations.values()))

                for payment in payments:
                    if payment.reservation_id not in known_reservations:
                        raise NotFoundError(
                            "Reservation not found",
                            details={"reservation_id": str(payment.reservation_id)}
                        )

                for room in rooms:
                    await self.room_repo.save(room)
                for guest in guests:
                    await self.guest_repo.save(guest)
                for reservation in reservations:
                    await self.reservation_repo.save(reservation)
                    guest = known_guests[reservation.guest_id]
                    guest.add_reservation(reservation.reservation_id)
                    await self.guest_repo.update(guest)
                for payment in payments:
                    await self.payment_repo.save(payment)

        logger.info(
            "Restored %d rooms, %d guests, %d reservations, %d payments",
            len(rooms), len(guests), len(reservations), len(payments)
        )

    @staticmethod
    def _index_new(existing: List, incoming: List, key, label: str) -> Dict:
        index = {key(item): item for item in existing}
        for item in incoming:
            if key(item) in index:
                raise DuplicateKeyError(
                    f"{label} with this identifier already exists",
                    details={"id": str(key(item))}
                )
            index[key(item)] = item
        return index

    @staticmethod
    def _check_disjoint(reservations: List[Reservation]) -> None:
        by_room: Dict[str, List[Reservation]] = {}
        for reservation in reservations:
            if reservation.is_active:
                by_room.setdefault(reservation.room_number, []).append(reservation)
        for room_number, active in by_room.items():
            active.sort(key=lambda r: r.check_in)
            for earlier, later in zip(active, active[1:]):
                if earlier.date_range.overlaps(later.date_range):
                    raise ConflictError(
                        "Overlapping active reservations",
                        details={
                            "room_number": room_number,
                            "reservation_ids": [str(earlier.reservation_id), str(later.reservation_id)]
                        }
                    )


def build_engine(clock: Clock = date.today) -> HotelEngine:
    """Construct a fresh engine; one per process, or one per test"""
    room_repo = InMemoryRoomRepository()
    guest_repo = InMemoryGuestRepository()
    reservation_repo = InMemoryReservationRepository()
    payment_repo = InMemoryPaymentRepository()

    booking_lock = asyncio.Lock()
    payment_lock = asyncio.Lock()

    rooms = RoomService(room_repo, reservation_repo, booking_lock)
    return HotelEngine(
        room_repo=room_repo,
        guest_repo=guest_repo,
        reservation_repo=reservation_repo,
        payment_repo=payment_repo,
        booking_lock=booking_lock,
        payment_lock=payment_lock,
        rooms=rooms,
        guests=GuestService(guest_repo, reservation_repo, booking_lock),
        reservations=ReservationService(reservation_repo, room_repo, guest_repo, booking_lock, clock),
        payments=PaymentService(payment_repo, reservation_repo, booking_lock, payment_lock),
        reports=ReportingService(rooms, reservation_repo, payment_repo)
    )

