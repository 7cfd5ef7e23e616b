"""In-Memory Repository Implementations"""
from typing import Optional, List, Dict
from uuid import UUID

from domain.repositories import RoomRepository, GuestRepository, ReservationRepository, PaymentRepository
from domain.entities import Room, Guest, Reservation, Payment
from domain.exceptions import NotFoundError


class InMemoryRoomRepository(RoomRepository):
    """In-memory implementation of RoomRepository; dicts keep insertion order"""

    def __init__(self):
        self._storage: Dict[str, Room] = {}

    async def save(self, room: Room) -> Room:
        """Save room to memory"""
        self._storage[room.room_number] = room
        return room

    async def find_by_number(self, room_number: str) -> Optional[Room]:
        """Find room by room number"""
        return self._storage.get(room_number)

    async def find_all(self) -> List[Room]:
        """Find all rooms"""
        return list(self._storage.values())

    async def update(self, room: Room) -> Room:
        """Update room"""
        if room.room_number in self._storage:
            self._storage[room.room_number] = room
            return room
        raise NotFoundError("Room not found")

    async def delete(self, room_number: str) -> bool:
        """Delete room"""
        if room_number in self._storage:
            del self._storage[room_number]
            return True
        return False


class InMemoryGuestRepository(GuestRepository):
    """In-memory implementation of GuestRepository"""

    def __init__(self):
        self._storage: Dict[str, Guest] = {}

    async def save(self, guest: Guest) -> Guest:
        """Save guest to memory"""
        self._storage[guest.guest_id] = guest
        return guest

    async def find_by_id(self, guest_id: str) -> Optional[Guest]:
        """Find guest by ID"""
        return self._storage.get(guest_id)

    async def find_all(self) -> List[Guest]:
        """Find all guests"""
        return list(self._storage.values())

    async def update(self, guest: Guest) -> Guest:
        """Update guest"""
        if guest.guest_id in self._storage:
            self._storage[guest.guest_id] = guest
            return guest
        raise NotFoundError("Guest not found")

    async def delete(self, guest_id: str) -> bool:
        """Delete guest"""
        if guest_id in self._storage:
            del self._storage[guest_id]
            return True
        return False


class InMemoryReservationRepository(ReservationRepository):
    """Arena of reservations with secondary indices by room and by guest"""

    def __init__(self):
        self._storage: Dict[UUID, Reservation] = {}
        self._by_room: Dict[str, List[UUID]] = {}
        self._by_guest: Dict[str, List[UUID]] = {}

    async def save(self, reservation: Reservation) -> Reservation:
        """Save reservation to memory and index it"""
        if reservation.reservation_id not in self._storage:
            self._by_room.setdefault(reservation.room_number, []).append(reservation.reservation_id)
            self._by_guest.setdefault(reservation.guest_id, []).append(reservation.reservation_id)
        self._storage[reservation.reservation_id] = reservation
        return reservation

    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        return self._storage.get(reservation_id)

    async def find_by_room(self, room_number: str) -> List[Reservation]:
        """Find reservations on a room"""
        return [self._storage[rid] for rid in self._by_room.get(room_number, [])]

    async def find_by_guest_id(self, guest_id: str) -> List[Reservation]:
        """Find reservations by guest ID"""
        return [self._storage[rid] for rid in self._by_guest.get(guest_id, [])]

    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        return list(self._storage.values())

    async def update(self, reservation: Reservation) -> Reservation:
        """Update reservation"""
        if reservation.reservation_id in self._storage:
            self._storage[reservation.reservation_id] = reservation
            return reservation
        raise NotFoundError("Reservation not found")


class InMemoryPaymentRepository(PaymentRepository):
    """In-memory implementation of PaymentRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Payment] = {}

    async def save(self, payment: Payment) -> Payment:
        """Save payment to memory"""
        self._storage[payment.payment_id] = payment
        return payment

    async def find_by_id(self, payment_id: UUID) -> Optional[Payment]:
        """Find payment by ID"""
        return self._storage.get(payment_id)

    async def find_by_reservation_id(self, reservation_id: UUID) -> List[Payment]:
        """Find payments for a reservation"""
        return [p for p in self._storage.values() if p.reservation_id == reservation_id]

    async def find_all(self) -> List[Payment]:
        """Find all payments"""
        return list(self._storage.values())

    async def update(self, payment: Payment) -> Payment:
        """Update payment"""
        if payment.payment_id in self._storage:
            self._storage[payment.payment_id] = payment
            return payment
        raise NotFoundError("Payment not found")
