"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List
from uuid import UUID

from domain.entities import Room, Guest, Reservation, Payment


class RoomRepository(ABC):
    """Repository interface for Room Entity"""

    @abstractmethod
    async def save(self, room: Room) -> Room:
        """Save room"""
        pass

    @abstractmethod
    async def find_by_number(self, room_number: str) -> Optional[Room]:
        """Find room by room number"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Room]:
        """Find all rooms in insertion order"""
        pass

    @abstractmethod
    async def update(self, room: Room) -> Room:
        """Update room"""
        pass

    @abstractmethod
    async def delete(self, room_number: str) -> bool:
        """Delete room"""
        pass


class GuestRepository(ABC):
    """Repository interface for Guest Entity"""

    @abstractmethod
    async def save(self, guest: Guest) -> Guest:
        """Save guest"""
        pass

    @abstractmethod
    async def find_by_id(self, guest_id: str) -> Optional[Guest]:
        """Find guest by ID"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Guest]:
        """Find all guests in insertion order"""
        pass

    @abstractmethod
    async def update(self, guest: Guest) -> Guest:
        """Update guest"""
        pass

    @abstractmethod
    async def delete(self, guest_id: str) -> bool:
        """Delete guest"""
        pass


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate. Reservations are never deleted."""

    @abstractmethod
    async def save(self, reservation: Reservation) -> Reservation:
        """Save reservation"""
        pass

    @abstractmethod
    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_by_room(self, room_number: str) -> List[Reservation]:
        """Find reservations on a room"""
        pass

    @abstractmethod
    async def find_by_guest_id(self, guest_id: str) -> List[Reservation]:
        """Find reservations by guest ID"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        pass

    @abstractmethod
    async def update(self, reservation: Reservation) -> Reservation:
        """Update reservation"""
        pass


class PaymentRepository(ABC):
    """Repository interface for Payment Aggregate"""

    @abstractmethod
    async def save(self, payment: Payment) -> Payment:
        """Save payment"""
        pass

    @abstractmethod
    async def find_by_id(self, payment_id: UUID) -> Optional[Payment]:
        """Find payment by ID"""
        pass

    @abstractmethod
    async def find_by_reservation_id(self, reservation_id: UUID) -> List[Payment]:
        """Find payments for a reservation"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Payment]:
        """Find all payments"""
        pass

    @abstractmethod
    async def update(self, payment: Payment) -> Payment:
        """Update payment"""
        pass
