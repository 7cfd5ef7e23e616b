"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field, model_validator
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import Dict, List, Optional

from domain.enums import RoomType, RoomStatus, PaymentType


# ============================================================================
# ROOM SCHEMAS
# ============================================================================

class CreateRoomRequest(BaseModel):
    """Create room request DTO"""
    room_number: str = Field(min_length=1)
    room_type: RoomType
    rate_per_night: Decimal
    max_occupancy: int
    description: str = ""


class UpdateRoomStatusRequest(BaseModel):
    """Room status override DTO"""
    status: RoomStatus


class UpdateRoomRateRequest(BaseModel):
    """Room rate change DTO"""
    rate_per_night: Decimal


class RoomResponse(BaseModel):
    """Room response DTO"""
    room_number: str
    room_type: str
    rate_per_night: Decimal
    max_occupancy: int
    description: str
    status: str


# ============================================================================
# GUEST SCHEMAS
# ============================================================================

class RegisterGuestRequest(BaseModel):
    """Register guest request DTO"""
    guest_id: str = Field(min_length=1)
    name: str
    email: str = ""
    phone: str = ""


class UpdateContactRequest(BaseModel):
    """Update guest contact info DTO"""
    email: str
    phone: str


class GuestResponse(BaseModel):
    """Guest response DTO"""
    guest_id: str
    name: str
    email: str
    phone: str
    reservation_ids: List[UUID]


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class CreateReservationRequest(BaseModel):
    """Create reservation request DTO"""
    room_number: str
    guest_id: str
    check_in: date
    check_out: date
    party_size: int


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    reservation_id: UUID
    room_number: str
    guest_id: str
    room_type: str
    check_in: date
    check_out: date
    nights: int
    party_size: int
    total_cost: Decimal
    currency: str
    status: str
    is_cancelled: bool
    created_at: datetime
    cancelled_at: Optional[datetime] = None


class ReconcileResponse(BaseModel):
    """Rooms whose cached status changed during reconciliation"""
    as_of: date
    changed_rooms: List[RoomResponse]


# ============================================================================
# PAYMENT SCHEMAS
# ============================================================================

class CreatePaymentRequest(BaseModel):
    """Create payment request DTO"""
    reservation_id: UUID
    amount: Decimal
    payment_type: PaymentType = PaymentType.CASH


class PaymentResponse(BaseModel):
    """Payment response DTO"""
    payment_id: UUID
    reservation_id: UUID
    amount: Decimal
    currency: str
    payment_type: str
    status: str
    created_at: datetime
    processed_at: Optional[datetime] = None


class MoneyResponse(BaseModel):
    """Money response DTO"""
    amount: Decimal
    currency: str


# ============================================================================
# REPORT SCHEMAS
# ============================================================================

class OccupancyRateResponse(BaseModel):
    """Occupancy from cached room status"""
    occupancy_rate: Decimal


class RevenueByRoomTypeResponse(BaseModel):
    """Completed revenue per room category"""
    currency: str
    revenue: Dict[str, Decimal]


class OccupancyReportRequest(BaseModel):
    """Occupancy report window"""
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def end_after_start(self) -> "OccupancyReportRequest":
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class RevenueReportRequest(BaseModel):
    """Revenue report window"""
    start: datetime
    end: datetime


class OccupancyReportResponse(BaseModel):
    """Occupancy report DTO"""
    report_id: UUID
    generated_at: datetime
    start_date: date
    end_date: date
    total_rooms: int
    occupied_rooms: int
    available_rooms: int
    maintenance_rooms: int
    occupancy_rate: Decimal


class RevenueReportResponse(BaseModel):
    """Revenue report DTO"""
    report_id: UUID
    generated_at: datetime
    start: datetime
    end: datetime
    currency: str
    total_revenue: Decimal
    revenue_by_payment_type: Dict[str, Decimal]
    revenue_by_room_type: Dict[str, Decimal]


class ReportSummaryResponse(BaseModel):
    """Entry in the report history"""
    report_id: UUID
    report_type: str
    generated_at: datetime


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str

class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None

class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str
    disabled: bool
