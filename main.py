import logging
from fastapi import FastAPI, HTTPException, Depends, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm
from uuid import UUID
from datetime import date, timedelta
from typing import List, Optional

from api.schemas import (
    # Rooms
    CreateRoomRequest, UpdateRoomStatusRequest, UpdateRoomRateRequest, RoomResponse,
    # Guests
    RegisterGuestRequest, UpdateContactRequest, GuestResponse,
    # Reservations
    CreateReservationRequest, ReservationResponse, ReconcileResponse,
    # Payments
    CreatePaymentRequest, PaymentResponse, MoneyResponse,
    # Reports
    OccupancyRateResponse, RevenueByRoomTypeResponse, OccupancyReportRequest,
    RevenueReportRequest, OccupancyReportResponse, RevenueReportResponse, ReportSummaryResponse,
    # Auth
    Token, UserResponse
)

from api.dependencies import get_current_active_user, staff_db, get_user
from infrastructure.config import settings
from infrastructure.logging_config import setup_logging
from infrastructure.security import verify_password, create_access_token, ACCESS_TOKEN_EXPIRE_MINUTES
from domain.auth import User

from application.bootstrap import HotelEngine, build_engine
from application.reports import OccupancyReport
from application.services import (
    RoomService, GuestService, ReservationService, PaymentService, ReportingService
)
from domain.enums import RoomType, RoomStatus, ReservationStatus, PaymentStatus, PaymentType
from domain.exceptions import (
    HotelDomainError, NotFoundError, DuplicateKeyError, InvalidArgumentError,
    ConflictError, InvalidStateError
)

setup_logging()
logger = logging.getLogger("main")

app = FastAPI(
    title=settings.APP_NAME,
    description="Room reservation and payment engine for a hotel front desk",
    version="1.0.0",
    debug=settings.DEBUG
)

# One engine per process
engine = build_engine()

# Dependency injection
def get_engine() -> HotelEngine:
    return engine

def get_room_service(engine: HotelEngine = Depends(get_engine)) -> RoomService:
    return engine.rooms

def get_guest_service(engine: HotelEngine = Depends(get_engine)) -> GuestService:
    return engine.guests

def get_reservation_service(engine: HotelEngine = Depends(get_engine)) -> ReservationService:
    return engine.reservations

def get_payment_service(engine: HotelEngine = Depends(get_engine)) -> PaymentService:
    return engine.payments

def get_reporting_service(engine: HotelEngine = Depends(get_engine)) -> ReportingService:
    return engine.reports

# ============================================================================
# ERROR MAPPING
# ============================================================================

_STATUS_BY_ERROR = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateKeyError: status.HTTP_409_CONFLICT,
    InvalidArgumentError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
    InvalidStateError: status.HTTP_409_CONFLICT,
}

@app.exception_handler(HotelDomainError)
async def domain_error_handler(request: Request, exc: HotelDomainError):
    status_code = next(
        (code for kind, code in _STATUS_BY_ERROR.items() if isinstance(exc, kind)),
        status.HTTP_400_BAD_REQUEST
    )
    logger.info("%s %s -> %d %s", request.method, request.url.path, status_code, exc.error_code)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error_code": exc.error_code}
    )

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/room-type", tags=["Enum Reference"])
async def get_room_types():
    """Get all RoomType enum values"""
    return {"values": [item.name for item in RoomType]}

@app.get("/api/enums/room-status", tags=["Enum Reference"])
async def get_room_statuses():
    """Get all RoomStatus enum values"""
    return {"values": [item.name for item in RoomStatus]}

@app.get("/api/enums/reservation-status", tags=["Enum Reference"])
async def get_reservation_statuses():
    """Get all ReservationStatus enum values"""
    return {"values": [item.name for item in ReservationStatus]}

@app.get("/api/enums/payment-status", tags=["Enum Reference"])
async def get_payment_statuses():
    """Get all PaymentStatus enum values"""
    return {"values": [item.name for item in PaymentStatus]}

@app.get("/api/enums/payment-type", tags=["Enum Reference"])
async def get_payment_types():
    """Get all PaymentType enum values"""
    return {"values": [item.name for item in PaymentType]}

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = get_user(staff_db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        logger.warning("Failed login for %s", form_data.username)
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(
        data={"sub": user.username},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# ROOM ENDPOINTS
# ============================================================================

@app.post("/api/rooms", response_model=RoomResponse, status_code=201, tags=["Rooms"])
async def add_room(
    request: CreateRoomRequest,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Add a room to the registry"""
    room = await service.add_room(
        room_number=request.room_number,
        room_type=request.room_type,
        rate_per_night=request.rate_per_night,
        max_occupancy=request.max_occupancy,
        description=request.description
    )
    return _room_to_response(room)

@app.get("/api/rooms", response_model=List[RoomResponse], tags=["Rooms"])
async def list_rooms(
    q: Optional[str] = None,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """List all rooms, or search them when q is given"""
    rooms = await service.search(q) if q else await service.list_rooms()
    return [_room_to_response(r) for r in rooms]

@app.get("/api/rooms/available", response_model=List[RoomResponse], tags=["Rooms"])
async def list_available_rooms(
    check_in: date,
    check_out: date,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Rooms bookable for [check_in, check_out)"""
    rooms = await service.list_available_for_interval(check_in, check_out)
    return [_room_to_response(r) for r in rooms]

@app.get("/api/rooms/{room_number}", response_model=RoomResponse, tags=["Rooms"])
async def get_room(
    room_number: str,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get room by number"""
    return _room_to_response(await service.get_room(room_number))

@app.put("/api/rooms/{room_number}/status", response_model=RoomResponse, tags=["Rooms"])
async def set_room_status(
    room_number: str,
    request: UpdateRoomStatusRequest,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Override room status (maintenance workflows)"""
    room = await service.set_status(room_number, request.status)
    return _room_to_response(room)

@app.put("/api/rooms/{room_number}/rate", response_model=RoomResponse, tags=["Rooms"])
async def update_room_rate(
    room_number: str,
    request: UpdateRoomRateRequest,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Change the nightly rate"""
    room = await service.update_rate(room_number, request.rate_per_night)
    return _room_to_response(room)

@app.delete("/api/rooms/{room_number}", status_code=204, tags=["Rooms"])
async def remove_room(
    room_number: str,
    service: RoomService = Depends(get_room_service),
    current_user: User = Depends(get_current_active_user)
):
    """Remove a room that is not occupied"""
    await service.remove_room(room_number)

# ============================================================================
# GUEST ENDPOINTS
# ============================================================================

@app.post("/api/guests", response_model=GuestResponse, status_code=201, tags=["Guests"])
async def register_guest(
    request: RegisterGuestRequest,
    service: GuestService = Depends(get_guest_service),
    current_user: User = Depends(get_current_active_user)
):
    """Register a guest"""
    guest = await service.register(
        guest_id=request.guest_id,
        name=request.name,
        email=request.email,
        phone=request.phone
    )
    return _guest_to_response(guest)

@app.get("/api/guests", response_model=List[GuestResponse], tags=["Guests"])
async def list_guests(
    q: Optional[str] = None,
    service: GuestService = Depends(get_guest_service),
    current_user: User = Depends(get_current_active_user)
):
    """List all guests, or search them when q is given"""
    guests = await service.search(q) if q else await service.list_guests()
    return [_guest_to_response(g) for g in guests]

@app.get("/api/guests/{guest_id}", response_model=GuestResponse, tags=["Guests"])
async def get_guest(
    guest_id: str,
    service: GuestService = Depends(get_guest_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get guest by ID"""
    return _guest_to_response(await service.get_guest(guest_id))

@app.put("/api/guests/{guest_id}/contact", response_model=GuestResponse, tags=["Guests"])
async def update_guest_contact(
    guest_id: str,
    request: UpdateContactRequest,
    service: GuestService = Depends(get_guest_service),
    current_user: User = Depends(get_current_active_user)
):
    """Update guest email and phone"""
    guest = await service.update_contact_info(guest_id, request.email, request.phone)
    return _guest_to_response(guest)

@app.delete("/api/guests/{guest_id}", status_code=204, tags=["Guests"])
async def remove_guest(
    guest_id: str,
    service: GuestService = Depends(get_guest_service),
    current_user: User = Depends(get_current_active_user)
):
    """Remove a guest without active reservations"""
    await service.remove(guest_id)

# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.post("/api/reservations", response_model=ReservationResponse, status_code=201, tags=["Reservations"])
async def create_reservation(
    request: CreateReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Create new reservation"""
    reservation = await service.create_reservation(
        room_number=request.room_number,
        guest_id=request.guest_id,
        check_in=request.check_in,
        check_out=request.check_out,
        party_size=request.party_size
    )
    return _reservation_to_response(reservation)

@app.get("/api/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_all_reservations(
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get all reservations"""
    reservations = await service.list_reservations()
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/reservations/upcoming", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_upcoming_reservations(
    now: Optional[date] = None,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Active reservations starting today (or on `now`) or later"""
    reservations = await service.list_upcoming(now)
    return [_reservation_to_response(r) for r in reservations]

@app.post("/api/reservations/reconcile", response_model=ReconcileResponse, tags=["Reservations"])
async def reconcile_room_statuses(
    today: Optional[date] = None,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Recompute cached room statuses against the reservations covering today"""
    as_of = today or service.today()
    changed = await service.reconcile_room_statuses(as_of)
    return ReconcileResponse(as_of=as_of, changed_rooms=[_room_to_response(r) for r in changed])

@app.get("/api/reservations/guest/{guest_id}", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_guest_reservations(
    guest_id: str,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Reservation history for a guest"""
    reservations = await service.list_history_for_guest(guest_id)
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get reservation by ID"""
    return _reservation_to_response(await service.get_reservation(reservation_id))

@app.post("/api/reservations/{reservation_id}/cancel", response_model=ReservationResponse, tags=["Reservations"])
async def cancel_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel reservation"""
    reservation = await service.cancel_reservation(reservation_id)
    return _reservation_to_response(reservation)

@app.get("/api/reservations/{reservation_id}/payments", response_model=List[PaymentResponse], tags=["Reservations"])
async def get_reservation_payments(
    reservation_id: UUID,
    service: PaymentService = Depends(get_payment_service),
    current_user: User = Depends(get_current_active_user)
):
    """Payments recorded against a reservation"""
    payments = await service.payments_for_reservation(reservation_id)
    return [_payment_to_response(p) for p in payments]

# ============================================================================
# PAYMENT ENDPOINTS
# ============================================================================

@app.post("/api/payments", response_model=PaymentResponse, status_code=201, tags=["Payments"])
async def create_payment(
    request: CreatePaymentRequest,
    service: PaymentService = Depends(get_payment_service),
    current_user: User = Depends(get_current_active_user)
):
    """Create a pending payment"""
    payment = await service.create_payment(
        reservation_id=request.reservation_id,
        amount=request.amount,
        payment_type=request.payment_type
    )
    return _payment_to_response(payment)

@app.post("/api/payments/process", response_model=PaymentResponse, status_code=201, tags=["Payments"])
async def process_payment(
    request: CreatePaymentRequest,
    service: PaymentService = Depends(get_payment_service),
    current_user: User = Depends(get_current_active_user)
):
    """Create and complete a payment in one step"""
    payment = await service.process_payment(
        reservation_id=request.reservation_id,
        amount=request.amount,
        payment_type=request.payment_type
    )
    return _payment_to_response(payment)

@app.get("/api/payments", response_model=List[PaymentResponse], tags=["Payments"])
async def get_payment_history(
    service: PaymentService = Depends(get_payment_service),
    current_user: User = Depends(get_current_active_user)
):
    """All payments, oldest first"""
    payments = await service.payment_history()
    return [_payment_to_response(p) for p in payments]

@app.get("/api/payments/{payment_id}", response_model=PaymentResponse, tags=["Payments"])
async def get_payment(
    payment_id: UUID,
    service: PaymentService = Depends(get_payment_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get payment by ID"""
    return _payment_to_response(await service.get_payment(payment_id))

@app.post("/api/payments/{payment_id}/complete", response_model=PaymentResponse, tags=["Payments"])
async def complete_payment(
    payment_id: UUID,
    service: PaymentService = Depends(get_payment_service),
    current_user: User = Depends(get_current_active_user)
):
    """Mark a pending payment as completed"""
    return _payment_to_response(await service.complete(payment_id))

@app.post("/api/payments/{payment_id}/fail", response_model=PaymentResponse, tags=["Payments"])
async def fail_payment(
    payment_id: UUID,
    service: PaymentService = Depends(get_payment_service),
    current_user: User = Depends(get_current_active_user)
):
    """Mark a pending payment as failed"""
    return _payment_to_response(await service.fail(payment_id))

# ============================================================================
# REPORT ENDPOINTS
# ============================================================================

@app.get("/api/reports/occupancy-rate", response_model=OccupancyRateResponse, tags=["Reports"])
async def get_occupancy_rate(
    service: ReportingService = Depends(get_reporting_service),
    current_user: User = Depends(get_current_active_user)
):
    """Occupied / total rooms right now"""
    return {"occupancy_rate": await service.occupancy_rate()}

@app.get("/api/reports/revenue", response_model=MoneyResponse, tags=["Reports"])
async def get_total_revenue(
    service: PaymentService = Depends(get_payment_service),
    current_user: User = Depends(get_current_active_user)
):
    """Total of completed payments"""
    return {"amount": await service.total_revenue(), "currency": settings.CURRENCY}

@app.get("/api/reports/revenue-by-room-type", response_model=RevenueByRoomTypeResponse, tags=["Reports"])
async def get_revenue_by_room_type(
    service: ReportingService = Depends(get_reporting_service),
    current_user: User = Depends(get_current_active_user)
):
    """Completed revenue grouped by room category"""
    revenue = await service.revenue_by_room_type()
    return {
        "currency": settings.CURRENCY,
        "revenue": {room_type.value: amount for room_type, amount in revenue.items()}
    }

@app.post("/api/reports/occupancy", response_model=OccupancyReportResponse, tags=["Reports"])
async def generate_occupancy_report(
    request: OccupancyReportRequest,
    service: ReportingService = Depends(get_reporting_service),
    current_user: User = Depends(get_current_active_user)
):
    """Generate an occupancy report for a stay window"""
    report = await service.occupancy_report(request.start_date, request.end_date)
    return OccupancyReportResponse(
        occupancy_rate=report.occupancy_rate,
        **report.model_dump()
    )

@app.post("/api/reports/revenue", response_model=RevenueReportResponse, tags=["Reports"])
async def generate_revenue_report(
    request: RevenueReportRequest,
    service: ReportingService = Depends(get_reporting_service),
    current_user: User = Depends(get_current_active_user)
):
    """Generate a revenue report for completed payments in a window"""
    report = await service.revenue_report(request.start, request.end)
    return RevenueReportResponse(
        report_id=report.report_id,
        generated_at=report.generated_at,
        start=report.start,
        end=report.end,
        currency=settings.CURRENCY,
        total_revenue=report.total_revenue,
        revenue_by_payment_type={k.value: v for k, v in report.revenue_by_payment_type.items()},
        revenue_by_room_type={k.value: v for k, v in report.revenue_by_room_type.items()}
    )

@app.post("/api/reports/history", response_model=List[ReportSummaryResponse], tags=["Reports"])
async def get_report_history(
    request: RevenueReportRequest,
    service: ReportingService = Depends(get_reporting_service),
    current_user: User = Depends(get_current_active_user)
):
    """Reports generated inside a window, newest first"""
    return [
        ReportSummaryResponse(
            report_id=r.report_id,
            report_type="OCCUPANCY" if isinstance(r, OccupancyReport) else "REVENUE",
            generated_at=r.generated_at
        )
        for r in service.report_history(request.start, request.end)
    ]

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _room_to_response(room) -> RoomResponse:
    """Convert Room entity to RoomResponse"""
    return RoomResponse(
        room_number=room.room_number,
        room_type=room.room_type.value,
        rate_per_night=room.rate_per_night,
        max_occupancy=room.max_occupancy,
        description=room.description,
        status=room.status.value
    )

def _guest_to_response(guest) -> GuestResponse:
    """Convert Guest entity to GuestResponse"""
    return GuestResponse(
        guest_id=guest.guest_id,
        name=guest.name,
        email=guest.email,
        phone=guest.phone,
        reservation_ids=list(guest.reservation_ids)
    )

def _reservation_to_response(reservation) -> ReservationResponse:
    """Convert Reservation entity to ReservationResponse"""
    return ReservationResponse(
        reservation_id=reservation.reservation_id,
        room_number=reservation.room_number,
        guest_id=reservation.guest_id,
        room_type=reservation.room_type.value,
        check_in=reservation.check_in,
        check_out=reservation.check_out,
        nights=reservation.get_nights(),
        party_size=reservation.party_size,
        total_cost=reservation.total_cost,
        currency=settings.CURRENCY,
        status=reservation.status.value,
        is_cancelled=reservation.is_cancelled,
        created_at=reservation.created_at,
        cancelled_at=reservation.cancelled_at
    )

def _payment_to_response(payment) -> PaymentResponse:
    """Convert Payment entity to PaymentResponse"""
    return PaymentResponse(
        payment_id=payment.payment_id,
        reservation_id=payment.reservation_id,
        amount=payment.amount,
        currency=settings.CURRENCY,
        payment_type=payment.payment_type.value,
        status=payment.status.value,
        created_at=payment.created_at,
        processed_at=payment.processed_at
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
