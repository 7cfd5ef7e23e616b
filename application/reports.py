"""Read models produced by the reporting service"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import date, datetime
from decimal import Decimal
from typing import Dict

from domain.enums import PaymentType, RoomType


class Report(BaseModel):
    """Common report metadata"""
    report_id: UUID = Field(default_factory=uuid4)
    generated_at: datetime


class OccupancyReport(Report):
    """Room counts for a stay window"""
    start_date: date
    end_date: date
    total_rooms: int
    occupied_rooms: int
    available_rooms: int
    maintenance_rooms: int

    @property
    def occupancy_rate(self) -> Decimal:
        if self.total_rooms == 0:
            return Decimal("0")
        return Decimal(self.occupied_rooms) / Decimal(self.total_rooms)


class RevenueReport(Report):
    """Completed payments taken inside [start, end]"""
    start: datetime
    end: datetime
    total_revenue: Decimal = Decimal("0")
    revenue_by_payment_type: Dict[PaymentType, Decimal] = Field(default_factory=dict)
    revenue_by_room_type: Dict[RoomType, Decimal] = Field(default_factory=dict)
