"""Domain Value Objects"""
from pydantic import BaseModel, ConfigDict, model_validator
from datetime import date


class DateRange(BaseModel):
    """Half-open stay interval [check_in, check_out)"""
    model_config = ConfigDict(frozen=True)

    check_in: date
    check_out: date

    @model_validator(mode="after")
    def check_out_after_check_in(self) -> "DateRange":
        if self.check_out <= self.check_in:
            raise ValueError("Check-out must be after check-in")
        return self

    def nights(self) -> int:
        """Calculate number of nights"""
        return (self.check_out - self.check_in).days

    def overlaps(self, other: "DateRange") -> bool:
        """Two half-open ranges overlap iff each starts before the other ends"""
        return self.check_in < other.check_out and other.check_in < self.check_out

    def contains(self, day: date) -> bool:
        return self.check_in <= day < self.check_out
