"""
Domain Exceptions

Typed outcomes raised by the reservation engine. The HTTP host maps each
kind to a status code; the engine itself never retries or swallows them.
"""
from typing import Any, Dict, Optional


class HotelDomainError(Exception):
    """Base class for every refusal raised by the engine"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(HotelDomainError):
    """Referenced entity is absent"""


class DuplicateKeyError(HotelDomainError):
    """Identifier collision on create"""


class InvalidArgumentError(HotelDomainError, ValueError):
    """Malformed input: non-positive amount, inverted dates, over-capacity party"""


class ConflictError(HotelDomainError):
    """State-based refusal such as an overlapping stay or an occupied room"""


class InvalidStateError(HotelDomainError):
    """Illegal state-machine transition"""
