"""Typed errors raised by the reservation manager and commit checkpoint."""

from enum import Enum


class SlotEngineErrorCode(str, Enum):
    RESERVATION_EXPIRED = "RESERVATION_EXPIRED"
    SLOT_NOT_AVAILABLE = "SLOT_NOT_AVAILABLE"


class SlotEngineError(Exception):
    """Carries a machine-readable code and a message fit for end users."""

    def __init__(self, code: SlotEngineErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"
