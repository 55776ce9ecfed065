"""Error codes and exceptions raised while parsing and evaluating price rules."""

from enum import Enum
from typing import Self


class ErrorCode(Enum):
    MALFORMED_INPUT = "MALFORMED_INPUT"
    DATE_PARSE = "DATE_PARSE"
    INCOMPLETE_BOOKING = "INCOMPLETE_BOOKING"


class PriceRuleError(Exception):
    """Base error with code and a message safe to show to the operator."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class MalformedInputError(PriceRuleError):
    """Raised when a rule document is not well-formed XML."""

    def __init__(self, detail: str) -> None:
        super().__init__(ErrorCode.MALFORMED_INPUT, f"Invalid XML document ({detail})")
        self.detail = detail


class DateParseError(PriceRuleError):
    """Raised when a rule or booking date cannot be read as a calendar date.

    rule_id / booking_index are filled in by the evaluator so a caller skipping
    bad pairs can still report which one failed.
    """

    def __init__(self, value: object, rule_id: int | None = None, booking_index: int | None = None) -> None:
        where = []
        if rule_id is not None:
            where.append(f"rule {rule_id}")
        if booking_index is not None:
            where.append(f"booking {booking_index}")
        suffix = f" in {', '.join(where)}" if where else ""
        super().__init__(ErrorCode.DATE_PARSE, f"Cannot parse date {value!r}{suffix}")
        self.value = value
        self.rule_id = rule_id
        self.booking_index = booking_index

    def with_context(self, rule_id: int | None = None, booking_index: int | None = None) -> Self:
        return type(self)(
            self.value,
            rule_id=self.rule_id if rule_id is None else rule_id,
            booking_index=self.booking_index if booking_index is None else booking_index,
        )


class IncompleteBookingError(PriceRuleError):
    """Raised in strict mode for a booking without arrival date or stay length."""

    def __init__(self, booking_index: int | None = None) -> None:
        label = "Booking" if booking_index is None else f"Booking {booking_index}"
        super().__init__(ErrorCode.INCOMPLETE_BOOKING, f"{label} needs an arrival date and a length of stay")
        self.booking_index = booking_index
