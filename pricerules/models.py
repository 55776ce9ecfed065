from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from .dates import parse_date
from .errors import DateParseError, IncompleteBookingError


@dataclass(frozen=True, slots=True)
class RuleFields:
    """Raw text of the fields found on one <rule> element.

    Every field is optional: a missing tag or an empty tag is None.
    """
    from_: str | None = None
    to: str | None = None
    percentage: str | None = None
    arrival_weekdays: str | None = None
    min_stay: str | None = None
    max_stay: str | None = None
    max_days_to_arrival: str | None = None


@dataclass(frozen=True, slots=True)
class PriceRule:
    """Single price/availability rule parsed from XML.

    valid_from / valid_to keep the raw date text; validity() parses them so one
    malformed rule only fails its own evaluation.
    arrival_weekdays uses rule numbering (Mon=1, Sun=7); empty means any weekday.
    """
    id: int
    valid_from: str | None
    valid_to: str | None
    percentage: Decimal | None
    arrival_weekdays: frozenset[int]
    min_stay: int | None
    max_stay: int | None
    max_days_to_arrival: int | None
    display_color: str
    source_text: str

    def validity(self) -> tuple[date, date]:
        try:
            return parse_date(self.valid_from), parse_date(self.valid_to)
        except DateParseError as e:
            raise e.with_context(rule_id=self.id) from e


@dataclass(frozen=True, slots=True)
class BookingRequest:
    """Hypothetical booking as entered by the operator.

    arrival_date and stay_length may be missing (half filled form);
    reference_date is the booking creation date, usually today.
    """
    arrival_date: date | str | None
    stay_length: int | None
    reference_date: date | datetime | str

    def is_complete(self) -> bool:
        return bool(self.arrival_date) and bool(self.stay_length)

    def require_complete(self, booking_index: int | None = None) -> None:
        if not self.is_complete():
            raise IncompleteBookingError(booking_index)

    def arrival(self) -> date:
        return parse_date(self.arrival_date)

    def reference(self) -> date:
        return parse_date(self.reference_date)


@dataclass(slots=True)
class BookingMatch:
    """Outcome of evaluating one booking against a rule set."""
    booking: BookingRequest
    booking_index: int
    rule_ids: list[int] = field(default_factory=list)
    errors: list[DateParseError] = field(default_factory=list)
    incomplete: bool = False

    @property
    def allowed(self) -> bool:
        return bool(self.rule_ids)
