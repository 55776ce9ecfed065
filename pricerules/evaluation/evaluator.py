"""Booking evaluation against parsed price rules.

A rule permits a booking when the arrival date falls inside its validity range,
the length of stay respects its stay bounds, the lead time from the reference
date does not exceed maxDaysToArrival and the arrival weekday is allowed.
"""
import logging
from typing import Iterable, Sequence

from ..dates import rule_weekday
from ..errors import DateParseError
from ..models import BookingMatch, BookingRequest, PriceRule

logger = logging.getLogger(__name__)


# ---------------- single pair -----------------
def matches(rule: PriceRule, booking: BookingRequest) -> bool:
    """Whether `rule` permits `booking`.

    Raises:
        DateParseError: If a rule or booking date is not a calendar date.
    """
    if not booking.is_complete():
        return False
    arrival = booking.arrival()
    valid_from, valid_to = rule.validity()
    if arrival < valid_from or arrival > valid_to:
        return False
    length = booking.stay_length
    if (rule.min_stay and length < rule.min_stay) or (rule.max_stay and length > rule.max_stay):
        return False
    if rule.max_days_to_arrival is not None:
        # negative when arrival precedes the reference date; not floored
        days_to_arrival = (arrival - booking.reference()).days
        if days_to_arrival > rule.max_days_to_arrival:
            return False
    if rule.arrival_weekdays and rule_weekday(arrival) not in rule.arrival_weekdays:
        return False
    return True


# ---------------- batch queries -----------------
def evaluate_booking(
        rules: Sequence[PriceRule],
        booking: BookingRequest,
        booking_index: int = 0,
        skip_errors: bool = True,
) -> BookingMatch:
    """Ids of every rule permitting the booking, in rule order.

    With skip_errors a rule whose dates do not parse is recorded on the result
    and skipped; otherwise the first DateParseError propagates.
    """
    result = BookingMatch(booking=booking, booking_index=booking_index)
    if not booking.is_complete():
        result.incomplete = True
        return result
    # the reference date is only read by rules with a booking window, so its
    # errors are recorded per rule below
    try:
        booking.arrival()
    except DateParseError as e:
        error = e.with_context(booking_index=booking_index)
        if not skip_errors:
            raise error from e
        logger.warning("Skipping booking: %s", error)
        result.errors.append(error)
        return result

    for rule in rules:
        try:
            allowed = matches(rule, booking)
        except DateParseError as e:
            error = e.with_context(rule_id=rule.id, booking_index=booking_index)
            if not skip_errors:
                raise error from e
            logger.warning("Skipping rule: %s", error)
            result.errors.append(error)
            continue
        if allowed:
            result.rule_ids.append(rule.id)
    return result


def matching_rule_ids(rules: Sequence[PriceRule], booking: BookingRequest) -> list[int]:
    return evaluate_booking(rules, booking).rule_ids


def evaluate_bookings(
        rules: Sequence[PriceRule],
        bookings: Iterable[BookingRequest],
        skip_errors: bool = True,
) -> list[BookingMatch]:
    return [
        evaluate_booking(rules, booking, booking_index=idx, skip_errors=skip_errors)
        for idx, booking in enumerate(bookings)
    ]


def highlighted_rule_ids(results: Iterable[BookingMatch]) -> list[int]:
    """Union of matching rule ids over all bookings, first-seen order."""
    ids: dict[int, None] = {}
    for result in results:
        ids.update(dict.fromkeys(result.rule_ids))
    return list(ids)
