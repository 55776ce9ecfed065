from datetime import date, datetime

from .errors import DateParseError

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M", "%Y%m%d"]

_WEEKDAY_NAMES = {1: "Mon", 2: "Tue", 3: "Wed", 4: "Thu", 5: "Fri", 6: "Sat", 7: "Sun"}


def parse_date(value: date | str | None, formats: list[str] | None = None) -> date:
    """Return a calendar date from a date, a datetime (date part) or ISO text.

    Raises DateParseError for anything else, including None.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise DateParseError(value)
    if formats is None:
        formats = DATE_FORMATS
    text = value.strip()
    for date_format in formats:
        try:
            return datetime.strptime(text, date_format).date()
        except ValueError:
            continue
    raise DateParseError(value)


def rule_weekday(day: date) -> int:
    """Weekday in price-rule numbering: Monday=1 ... Sunday=7.

    Python's date.weekday() counts Monday=0 ... Sunday=6.
    """
    return day.weekday() + 1


def weekday_name(number: int) -> str:
    return _WEEKDAY_NAMES.get(number, str(number))
