from datetime import date, datetime
from pathlib import Path
from typing import Sequence

from bs4 import BeautifulSoup
from jinja2 import Environment, FileSystemLoader, select_autoescape

from .dates import weekday_name
from .evaluation.evaluator import highlighted_rule_ids
from .models import BookingMatch, PriceRule

TEMPLATE_NAME = 'match_report.html.j2'


def _format_rule(rule: PriceRule, highlighted: set[int]) -> dict:
    return {
        'id': rule.id,
        'color': rule.display_color,
        'period': f"{rule.valid_from or '?'} - {rule.valid_to or '?'}",
        'percentage': f"{rule.percentage}%" if rule.percentage is not None else "",
        'weekdays': ', '.join(weekday_name(d) for d in sorted(rule.arrival_weekdays)) or "any",
        'min_stay': rule.min_stay or "",
        'max_stay': rule.max_stay or "",
        'max_days_to_arrival': rule.max_days_to_arrival if rule.max_days_to_arrival is not None else "",
        'highlight': rule.id in highlighted,
        'source_text': rule.source_text,
    }


def _booking_verdict(result: BookingMatch) -> str:
    if result.incomplete:
        return "Enter start date and length"
    if result.rule_ids:
        plural = 's' if len(result.rule_ids) > 1 else ''
        return f"Allowed by rule{plural} {', '.join(map(str, result.rule_ids))}"
    return "Not allowed by any rule"


def _format_booking(result: BookingMatch) -> dict:
    booking = result.booking
    return {
        'index': result.booking_index + 1,
        'arrival': str(booking.arrival_date) if booking.arrival_date else "",
        'length': booking.stay_length or "",
        'allowed': result.allowed,
        'verdict': _booking_verdict(result),
        'errors': [str(e) for e in result.errors],
    }


def render_report(rules: Sequence[PriceRule], results: Sequence[BookingMatch], reference_date: date) -> str:
    """HTML overview of the rule set with every rule matched by a test booking highlighted."""
    highlighted = set(highlighted_rule_ids(results))
    templates_dir = Path(__file__).resolve().parent / 'templates'
    env = Environment(loader=FileSystemLoader(str(templates_dir)), autoescape=select_autoescape(['html', 'xml', 'j2']))
    tpl = env.get_template(TEMPLATE_NAME)
    rendered = tpl.render(
        rules=[_format_rule(rule, highlighted) for rule in rules],
        bookings=[_format_booking(result) for result in results],
        reference_date=reference_date.strftime('%Y-%m-%d (%A)'),
        generated_at=datetime.now().strftime("%d.%m.%Y %H:%M"),
    )
    soup = BeautifulSoup(rendered, 'lxml')
    return soup.prettify()
