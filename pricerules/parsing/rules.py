"""XML price rule parsing.

Accepts either a bare list of <rule> elements or the upstream product response
where the rules sit under a <priceRules> container. Field values are looked up
by tag name (first match wins); anything missing or unreadable is left empty
instead of failing the whole document.
"""
import dataclasses
import logging
from decimal import Decimal, InvalidOperation
from typing import Iterable, Sequence

import dacite
from lxml import etree

from ..config import settings
from ..errors import DateParseError, MalformedInputError
from ..models import PriceRule, RuleFields

logger = logging.getLogger(__name__)

RULE_TAG = 'rule'
CONTAINER_TAG = 'priceRules'

# RuleFields attribute -> XML tag
FIELD_TAGS = {
    'from_': 'from',
    'to': 'to',
    'percentage': 'percentage',
    'arrival_weekdays': 'arrivalWeekdays',
    'min_stay': 'minStay',
    'max_stay': 'maxStay',
    'max_days_to_arrival': 'maxDaysToArrival',
}


def color_for(index: int, palette: Sequence[str]) -> str:
    """Color for the rule at 0-based parse index; the palette cycles."""
    if not palette:
        raise ValueError("Palette must contain at least one color")
    return palette[index % len(palette)]


# ---------------- document helpers -----------------
def _local_name(element: etree._Element) -> str | None:
    if not isinstance(element.tag, str):  # comments, processing instructions
        return None
    return etree.QName(element).localname


def _load_document(document: str | bytes) -> etree._Element:
    if isinstance(document, str):
        document = document.encode('utf-8')
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(document, parser)
    except etree.XMLSyntaxError as e:
        raise MalformedInputError(str(e)) from e
    if root is None:
        raise MalformedInputError("empty document")
    return root


def _descendants(element: etree._Element, tag: str) -> Iterable[etree._Element]:
    return (el for el in element.iter() if _local_name(el) == tag)


def find_rule_elements(root: etree._Element) -> list[etree._Element]:
    container = next(iter(_descendants(root, CONTAINER_TAG)), None)
    scope = container if container is not None else root
    return list(_descendants(scope, RULE_TAG))


# ---------------- field extraction -----------------
def _first_text(element: etree._Element, tag: str) -> str | None:
    for child in _descendants(element, tag):
        if child is element:
            continue
        text = ''.join(child.itertext()).strip()
        return text or None
    return None


def extract_fields(element: etree._Element) -> RuleFields:
    return RuleFields(**{attr: _first_text(element, tag) for attr, tag in FIELD_TAGS.items()})


def _to_int(value: str | None, field_name: str, rule_id: int) -> int | None:
    if value is None:
        return None
    try:
        return int(value, 10)
    except ValueError:
        logger.warning("Rule %s: ignoring non-integer %s %r", rule_id, field_name, value)
        return None


def _to_decimal(value: str | None, rule_id: int) -> Decimal | None:
    if value is None:
        return None
    try:
        amount = Decimal(value)
    except InvalidOperation:
        amount = None
    if amount is None or not amount.is_finite():
        logger.warning("Rule %s: ignoring non-numeric percentage %r", rule_id, value)
        return None
    return amount


def _to_weekdays(value: str | None, rule_id: int) -> frozenset[int]:
    if value is None:
        return frozenset()
    weekdays = set()
    for token in value.split(','):
        day = _to_int(token.strip(), 'arrival weekday', rule_id) if token.strip() else None
        if day is None:
            continue
        if not 1 <= day <= 7:
            logger.warning("Rule %s: ignoring arrival weekday %s outside 1..7", rule_id, day)
            continue
        weekdays.add(day)
    return frozenset(weekdays)


def build_rule(fields: RuleFields, rule_id: int, color: str, source_text: str) -> PriceRule:
    data_to_parse = dict(
        id=rule_id,
        valid_from=fields.from_,
        valid_to=fields.to,
        percentage=_to_decimal(fields.percentage, rule_id),
        arrival_weekdays=_to_weekdays(fields.arrival_weekdays, rule_id),
        min_stay=_to_int(fields.min_stay, 'minStay', rule_id),
        max_stay=_to_int(fields.max_stay, 'maxStay', rule_id),
        max_days_to_arrival=_to_int(fields.max_days_to_arrival, 'maxDaysToArrival', rule_id),
        display_color=color,
        source_text=source_text,
    )
    return dacite.from_dict(data_class=PriceRule, data=data_to_parse)


# ---------------- public API -----------------
def parse_rules(document: str | bytes, palette: Sequence[str] | None = None) -> list[PriceRule]:
    """Parse an XML rule document into PriceRule records in document order.

    Raises:
        MalformedInputError: If the document is not well-formed XML.
    """
    if palette is None:
        palette = settings.palette
    root = _load_document(document)
    rules = []
    for idx, element in enumerate(find_rule_elements(root)):
        source_text = etree.tostring(element, encoding='unicode', with_tail=False)
        rules.append(build_rule(extract_fields(element), idx + 1, color_for(idx, palette), source_text))
    logger.debug("Parsed %d price rules", len(rules))
    return rules


def merge_rule_batches(batches: Iterable[Sequence[PriceRule]]) -> list[PriceRule]:
    """Concatenate separately parsed batches (e.g. one per season) and renumber ids 1..N."""
    merged = [rule for batch in batches for rule in batch]
    return [dataclasses.replace(rule, id=idx + 1) for idx, rule in enumerate(merged)]


def rule_year_span(rules: Iterable[PriceRule]) -> tuple[int, int] | None:
    years = []
    for rule in rules:
        try:
            start, end = rule.validity()
        except DateParseError as e:
            logger.warning("Skipping rule in year span: %s", e)
            continue
        years.extend((start.year, end.year))
    if not years:
        return None
    return min(years), max(years)
