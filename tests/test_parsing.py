"""Unit tests for the XML rule parser.

Run with: pytest tests/test_parsing.py -v
"""

from decimal import Decimal

import pytest

from pricerules.config import DEFAULT_PALETTE
from pricerules.errors import DateParseError, MalformedInputError
from pricerules.parsing.rules import color_for, merge_rule_batches, parse_rules, rule_year_span


class TestParseRules:
    """Tests for parse_rules."""

    def test_ids_follow_document_order(self, rules_xml):
        """N rule elements give N rules with ids 1..N."""
        rules = parse_rules(rules_xml)
        assert [r.id for r in rules] == [1, 2, 3]
        assert [r.valid_to for r in rules] == ["2025-06-30", "2025-08-31", "2025-08-31"]

    def test_fields_are_converted(self, rules_xml):
        """Numbers, percentage and weekdays are typed on the rule."""
        rule = parse_rules(rules_xml)[1]
        assert rule.valid_from == "2025-06-01"
        assert rule.percentage == Decimal("-12.5")
        assert rule.arrival_weekdays == frozenset({6})
        assert (rule.min_stay, rule.max_stay, rule.max_days_to_arrival) == (7, 14, 180)

    def test_missing_fields_are_absent(self, rules_xml):
        """Optional tags that are not present stay empty."""
        rule = parse_rules(rules_xml)[2]
        assert rule.percentage is None
        assert rule.arrival_weekdays == frozenset()
        assert rule.min_stay is None and rule.max_stay is None
        assert rule.max_days_to_arrival is None

    def test_nested_container_gives_same_rules(self, rules_xml, product_xml):
        """Rules under <priceRules> resolve like a bare list; rules outside it are ignored."""
        bare = parse_rules(rules_xml)
        nested = parse_rules(product_xml)
        assert len(nested) == 3
        assert [(r.id, r.valid_from, r.valid_to) for r in nested] == [(r.id, r.valid_from, r.valid_to) for r in bare]

    def test_source_text_is_verbatim(self, product_xml):
        """Serialized rule keeps attribute order and whitespace of the document."""
        rule = parse_rules(product_xml)[0]
        expected = ('<rule kind="base" seq="1">\n'
                    '      <from>2025-06-01</from>\n'
                    '      <to>2025-06-30</to>\n'
                    '    </rule>')
        assert rule.source_text == expected
        assert rule.source_text in product_xml

    def test_namespaced_document(self):
        """Tags are matched by local name."""
        xml = ('<product xmlns="urn:example:products"><priceRules>'
               '<rule><from>2025-01-01</from><to>2025-01-31</to><minStay>2</minStay></rule>'
               '</priceRules></product>')
        rules = parse_rules(xml)
        assert len(rules) == 1
        assert rules[0].valid_from == "2025-01-01"
        assert rules[0].min_stay == 2

    def test_first_duplicate_tag_wins(self):
        """When a field appears twice, the first occurrence is used."""
        xml = '<rules><rule><from>2025-01-01</from><from>2026-01-01</from><to>2026-12-31</to></rule></rules>'
        assert parse_rules(xml)[0].valid_from == "2025-01-01"

    def test_unreadable_values_are_dropped(self):
        """Bad numbers and weekdays outside 1..7 do not fail the parse."""
        xml = ('<rules><rule><from>2025-01-01</from><to>2025-12-31</to>'
               '<percentage>n/a</percentage><arrivalWeekdays>6, x, 9,7</arrivalWeekdays>'
               '<minStay>abc</minStay><maxStay></maxStay></rule></rules>')
        rule = parse_rules(xml)[0]
        assert rule.percentage is None
        assert rule.arrival_weekdays == frozenset({6, 7})
        assert rule.min_stay is None
        assert rule.max_stay is None

    def test_missing_dates_surface_on_validity(self):
        """A rule without <from> parses, but its validity raises with the rule id."""
        rule = parse_rules('<rules><rule><to>2025-12-31</to></rule></rules>')[0]
        assert rule.valid_from is None
        with pytest.raises(DateParseError) as exc_info:
            rule.validity()
        assert exc_info.value.rule_id == 1

    def test_bytes_input(self, rules_xml):
        """Raw bytes as read from a file or HTTP body are accepted."""
        assert parse_rules(rules_xml.encode("utf-8")) == parse_rules(rules_xml)

    def test_no_rules(self):
        """A well-formed document without rules yields an empty list."""
        assert parse_rules("<priceRules/>") == []

    @pytest.mark.parametrize("document", ["this is not xml", "<rules><rule></rules>"])
    def test_malformed_input_raises(self, document):
        """Markup that is not well-formed raises MalformedInputError."""
        with pytest.raises(MalformedInputError):
            parse_rules(document)

    def test_parsing_is_idempotent(self, product_xml):
        """Parsing the same document twice gives equal rules."""
        assert parse_rules(product_xml) == parse_rules(product_xml)


class TestColors:
    """Tests for palette cycling."""

    def test_color_for_cycles(self):
        palette = ("red", "green", "blue")
        assert [color_for(k, palette) for k in range(7)] == ["red", "green", "blue", "red", "green", "blue", "red"]

    def test_color_for_empty_palette(self):
        with pytest.raises(ValueError):
            color_for(0, ())

    def test_parse_assigns_palette_colors(self, rules_xml):
        """Rule at index k gets palette[k mod P]."""
        rules = parse_rules(rules_xml, palette=("red", "green"))
        assert [r.display_color for r in rules] == ["red", "green", "red"]

    def test_default_palette(self, rules_xml):
        rules = parse_rules(rules_xml)
        assert [r.display_color for r in rules] == list(DEFAULT_PALETTE[:3])


class TestMergeRuleBatches:
    """Tests for merging separately parsed batches."""

    def test_ids_are_renumbered(self, rules_xml, product_xml):
        first = parse_rules(rules_xml)
        second = parse_rules(product_xml)
        merged = merge_rule_batches([first, second])
        assert [r.id for r in merged] == [1, 2, 3, 4, 5, 6]
        assert merged[3].source_text == second[0].source_text
        assert merged[3].display_color == second[0].display_color

    def test_originals_are_untouched(self, rules_xml):
        batch = parse_rules(rules_xml)
        merge_rule_batches([batch, batch])
        assert [r.id for r in batch] == [1, 2, 3]


class TestRuleYearSpan:
    """Tests for rule_year_span."""

    def test_span_over_all_rules(self, make_rule):
        rules = [
            make_rule(id=1, valid_from="2025-06-01", valid_to="2026-01-31"),
            make_rule(id=2, valid_from="2024-12-01", valid_to="2025-01-31"),
        ]
        assert rule_year_span(rules) == (2024, 2026)

    def test_unparsable_rules_are_skipped(self, make_rule):
        rules = [make_rule(id=1, valid_from="soon"), make_rule(id=2)]
        assert rule_year_span(rules) == (2025, 2025)

    def test_no_rules(self):
        assert rule_year_span([]) is None
