"""Pytest configuration and shared fixtures."""

from datetime import date

import pytest

from pricerules.models import PriceRule

RULES_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rules>
  <rule>
    <from>2025-06-01</from>
    <to>2025-06-30</to>
    <percentage>10</percentage>
  </rule>
  <rule>
    <from>2025-06-01</from>
    <to>2025-08-31</to>
    <percentage>-12.5</percentage>
    <arrivalWeekdays>6</arrivalWeekdays>
    <minStay>7</minStay>
    <maxStay>14</maxStay>
    <maxDaysToArrival>180</maxDaysToArrival>
  </rule>
  <rule>
    <from>2025-07-01</from>
    <to>2025-08-31</to>
  </rule>
</rules>
"""

PRODUCT_XML = """<product code="DK1234">
  <name>Cottage</name>
  <rule><from>1999-01-01</from><to>1999-12-31</to></rule>
  <priceRules>
    <rule kind="base" seq="1">
      <from>2025-06-01</from>
      <to>2025-06-30</to>
    </rule>
    <rule><from>2025-06-01</from><to>2025-08-31</to><arrivalWeekdays>6</arrivalWeekdays><minStay>7</minStay><maxStay>14</maxStay><maxDaysToArrival>180</maxDaysToArrival></rule>
    <rule><from>2025-07-01</from><to>2025-08-31</to></rule>
  </priceRules>
</product>
"""


@pytest.fixture
def rules_xml() -> str:
    return RULES_XML


@pytest.fixture
def product_xml() -> str:
    return PRODUCT_XML


@pytest.fixture
def reference_date() -> date:
    return date(2025, 3, 1)


@pytest.fixture
def make_rule():
    def _make_rule(**overrides) -> PriceRule:
        values = dict(
            id=1,
            valid_from="2025-01-01",
            valid_to="2025-12-31",
            percentage=None,
            arrival_weekdays=frozenset(),
            min_stay=None,
            max_stay=None,
            max_days_to_arrival=None,
            display_color="#0072B2",
            source_text="<rule/>",
        )
        values.update(overrides)
        return PriceRule(**values)

    return _make_rule
