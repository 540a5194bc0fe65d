import pytest

from fares.services.pricing import FareCalculator
from fares.services.rates import RateTable
from fares.services.surcharges import SurchargeRuleSet

from .pricing_data import RATES, SURCHARGES


@pytest.fixture
def rate_table():
    return RateTable.from_config(RATES)


@pytest.fixture
def rule_set():
    return SurchargeRuleSet.from_config(SURCHARGES)


@pytest.fixture
def calculator(rate_table, rule_set):
    return FareCalculator(rate_table, rule_set)
