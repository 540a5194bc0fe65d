from datetime import datetime, timedelta, timezone

import pytest

from fares.services.exceptions import ConfigurationError
from fares.services.geo import Place
from fares.services.surcharges import SurchargeContext, SurchargeRuleSet

from .pricing_data import SURCHARGES

MONDAY = datetime(2024, 3, 11)
SATURDAY = datetime(2024, 3, 16)


def names(rule_set, **context):
    return [rule.name for rule in rule_set.applicable_rules(SurchargeContext(**context))]


@pytest.mark.parametrize("hour,expected", [(6, False), (7, True), (8, True), (9, False), (16, False), (17, True), (18, True), (19, False)])
def test_rush_hour_window_edges(rule_set, hour, expected):
    assert rule_set.is_rush_hour(MONDAY.replace(hour=hour, minute=59)) is expected


def test_weekends_never_rush_hour(rule_set):
    for day in (SATURDAY, SATURDAY + timedelta(days=1)):
        for hour in range(24):
            assert not rule_set.is_rush_hour(day.replace(hour=hour))


@pytest.mark.parametrize("hour,expected", [(21, False), (22, True), (23, True), (0, True), (6, True), (7, False), (12, False)])
def test_night_window_wraps_midnight(rule_set, hour, expected):
    assert rule_set.is_night(MONDAY.replace(hour=hour)) is expected


def test_rush_hour_and_night_never_fire_together(rule_set):
    for hour in range(7 * 24):
        fired = names(rule_set, scheduled_at=MONDAY + timedelta(hours=hour))
        assert not ("rushHour" in fired and "nightTime" in fired)


def test_airport_keyword_match_is_case_insensitive(rule_set):
    assert rule_set.is_airport("Aankomstpassage 1, SCHIPHOL")
    assert not rule_set.is_airport("Damrak 1, Amsterdam")
    assert not rule_set.is_airport(None)


def test_airport_geofence(rule_set):
    assert rule_set.is_airport((52.3080, 4.7640))
    assert rule_set.is_airport("52.3080,4.7640")
    # Amsterdam Centraal, well outside the radius
    assert not rule_set.is_airport((52.3791, 4.9003))


def test_airport_address_checked_when_coordinates_are_known(rule_set):
    # Eindhoven has no geofence configured, only the keyword can match
    assert rule_set.is_airport(Place("Eindhoven Airport, Luchthavenweg 25", 51.4501, 5.3745))
    assert not rule_set.is_airport(Place("Stationsplein 1, Eindhoven", 51.4433, 5.4813))
    # inside the Schiphol radius the address text does not matter
    assert rule_set.is_airport(Place("Evert van de Beekstraat 202", 52.3080, 4.7640))


def test_airport_rule_only_looks_at_pickup(rule_set):
    afternoon = MONDAY.replace(hour=14)
    assert names(rule_set, scheduled_at=afternoon, destination_location="Schiphol") == []
    assert names(rule_set, scheduled_at=afternoon, pickup_location="Schiphol") == ["airportPickup"]


def test_rules_reported_in_fixed_order(rule_set):
    fired = names(rule_set, scheduled_at=MONDAY.replace(hour=8), pickup_location="airport", stopover_count=3)
    assert fired == ["rushHour", "airportPickup", "stopover", "stopover"]


def test_stopovers_capped_at_maximum(rule_set):
    fired = names(rule_set, scheduled_at=MONDAY.replace(hour=14), stopover_count=50)
    assert fired.count("stopover") == rule_set.max_stopovers - 1


def test_single_stop_is_free(rule_set):
    assert names(rule_set, scheduled_at=MONDAY.replace(hour=14), stopover_count=1) == []


def test_aware_times_are_converted_to_pricing_zone():
    config = dict(SURCHARGES, time_zone="Europe/Amsterdam")
    rule_set = SurchargeRuleSet.from_config(config)
    # 06:30 UTC is 07:30 in Amsterdam (CET)
    scheduled = datetime(2024, 3, 11, 6, 30, tzinfo=timezone.utc)
    assert rule_set.is_rush_hour(scheduled)
    assert not rule_set.is_night(scheduled)


def test_disabled_rule_never_fires():
    config = dict(SURCHARGES, rules=dict(SURCHARGES["rules"], rushHour={"amount": "3", "enabled": False}))
    rule_set = SurchargeRuleSet.from_config(config)
    assert rule_set.rule("rushHour") is None
    assert names(rule_set, scheduled_at=MONDAY.replace(hour=8)) == []


def test_default_description_used_when_missing():
    rule_set = SurchargeRuleSet.from_config({"rules": {"stopover": {"amount": "5"}}})
    assert rule_set.rule("stopover").description == "Extra stop"


@pytest.mark.parametrize(
    "config",
    [
        {"rules": {"tollRoad": {"amount": "2"}}},
        {"rules": {"rushHour": {"kind": "bonus", "amount": "2"}}},
        {"rules": {"rushHour": {"amount": "-2"}}},
        {"rules": {"rushHour": {"amount": None}}},
        {"rules": {"airportPickup": {"kind": "percentage", "amount": "20"}}},
        {"rules": {"stopover": {"kind": "percentage", "amount": "0.1"}}},
        {"rules": {}, "rush_hour_windows": [(6, 9)], "night_window": (22, 7)},
        {"rules": {}, "night_window": (22, 22)},
        {"rules": {}, "night_window": "late"},
        {"rules": {}, "time_zone": "Mars/Olympus_Mons"},
        {"rules": {}, "airports": [{"latitude": 1.0}]},
        {"rules": {}, "max_stopovers": -1},
        {"rules": {}, "max_stopovers": "many"},
        {"rules": {}, "airport_keywords": [1]},
        {"rules": {}, "airports": [{"name": "X", "keywords": [None, 5]}]},
        {"rules": {}, "airports": 5},
        {"rules": "rushHour"},
        {"rules": {}, "rush_hour_windows": 7},
        {"rules": {}, "time_zone": 5},
    ],
)
def test_malformed_configuration_rejected_at_load(config):
    with pytest.raises(ConfigurationError):
        SurchargeRuleSet.from_config(config)
