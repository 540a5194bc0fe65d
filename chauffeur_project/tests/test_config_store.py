from decimal import Decimal

import pytest
from django.core.management import call_command

from fares.models import AirportZone, PriceRule, VehicleRate
from fares.services.config import DatabasePricingStore, get_pricing_store
from fares.services.exceptions import ConfigurationError, UnknownVehicleType


@pytest.mark.django_db
def test_settings_defaults_without_rows(settings):
    store = get_pricing_store()
    config = store.snapshot()
    assert set(config.rate_table.vehicle_types()) == set(settings.PRICING['RATE_TABLE'])
    assert store.get('standard').base_price == Decimal('5.00')
    assert config.tax_rate == Decimal('0.21')
    assert config.currency == 'EUR'


@pytest.mark.django_db
def test_snapshot_reused_until_changed():
    store = get_pricing_store()
    assert store.snapshot() is store.snapshot()


@pytest.mark.django_db
def test_edits_reach_every_worker_without_invalidation():
    # two stores stand in for two worker processes
    worker_a, worker_b = DatabasePricingStore(), DatabasePricingStore()
    assert worker_b.current().rule('rushHour').amount == Decimal('3.00')

    PriceRule.objects.create(name='rushHour', kind='fixed', amount=Decimal('4.00'))
    assert worker_a.current().rule('rushHour').amount == Decimal('4.00')
    assert worker_b.current().rule('rushHour').amount == Decimal('4.00')


@pytest.mark.django_db
def test_deleted_airport_zone_is_noticed():
    zone = AirportZone.objects.create(name='Eindhoven', keywords='welschap')
    store = DatabasePricingStore()
    assert store.current().is_airport('Vliegveld Welschap')

    AirportZone.objects.filter(pk=zone.pk).delete()
    assert not store.current().is_airport('Vliegveld Welschap')


@pytest.mark.django_db
def test_database_rates_replace_defaults():
    store = get_pricing_store()
    before = store.snapshot()

    VehicleRate.objects.create(
        vehicle_type='minibus', name='Minibus', base_price=Decimal('15.00'), per_km_rate=Decimal('2.50'),
        per_minute_rate=Decimal('0.40'), per_hour_rate=Decimal('40.00'), minimum_fare=Decimal('30.00'),
    )

    after = store.snapshot()
    assert after is not before
    assert after.rate_table.vehicle_types() == ['minibus']
    assert store.get('minibus').minimum_fare == Decimal('30.00')
    with pytest.raises(UnknownVehicleType):
        store.get('standard')


@pytest.mark.django_db
def test_inactive_rows_are_ignored():
    VehicleRate.objects.create(
        vehicle_type='standard', base_price=Decimal('6.00'), per_km_rate=Decimal('2.00'), minimum_fare=Decimal('12.00'),
    )
    VehicleRate.objects.create(
        vehicle_type='van', base_price=Decimal('12.00'), per_km_rate=Decimal('2.25'), minimum_fare=Decimal('25.00'),
        is_active=False,
    )
    assert get_pricing_store().snapshot().rate_table.vehicle_types() == ['standard']


@pytest.mark.django_db
def test_price_rule_overrides_default():
    store = get_pricing_store()
    assert store.current().rule('rushHour').amount == Decimal('3.00')

    rule = PriceRule.objects.create(name='rushHour', kind='fixed', amount=Decimal('4.50'))
    assert store.current().rule('rushHour').amount == Decimal('4.50')

    rule.enabled = False
    rule.save()
    assert store.current().rule('rushHour') is None

    rule.delete()
    assert store.current().rule('rushHour').amount == Decimal('3.00')


@pytest.mark.django_db
def test_airport_zone_rows_extend_airport_list():
    store = get_pricing_store()
    assert not store.current().is_airport('Rotterdam The Hague terminal')

    AirportZone.objects.create(name='Rotterdam The Hague', keywords='rtm, rotterdam the hague')
    assert store.current().is_airport('Rotterdam The Hague terminal')


@pytest.mark.django_db
def test_invalid_rows_block_pricing():
    # bypasses model validation the way a raw import would
    VehicleRate.objects.create(
        vehicle_type='standard', base_price=Decimal('10.00'), per_km_rate=Decimal('2.00'), minimum_fare=Decimal('5.00'),
    )
    with pytest.raises(ConfigurationError):
        get_pricing_store().snapshot()


@pytest.mark.django_db
def test_seed_pricing_command(settings):
    call_command('seed_pricing')
    assert VehicleRate.objects.count() == len(settings.PRICING['RATE_TABLE'])
    assert PriceRule.objects.count() == len(settings.PRICING['SURCHARGES'])
    assert AirportZone.objects.count() == len(settings.PRICING['AIRPORTS'])
    assert PriceRule.objects.get(name='nightTime').amount is None

    # idempotent
    call_command('seed_pricing')
    assert VehicleRate.objects.count() == len(settings.PRICING['RATE_TABLE'])

    VehicleRate.objects.filter(vehicle_type='standard').update(base_price=Decimal('9.00'))
    call_command('seed_pricing', reset=True)
    assert VehicleRate.objects.get(vehicle_type='standard').base_price == Decimal('5.00')
    assert get_pricing_store().get('standard').base_price == Decimal('5.00')
