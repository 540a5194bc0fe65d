from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from fares.models import VehicleRate
from fares.services.distance import RouteEstimate
from fares.services.exceptions import EstimateUnavailable

WEDNESDAY_AFTERNOON = '2024-03-13T14:00:00+01:00'


@pytest.mark.django_db
def test_price_estimate_by_distance():
    client = APIClient()
    payload = {
        "vehicle_type": "standard",
        "scheduled_at": WEDNESDAY_AFTERNOON,
        "distance_km": 3.0,
        "duration_minutes": 10,
    }
    resp = client.post('/fares/api/price/', payload, format='json')
    assert resp.status_code == 200
    data = resp.json()
    assert data['subtotal'] == '14.00'
    assert data['tax'] == '2.94'
    assert data['total'] == '16.94'
    # client-supplied distances are never authoritative
    assert data['estimatedOnly'] is True
    assert data['valid'] is True
    assert data['display'][-1] == '(Estimate - final price may vary)'
    assert 'Price is an estimate, the final price may differ' in data['warnings']


@pytest.mark.django_db
def test_rush_hour_estimate():
    client = APIClient()
    payload = {
        "vehicle_type": "standard",
        "scheduled_at": '2024-03-13T08:00:00+01:00',
        "distance_km": 3.0,
        "duration_minutes": 10,
    }
    data = client.post('/fares/api/price/', payload, format='json').json()
    assert [s['name'] for s in data['surcharges']] == ['rushHour']
    assert data['totalBeforeTax'] == '17.00'
    assert data['total'] == '20.57'


@pytest.mark.django_db
def test_airport_pickup_with_coordinates_and_address():
    client = APIClient()
    payload = {
        "vehicle_type": "standard",
        "scheduled_at": WEDNESDAY_AFTERNOON,
        "pickup_address": "Eindhoven Airport, Luchthavenweg 25",
        "pickup_lat": 51.4501,
        "pickup_lng": 5.3745,
        "distance_km": 3.0,
        "duration_minutes": 10,
    }
    resp = client.post('/fares/api/price/', payload, format='json')
    assert resp.status_code == 200
    data = resp.json()
    assert [s['name'] for s in data['surcharges']] == ['airportPickup']
    assert data['totalBeforeTax'] == '15.40'
    assert data['total'] == '18.63'


@pytest.mark.django_db
def test_price_estimate_by_coords(monkeypatch):
    client = APIClient()

    class Dummy:
        def estimate(self, origin, destination, waypoints=(), scheduled_at=None):
            return RouteEstimate(distance_km=1.0, duration_minutes=2, is_traffic_aware=True)

    monkeypatch.setattr('fares.services.distance.get_estimate_source', lambda: Dummy())

    payload = {
        "vehicle_type": "standard",
        "scheduled_at": WEDNESDAY_AFTERNOON,
        "pickup_lat": 52.373,
        "pickup_lng": 4.893,
        "dropoff_lat": 52.357,
        "dropoff_lng": 4.881,
    }
    resp = client.post('/fares/api/price/', payload, format='json')
    assert resp.status_code == 200
    data = resp.json()
    assert data['estimatedOnly'] is False
    assert data['minimumApplied'] is True
    assert data['totalBeforeTax'] == '12.00'
    assert data['total'] == '14.52'


@pytest.mark.django_db
def test_price_estimate_route_unavailable(monkeypatch):
    client = APIClient()

    class Down:
        def estimate(self, origin, destination, waypoints=(), scheduled_at=None):
            raise EstimateUnavailable('Directions API timed out')

    monkeypatch.setattr('fares.services.distance.get_estimate_source', lambda: Down())

    payload = {
        "vehicle_type": "standard",
        "scheduled_at": WEDNESDAY_AFTERNOON,
        "pickup_address": "Dam 1, Amsterdam",
        "dropoff_address": "Schiphol",
    }
    resp = client.post('/fares/api/price/', payload, format='json')
    assert resp.status_code == 503
    data = resp.json()
    assert data['retryable'] is True
    assert data['code'] == 'estimate_unavailable'
    assert 'total' not in data


@pytest.mark.django_db
def test_price_estimate_missing_params():
    client = APIClient()
    payload = {"vehicle_type": "standard", "scheduled_at": WEDNESDAY_AFTERNOON}
    resp = client.post('/fares/api/price/', payload, format='json')
    assert resp.status_code == 400


@pytest.mark.django_db
def test_hourly_estimate_requires_hours():
    client = APIClient()
    payload = {"vehicle_type": "standard", "scheduled_at": WEDNESDAY_AFTERNOON, "booking_type": "hourly"}
    resp = client.post('/fares/api/price/', payload, format='json')
    assert resp.status_code == 400


@pytest.mark.django_db
def test_unknown_vehicle_type():
    client = APIClient()
    payload = {"vehicle_type": "helicopter", "scheduled_at": WEDNESDAY_AFTERNOON, "distance_km": 3}
    resp = client.post('/fares/api/price/', payload, format='json')
    assert resp.status_code == 400
    assert resp.json()['code'] == 'unknown_vehicle_type'
    assert resp.json()['retryable'] is False


@pytest.mark.django_db
def test_too_many_stopovers():
    client = APIClient()
    payload = {"vehicle_type": "standard", "scheduled_at": WEDNESDAY_AFTERNOON, "distance_km": 3, "stopover_count": 9}
    resp = client.post('/fares/api/price/', payload, format='json')
    assert resp.status_code == 400
    assert resp.json()['code'] == 'invalid_input'


@pytest.mark.django_db
def test_broken_configuration_is_a_server_error():
    VehicleRate.objects.create(
        vehicle_type='standard', base_price=Decimal('10.00'), per_km_rate=Decimal('2.00'), minimum_fare=Decimal('5.00'),
    )
    client = APIClient()
    payload = {"vehicle_type": "standard", "scheduled_at": WEDNESDAY_AFTERNOON, "distance_km": 3}
    resp = client.post('/fares/api/price/', payload, format='json')
    assert resp.status_code == 500
    assert resp.json()['code'] == 'configuration_error'


@pytest.mark.django_db
def test_compare_lists_cheapest_first():
    client = APIClient()
    payload = {"scheduled_at": WEDNESDAY_AFTERNOON, "distance_km": 3.0, "duration_minutes": 10}
    resp = client.post('/fares/api/price/compare/', payload, format='json')
    assert resp.status_code == 200
    data = resp.json()
    assert [item['vehicleType'] for item in data] == ['standard', 'comfort', 'luxury', 'van']
    totals = [Decimal(item['price']['total']) for item in data]
    assert totals == sorted(totals)


@pytest.mark.django_db
def test_vehicle_rates():
    client = APIClient()
    resp = client.get('/fares/api/vehicles/')
    assert resp.status_code == 200
    data = resp.json()
    assert data['currency'] == 'EUR'
    assert data['taxRate'] == '0.21'
    standard = next(v for v in data['vehicles'] if v['vehicle_type'] == 'standard')
    assert standard['minimum_fare'] == '12.00'
