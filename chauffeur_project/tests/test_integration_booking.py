from decimal import Decimal

import pytest
from rest_framework.test import APIClient
from django.urls import reverse

from fares.models import RideBooking
from fares.services.distance import RouteEstimate
from fares.services.geo import Place
from fares.services.exceptions import EstimateUnavailable


class FakeSource:
    def __init__(self, estimate=None, error=None):
        self.estimate_value = estimate
        self.error = error
        self.calls = []

    def estimate(self, origin, destination, waypoints=(), scheduled_at=None):
        self.calls.append((origin, destination, list(waypoints)))
        if self.error is not None:
            raise self.error
        return self.estimate_value


@pytest.fixture
def route(monkeypatch):
    source = FakeSource(RouteEstimate(distance_km=3.0, duration_minutes=10, is_traffic_aware=True))
    monkeypatch.setattr('fares.services.distance.get_estimate_source', lambda: source)
    return source


def booking_payload(**overrides):
    payload = {
        'vehicle_type': 'standard',
        'scheduled_at': '2024-03-13T14:00:00+01:00',
        'pickup_address': 'Dam 1, Amsterdam',
        'pickup_lat': 52.373,
        'pickup_lng': 4.893,
        'dropoff_address': 'Museumplein, Amsterdam',
        'dropoff_lat': 52.357,
        'dropoff_lng': 4.881,
        'phone': '+31612345678',
        'email': 'test@example.com',
    }
    payload.update(overrides)
    return payload


@pytest.mark.django_db
def test_booking_uses_server_side_route(route):
    client = APIClient()

    resp = client.post(reverse('fares:create_booking'), booking_payload(), format='json')
    assert resp.status_code == 201

    booking = RideBooking.objects.get(pk=resp.data['id'])
    assert booking.status == RideBooking.STATUS_PENDING
    assert booking.total_amount == Decimal('16.94')
    assert booking.distance_km == Decimal('3.00')
    assert booking.duration_minutes == 10
    assert booking.estimated_only is False
    assert booking.price_breakdown['total'] == '16.94'
    assert resp.data['total_amount'] == '16.94'
    assert route.calls == [
        (Place('Dam 1, Amsterdam', 52.373, 4.893), Place('Museumplein, Amsterdam', 52.357, 4.881), []),
    ]


@pytest.mark.django_db
def test_client_distance_is_ignored_for_bookings(route):
    client = APIClient()

    resp = client.post(reverse('fares:create_booking'), booking_payload(distance_km=0.5, duration_minutes=1), format='json')
    assert resp.status_code == 201
    assert RideBooking.objects.get(pk=resp.data['id']).total_amount == Decimal('16.94')


@pytest.mark.django_db
def test_stopovers_are_routed_and_charged(route):
    client = APIClient()

    resp = client.post(
        reverse('fares:create_booking'), booking_payload(stopovers=['Leidseplein', 'Vondelpark']), format='json'
    )
    assert resp.status_code == 201
    booking = RideBooking.objects.get(pk=resp.data['id'])
    assert booking.stopovers == ['Leidseplein', 'Vondelpark']
    assert [line['name'] for line in booking.price_breakdown['surcharges']] == ['stopover']
    assert booking.total_amount == Decimal('22.99')
    assert route.calls[0][2] == ['Leidseplein', 'Vondelpark']


@pytest.mark.django_db
def test_matching_expected_total_is_accepted(route):
    client = APIClient()

    resp = client.post(reverse('fares:create_booking'), booking_payload(expected_total='16.94'), format='json')
    assert resp.status_code == 201


@pytest.mark.django_db
def test_stale_client_total_is_rejected(route):
    client = APIClient()

    resp = client.post(reverse('fares:create_booking'), booking_payload(expected_total='14.52'), format='json')
    assert resp.status_code == 409
    assert resp.data['code'] == 'price_mismatch'
    assert resp.data['expected_total'] == '16.94'
    assert RideBooking.objects.count() == 0


@pytest.mark.django_db
def test_hourly_booking(route):
    client = APIClient()

    payload = booking_payload(booking_type='hourly', hourly_duration_hours=3)
    del payload['dropoff_address'], payload['dropoff_lat'], payload['dropoff_lng']
    resp = client.post(reverse('fares:create_booking'), payload, format='json')
    assert resp.status_code == 201

    booking = RideBooking.objects.get(pk=resp.data['id'])
    assert booking.booking_type == RideBooking.BOOKING_HOURLY
    assert booking.hourly_duration_hours == Decimal('3.00')
    # 5 + 3 * 25 = 80, plus 21% VAT
    assert booking.total_amount == Decimal('96.80')
    assert route.calls == []


@pytest.mark.django_db
def test_route_failure_creates_no_booking(monkeypatch):
    source = FakeSource(error=EstimateUnavailable('Directions API timed out'))
    monkeypatch.setattr('fares.services.distance.get_estimate_source', lambda: source)
    client = APIClient()

    resp = client.post(reverse('fares:create_booking'), booking_payload(), format='json')
    assert resp.status_code == 503
    assert resp.data['retryable'] is True
    assert resp.data['detail'] == 'Price could not be calculated, please retry.'
    assert RideBooking.objects.count() == 0


@pytest.mark.django_db
def test_booking_requires_dropoff_for_rides(route):
    client = APIClient()

    payload = booking_payload(distance_km=3)
    del payload['dropoff_address'], payload['dropoff_lat'], payload['dropoff_lng']
    resp = client.post(reverse('fares:create_booking'), payload, format='json')
    assert resp.status_code == 400
