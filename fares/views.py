import logging
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status

from .serializers import CreateBookingSerializer, PriceEstimateSerializer, RideBookingSerializer, TripSerializer
from .models import RideBooking
from .services.exceptions import (
    ConfigurationError,
    EstimateUnavailable,
    InvalidInput,
    PriceMismatch,
    PricingError,
    UnknownVehicleType,
)
from .services.money import round_money
from .services.pricing import (
    HOURLY,
    PricingService,
    format_breakdown,
    price_is_valid,
    route_fields,
    sanity_warnings,
    verify_total,
)

logger = logging.getLogger(__name__)

RETRY_MESSAGE = "Price could not be calculated, please retry."


def pricing_error_response(exc: PricingError) -> Response:
    """Map a pricing error to an explicit error state; never a zero price."""
    body = {"detail": exc.message or str(exc), "code": exc.code, "retryable": exc.retryable}

    if isinstance(exc, EstimateUnavailable):
        logger.warning("Route estimate unavailable: %s", exc)
        body["detail"] = RETRY_MESSAGE
        return Response(body, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    if isinstance(exc, PriceMismatch):
        logger.info("Client total rejected: %s", exc)
        body["expected_total"] = str(exc.expected)
        return Response(body, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, UnknownVehicleType):
        logger.error("Pricing requested for unconfigured vehicle type %r", exc.vehicle_type)
        return Response(body, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, InvalidInput):
        return Response(body, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, ConfigurationError):
        logger.error("Pricing configuration error: %s", exc, exc_info=True)
        body["detail"] = "Pricing is temporarily unavailable."
        return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.error("Unhandled pricing error: %s", exc, exc_info=True)
    return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def trip_fields(data, trust_client_distance=True) -> dict:
    """FareInput fields for a validated trip, looking the route up when needed.

    Client-supplied distances are only used for estimates and are always
    flagged as estimate-only; bookings re-derive the route server-side.
    """
    pickup = TripSerializer.location(data, 'pickup')
    dropoff = TripSerializer.location(data, 'dropoff')
    fields = {
        'booking_type': data['booking_type'],
        'scheduled_at': data['scheduled_at'],
        'stopover_count': data['stopover_count'],
        'pickup_location': pickup,
        'destination_location': dropoff,
    }

    if data['booking_type'] == HOURLY:
        fields['hourly_duration_hours'] = data['hourly_duration_hours']
        return fields

    if trust_client_distance and data.get('distance_km') is not None:
        fields['distance_km'] = data['distance_km']
        fields['duration_minutes'] = data.get('duration_minutes') or 0
        fields['estimated_only'] = True
        return fields

    fields.update(route_fields(pickup, dropoff, data.get('stopovers') or [], data['scheduled_at']))
    return fields


def price_payload(breakdown) -> dict:
    payload = breakdown.to_dict()
    payload['valid'] = price_is_valid(breakdown)
    payload['warnings'] = sanity_warnings(breakdown)
    payload['display'] = format_breakdown(breakdown)
    return payload


class PriceEstimateView(APIView):
    """Estimate price without creating a booking. Accepts distance_km or pickup/dropoff locations."""
    def post(self, request):
        serializer = PriceEstimateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            breakdown = PricingService.calculate(vehicle_type=data['vehicle_type'], **trip_fields(data))
        except PricingError as exc:
            return pricing_error_response(exc)

        return Response(price_payload(breakdown), status=status.HTTP_200_OK)


class PriceComparisonView(APIView):
    """Price one trip for every configured vehicle type, cheapest first."""
    def post(self, request):
        serializer = TripSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            results = PricingService.compare(**trip_fields(serializer.validated_data))
        except PricingError as exc:
            return pricing_error_response(exc)

        return Response([{'vehicleType': vt, 'price': price_payload(b)} for vt, b in results])


class VehicleRatesView(APIView):
    def get(self, request):
        from .services.config import get_pricing_store

        try:
            snapshot = get_pricing_store().snapshot()
        except PricingError as exc:
            return pricing_error_response(exc)

        table = snapshot.rate_table
        return Response({
            'currency': snapshot.currency,
            'taxRate': str(snapshot.tax_rate),
            'vehicles': [table.lookup(vt).as_dict() for vt in table.vehicle_types()],
        })


class CreateBookingView(APIView):
    def post(self, request):
        serializer = CreateBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        # The price is always re-derived here; a client-held total is only compared.
        try:
            fields = trip_fields(data, trust_client_distance=False)
            breakdown = PricingService.calculate(vehicle_type=data['vehicle_type'], **fields)
            if data.get('expected_total') is not None:
                verify_total(breakdown, data['expected_total'])
        except PricingError as exc:
            return pricing_error_response(exc)

        pickup, dropoff = fields['pickup_location'], fields['destination_location']
        booking = RideBooking.objects.create(
            pickup_address=data.get('pickup_address', ''),
            pickup_lat=data.get('pickup_lat'),
            pickup_lng=data.get('pickup_lng'),
            dropoff_address=data.get('dropoff_address', ''),
            dropoff_lat=data.get('dropoff_lat'),
            dropoff_lng=data.get('dropoff_lng'),
            stopovers=data.get('stopovers') or [],
            vehicle_type=breakdown.vehicle_type,
            booking_type=breakdown.booking_type,
            scheduled_at=data['scheduled_at'],
            hourly_duration_hours=None if data.get('hourly_duration_hours') is None else round_money(data['hourly_duration_hours']),
            distance_km=round_money(fields.get('distance_km') or 0),
            duration_minutes=int(fields.get('duration_minutes') or 0),
            estimated_only=breakdown.estimated_only,
            phone=data['phone'],
            email=data['email'],
            price_breakdown=breakdown.to_dict(),
            total_amount=breakdown.total,
            currency=breakdown.currency,
        )
        logger.info('Booking %s created (%s -> %s) total=%s %s', booking.id, pickup, dropoff, booking.total_amount, booking.currency)

        return Response(RideBookingSerializer(booking).data, status=status.HTTP_201_CREATED)
