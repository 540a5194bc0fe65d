from rest_framework import serializers
from .models import RideBooking
from .services.geo import Place
from .services.pricing import BOOKING_TYPES, HOURLY, RIDE


class RideBookingSerializer(serializers.ModelSerializer):
    class Meta:
        model = RideBooking
        fields = [
            'id', 'pickup_address', 'pickup_lat', 'pickup_lng', 'dropoff_address', 'dropoff_lat', 'dropoff_lng', 'stopovers',
            'vehicle_type', 'booking_type', 'scheduled_at', 'hourly_duration_hours', 'distance_km', 'duration_minutes',
            'estimated_only', 'phone', 'email', 'status', 'price_breakdown', 'total_amount', 'currency', 'created_at'
        ]
        read_only_fields = fields


class TripSerializer(serializers.Serializer):
    """Trip fields shared by price estimates, comparisons and bookings."""

    booking_type = serializers.ChoiceField(choices=BOOKING_TYPES, default=RIDE)
    scheduled_at = serializers.DateTimeField()

    pickup_address = serializers.CharField(max_length=512, required=False, allow_blank=True)
    pickup_lat = serializers.FloatField(required=False, allow_null=True, min_value=-90, max_value=90)
    pickup_lng = serializers.FloatField(required=False, allow_null=True, min_value=-180, max_value=180)
    dropoff_address = serializers.CharField(max_length=512, required=False, allow_blank=True)
    dropoff_lat = serializers.FloatField(required=False, allow_null=True, min_value=-90, max_value=90)
    dropoff_lng = serializers.FloatField(required=False, allow_null=True, min_value=-180, max_value=180)
    stopovers = serializers.ListField(child=serializers.CharField(max_length=512), required=False, default=list)
    stopover_count = serializers.IntegerField(min_value=0, required=False)

    distance_km = serializers.FloatField(required=False, allow_null=True, min_value=0)
    duration_minutes = serializers.FloatField(required=False, allow_null=True, min_value=0)
    hourly_duration_hours = serializers.FloatField(required=False, allow_null=True, min_value=0)

    @staticmethod
    def location(data, prefix):
        address = (data.get(f'{prefix}_address') or '').strip()
        lat, lng = data.get(f'{prefix}_lat'), data.get(f'{prefix}_lng')
        if lat is not None and lng is not None:
            # keep the address so airport keywords still match
            return Place(address, lat, lng) if address else (lat, lng)
        return address or None

    def validate(self, data):
        if data.get('stopover_count') is None:
            data['stopover_count'] = len(data.get('stopovers') or [])

        if data['booking_type'] == HOURLY:
            if not data.get('hourly_duration_hours'):
                raise serializers.ValidationError("'hourly_duration_hours' is required for hourly bookings")
            return data

        if data.get('distance_km') is None:
            missing = [p for p in ('pickup', 'dropoff') if self.location(data, p) is None]
            if missing:
                raise serializers.ValidationError(
                    "Either 'distance_km' or pickup and dropoff locations are required to estimate price. "
                    f"Missing: {', '.join(missing)}"
                )
        return data


class PriceEstimateSerializer(TripSerializer):
    vehicle_type = serializers.CharField(max_length=32)


class CreateBookingSerializer(TripSerializer):
    vehicle_type = serializers.CharField(max_length=32)
    pickup_address = serializers.CharField(max_length=512)

    phone = serializers.CharField(max_length=32)
    email = serializers.EmailField()

    # total the customer saw; must match the server-side price
    expected_total = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)

    def validate(self, data):
        data = super().validate(data)
        if data['booking_type'] != HOURLY:
            missing = [p for p in ('pickup', 'dropoff') if self.location(data, p) is None]
            if missing:
                raise serializers.ValidationError(f"Bookings need pickup and dropoff locations. Missing: {', '.join(missing)}")
        return data
