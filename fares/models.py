import uuid
from decimal import Decimal
from django.db import models
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.utils import timezone

from .services import surcharges


class VehicleRate(models.Model):
    """Admin-editable rate table entry for one vehicle class."""

    vehicle_type = models.SlugField(max_length=32, unique=True)
    name = models.CharField(max_length=64, blank=True)
    base_price = models.DecimalField(max_digits=8, decimal_places=2, validators=[MinValueValidator(0)])
    per_km_rate = models.DecimalField(max_digits=8, decimal_places=2, validators=[MinValueValidator(0)])
    per_minute_rate = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(0)])
    per_hour_rate = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(0)])
    night_surcharge_amount = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(0)])
    minimum_fare = models.DecimalField(max_digits=8, decimal_places=2, validators=[MinValueValidator(0)])
    is_active = models.BooleanField(default=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('vehicle_type',)

    def clean(self):
        if self.minimum_fare is not None and self.base_price is not None and self.minimum_fare < self.base_price:
            raise ValidationError({'minimum_fare': 'Minimum fare cannot be lower than the base price.'})

    def as_rates(self) -> dict:
        return {
            'base_price': self.base_price,
            'per_km_rate': self.per_km_rate,
            'per_minute_rate': self.per_minute_rate,
            'per_hour_rate': self.per_hour_rate,
            'night_surcharge_amount': self.night_surcharge_amount,
            'minimum_fare': self.minimum_fare,
        }

    def __str__(self):
        return self.name or self.vehicle_type


class PriceRule(models.Model):
    """Admin override of one surcharge rule (rush hour, night, airport, stopover)."""

    KIND_CHOICES = [(surcharges.FIXED, 'Fixed amount'), (surcharges.PERCENTAGE, 'Percentage of subtotal')]
    NAME_CHOICES = [
        (surcharges.RUSH_HOUR, 'Rush hour'),
        (surcharges.NIGHT_TIME, 'Night time'),
        (surcharges.AIRPORT_PICKUP, 'Airport pickup'),
        (surcharges.STOPOVER, 'Stopover'),
    ]

    name = models.CharField(max_length=32, choices=NAME_CHOICES, unique=True)
    kind = models.CharField(max_length=16, choices=KIND_CHOICES, default=surcharges.FIXED)
    # Fraction for percentage rules (0.2000 = 20%). Empty night amount = per-vehicle night surcharge.
    amount = models.DecimalField(max_digits=8, decimal_places=4, null=True, blank=True, validators=[MinValueValidator(0)])
    description = models.CharField(max_length=128, blank=True)
    enabled = models.BooleanField(default=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('name',)

    def clean(self):
        if self.kind == surcharges.PERCENTAGE and self.amount is not None and self.amount > 1:
            raise ValidationError({'amount': 'Percentages are fractions: use 0.20 for 20%.'})
        if self.amount is None and not (self.name == surcharges.NIGHT_TIME and self.kind == surcharges.FIXED):
            raise ValidationError({'amount': 'An amount is required for this rule.'})
        if self.name == surcharges.STOPOVER and self.kind != surcharges.FIXED:
            raise ValidationError({'kind': 'The stopover surcharge is a fixed fee per stop.'})

    def as_definition(self) -> dict:
        return {
            'kind': self.kind,
            'amount': self.amount,
            'description': self.description,
            'enabled': self.enabled,
        }

    def __str__(self):
        return self.get_name_display()


class AirportZone(models.Model):
    name = models.CharField(max_length=128)
    keywords = models.CharField(max_length=256, blank=True, help_text='Comma-separated address fragments, e.g. "schiphol, airport"')
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True,
                                   validators=[MinValueValidator(-90), MaxValueValidator(90)])
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True,
                                    validators=[MinValueValidator(-180), MaxValueValidator(180)])
    radius_km = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('3.00'), validators=[MinValueValidator(0)])
    is_active = models.BooleanField(default=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('name',)

    def as_definition(self) -> dict:
        return {
            'name': self.name,
            'keywords': [k.strip() for k in self.keywords.split(',') if k.strip()],
            'latitude': self.latitude,
            'longitude': self.longitude,
            'radius_km': self.radius_km,
        }

    def __str__(self):
        return self.name


class RideBooking(models.Model):
    BOOKING_RIDE = 'ride'
    BOOKING_HOURLY = 'hourly'

    STATUS_PENDING = 'PENDING'
    STATUS_CONFIRMED = 'CONFIRMED'
    STATUS_CANCELLED = 'CANCELLED'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    pickup_address = models.CharField(max_length=512)
    pickup_lat = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    pickup_lng = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    dropoff_address = models.CharField(max_length=512, blank=True)
    dropoff_lat = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    dropoff_lng = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    stopovers = models.JSONField(default=list, blank=True)

    vehicle_type = models.CharField(max_length=32)
    booking_type = models.CharField(max_length=16, choices=[(BOOKING_RIDE, 'Ride'), (BOOKING_HOURLY, 'Hourly')], default=BOOKING_RIDE)
    scheduled_at = models.DateTimeField()
    hourly_duration_hours = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)

    distance_km = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(0)])
    duration_minutes = models.PositiveIntegerField(default=0)
    estimated_only = models.BooleanField(default=False)

    phone = models.CharField(max_length=32)
    email = models.EmailField()

    status = models.CharField(max_length=16, choices=[(STATUS_PENDING, 'Pending'), (STATUS_CONFIRMED, 'Confirmed'), (STATUS_CANCELLED, 'Cancelled')], default=STATUS_PENDING)

    price_breakdown = models.JSONField(null=True, blank=True)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=3, default='EUR')

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.get_booking_type_display()} {self.id} from {self.pickup_address} ({self.vehicle_type})"
