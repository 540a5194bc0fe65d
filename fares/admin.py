from django.contrib import admin
from .models import AirportZone, PriceRule, RideBooking, VehicleRate


@admin.register(VehicleRate)
class VehicleRateAdmin(admin.ModelAdmin):
    list_display = ("vehicle_type", "name", "base_price", "per_km_rate", "per_minute_rate", "per_hour_rate", "minimum_fare", "is_active")
    list_editable = ("is_active",)
    readonly_fields = ("updated_at",)


@admin.register(PriceRule)
class PriceRuleAdmin(admin.ModelAdmin):
    list_display = ("name", "kind", "amount", "description", "enabled")
    readonly_fields = ("updated_at",)


@admin.register(AirportZone)
class AirportZoneAdmin(admin.ModelAdmin):
    list_display = ("name", "keywords", "latitude", "longitude", "radius_km", "is_active")
    search_fields = ("name", "keywords")
    readonly_fields = ("updated_at",)


@admin.register(RideBooking)
class RideBookingAdmin(admin.ModelAdmin):
    list_display = ("id", "pickup_address", "dropoff_address", "vehicle_type", "booking_type", "scheduled_at", "total_amount", "status", "created_at")
    list_filter = ("booking_type", "vehicle_type", "status")
    readonly_fields = ("price_breakdown", "total_amount", "created_at", "updated_at")
    search_fields = ("pickup_address", "dropoff_address", "phone", "email")
