"""Print the itemized price for a trip using the current pricing configuration.

Usage: python scripts/price_preview.py standard 12.5 25 "2024-03-13T08:00" [stopovers] [pickup]
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'chauffeur_project.settings')
import django
django.setup()
from django.utils.dateparse import parse_datetime
from fares.services.exceptions import PricingError
from fares.services.pricing import PricingService, format_breakdown, sanity_warnings

if len(sys.argv) < 5:
    print(__doc__)
    sys.exit(2)

vehicle_type, distance, minutes, when = sys.argv[1:5]
stops = int(sys.argv[5]) if len(sys.argv) > 5 else 0
pickup = sys.argv[6] if len(sys.argv) > 6 else None

try:
    breakdown = PricingService.calculate(
        vehicle_type=vehicle_type,
        scheduled_at=parse_datetime(when),
        distance_km=distance,
        duration_minutes=minutes,
        stopover_count=stops,
        pickup_location=pickup,
    )
except PricingError as exc:
    print('error:', exc)
    sys.exit(1)

for line in format_breakdown(breakdown):
    print(line)
for warning in sanity_warnings(breakdown):
    print('warning:', warning)
