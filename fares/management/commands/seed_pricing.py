from django.conf import settings
from django.core.management.base import BaseCommand
from django.db import transaction

from fares.models import AirportZone, PriceRule, VehicleRate
from fares.services.config import get_pricing_store


class Command(BaseCommand):
    help = "Write the default rate table, surcharge rules and airports from settings.PRICING to the database"

    def add_arguments(self, parser):
        parser.add_argument('--reset', action='store_true', help='Delete existing pricing records first')

    @transaction.atomic
    def handle(self, *args, **options):
        pricing = settings.PRICING

        if options['reset']:
            VehicleRate.objects.all().delete()
            PriceRule.objects.all().delete()
            AirportZone.objects.all().delete()
            self.stdout.write('Removed existing pricing records')

        for vehicle_type, rates in pricing.get('RATE_TABLE', {}).items():
            _, created = VehicleRate.objects.update_or_create(
                vehicle_type=vehicle_type,
                defaults={'name': vehicle_type.title(), 'is_active': True, **rates},
            )
            self.stdout.write(f"{'Created' if created else 'Updated'} rates for {vehicle_type}")

        for name, rule in pricing.get('SURCHARGES', {}).items():
            PriceRule.objects.update_or_create(
                name=name,
                defaults={
                    'kind': rule.get('kind', 'fixed'),
                    'amount': rule.get('amount'),
                    'description': rule.get('description', ''),
                    'enabled': rule.get('enabled', True),
                },
            )

        for airport in pricing.get('AIRPORTS', ()):
            AirportZone.objects.update_or_create(
                name=airport['name'],
                defaults={
                    'keywords': ', '.join(airport.get('keywords', ())),
                    'latitude': airport.get('latitude'),
                    'longitude': airport.get('longitude'),
                    'radius_km': airport.get('radius_km', 3),
                    'is_active': True,
                },
            )

        get_pricing_store().invalidate()
        self.stdout.write(self.style.SUCCESS('Pricing configuration seeded'))
