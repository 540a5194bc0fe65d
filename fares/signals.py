import logging

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import AirportZone, PriceRule, VehicleRate
from .services.config import get_pricing_store

logger = logging.getLogger(__name__)


@receiver(post_save, sender=VehicleRate)
@receiver(post_delete, sender=VehicleRate)
@receiver(post_save, sender=PriceRule)
@receiver(post_delete, sender=PriceRule)
@receiver(post_save, sender=AirportZone)
@receiver(post_delete, sender=AirportZone)
def pricing_configuration_changed(sender, instance, **kwargs):
    logger.info('Pricing configuration changed (%s %s); refreshing snapshot', sender.__name__, instance)
    get_pricing_store().invalidate()
