# api/signals.py: stock bookkeeping on Product saves
import logging

from django.db.models.signals import pre_save
from django.dispatch import receiver

from .models import Product

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=Product)
def disable_sold_out_product(sender, instance: Product, **kwargs):
    """A product with no stock left is no longer offered."""
    if instance.quantity == 0 and instance.availability:
        instance.availability = False
        logger.info("Product %s is out of stock, availability switched off", instance.pk)
