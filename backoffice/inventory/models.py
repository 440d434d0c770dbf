import uuid

from django.db import models

from backoffice.core.models import Store, User
from backoffice.catalog.models import Product, ProductVariant


class InventoryAdjustment(models.Model):
    """One stock change made from the inventory screen"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name='inventory_adjustments')
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True, related_name='inventory_adjustments')
    variant = models.ForeignKey(ProductVariant, on_delete=models.SET_NULL, null=True, blank=True, related_name='inventory_adjustments')
    # Names at adjustment time; variants are re-created whenever a product is saved
    product_name = models.CharField(max_length=200)
    variant_label = models.CharField(max_length=200, default='Standard')
    previous_stock = models.PositiveIntegerField()
    new_stock = models.PositiveIntegerField()
    reason = models.CharField(max_length=255, blank=True, null=True)
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='inventory_adjustments')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    def __str__(self):
        return f"{self.product_name} ({self.variant_label}): {self.previous_stock} -> {self.new_stock}"

    @property
    def delta(self):
        return self.new_stock - self.previous_stock

    class Meta:
        db_table = 'inventory_adjustments'
        ordering = ['-created_at']
