from django.contrib import admin
from .models import InventoryAdjustment


@admin.register(InventoryAdjustment)
class InventoryAdjustmentAdmin(admin.ModelAdmin):
    list_display = ['product_name', 'variant_label', 'previous_stock', 'new_stock', 'reason', 'user', 'store', 'created_at']
    list_filter = ['store', 'created_at']
    search_fields = ['product_name', 'variant_label', 'reason']
    ordering = ['-created_at']
    readonly_fields = ['created_at']
