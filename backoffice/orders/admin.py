from django.contrib import admin
from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ['product', 'variant', 'product_name', 'variant_label', 'quantity', 'unit_price']
    readonly_fields = ['product_name', 'variant_label']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'store', 'customer_name', 'phone', 'total_price', 'status', 'payment_method', 'is_paid', 'created_at']
    list_filter = ['status', 'payment_method', 'is_paid', 'store', 'created_at']
    search_fields = ['customer_name', 'customer_email', 'phone']
    ordering = ['-created_at']
    readonly_fields = ['total_price', 'created_at', 'updated_at']
    inlines = [OrderItemInline]
