"""Utility functions for order totals and payment methods"""
from decimal import Decimal, ROUND_HALF_UP

from .models import Order

# Legacy names accepted on input
PAYMENT_METHOD_ALIASES = {
    'bkash': Order.PAYMENT_MBANK,
}


def normalize_payment_method(value):
    """Lower-case the method and map legacy aliases ('bkash' -> 'mbank')"""
    value = (value or '').strip().lower()
    return PAYMENT_METHOD_ALIASES.get(value, value)


def compute_order_total(items):
    """
    Total of an order: sum of quantity x unit_price, rounded to 2 places.

    Items may be dicts or OrderItem instances.
    """
    total = Decimal('0.00')
    for item in items:
        if isinstance(item, dict):
            quantity, unit_price = item['quantity'], item['unit_price']
        else:
            quantity, unit_price = item.quantity, item.unit_price
        total += Decimal(str(quantity)) * Decimal(str(unit_price))
    return total.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
