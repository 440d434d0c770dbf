"""Utility functions for the flattened inventory view"""
from django.conf import settings

STANDARD_LABEL = 'Standard'


def get_stock_status(stock, threshold=None):
    """
    Stock status of an inventory item:
    - 0 -> out_of_stock
    - below the low stock threshold -> low_stock
    - otherwise in_stock
    """
    if threshold is None:
        threshold = getattr(settings, 'LOW_STOCK_THRESHOLD', 10)
    if stock <= 0:
        return 'out_of_stock'
    if stock < threshold:
        return 'low_stock'
    return 'in_stock'


def flatten_inventory(products, search=None):
    """
    One row per variant, or one 'Standard' row for a product without variants.

    Products must have images and variants (with size and color) prefetched.
    `search` matches product name or variant label, case-insensitively.
    """
    needle = (search or '').strip().lower()
    items = []
    for product in products:
        image = product.get_primary_image_url()
        category_name = product.category.name if product.category else None
        variants = list(product.variants.all())

        if variants:
            rows = [
                {
                    'id': str(variant.id),
                    'is_variant': True,
                    'variant_label': variant.label,
                    'stock': variant.stock,
                    'price': variant.price_override if variant.price_override is not None else product.price,
                }
                for variant in variants
            ]
        else:
            rows = [{
                'id': str(product.id),
                'is_variant': False,
                'variant_label': STANDARD_LABEL,
                'stock': product.stock_cached,
                'price': product.price,
            }]

        for row in rows:
            if needle and needle not in product.name.lower() and needle not in row['variant_label'].lower():
                continue
            row.update({
                'product_id': str(product.id),
                'product_name': product.name,
                'category_name': category_name,
                'image': image,
                'is_archived': product.is_archived,
                'stock_status': get_stock_status(row['stock']),
            })
            items.append(row)
    return items
