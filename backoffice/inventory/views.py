import logging

from django.db import transaction
from django.db.models import Prefetch, Sum
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from backoffice.catalog.models import Product, ProductVariant
from backoffice.core.cache_signals import suspend_cache_signals
from backoffice.core.utils import create_audit_log, get_store_for_request
from .models import InventoryAdjustment
from .serializers import InventoryItemSerializer, InventoryUpdateSerializer, InventoryAdjustmentSerializer
from .utils import flatten_inventory, STANDARD_LABEL

logger = logging.getLogger(__name__)


class InventoryUpdateError(Exception):
    pass


def apply_inventory_updates(store, updates, user=None):
    """
    Write the stock of every item whose value changed and record an adjustment
    for each write. Products whose variants changed get stock_cached recomputed.

    Runs in one transaction; raises InventoryUpdateError for unknown items.
    """
    adjustments = []
    touched_products = set()

    # Stock levels are not part of the overview, no invalidation needed
    with transaction.atomic(), suspend_cache_signals():
        for update in updates:
            if update['is_variant']:
                variant = (
                    ProductVariant.objects.select_for_update(of=('self',))
                    .select_related('product', 'size', 'color')
                    .filter(pk=update['id'], product__store=store)
                    .first()
                )
                if variant is None:
                    raise InventoryUpdateError(f"Variant {update['id']} not found in this store")
                if variant.stock == update['stock']:
                    continue
                previous_stock = variant.stock
                variant.stock = update['stock']
                variant.save(update_fields=['stock'])
                touched_products.add(variant.product_id)
                product, label = variant.product, variant.label
            else:
                product = Product.objects.select_for_update().filter(pk=update['id'], store=store).first()
                if product is None:
                    raise InventoryUpdateError(f"Product {update['id']} not found in this store")
                if product.variants.exists():
                    raise InventoryUpdateError(
                        f"Product '{product.name}' has variants; adjust the variant stock instead"
                    )
                if product.stock_cached == update['stock']:
                    continue
                previous_stock = product.stock_cached
                product.stock_cached = update['stock']
                product.save(update_fields=['stock_cached', 'updated_at'])
                variant, label = None, STANDARD_LABEL

            adjustments.append(InventoryAdjustment.objects.create(
                store=store,
                product=product,
                variant=variant,
                product_name=product.name,
                variant_label=label,
                previous_stock=previous_stock,
                new_stock=update['stock'],
                reason=update.get('reason') or None,
                user=user
            ))

        for product in Product.objects.filter(pk__in=touched_products):
            product.stock_cached = product.variants.aggregate(total=Sum('stock'))['total'] or 0
            product.save(update_fields=['stock_cached', 'updated_at'])

    return adjustments


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def inventory_list_update(request, store_id):
    """
    GET: flattened inventory (one row per variant, 'Standard' row otherwise)
    POST: bulk save of changed stock levels
    """
    if request.method == 'GET':
        store = get_store_for_request(request, store_id)
        products = (
            Product.objects.filter(store=store)
            .select_related('category')
            .prefetch_related(
                'images',
                Prefetch('variants', queryset=ProductVariant.objects.select_related('size', 'color').order_by('size__name', 'color__name')),
            )
            .order_by('name')
        )
        items = flatten_inventory(products, search=request.query_params.get('search'))
        serializer = InventoryItemSerializer(items, many=True)
        return Response(serializer.data)

    store = get_store_for_request(request, store_id, write=True)
    serializer = InventoryUpdateSerializer(data=request.data, many=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        adjustments = apply_inventory_updates(store, serializer.validated_data, user=request.user)
    except InventoryUpdateError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    logger.info(f"Inventory saved for store {store.id}: {len(adjustments)} item(s) updated")
    for adjustment in adjustments:
        create_audit_log(
            request=request,
            action='stock_adjust',
            model_name='ProductVariant' if adjustment.variant_id else 'Product',
            object_id=adjustment.variant_id or adjustment.product_id,
            object_name=f"{adjustment.product_name} ({adjustment.variant_label})",
            changes={
                'stock': {'old': adjustment.previous_stock, 'new': adjustment.new_stock},
                'reason': adjustment.reason,
            },
            store=store
        )

    return Response({
        'updated': len(adjustments),
        'adjustments': InventoryAdjustmentSerializer(adjustments, many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_adjustment_list(request, store_id):
    """Stock adjustment history, newest first"""
    store = get_store_for_request(request, store_id)
    adjustments = InventoryAdjustment.objects.filter(store=store).select_related('user').order_by('-created_at')

    product_id = request.query_params.get('product')
    if product_id:
        adjustments = adjustments.filter(product_id=product_id)

    serializer = InventoryAdjustmentSerializer(adjustments, many=True)
    return Response(serializer.data)
