import logging

from django.conf import settings
from django.core.cache import cache
from django.db.models import Sum, DecimalField
from django.db.models.functions import TruncMonth
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from backoffice.catalog.models import Product
from backoffice.core.cache_signals import overview_cache_key
from backoffice.core.utils import get_store_for_request
from backoffice.orders.models import Order
from backoffice.orders.serializers import OrderListSerializer
from .utils import build_monthly_revenue, last_months

logger = logging.getLogger(__name__)

RECENT_ORDERS_LIMIT = 5


def build_overview(store):
    """Dashboard payload of a store"""
    today = timezone.localdate()
    first_month = last_months(today)[0]

    # Cancelled orders don't count towards revenue
    revenue_rows = Order.objects.filter(
        store=store,
        created_at__date__gte=first_month
    ).exclude(status=Order.STATUS_CANCELLED).annotate(
        month=TruncMonth('created_at')
    ).values('month').annotate(
        revenue=Sum('total_price', output_field=DecimalField())
    ).order_by('month')

    revenue_by_month = {}
    for row in revenue_rows:
        key = (row['month'].year, row['month'].month)
        revenue_by_month[key] = revenue_by_month.get(key, 0) + row['revenue']

    monthly_revenue = build_monthly_revenue(revenue_by_month, today)
    recent_orders = Order.objects.filter(store=store).prefetch_related('items').order_by('-created_at')[:RECENT_ORDERS_LIMIT]

    return {
        'total_revenue': round(sum(point['revenue'] for point in monthly_revenue), 2),
        'total_orders': Order.objects.filter(store=store).count(),
        'active_products': Product.objects.filter(store=store, is_archived=False).count(),
        'monthly_revenue': monthly_revenue,
        'recent_orders': OrderListSerializer(recent_orders, many=True).data,
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def overview(request, store_id):
    """Overview dashboard: revenue, counts and recent orders"""
    store = get_store_for_request(request, store_id)

    cache_key = overview_cache_key(store.id)
    cached_data = cache.get(cache_key)
    if cached_data is not None:
        return Response(cached_data)

    data = build_overview(store)
    cache.set(cache_key, data, getattr(settings, 'OVERVIEW_CACHE_TTL', 300))
    logger.debug(f"Overview cache populated for store {store.id}")
    return Response(data)
