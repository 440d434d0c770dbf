from decimal import Decimal

from django.db.models import Q, Sum, Count, Value, DecimalField
from django.db.models.functions import Coalesce
from django.shortcuts import get_object_or_404
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from backoffice.core.utils import get_store_for_request
from .models import Customer
from .serializers import CustomerSerializer, CustomerDetailSerializer


def customers_with_totals(store):
    """Customers annotated with order count and lifetime value (cancelled orders excluded)"""
    counted = ~Q(orders__status='cancelled')
    return Customer.objects.filter(store=store).annotate(
        order_count=Count('orders', filter=counted),
        lifetime_value=Coalesce(
            Sum('orders__total_price', filter=counted),
            Value(Decimal('0.00')),
            output_field=DecimalField(max_digits=12, decimal_places=2)
        )
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_list(request, store_id):
    """List the store's customers"""
    store = get_store_for_request(request, store_id)
    queryset = customers_with_totals(store).order_by('-created_at')

    search = request.query_params.get('search', '').strip()
    if search:
        queryset = queryset.filter(
            Q(name__icontains=search) | Q(email__icontains=search) | Q(phone__icontains=search)
        )

    serializer = CustomerSerializer(queryset, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_detail(request, store_id, pk):
    """Retrieve a customer with their orders"""
    store = get_store_for_request(request, store_id)
    customer = get_object_or_404(customers_with_totals(store), pk=pk)
    serializer = CustomerDetailSerializer(customer)
    return Response(serializer.data)
