import logging

from django.core.paginator import Paginator
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from backoffice.core.utils import create_audit_log, get_store_for_request
from .filters import OrderFilter
from .models import Order
from .serializers import (
    OrderListSerializer, OrderDetailSerializer, OrderWriteSerializer,
    OrderStatusSerializer, OrderPaymentSerializer
)

logger = logging.getLogger(__name__)


def order_queryset(store):
    return Order.objects.filter(store=store).prefetch_related('items')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def order_list_create(request, store_id):
    """List orders (newest first) or create a new order"""
    if request.method == 'GET':
        store = get_store_for_request(request, store_id)
        filterset = OrderFilter(request.query_params, queryset=order_queryset(store))
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        queryset = filterset.qs.order_by('-created_at')

        # Pagination: limit 50 per page
        try:
            page = int(request.query_params.get('page', 1))
            limit = int(request.query_params.get('limit', 50))
        except ValueError:
            return Response({'error': 'page and limit must be integers'}, status=status.HTTP_400_BAD_REQUEST)

        paginator = Paginator(queryset, max(limit, 1))
        page_obj = paginator.get_page(page)

        serializer = OrderListSerializer(page_obj, many=True)
        return Response({
            'results': serializer.data,
            'count': paginator.count,
            'next': page_obj.next_page_number() if page_obj.has_next() else None,
            'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
            'page': page_obj.number,
            'page_size': paginator.per_page,
            'total_pages': paginator.num_pages,
        })
    else:  # POST
        store = get_store_for_request(request, store_id, write=True)
        serializer = OrderWriteSerializer(data=request.data, context={'store': store})
        if serializer.is_valid():
            order = serializer.save()
            logger.info(f"Order {order.id} created in store {store.id} (total {order.total_price})")
            create_audit_log(
                request=request,
                action='create',
                model_name='Order',
                object_id=order.id,
                object_name=f"Order {order.id}",
                changes={
                    'customer_name': order.customer_name,
                    'status': order.status,
                    'payment_method': order.payment_method,
                    'total_price': str(order.total_price),
                },
                store=store
            )
            order = order_queryset(store).get(pk=order.pk)
            return Response(OrderDetailSerializer(order).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def order_detail(request, store_id, pk):
    """Retrieve, update or delete an order"""
    store = get_store_for_request(request, store_id, write=request.method != 'GET')
    order = get_object_or_404(order_queryset(store), pk=pk)

    if request.method == 'GET':
        serializer = OrderDetailSerializer(order)
        return Response(serializer.data)
    elif request.method == 'PUT':
        old_data = {'status': order.status, 'is_paid': order.is_paid, 'total_price': str(order.total_price)}
        serializer = OrderWriteSerializer(order, data=request.data, context={'store': store})
        if serializer.is_valid():
            order = serializer.save()
            new_data = {'status': order.status, 'is_paid': order.is_paid, 'total_price': str(order.total_price)}
            changes = {k: {'old': old_data[k], 'new': new_data[k]} for k in old_data if old_data[k] != new_data[k]}
            logger.info(f"Order {order.id} updated")
            create_audit_log(
                request=request,
                action='update',
                model_name='Order',
                object_id=order.id,
                object_name=f"Order {order.id}",
                changes=changes,
                store=store
            )
            order = order_queryset(store).get(pk=order.pk)
            return Response(OrderDetailSerializer(order).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        order_id = str(order.id)
        order.delete()
        logger.info(f"Order {order_id} deleted from store {store.id}")
        create_audit_log(
            request=request,
            action='delete',
            model_name='Order',
            object_id=order_id,
            object_name=f"Order {order_id}",
            store=store
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def order_update_status(request, store_id, pk):
    """Change only the status of an order"""
    store = get_store_for_request(request, store_id, write=True)
    order = get_object_or_404(order_queryset(store), pk=pk)

    serializer = OrderStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_status = order.status
    order.status = serializer.validated_data['status']
    order.save(update_fields=['status', 'updated_at'])

    create_audit_log(
        request=request,
        action='status_change',
        model_name='Order',
        object_id=order.id,
        object_name=f"Order {order.id}",
        changes={'status': {'old': old_status, 'new': order.status}},
        store=store
    )
    return Response(OrderListSerializer(order).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def order_update_payment(request, store_id, pk):
    """Mark an order as paid or unpaid"""
    store = get_store_for_request(request, store_id, write=True)
    order = get_object_or_404(order_queryset(store), pk=pk)

    serializer = OrderPaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_is_paid = order.is_paid
    order.is_paid = serializer.validated_data['is_paid']
    order.save(update_fields=['is_paid', 'updated_at'])

    create_audit_log(
        request=request,
        action='payment_change',
        model_name='Order',
        object_id=order.id,
        object_name=f"Order {order.id}",
        changes={'is_paid': {'old': old_is_paid, 'new': order.is_paid}},
        store=store
    )
    return Response(OrderListSerializer(order).data)
