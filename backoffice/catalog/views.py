import logging

from django.db.models import Prefetch, ProtectedError
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from backoffice.core.utils import create_audit_log, get_store_for_request
from .filters import ProductFilter
from .models import Billboard, Category, Size, Color, Product, ProductVariant
from .serializers import (
    BillboardSerializer, CategorySerializer, SizeSerializer, ColorSerializer,
    ProductListSerializer, ProductDetailSerializer, ProductWriteSerializer
)
from .utils import merge_variant_stock, variant_matrix_changed, total_variant_stock

logger = logging.getLogger(__name__)


def product_detail_queryset(store):
    return Product.objects.filter(store=store).prefetch_related(
        'images',
        Prefetch('variants', queryset=ProductVariant.objects.select_related('size', 'color').order_by('size__name', 'color__name')),
    )


def split_ids(raw):
    """'a,b' or repeated query params -> ['a', 'b']"""
    ids = []
    for chunk in raw:
        ids.extend(part.strip() for part in chunk.split(',') if part.strip())
    return ids


# Billboard views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def billboard_list_create(request, store_id):
    """List all billboards (newest first) or create a new billboard"""
    if request.method == 'GET':
        store = get_store_for_request(request, store_id)
        billboards = Billboard.objects.filter(store=store).order_by('-created_at')
        serializer = BillboardSerializer(billboards, many=True)
        return Response(serializer.data)
    else:
        store = get_store_for_request(request, store_id, write=True)
        serializer = BillboardSerializer(data=request.data)
        if serializer.is_valid():
            billboard = serializer.save(store=store)
            logger.info(f"Billboard '{billboard.label}' created in store {store.id}")
            create_audit_log(
                request=request,
                action='create',
                model_name='Billboard',
                object_id=billboard.id,
                object_name=billboard.label,
                store=store
            )
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def billboard_detail(request, store_id, pk):
    """Retrieve, update or delete a billboard"""
    store = get_store_for_request(request, store_id, write=request.method != 'GET')
    billboard = get_object_or_404(Billboard, pk=pk, store=store)

    if request.method == 'GET':
        serializer = BillboardSerializer(billboard)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = BillboardSerializer(billboard, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(
                request=request,
                action='update',
                model_name='Billboard',
                object_id=billboard.id,
                object_name=billboard.label,
                store=store
            )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        billboard_id = str(billboard.id)
        billboard_label = billboard.label
        billboard.delete()
        logger.info(f"Billboard '{billboard_label}' deleted from store {store.id}")
        create_audit_log(
            request=request,
            action='delete',
            model_name='Billboard',
            object_id=billboard_id,
            object_name=billboard_label,
            store=store
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def category_list_create(request, store_id):
    """List all categories or create a new category"""
    if request.method == 'GET':
        store = get_store_for_request(request, store_id)
        categories = Category.objects.filter(store=store).select_related('billboard').order_by('name')
        serializer = CategorySerializer(categories, many=True)
        return Response(serializer.data)
    else:
        store = get_store_for_request(request, store_id, write=True)
        serializer = CategorySerializer(data=request.data, context={'store': store})
        if serializer.is_valid():
            category = serializer.save()
            create_audit_log(
                request=request,
                action='create',
                model_name='Category',
                object_id=category.id,
                object_name=category.name,
                store=store
            )
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def category_detail(request, store_id, pk):
    """Retrieve, update or delete a category"""
    store = get_store_for_request(request, store_id, write=request.method != 'GET')
    category = get_object_or_404(Category.objects.select_related('billboard'), pk=pk, store=store)

    if request.method == 'GET':
        serializer = CategorySerializer(category)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CategorySerializer(
            category, data=request.data, partial=request.method == 'PATCH', context={'store': store}
        )
        if serializer.is_valid():
            serializer.save()
            create_audit_log(
                request=request,
                action='update',
                model_name='Category',
                object_id=category.id,
                object_name=category.name,
                store=store
            )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        category_id = str(category.id)
        category_name = category.name
        category.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='Category',
            object_id=category_id,
            object_name=category_name,
            store=store
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


def _axis_list_create(request, store_id, model, serializer_class):
    if request.method == 'GET':
        store = get_store_for_request(request, store_id)
        rows = model.objects.filter(store=store).order_by('name')
        return Response(serializer_class(rows, many=True).data)
    store = get_store_for_request(request, store_id, write=True)
    serializer = serializer_class(data=request.data)
    if serializer.is_valid():
        serializer.save(store=store)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


def _axis_detail(request, store_id, pk, model, serializer_class):
    store = get_store_for_request(request, store_id, write=request.method != 'GET')
    row = get_object_or_404(model, pk=pk, store=store)

    if request.method == 'GET':
        return Response(serializer_class(row).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = serializer_class(row, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            row.delete()
        except ProtectedError:
            return Response(
                {'detail': f'This {model._meta.verbose_name} is used by product variants and cannot be deleted.'},
                status=status.HTTP_400_BAD_REQUEST
            )
        return Response(status=status.HTTP_204_NO_CONTENT)


# Size views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def size_list_create(request, store_id):
    """List all sizes or create a new size"""
    return _axis_list_create(request, store_id, Size, SizeSerializer)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def size_detail(request, store_id, pk):
    """Retrieve, update or delete a size"""
    return _axis_detail(request, store_id, pk, Size, SizeSerializer)


# Color views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def color_list_create(request, store_id):
    """List all colors or create a new color"""
    return _axis_list_create(request, store_id, Color, ColorSerializer)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def color_detail(request, store_id, pk):
    """Retrieve, update or delete a color"""
    return _axis_detail(request, store_id, pk, Color, ColorSerializer)


# Product views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_list_create(request, store_id):
    """List all products or create a new product"""
    if request.method == 'GET':
        store = get_store_for_request(request, store_id)
        queryset = Product.objects.filter(store=store).select_related('category').prefetch_related('images')

        filterset = ProductFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        queryset = filterset.qs.order_by('-updated_at')

        serializer = ProductListSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        store = get_store_for_request(request, store_id, write=True)
        serializer = ProductWriteSerializer(data=request.data, context={'store': store})
        if serializer.is_valid():
            product = serializer.save()
            logger.info(
                f"Product '{product.name}' created in store {store.id} "
                f"with {len(serializer.validated_data['variant_matrix'])} variants"
            )
            create_audit_log(
                request=request,
                action='create',
                model_name='Product',
                object_id=product.id,
                object_name=product.name,
                changes={'price': str(product.price), 'stock_cached': product.stock_cached},
                store=store
            )
            product = product_detail_queryset(store).get(pk=product.pk)
            return Response(ProductDetailSerializer(product).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_detail(request, store_id, pk):
    """Retrieve, update or delete a product"""
    store = get_store_for_request(request, store_id, write=request.method != 'GET')

    if request.method == 'GET':
        product = get_object_or_404(product_detail_queryset(store), pk=pk)
        serializer = ProductDetailSerializer(product)
        return Response(serializer.data)

    product = get_object_or_404(Product, pk=pk, store=store)
    if request.method == 'PUT':
        old_data = {
            'name': product.name,
            'price': str(product.price),
            'stock_cached': product.stock_cached,
            'is_archived': product.is_archived,
        }
        serializer = ProductWriteSerializer(product, data=request.data, context={'store': store})
        if serializer.is_valid():
            serializer.save()
            new_data = {
                'name': product.name,
                'price': str(product.price),
                'stock_cached': product.stock_cached,
                'is_archived': product.is_archived,
            }
            changes = {k: {'old': old_data.get(k), 'new': new_data.get(k)} for k in old_data if old_data.get(k) != new_data.get(k)}
            logger.info(f"Product '{product.name}' ({product.id}) updated")
            create_audit_log(
                request=request,
                action='update',
                model_name='Product',
                object_id=product.id,
                object_name=product.name,
                changes=changes,
                store=store
            )
            product = product_detail_queryset(store).get(pk=product.pk)
            return Response(ProductDetailSerializer(product).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        product_name = product.name
        product_id = str(product.id)
        product.delete()
        logger.info(f"Product '{product_name}' ({product_id}) deleted")
        create_audit_log(
            request=request,
            action='delete',
            model_name='Product',
            object_id=product_id,
            object_name=product_name,
            store=store
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_variant_matrix(request, store_id, pk):
    """
    Preview the variant matrix a submit would persist for the given axes.

    Query params: size_ids, color_ids (comma separated or repeated).
    Stock is carried over from the product's current variants.
    """
    store = get_store_for_request(request, store_id)
    product = get_object_or_404(Product, pk=pk, store=store)

    size_ids = split_ids(request.query_params.getlist('size_ids'))
    color_ids = split_ids(request.query_params.getlist('color_ids'))
    current = [
        {'size_id': v.size_id, 'color_id': v.color_id, 'stock': v.stock}
        for v in product.variants.all()
        if v.size_id and v.color_id
    ]
    matrix = merge_variant_stock(size_ids, color_ids, persisted=current)
    return Response({
        'variants': matrix,
        'changed': variant_matrix_changed(matrix, current),
        'stock': total_variant_stock(matrix, product.stock_cached),
    })
