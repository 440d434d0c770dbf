from django.urls import path
from .views import (
    billboard_list_create, billboard_detail,
    category_list_create, category_detail,
    size_list_create, size_detail,
    color_list_create, color_detail,
    product_list_create, product_detail, product_variant_matrix
)

urlpatterns = [
    # Billboard endpoints
    path('stores/<uuid:store_id>/billboards/', billboard_list_create, name='billboard-list-create'),
    path('stores/<uuid:store_id>/billboards/<uuid:pk>/', billboard_detail, name='billboard-detail'),

    # Category endpoints
    path('stores/<uuid:store_id>/categories/', category_list_create, name='category-list-create'),
    path('stores/<uuid:store_id>/categories/<uuid:pk>/', category_detail, name='category-detail'),

    # Size and color endpoints
    path('stores/<uuid:store_id>/sizes/', size_list_create, name='size-list-create'),
    path('stores/<uuid:store_id>/sizes/<uuid:pk>/', size_detail, name='size-detail'),
    path('stores/<uuid:store_id>/colors/', color_list_create, name='color-list-create'),
    path('stores/<uuid:store_id>/colors/<uuid:pk>/', color_detail, name='color-detail'),

    # Product endpoints
    path('stores/<uuid:store_id>/products/', product_list_create, name='product-list-create'),
    path('stores/<uuid:store_id>/products/<uuid:pk>/', product_detail, name='product-detail'),
    path('stores/<uuid:store_id>/products/<uuid:pk>/variant-matrix/', product_variant_matrix, name='product-variant-matrix'),
]
