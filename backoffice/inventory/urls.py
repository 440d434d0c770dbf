from django.urls import path
from .views import inventory_list_update, inventory_adjustment_list

urlpatterns = [
    path('stores/<uuid:store_id>/inventory/', inventory_list_update, name='inventory-list-update'),
    path('stores/<uuid:store_id>/inventory/adjustments/', inventory_adjustment_list, name='inventory-adjustment-list'),
]
