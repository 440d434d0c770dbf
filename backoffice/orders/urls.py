from django.urls import path
from .views import order_list_create, order_detail, order_update_status, order_update_payment

urlpatterns = [
    path('stores/<uuid:store_id>/orders/', order_list_create, name='order-list-create'),
    path('stores/<uuid:store_id>/orders/<uuid:pk>/', order_detail, name='order-detail'),
    path('stores/<uuid:store_id>/orders/<uuid:pk>/status/', order_update_status, name='order-update-status'),
    path('stores/<uuid:store_id>/orders/<uuid:pk>/payment/', order_update_payment, name='order-update-payment'),
]
