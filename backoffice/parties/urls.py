from django.urls import path
from .views import customer_list, customer_detail

urlpatterns = [
    path('stores/<uuid:store_id>/customers/', customer_list, name='customer-list'),
    path('stores/<uuid:store_id>/customers/<uuid:pk>/', customer_detail, name='customer-detail'),
]
