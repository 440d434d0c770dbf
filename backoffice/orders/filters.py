import uuid

import django_filters
from django.db.models import Q

from .models import Order
from .utils import normalize_payment_method


class OrderFilter(django_filters.FilterSet):
    """Filters for the orders table"""
    search = django_filters.CharFilter(method='filter_search')
    status = django_filters.ChoiceFilter(choices=Order.STATUS_CHOICES)
    is_paid = django_filters.BooleanFilter()
    payment_method = django_filters.CharFilter(method='filter_payment_method')

    class Meta:
        model = Order
        fields = ['search', 'status', 'is_paid', 'payment_method']

    def filter_search(self, queryset, name, value):
        """Order id (full UUID), customer name or phone"""
        value = (value or '').strip()
        if not value:
            return queryset
        query = Q(customer_name__icontains=value) | Q(phone__icontains=value)
        try:
            query |= Q(id=uuid.UUID(value))
        except ValueError:
            pass
        return queryset.filter(query)

    def filter_payment_method(self, queryset, name, value):
        return queryset.filter(payment_method=normalize_payment_method(value))
