import django_filters
from django.db.models import Q

from .models import Product


class ProductFilter(django_filters.FilterSet):
    """Filters for the product catalog list"""
    search = django_filters.CharFilter(method='filter_search')
    category = django_filters.UUIDFilter(field_name='category_id')
    is_featured = django_filters.BooleanFilter()
    is_archived = django_filters.BooleanFilter()

    class Meta:
        model = Product
        fields = ['search', 'category', 'is_featured', 'is_archived']

    def filter_search(self, queryset, name, value):
        """Case-insensitive match on product name or category name"""
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) | Q(category__name__icontains=value)
        )
