from rest_framework import serializers

from .models import Customer


class CustomerSerializer(serializers.ModelSerializer):
    order_count = serializers.IntegerField(read_only=True, default=0)
    lifetime_value = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True, default=0)

    class Meta:
        model = Customer
        fields = ['id', 'name', 'email', 'phone', 'order_count', 'lifetime_value', 'created_at', 'updated_at']


class CustomerOrderSerializer(serializers.Serializer):
    """Compact order row shown on a customer's page"""
    id = serializers.UUIDField()
    total_price = serializers.DecimalField(max_digits=10, decimal_places=2)
    status = serializers.CharField()
    payment_method = serializers.CharField()
    is_paid = serializers.BooleanField()
    created_at = serializers.DateTimeField()


class CustomerDetailSerializer(CustomerSerializer):
    orders = serializers.SerializerMethodField()

    class Meta(CustomerSerializer.Meta):
        fields = CustomerSerializer.Meta.fields + ['orders']

    def get_orders(self, obj):
        return CustomerOrderSerializer(obj.orders.order_by('-created_at'), many=True).data
