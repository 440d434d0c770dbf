from rest_framework import serializers

from .models import InventoryAdjustment


class InventoryItemSerializer(serializers.Serializer):
    """Row of the flattened inventory table"""
    id = serializers.CharField()
    product_id = serializers.CharField()
    product_name = serializers.CharField()
    category_name = serializers.CharField(allow_null=True)
    variant_label = serializers.CharField()
    is_variant = serializers.BooleanField()
    stock = serializers.IntegerField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    image = serializers.CharField(allow_null=True)
    is_archived = serializers.BooleanField()
    stock_status = serializers.CharField()


class InventoryUpdateSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    is_variant = serializers.BooleanField()
    stock = serializers.IntegerField(min_value=0)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)


class InventoryAdjustmentSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(read_only=True)
    variant_id = serializers.UUIDField(read_only=True)
    username = serializers.CharField(source='user.username', read_only=True, default=None)
    delta = serializers.IntegerField(read_only=True)

    class Meta:
        model = InventoryAdjustment
        fields = ['id', 'product_id', 'variant_id', 'product_name', 'variant_label', 'previous_stock',
                  'new_stock', 'delta', 'reason', 'username', 'created_at']
