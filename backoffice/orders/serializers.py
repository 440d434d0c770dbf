import logging
from decimal import Decimal

from django.db import DatabaseError, transaction
from rest_framework import serializers

from backoffice.catalog.models import Product, ProductVariant
from backoffice.parties.utils import upsert_customer
from .models import Order, OrderItem
from .utils import compute_order_total, normalize_payment_method

logger = logging.getLogger(__name__)

# Largest value the order total column holds
MAX_ORDER_TOTAL = Decimal('99999999.99')


class OrderItemSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(read_only=True)
    variant_id = serializers.UUIDField(read_only=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'product_id', 'variant_id', 'product_name', 'variant_label',
                  'quantity', 'unit_price', 'line_total']


class OrderListSerializer(serializers.ModelSerializer):
    """Order table row"""
    customer_id = serializers.UUIDField(read_only=True)
    payment_state = serializers.CharField(read_only=True)
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = ['id', 'customer_id', 'customer_name', 'customer_email', 'phone', 'total_price',
                  'status', 'payment_method', 'is_paid', 'payment_state', 'item_count',
                  'created_at', 'updated_at']

    def get_item_count(self, obj):
        return len(obj.items.all())


class OrderDetailSerializer(OrderListSerializer):
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta(OrderListSerializer.Meta):
        fields = OrderListSerializer.Meta.fields + ['address', 'items']


class OrderItemInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0.00'), required=False, allow_null=True
    )


class OrderWriteSerializer(serializers.Serializer):
    """
    Create/update payload of an order.

    Saving links (or creates) the customer by e-mail, snapshots the total
    from the items and replaces the order's items, all in one transaction.
    """
    customer_name = serializers.CharField(max_length=200)
    customer_email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    phone = serializers.CharField(max_length=20)
    address = serializers.CharField()
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES, default=Order.STATUS_PENDING)
    payment_method = serializers.CharField(default=Order.PAYMENT_COD)
    is_paid = serializers.BooleanField(default=False)
    items = OrderItemInputSerializer(
        many=True,
        allow_empty=False,
        error_messages={'empty': 'An order needs at least one item.'}
    )

    def validate_customer_email(self, value):
        # Stored as typed; customer matching lower-cases it
        return (value or '').strip() or None

    def validate_payment_method(self, value):
        method = normalize_payment_method(value)
        valid_methods = [choice for choice, _ in Order.PAYMENT_METHOD_CHOICES]
        if method not in valid_methods:
            raise serializers.ValidationError(f'payment_method must be one of: {", ".join(valid_methods)}')
        return method

    def validate_items(self, value):
        store = self.context['store']
        product_ids = {item['product_id'] for item in value}
        products = {
            product.pk: product
            for product in Product.objects.filter(store=store, pk__in=product_ids)
        }
        variant_ids = {item['variant_id'] for item in value if item.get('variant_id')}
        variants = {
            variant.pk: variant
            for variant in ProductVariant.objects.filter(pk__in=variant_ids).select_related('size', 'color')
        }

        resolved = []
        for item in value:
            product = products.get(item['product_id'])
            if product is None:
                raise serializers.ValidationError(f'Invalid product "{item["product_id"]}" for this store.')

            variant = None
            if item.get('variant_id'):
                variant = variants.get(item['variant_id'])
                if variant is None or variant.product_id != product.pk:
                    raise serializers.ValidationError(
                        f'Variant "{item["variant_id"]}" does not belong to product "{product.name}".'
                    )

            unit_price = item.get('unit_price')
            if unit_price is None:
                if variant is not None and variant.price_override is not None:
                    unit_price = variant.price_override
                else:
                    unit_price = product.price

            resolved.append({
                'product': product,
                'variant': variant,
                'quantity': item['quantity'],
                'unit_price': unit_price,
            })
        return resolved

    def validate(self, attrs):
        total = compute_order_total(attrs['items'])
        if total > MAX_ORDER_TOTAL:
            raise serializers.ValidationError({'items': f'Order total cannot exceed {MAX_ORDER_TOTAL}.'})
        attrs['total_price'] = total
        return attrs

    def _reconcile_customer(self, validated_data):
        """Link the order to a customer; the order is saved unlinked when this fails"""
        try:
            # Savepoint so a failed upsert does not break the outer transaction
            with transaction.atomic():
                return upsert_customer(
                    self.context['store'],
                    validated_data['customer_name'],
                    validated_data.get('customer_email'),
                    validated_data['phone']
                )
        except DatabaseError as e:
            logger.warning(f"Customer upsert failed for {validated_data.get('customer_email')}: {str(e)}", exc_info=True)
            return None

    def _order_fields(self, validated_data, customer):
        return {
            'customer': customer,
            'customer_name': validated_data['customer_name'],
            'customer_email': validated_data.get('customer_email'),
            'phone': validated_data['phone'],
            'address': validated_data['address'],
            'status': validated_data['status'],
            'payment_method': validated_data['payment_method'],
            'is_paid': validated_data['is_paid'],
            'total_price': validated_data['total_price'],
        }

    def _replace_items(self, order, items):
        order.items.all().delete()
        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                product=item['product'],
                variant=item['variant'],
                product_name=item['product'].name,
                variant_label=item['variant'].label if item['variant'] else '',
                quantity=item['quantity'],
                unit_price=item['unit_price']
            )
            for item in items
        ])

    def create(self, validated_data):
        with transaction.atomic():
            customer = self._reconcile_customer(validated_data)
            order = Order.objects.create(store=self.context['store'], **self._order_fields(validated_data, customer))
            self._replace_items(order, validated_data['items'])
        return order

    def update(self, instance, validated_data):
        with transaction.atomic():
            customer = self._reconcile_customer(validated_data)
            for field, value in self._order_fields(validated_data, customer).items():
                setattr(instance, field, value)
            instance.save()
            self._replace_items(instance, validated_data['items'])
        return instance


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)


class OrderPaymentSerializer(serializers.Serializer):
    is_paid = serializers.BooleanField()
