import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from rest_framework import serializers

from .models import Billboard, Category, Size, Color, Product, ProductImage, ProductVariant
from .utils import (
    unique_in_order, merge_variant_stock, total_variant_stock,
    normalize_tags, metadata_to_dict
)


def get_store_object(model, value, store, label):
    """Look up a row of `model` by id within the store or raise a field error"""
    try:
        obj = model.objects.filter(pk=value, store=store).first()
    except (DjangoValidationError, ValueError):
        obj = None
    if obj is None:
        raise serializers.ValidationError(f'Invalid {label} "{value}" for this store.')
    return obj


class BillboardSerializer(serializers.ModelSerializer):
    class Meta:
        model = Billboard
        fields = ['id', 'label', 'image_url', 'created_at']
        read_only_fields = ['id', 'created_at']


class CategorySerializer(serializers.ModelSerializer):
    name = serializers.CharField(max_length=200, min_length=2)
    # Empty string or null clears the billboard
    billboard_id = serializers.CharField(required=False, allow_blank=True, allow_null=True, write_only=True)
    billboard_label = serializers.CharField(source='billboard.label', read_only=True, default=None)

    class Meta:
        model = Category
        fields = ['id', 'name', 'billboard_id', 'billboard_label', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_billboard_id(self, value):
        if not value:
            return None
        return get_store_object(Billboard, value, self.context['store'], 'billboard')

    def create(self, validated_data):
        validated_data['billboard'] = validated_data.pop('billboard_id', None)
        return Category.objects.create(store=self.context['store'], **validated_data)

    def update(self, instance, validated_data):
        if 'billboard_id' in validated_data:
            instance.billboard = validated_data.pop('billboard_id')
        return super().update(instance, validated_data)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data['billboard_id'] = str(instance.billboard_id) if instance.billboard_id else None
        return data


class SizeSerializer(serializers.ModelSerializer):
    class Meta:
        model = Size
        fields = ['id', 'name', 'value', 'created_at']
        read_only_fields = ['id', 'created_at']


class ColorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Color
        fields = ['id', 'name', 'value', 'created_at']
        read_only_fields = ['id', 'created_at']


class ProductVariantSerializer(serializers.ModelSerializer):
    size_id = serializers.UUIDField(read_only=True)
    color_id = serializers.UUIDField(read_only=True)
    label = serializers.CharField(read_only=True)

    class Meta:
        model = ProductVariant
        fields = ['id', 'size_id', 'color_id', 'label', 'sku', 'stock', 'price_override']


class ProductListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for the product catalog table"""
    category_id = serializers.UUIDField(read_only=True)
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    image = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = ['id', 'name', 'price', 'stock_cached', 'is_featured', 'is_archived',
                  'category_id', 'category_name', 'image', 'metadata', 'created_at', 'updated_at']

    def get_image(self, obj):
        # First image by position; prefetched by the list view
        images = list(obj.images.all())
        return images[0].url if images else None


class ProductDetailSerializer(serializers.ModelSerializer):
    """Edit shape of a product: images as URLs and the selected axes"""
    category_id = serializers.UUIDField(read_only=True)
    stock = serializers.IntegerField(source='stock_cached', read_only=True)
    images = serializers.SerializerMethodField()
    size_ids = serializers.SerializerMethodField()
    color_ids = serializers.SerializerMethodField()
    variants = ProductVariantSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'description', 'price', 'stock', 'stock_cached', 'category_id',
                  'images', 'size_ids', 'color_ids', 'tags', 'metadata', 'variants',
                  'is_featured', 'is_archived', 'created_at', 'updated_at']

    def get_images(self, obj):
        return [image.url for image in obj.images.all()]

    def get_size_ids(self, obj):
        return unique_in_order(str(v.size_id) for v in obj.variants.all() if v.size_id)

    def get_color_ids(self, obj):
        return unique_in_order(str(v.color_id) for v in obj.variants.all() if v.color_id)


class VariantInputSerializer(serializers.Serializer):
    size_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    color_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    stock = serializers.IntegerField(min_value=0, default=0)

    def _canonical_id(self, value, label):
        # Empty ids mean "no value"
        if not value:
            return None
        try:
            return str(uuid.UUID(str(value)))
        except ValueError:
            raise serializers.ValidationError({label: f'"{value}" is not a valid UUID.'})

    def validate(self, attrs):
        attrs['size_id'] = self._canonical_id(attrs.get('size_id'), 'size_id')
        attrs['color_id'] = self._canonical_id(attrs.get('color_id'), 'color_id')
        return attrs


class ProductWriteSerializer(serializers.Serializer):
    """
    Create/update payload of a product.

    On save the variant matrix (size_ids x color_ids) replaces the product's
    variants and the images replace its gallery, all in one transaction.
    """
    name = serializers.CharField(max_length=200)
    description = serializers.CharField()
    images = serializers.ListField(
        child=serializers.URLField(max_length=500),
        allow_empty=False,
        error_messages={'empty': 'At least one image is required.'}
    )
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    stock = serializers.IntegerField(min_value=0, default=0)
    category_id = serializers.CharField()
    size_ids = serializers.ListField(
        child=serializers.CharField(),
        allow_empty=False,
        error_messages={'empty': 'At least one size is required.'}
    )
    color_ids = serializers.ListField(
        child=serializers.CharField(),
        allow_empty=False,
        error_messages={'empty': 'At least one color is required.'}
    )
    tags = serializers.ListField(child=serializers.CharField(allow_blank=True), default=list)
    metadata = serializers.JSONField(default=dict)
    variants = VariantInputSerializer(many=True, default=list)
    is_featured = serializers.BooleanField(default=False)
    is_archived = serializers.BooleanField(default=False)

    def validate_category_id(self, value):
        return get_store_object(Category, value, self.context['store'], 'category')

    def validate_size_ids(self, value):
        store = self.context['store']
        return [get_store_object(Size, size_id, store, 'size') for size_id in unique_in_order(value)]

    def validate_color_ids(self, value):
        store = self.context['store']
        return [get_store_object(Color, color_id, store, 'color') for color_id in unique_in_order(value)]

    def validate_tags(self, value):
        return normalize_tags(value)

    def validate_metadata(self, value):
        if isinstance(value, dict):
            items = [{'key': k, 'value': v} for k, v in value.items()]
        elif isinstance(value, list):
            items = value
        else:
            raise serializers.ValidationError('Metadata must be an object or a list of key/value pairs.')
        for item in items:
            if not isinstance(item, dict) or not isinstance(item.get('key'), str) or not isinstance(item.get('value'), str):
                raise serializers.ValidationError('Each metadata entry needs a string key and value.')
            if not item['key'].strip() or not item['value'].strip():
                raise serializers.ValidationError('Metadata keys and values cannot be empty.')
        return metadata_to_dict(items)

    def validate(self, attrs):
        persisted = []
        if self.instance is not None:
            persisted = [
                {'size_id': v.size_id, 'color_id': v.color_id, 'stock': v.stock}
                for v in self.instance.variants.all()
                if v.size_id and v.color_id
            ]
        submitted = [v for v in attrs.get('variants', []) if v['size_id'] and v['color_id']]
        matrix = merge_variant_stock(
            [size.pk for size in attrs['size_ids']],
            [color.pk for color in attrs['color_ids']],
            submitted=submitted,
            persisted=persisted
        )
        attrs['variant_matrix'] = matrix
        attrs['stock_cached'] = total_variant_stock(matrix, attrs.get('stock', 0))
        return attrs

    def _product_fields(self, validated_data):
        return {
            'name': validated_data['name'],
            'description': validated_data['description'],
            'price': validated_data['price'],
            'stock_cached': validated_data['stock_cached'],
            'category': validated_data['category_id'],
            'is_featured': validated_data['is_featured'],
            'is_archived': validated_data['is_archived'],
            'tags': validated_data['tags'],
            'metadata': validated_data['metadata'],
        }

    def _replace_children(self, product, validated_data):
        product.images.all().delete()
        ProductImage.objects.bulk_create([
            ProductImage(product=product, url=url, position=index, is_primary=(index == 0))
            for index, url in enumerate(validated_data['images'])
        ])

        product.variants.all().delete()
        ProductVariant.objects.bulk_create([
            ProductVariant(
                product=product,
                size_id=cell['size_id'],
                color_id=cell['color_id'],
                stock=cell['stock']
            )
            for cell in validated_data['variant_matrix']
        ])

    def create(self, validated_data):
        with transaction.atomic():
            product = Product.objects.create(store=self.context['store'], **self._product_fields(validated_data))
            self._replace_children(product, validated_data)
        return product

    def update(self, instance, validated_data):
        with transaction.atomic():
            for field, value in self._product_fields(validated_data).items():
                setattr(instance, field, value)
            instance.save()
            self._replace_children(instance, validated_data)
        return instance

    def to_representation(self, instance):
        return ProductDetailSerializer(instance).data
