import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator, RegexValidator
from django.db import models

from backoffice.core.models import Store


class Billboard(models.Model):
    """Hero banner shown on the storefront"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name='billboards')
    label = models.CharField(max_length=200)
    image_url = models.URLField(max_length=500)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.label

    class Meta:
        db_table = 'billboards'
        ordering = ['-created_at']


class Category(models.Model):
    """Product categories"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name='categories')
    name = models.CharField(max_length=200, db_index=True)
    billboard = models.ForeignKey(Billboard, on_delete=models.SET_NULL, null=True, blank=True, related_name='categories')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'
        ordering = ['name']


class Size(models.Model):
    """Size axis of the variant matrix (e.g. name "Large", value "L")"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name='sizes')
    name = models.CharField(max_length=100)
    value = models.CharField(max_length=50)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'sizes'
        ordering = ['name']


hex_color_validator = RegexValidator(
    regex=r'^#(?:[0-9a-fA-F]{3}){1,2}$',
    message='Enter a hex color such as #fff or #1a2b3c.'
)


class Color(models.Model):
    """Color axis of the variant matrix (e.g. name "Black", value "#000000")"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name='colors')
    name = models.CharField(max_length=100)
    value = models.CharField(max_length=7, validators=[hex_color_validator])
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'colors'
        ordering = ['name']


class Product(models.Model):
    """Product master"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name='products')
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    name = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True, null=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    # Sum of variant stock, or the product's own stock when it has no variants
    stock_cached = models.PositiveIntegerField(default=0)
    is_featured = models.BooleanField(default=False)
    is_archived = models.BooleanField(default=False, db_index=True)
    tags = models.JSONField(default=list, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def get_primary_image_url(self):
        """URL of the primary image, falling back to the first image"""
        images = list(self.images.all())
        for image in images:
            if image.is_primary:
                return image.url
        return images[0].url if images else None

    class Meta:
        db_table = 'products'
        ordering = ['-updated_at']


class ProductImage(models.Model):
    """Ordered gallery images of a product; position 0 is primary"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='images')
    url = models.URLField(max_length=500)
    position = models.PositiveIntegerField(default=0)
    is_primary = models.BooleanField(default=False)

    def __str__(self):
        return self.url

    class Meta:
        db_table = 'product_images'
        ordering = ['position']


class ProductVariant(models.Model):
    """One cell of the size x color matrix of a product"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='variants')
    size = models.ForeignKey(Size, on_delete=models.PROTECT, null=True, blank=True, related_name='variants')
    color = models.ForeignKey(Color, on_delete=models.PROTECT, null=True, blank=True, related_name='variants')
    sku = models.CharField(max_length=100, blank=True, null=True)
    stock = models.PositiveIntegerField(default=0, validators=[MinValueValidator(0)])
    price_override = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    def __str__(self):
        return f"{self.product.name} - {self.label}"

    @property
    def label(self):
        size_name = self.size.name if self.size else 'Unknown'
        color_name = self.color.name if self.color else 'Unknown'
        return f"{size_name} / {color_name}"

    class Meta:
        db_table = 'product_variants'
