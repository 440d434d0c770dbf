from django.contrib import admin
from .models import Billboard, Category, Size, Color, Product, ProductImage, ProductVariant


@admin.register(Billboard)
class BillboardAdmin(admin.ModelAdmin):
    list_display = ['label', 'store', 'created_at']
    list_filter = ['store', 'created_at']
    search_fields = ['label']
    ordering = ['-created_at']


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'store', 'billboard', 'created_at']
    list_filter = ['store', 'created_at']
    search_fields = ['name']
    ordering = ['name']


@admin.register(Size)
class SizeAdmin(admin.ModelAdmin):
    list_display = ['name', 'value', 'store']
    list_filter = ['store']
    search_fields = ['name', 'value']
    ordering = ['name']


@admin.register(Color)
class ColorAdmin(admin.ModelAdmin):
    list_display = ['name', 'value', 'store']
    list_filter = ['store']
    search_fields = ['name', 'value']
    ordering = ['name']


class ProductImageInline(admin.TabularInline):
    model = ProductImage
    extra = 0


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    fields = ['size', 'color', 'sku', 'stock', 'price_override']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'store', 'category', 'price', 'stock_cached', 'is_featured', 'is_archived', 'updated_at']
    list_filter = ['is_featured', 'is_archived', 'store', 'category']
    search_fields = ['name', 'description']
    ordering = ['-updated_at']
    readonly_fields = ['stock_cached', 'created_at', 'updated_at']
    inlines = [ProductImageInline, ProductVariantInline]
