from django.contrib import admin
from .models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['name', 'email', 'phone', 'store', 'created_at']
    list_filter = ['store', 'created_at']
    search_fields = ['name', 'email', 'phone']
    ordering = ['-created_at']
