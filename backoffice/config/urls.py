"""
URL configuration for the store back-office project.

Every app mounts its routes under `api/v1/`; store-scoped resources live
below `api/v1/stores/<store_id>/`.
"""
import re

from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "Store Back-Office Admin Panel"
admin.site.site_title = "Store Back-Office Admin Portal"
admin.site.index_title = "Welcome to the Store Back-Office"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backoffice.core.urls')),
    path('api/v1/', include('backoffice.catalog.urls')),
    path('api/v1/', include('backoffice.inventory.urls')),
    path('api/v1/', include('backoffice.parties.urls')),
    path('api/v1/', include('backoffice.orders.urls')),
    path('api/v1/', include('backoffice.reports.urls')),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]

# Uploads are served locally unless MEDIA_URL points at another host
if not re.match(r'^https?://', settings.MEDIA_URL):
    media_prefix = re.escape(settings.MEDIA_URL.strip('/'))
    urlpatterns.append(
        re_path(rf'^{media_prefix}/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT})
    )
