from django.urls import path
from .views import overview

urlpatterns = [
    path('stores/<uuid:store_id>/overview/', overview, name='overview'),
]
