from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, user_me,
    store_list_create, store_settings,
    store_members, store_member_detail,
    store_upload, audit_log_list
)

urlpatterns = [
    # Auth endpoints
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),

    # Store endpoints
    path('stores/', store_list_create, name='store-list-create'),
    path('stores/<uuid:store_id>/settings/', store_settings, name='store-settings'),
    path('stores/<uuid:store_id>/members/', store_members, name='store-members'),
    path('stores/<uuid:store_id>/members/<uuid:member_id>/', store_member_detail, name='store-member-detail'),
    path('stores/<uuid:store_id>/uploads/', store_upload, name='store-upload'),

    # AuditLog endpoints
    path('stores/<uuid:store_id>/audit-logs/', audit_log_list, name='audit-log-list'),
]
