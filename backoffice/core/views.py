import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.core.files.storage import default_storage
from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from backoffice.catalog.models import Product
from .models import Store, StoreMember, AuditLog
from .serializers import (
    UserSerializer, StoreSerializer, StoreSettingsSerializer,
    StoreMemberSerializer, StoreMemberCreateSerializer,
    UploadSerializer, AuditLogSerializer
)
from .utils import create_audit_log, get_store_for_request, build_upload_key

User = get_user_model()
logger = logging.getLogger(__name__)


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that reports deleted users as an invalid token"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user with store memberships"""
    user_data = UserSerializer(request.user).data
    memberships = StoreMember.objects.filter(user=request.user).select_related('store')
    user_data['stores'] = [
        {'id': str(m.store.id), 'name': m.store.name, 'role': m.role}
        for m in memberships
    ]
    return Response(user_data)


# Store views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def store_list_create(request):
    """List stores the user belongs to or create a new store"""
    if request.method == 'GET':
        stores = Store.objects.filter(members__user=request.user).distinct()
        serializer = StoreSerializer(stores, many=True, context={'request': request})
        return Response(serializer.data)
    else:
        serializer = StoreSettingsSerializer(data=request.data)
        if serializer.is_valid():
            with transaction.atomic():
                store = serializer.save(owner=request.user)
                StoreMember.objects.create(store=store, user=request.user, role=StoreMember.ROLE_OWNER)
            logger.info(f"User {request.user.username} created store '{store.name}' ({store.id})")
            create_audit_log(
                request=request,
                action='create',
                model_name='Store',
                object_id=store.id,
                object_name=store.name,
                store=store
            )
            return Response(StoreSerializer(store, context={'request': request}).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def store_settings(request, store_id):
    """Retrieve, update or delete the settings of a store"""
    if request.method == 'GET':
        store = get_store_for_request(request, store_id)
        return Response(StoreSettingsSerializer(store).data)
    elif request.method in ('PUT', 'PATCH'):
        store = get_store_for_request(request, store_id, write=True)
        serializer = StoreSettingsSerializer(store, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(
                request=request,
                action='update',
                model_name='Store',
                object_id=store.id,
                object_name=store.name,
                changes=dict(serializer.validated_data),
                store=store
            )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        store = get_store_for_request(request, store_id, owner_only=True)
        store_name = store.name
        store_pk = str(store.id)
        with transaction.atomic():
            # Variants protect their sizes and colors, so products go first
            Product.objects.filter(store=store).delete()
            store.delete()
        logger.info(f"User {request.user.username} deleted store '{store_name}' ({store_pk})")
        create_audit_log(
            request=request,
            action='delete',
            model_name='Store',
            object_id=store_pk,
            object_name=store_name
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def store_members(request, store_id):
    """List members of a store or add a member"""
    if request.method == 'GET':
        store = get_store_for_request(request, store_id)
        members = store.members.select_related('user').order_by('created_at')
        return Response(StoreMemberSerializer(members, many=True).data)
    else:
        store = get_store_for_request(request, store_id, owner_only=True)
        serializer = StoreMemberCreateSerializer(data=request.data, context={'store': store})
        if serializer.is_valid():
            member = serializer.save()
            create_audit_log(
                request=request,
                action='member_add',
                model_name='StoreMember',
                object_id=member.id,
                object_name=member.user.username,
                changes={'role': member.role},
                store=store
            )
            return Response(StoreMemberSerializer(member).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def store_member_detail(request, store_id, member_id):
    """Change the role of a member or remove them"""
    store = get_store_for_request(request, store_id, owner_only=True)
    member = get_object_or_404(StoreMember, pk=member_id, store=store)
    is_last_owner = (
        member.role == StoreMember.ROLE_OWNER
        and store.members.filter(role=StoreMember.ROLE_OWNER).count() == 1
    )

    if request.method == 'PATCH':
        serializer = StoreMemberSerializer(member, data=request.data, partial=True)
        if serializer.is_valid():
            if is_last_owner and serializer.validated_data.get('role', member.role) != StoreMember.ROLE_OWNER:
                return Response({'role': ['A store must keep at least one owner.']}, status=status.HTTP_400_BAD_REQUEST)
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if is_last_owner:
            return Response({'detail': 'A store must keep at least one owner.'}, status=status.HTTP_400_BAD_REQUEST)
        username = member.user.username
        member_pk = str(member.id)
        member.delete()
        create_audit_log(
            request=request,
            action='member_remove',
            model_name='StoreMember',
            object_id=member_pk,
            object_name=username,
            store=store
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def store_upload(request, store_id):
    """Upload an image and return its public URL"""
    store = get_store_for_request(request, store_id, write=True)
    serializer = UploadSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    upload = serializer.validated_data['file']
    key = build_upload_key(serializer.validated_data["folder"], upload.name)
    saved_name = default_storage.save(key, upload)
    url = request.build_absolute_uri(default_storage.url(saved_name))
    logger.info(f"Uploaded {saved_name} for store {store.id}")
    return Response({'path': saved_name, 'url': url}, status=status.HTTP_201_CREATED)


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_list(request, store_id):
    """List audit logs of a store with filtering"""
    store = get_store_for_request(request, store_id, write=True)
    queryset = AuditLog.objects.filter(store=store).select_related('user')

    action_filter = request.query_params.get('action', None)
    if action_filter:
        queryset = queryset.filter(action=action_filter)

    model_filter = request.query_params.get('model', None)
    if model_filter:
        queryset = queryset.filter(model_name=model_filter)

    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    queryset = queryset.order_by('-created_at')
    serializer = AuditLogSerializer(queryset, many=True)
    return Response(serializer.data)
