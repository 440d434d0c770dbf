"""Utility functions for audit logging, store access and uploads"""
import logging
import re
import time

from django.shortcuts import get_object_or_404
from rest_framework.exceptions import PermissionDenied

from .models import AuditLog, Store, StoreMember

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, store=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, update, delete, stock_adjust, etc.)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object
        store: Store the object belongs to
    """
    try:
        audit_user = None
        if user:
            audit_user = user
        elif request and hasattr(request, 'user'):
            audit_user = request.user

        ip_address = get_client_ip(request) if request else None

        if not action or not model_name or not object_id:
            logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
            return None

        return AuditLog.objects.create(
            user=audit_user if audit_user and audit_user.is_authenticated else None,
            store=store,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            changes=changes or {},
            ip_address=ip_address
        )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}", exc_info=True)
        return None


def assert_store_membership(store, user):
    """
    Return the user's membership in the store.

    Raises PermissionDenied ("Forbidden") when the user is not a member.
    """
    membership = StoreMember.objects.filter(store=store, user=user).first()
    if membership is None:
        logger.warning(f"User {getattr(user, 'pk', None)} denied access to store {store.pk}")
        raise PermissionDenied('Forbidden')
    return membership


def get_store_for_request(request, store_id, write=False, owner_only=False):
    """
    Resolve a store id from the URL and check the caller's membership.

    Unknown stores are 404; non-members are 403. `write` requires an owner or
    manager role, `owner_only` requires the owner role.
    """
    store = get_object_or_404(Store, pk=store_id)
    membership = assert_store_membership(store, request.user)
    if owner_only and membership.role != StoreMember.ROLE_OWNER:
        raise PermissionDenied('Only the store owner can perform this action.')
    if write and not membership.can_write:
        raise PermissionDenied('Your role does not allow changes to this store.')
    return store


def sanitize_upload_filename(filename):
    """
    Make an uploaded file name safe for storage keys.

    Drops non-ASCII characters, collapses whitespace runs into '-' and
    lower-cases the result:
    - "Summer Sale.PNG" -> "summer-sale.png"
    - "café  photo.jpg" -> "caf-photo.jpg"
    """
    ascii_only = (filename or '').encode('ascii', 'ignore').decode('ascii')
    return re.sub(r'\s+', '-', ascii_only.strip()).lower()


def build_upload_key(folder, filename, now=None):
    """Storage key for an upload: {folder}/{epoch_ms}-{sanitized_name}"""
    timestamp_ms = int((now if now is not None else time.time()) * 1000)
    return f"{folder}/{timestamp_ms}-{sanitize_upload_filename(filename)}"
