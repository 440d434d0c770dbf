"""
Cache invalidation signals
Automatically invalidate the per-store overview cache when data changes
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
from django.core.cache import cache
import logging
import threading
from contextlib import contextmanager

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()


def overview_cache_key(store_id):
    return f"overview:{store_id}"


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


def invalidate_overview_cache(store_id):
    """Drop the cached overview of a store"""
    try:
        cache.delete(overview_cache_key(store_id))
        logger.info(f"Invalidated overview cache for store {store_id}")
    except Exception as e:
        logger.warning(f"Could not invalidate overview cache for store {store_id}: {str(e)}")


def _invalidate_after_commit(store_id):
    # Invalidate AFTER commit so the cache is not repopulated with stale data
    transaction.on_commit(lambda: invalidate_overview_cache(store_id))


# --- Signal Handlers ---

@receiver([post_save, post_delete], sender='catalog.Product')
def invalidate_overview_on_product_change(sender, instance, **kwargs):
    """Active product count is part of the overview"""
    if is_suspended():
        return
    _invalidate_after_commit(instance.store_id)


@receiver([post_save, post_delete], sender='orders.Order')
def invalidate_overview_on_order_change(sender, instance, **kwargs):
    """Revenue, order count and recent orders are part of the overview"""
    if is_suspended():
        return
    _invalidate_after_commit(instance.store_id)
