import logging

from .models import Customer

logger = logging.getLogger(__name__)


def upsert_customer(store, name, email, phone=None):
    """
    Find the store's customer by e-mail and refresh its name and phone, or
    create one. Returns None when no e-mail is given.
    """
    email = (email or '').strip().lower()
    if not email:
        return None

    customer, created = Customer.objects.update_or_create(
        store=store,
        email=email,
        defaults={'name': name, 'phone': phone or None}
    )
    if created:
        logger.info(f"Customer {email} created in store {store.id}")
    return customer
