import uuid

from django.db import models

from backoffice.core.models import Store


class Customer(models.Model):
    """Customers of a store, keyed by e-mail"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name='customers')
    name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=20, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.email = (self.email or '').strip().lower()
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'customers'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['store', 'email'], name='unique_customer_email_per_store'),
        ]
