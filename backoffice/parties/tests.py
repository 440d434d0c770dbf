"""
Test suite for the parties module
Tests: customer upsert by e-mail, customer list and detail
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.orders.models import Order
from backoffice.parties.models import Customer
from backoffice.parties.utils import upsert_customer


class UpsertCustomerTests(TestCase):
    """Test find-or-create of customers keyed by e-mail"""

    def setUp(self):
        self.store = TestDataFactory.create_store()

    def test_creates_customer_with_lowercased_email(self):
        customer = upsert_customer(self.store, 'Jane Doe', '  Jane@Example.com ', '01711111111')
        self.assertEqual(customer.email, 'jane@example.com')
        self.assertEqual(Customer.objects.filter(store=self.store).count(), 1)

    def test_existing_customer_is_updated(self):
        first = upsert_customer(self.store, 'Jane Doe', 'jane@example.com', '01711111111')
        second = upsert_customer(self.store, 'Jane Smith', 'JANE@example.com', '01822222222')
        self.assertEqual(first.pk, second.pk)
        second.refresh_from_db()
        self.assertEqual(second.name, 'Jane Smith')
        self.assertEqual(second.phone, '01822222222')

    def test_empty_email_returns_none(self):
        self.assertIsNone(upsert_customer(self.store, 'Walk-in', '', '01700000000'))
        self.assertIsNone(upsert_customer(self.store, 'Walk-in', None, '01700000000'))
        self.assertFalse(Customer.objects.exists())

    def test_customers_are_scoped_per_store(self):
        other_store = TestDataFactory.create_store()
        a = upsert_customer(self.store, 'Jane', 'jane@example.com')
        b = upsert_customer(other_store, 'Jane', 'jane@example.com')
        self.assertNotEqual(a.pk, b.pk)


class CustomerAPITests(TestCase):
    """Test customer endpoints"""

    def setUp(self):
        self.owner = TestDataFactory.create_user()
        self.store = TestDataFactory.create_store(owner=self.owner)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.owner)
        self.url = f'/api/v1/stores/{self.store.id}/customers/'
        self.customer = TestDataFactory.create_customer(self.store, name='Rahim', email='rahim@test.com', phone='01755555555')
        product = TestDataFactory.create_product(self.store)
        TestDataFactory.create_order(self.store, items=[(product, 2, '50.00')], customer=self.customer)
        TestDataFactory.create_order(self.store, items=[(product, 1, '30.00')], customer=self.customer)
        TestDataFactory.create_order(
            self.store, items=[(product, 1, '999.00')], customer=self.customer, status=Order.STATUS_CANCELLED
        )

    def test_list_with_totals(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['order_count'], 2)
        self.assertEqual(Decimal(response.data[0]['lifetime_value']), Decimal('130.00'))

    def test_search(self):
        TestDataFactory.create_customer(self.store, name='Karim', email='karim@test.com', phone='01900000000')
        response = self.client.get(self.url, {'search': '0175'})
        self.assertEqual([c['name'] for c in response.data], ['Rahim'])
        response = self.client.get(self.url, {'search': 'KARIM@'})
        self.assertEqual([c['name'] for c in response.data], ['Karim'])

    def test_detail_includes_orders(self):
        response = self.client.get(f'{self.url}{self.customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['orders']), 3)

    def test_customer_of_other_store_is_not_found(self):
        other = TestDataFactory.create_customer(TestDataFactory.create_store())
        response = self.client.get(f'{self.url}{other.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
