"""
Test suite for the reports module
Tests: monthly revenue series and the overview dashboard
"""
from datetime import date, datetime, time
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase, SimpleTestCase
from django.utils import timezone
from rest_framework import status

from backoffice.core.cache_signals import overview_cache_key
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.orders.models import Order
from backoffice.reports.utils import build_monthly_revenue, last_months


class MonthlyRevenueTests(SimpleTestCase):
    """Test the zero-filled monthly series"""

    def test_last_months_crosses_year_boundary(self):
        months = last_months(date(2024, 2, 15))
        self.assertEqual(len(months), 12)
        self.assertEqual(months[0], date(2023, 3, 1))
        self.assertEqual(months[-1], date(2024, 2, 1))

    def test_series_is_zero_filled_oldest_first(self):
        points = build_monthly_revenue({(2024, 1): Decimal('150.50')}, date(2024, 2, 10))
        self.assertEqual(len(points), 12)
        self.assertEqual(points[-1], {'month_label': 'Feb 2024', 'month_date': '2024-02-01', 'revenue': 0.0})
        self.assertEqual(points[-2], {'month_label': 'Jan 2024', 'month_date': '2024-01-01', 'revenue': 150.5})
        self.assertEqual(points[0]['month_date'], '2023-03-01')


class OverviewAPITests(TestCase):
    """Test the overview dashboard endpoint"""

    def setUp(self):
        self.owner = TestDataFactory.create_user()
        self.store = TestDataFactory.create_store(owner=self.owner)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.owner)
        self.url = f'/api/v1/stores/{self.store.id}/overview/'
        self.product = TestDataFactory.create_product(self.store)
        TestDataFactory.create_product(self.store, is_archived=True)

    def tearDown(self):
        cache.delete(overview_cache_key(self.store.id))

    def move_to_month(self, order, month_start):
        created_at = timezone.make_aware(datetime.combine(month_start.replace(day=15), time(12, 0)))
        Order.objects.filter(pk=order.pk).update(created_at=created_at)

    def test_overview_totals(self):
        months = last_months(timezone.localdate())
        TestDataFactory.create_order(self.store, items=[(self.product, 2, '100.00')])
        TestDataFactory.create_order(self.store, items=[(self.product, 1, '999.00')], status=Order.STATUS_CANCELLED)
        old_order = TestDataFactory.create_order(self.store, items=[(self.product, 1, '50.00')])
        self.move_to_month(old_order, months[0])
        too_old = TestDataFactory.create_order(self.store, items=[(self.product, 1, '70.00')])
        self.move_to_month(too_old, date(months[0].year - 1, months[0].month, 1))

        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data
        self.assertEqual(data['total_orders'], 4)
        self.assertEqual(data['active_products'], 1)
        self.assertEqual(len(data['monthly_revenue']), 12)
        self.assertEqual(data['monthly_revenue'][-1]['revenue'], 200.0)
        self.assertEqual(data['monthly_revenue'][0]['revenue'], 50.0)
        self.assertEqual(data['total_revenue'], 250.0)
        self.assertEqual(len(data['recent_orders']), 4)

    def test_recent_orders_limited_to_five(self):
        for _ in range(7):
            TestDataFactory.create_order(self.store)
        response = self.client.get(self.url)
        self.assertEqual(len(response.data['recent_orders']), 5)

    def test_overview_is_cached_and_invalidated(self):
        response = self.client.get(self.url)
        self.assertEqual(response.data['total_orders'], 0)
        self.assertIsNotNone(cache.get(overview_cache_key(self.store.id)))

        # Invalidation waits for the commit
        Order.objects.create(
            store=self.store, customer_name='Quiet', phone='0170', address='x', total_price=Decimal('1.00')
        )
        self.assertEqual(self.client.get(self.url).data['total_orders'], 0)

        with self.captureOnCommitCallbacks(execute=True):
            TestDataFactory.create_order(self.store)
        self.assertIsNone(cache.get(overview_cache_key(self.store.id)))
        self.assertEqual(self.client.get(self.url).data['total_orders'], 2)

    def test_non_member_is_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
