"""
Test suite for the inventory module
Tests: flattened stock list, stock status, bulk save and adjustment history
"""
from django.test import TestCase, SimpleTestCase
from rest_framework import status

from backoffice.core.models import AuditLog, StoreMember
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.inventory.models import InventoryAdjustment
from backoffice.inventory.utils import get_stock_status


class StockStatusTests(SimpleTestCase):
    """Test stock status thresholds"""

    def test_stock_status(self):
        self.assertEqual(get_stock_status(0), 'out_of_stock')
        self.assertEqual(get_stock_status(1), 'low_stock')
        self.assertEqual(get_stock_status(9), 'low_stock')
        self.assertEqual(get_stock_status(10), 'in_stock')

    def test_custom_threshold(self):
        self.assertEqual(get_stock_status(4, threshold=3), 'in_stock')


class InventoryAPITests(TestCase):
    """Test inventory endpoints"""

    def setUp(self):
        self.owner = TestDataFactory.create_user()
        self.store = TestDataFactory.create_store(owner=self.owner)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.owner)
        self.url = f'/api/v1/stores/{self.store.id}/inventory/'

        self.small = TestDataFactory.create_size(self.store, name='Small')
        self.black = TestDataFactory.create_color(self.store, name='Black')
        self.white = TestDataFactory.create_color(self.store, name='White', value='#ffffff')
        self.tee = TestDataFactory.create_product(
            self.store, name='Tee',
            images=['https://cdn.test/tee-1.png', 'https://cdn.test/tee-2.png'],
            variants=[(self.small, self.black, 0), (self.small, self.white, 12)]
        )
        self.mug = TestDataFactory.create_product(self.store, name='Mug', stock_cached=3)

    def test_flattened_list(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        rows = {(row['product_name'], row['variant_label']): row for row in response.data}
        self.assertEqual(set(rows), {('Mug', 'Standard'), ('Tee', 'Small / Black'), ('Tee', 'Small / White')})

        self.assertFalse(rows[('Mug', 'Standard')]['is_variant'])
        self.assertEqual(rows[('Mug', 'Standard')]['id'], str(self.mug.id))
        self.assertEqual(rows[('Mug', 'Standard')]['stock_status'], 'low_stock')
        self.assertEqual(rows[('Tee', 'Small / Black')]['stock_status'], 'out_of_stock')
        self.assertEqual(rows[('Tee', 'Small / White')]['stock_status'], 'in_stock')
        self.assertEqual(rows[('Tee', 'Small / White')]['image'], 'https://cdn.test/tee-1.png')

    def test_list_ordered_by_product_name(self):
        response = self.client.get(self.url)
        self.assertEqual([row['product_name'] for row in response.data], ['Mug', 'Tee', 'Tee'])

    def test_search_on_variant_label(self):
        response = self.client.get(self.url, {'search': 'white'})
        self.assertEqual([row['variant_label'] for row in response.data], ['Small / White'])
        response = self.client.get(self.url, {'search': 'MUG'})
        self.assertEqual([row['product_name'] for row in response.data], ['Mug'])

    def test_bulk_save_writes_only_changed_items(self):
        black = self.tee.variants.get(color=self.black)
        white = self.tee.variants.get(color=self.white)
        response = self.client.post(self.url, [
            {'id': str(black.id), 'is_variant': True, 'stock': 8, 'reason': 'Restock'},
            {'id': str(white.id), 'is_variant': True, 'stock': 12},
            {'id': str(self.mug.id), 'is_variant': False, 'stock': 20},
        ], format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['updated'], 2)

        black.refresh_from_db()
        self.mug.refresh_from_db()
        self.tee.refresh_from_db()
        self.assertEqual(black.stock, 8)
        self.assertEqual(self.mug.stock_cached, 20)
        self.assertEqual(self.tee.stock_cached, 20)

        adjustment = InventoryAdjustment.objects.get(variant=black)
        self.assertEqual((adjustment.previous_stock, adjustment.new_stock), (0, 8))
        self.assertEqual(adjustment.reason, 'Restock')
        self.assertEqual(adjustment.user, self.owner)
        self.assertEqual(AuditLog.objects.filter(store=self.store, action='stock_adjust').count(), 2)

    def test_bulk_save_rolls_back_on_unknown_item(self):
        black = self.tee.variants.get(color=self.black)
        foreign = TestDataFactory.create_product(TestDataFactory.create_store())
        response = self.client.post(self.url, [
            {'id': str(black.id), 'is_variant': True, 'stock': 8},
            {'id': str(foreign.id), 'is_variant': False, 'stock': 1},
        ], format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        black.refresh_from_db()
        self.assertEqual(black.stock, 0)
        self.assertFalse(InventoryAdjustment.objects.exists())

    def test_negative_stock_is_rejected(self):
        response = self.client.post(self.url, [
            {'id': str(self.mug.id), 'is_variant': False, 'stock': -1},
        ], format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_standard_update_of_product_with_variants_is_rejected(self):
        response = self.client.post(self.url, [
            {'id': str(self.tee.id), 'is_variant': False, 'stock': 5},
        ], format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_viewer_cannot_save(self):
        viewer = TestDataFactory.add_member(self.store, role=StoreMember.ROLE_VIEWER).user
        self.client.authenticate_user(viewer)
        response = self.client.post(self.url, [
            {'id': str(self.mug.id), 'is_variant': False, 'stock': 1},
        ], format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_adjustment_history_newest_first(self):
        self.client.post(self.url, [{'id': str(self.mug.id), 'is_variant': False, 'stock': 5}], format='json')
        self.client.post(self.url, [{'id': str(self.mug.id), 'is_variant': False, 'stock': 7}], format='json')
        response = self.client.get(f'{self.url}adjustments/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([a['new_stock'] for a in response.data], [7, 5])
        self.assertEqual(response.data[0]['delta'], 2)
