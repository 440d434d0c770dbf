"""
Test suite for the catalog module
Tests: variant matrix derivation, billboards, categories, sizes/colors and products
"""
from decimal import Decimal
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase, SimpleTestCase
from rest_framework import status

from backoffice.catalog.models import Billboard, Category, Size, Product, ProductImage, ProductVariant
from backoffice.catalog.serializers import ProductWriteSerializer
from backoffice.catalog.utils import (
    build_variant_matrix, variant_matrix_changed, merge_variant_stock,
    total_variant_stock, normalize_tags, metadata_to_dict
)
from backoffice.core.models import AuditLog
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class VariantMatrixTests(SimpleTestCase):
    """Test derivation of the size x color matrix"""

    def test_matrix_is_size_major(self):
        matrix = build_variant_matrix(['s', 'm'], ['red', 'blue'])
        self.assertEqual(
            [(cell['size_id'], cell['color_id']) for cell in matrix],
            [('s', 'red'), ('s', 'blue'), ('m', 'red'), ('m', 'blue')]
        )
        self.assertTrue(all(cell['stock'] == 0 for cell in matrix))

    def test_empty_axis_gives_empty_matrix(self):
        self.assertEqual(build_variant_matrix(['s', 'm'], []), [])
        self.assertEqual(build_variant_matrix([], ['red']), [])

    def test_existing_stock_is_preserved(self):
        existing = [
            {'size_id': 's', 'color_id': 'red', 'stock': 4},
            {'size_id': 'm', 'color_id': 'red', 'stock': 7},
        ]
        matrix = build_variant_matrix(['s', 'm'], ['red', 'blue'], existing)
        self.assertEqual([cell['stock'] for cell in matrix], [4, 0, 7, 0])

    def test_removed_pairs_are_dropped(self):
        existing = [{'size_id': 'xl', 'color_id': 'red', 'stock': 9}]
        matrix = build_variant_matrix(['s'], ['red'], existing)
        self.assertEqual(matrix, [{'size_id': 's', 'color_id': 'red', 'stock': 0}])

    def test_duplicate_axis_ids_are_ignored(self):
        matrix = build_variant_matrix(['s', 's'], ['red', 'red'])
        self.assertEqual(len(matrix), 1)

    def test_submitted_stock_wins_over_persisted(self):
        matrix = merge_variant_stock(
            ['s'], ['red', 'blue'],
            submitted=[{'size_id': 's', 'color_id': 'red', 'stock': 2}],
            persisted=[
                {'size_id': 's', 'color_id': 'red', 'stock': 10},
                {'size_id': 's', 'color_id': 'blue', 'stock': 5},
            ]
        )
        self.assertEqual([cell['stock'] for cell in matrix], [2, 5])

    def test_matrix_changed_only_when_pairs_differ(self):
        current = build_variant_matrix(['s'], ['red', 'blue'])
        reordered = build_variant_matrix(['s'], ['blue', 'red'])
        self.assertFalse(variant_matrix_changed(reordered, current))
        self.assertTrue(variant_matrix_changed(build_variant_matrix(['s'], ['red']), current))
        self.assertTrue(variant_matrix_changed(build_variant_matrix(['m'], ['red', 'blue']), current))

    def test_total_stock(self):
        matrix = [{'size_id': 's', 'color_id': 'red', 'stock': 3}, {'size_id': 'm', 'color_id': 'red', 'stock': 4}]
        self.assertEqual(total_variant_stock(matrix, fallback_stock=99), 7)
        self.assertEqual(total_variant_stock([], fallback_stock=12), 12)

    def test_normalize_tags(self):
        self.assertEqual(normalize_tags([' summer ', '', 'sale', 'summer']), ['summer', 'sale'])

    def test_metadata_to_dict(self):
        self.assertEqual(
            metadata_to_dict([{'key': 'material', 'value': 'cotton'}, {'key': 'fit', 'value': 'slim'}]),
            {'material': 'cotton', 'fit': 'slim'}
        )
        self.assertEqual(metadata_to_dict(None), {})


class BillboardAPITests(TestCase):
    """Test billboard endpoints"""

    def setUp(self):
        self.owner = TestDataFactory.create_user()
        self.store = TestDataFactory.create_store(owner=self.owner)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.owner)
        self.url = f'/api/v1/stores/{self.store.id}/billboards/'

    def test_create_billboard(self):
        response = self.client.post(self.url, {
            'label': 'Summer Sale', 'image_url': 'https://cdn.test/summer.png'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        billboard = Billboard.objects.get(pk=response.data['id'])
        self.assertEqual(billboard.store, self.store)
        self.assertTrue(AuditLog.objects.filter(model_name='Billboard', action='create').exists())

    def test_create_billboard_requires_image(self):
        response = self.client.post(self.url, {'label': 'No image'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('image_url', response.data)

    def test_billboards_of_other_store_are_not_found(self):
        other = TestDataFactory.create_billboard(TestDataFactory.create_store())
        response = self.client.get(f'{self.url}{other.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_billboard_clears_category_link(self):
        billboard = TestDataFactory.create_billboard(self.store)
        category = TestDataFactory.create_category(self.store, billboard=billboard)
        response = self.client.delete(f'{self.url}{billboard.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        category.refresh_from_db()
        self.assertIsNone(category.billboard)


class CategoryAPITests(TestCase):
    """Test category endpoints"""

    def setUp(self):
        self.owner = TestDataFactory.create_user()
        self.store = TestDataFactory.create_store(owner=self.owner)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.owner)
        self.url = f'/api/v1/stores/{self.store.id}/categories/'

    def test_create_category_with_billboard(self):
        billboard = TestDataFactory.create_billboard(self.store)
        response = self.client.post(self.url, {'name': 'Shirts', 'billboard_id': str(billboard.id)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['billboard_id'], str(billboard.id))
        self.assertEqual(Category.objects.get(pk=response.data['id']).billboard, billboard)

    def test_empty_billboard_means_none(self):
        response = self.client.post(self.url, {'name': 'Shirts', 'billboard_id': ''}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['billboard_id'])

    def test_name_needs_two_characters(self):
        response = self.client.post(self.url, {'name': 'A'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data)

    def test_billboard_of_other_store_is_rejected(self):
        billboard = TestDataFactory.create_billboard(TestDataFactory.create_store())
        response = self.client.post(self.url, {'name': 'Shirts', 'billboard_id': str(billboard.id)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('billboard_id', response.data)

    def test_list_ordered_by_name(self):
        TestDataFactory.create_category(self.store, name='Trousers')
        TestDataFactory.create_category(self.store, name='Hats')
        response = self.client.get(self.url)
        self.assertEqual([c['name'] for c in response.data], ['Hats', 'Trousers'])


class SizeColorAPITests(TestCase):
    """Test size and color endpoints"""

    def setUp(self):
        self.owner = TestDataFactory.create_user()
        self.store = TestDataFactory.create_store(owner=self.owner)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.owner)

    def test_color_value_must_be_hex(self):
        response = self.client.post(f'/api/v1/stores/{self.store.id}/colors/', {
            'name': 'Black', 'value': 'black'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(f'/api/v1/stores/{self.store.id}/colors/', {
            'name': 'Black', 'value': '#000000'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_size_in_use_cannot_be_deleted(self):
        size = TestDataFactory.create_size(self.store, name='Small')
        color = TestDataFactory.create_color(self.store)
        TestDataFactory.create_product(self.store, variants=[(size, color, 1)])
        response = self.client.delete(f'/api/v1/stores/{self.store.id}/sizes/{size.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Size.objects.filter(pk=size.pk).exists())

    def test_unused_size_can_be_deleted(self):
        size = TestDataFactory.create_size(self.store)
        response = self.client.delete(f'/api/v1/stores/{self.store.id}/sizes/{size.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)


class ProductAPITests(TestCase):
    """Test product create/update with variant matrix synchronization"""

    def setUp(self):
        self.owner = TestDataFactory.create_user()
        self.store = TestDataFactory.create_store(owner=self.owner)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.owner)
        self.url = f'/api/v1/stores/{self.store.id}/products/'
        self.category = TestDataFactory.create_category(self.store, name='Shirts')
        self.small = TestDataFactory.create_size(self.store, name='Small', value='S')
        self.medium = TestDataFactory.create_size(self.store, name='Medium', value='M')
        self.black = TestDataFactory.create_color(self.store, name='Black', value='#000000')
        self.white = TestDataFactory.create_color(self.store, name='White', value='#ffffff')

    def payload(self, **overrides):
        data = {
            'name': 'Oxford Shirt',
            'description': 'Classic cotton shirt',
            'images': ['https://cdn.test/p/front.png', 'https://cdn.test/p/back.png'],
            'price': '49.99',
            'stock': 0,
            'category_id': str(self.category.id),
            'size_ids': [str(self.small.id), str(self.medium.id)],
            'color_ids': [str(self.black.id)],
            'tags': ['cotton', ' cotton ', 'summer'],
            'metadata': [{'key': 'material', 'value': 'cotton'}],
            'variants': [],
            'is_featured': True,
            'is_archived': False,
        }
        data.update(overrides)
        return data

    def stock_by_pair(self, product):
        return {
            (v.size.name, v.color.name): v.stock
            for v in ProductVariant.objects.filter(product=product).select_related('size', 'color')
        }

    def test_create_product_builds_variant_matrix(self):
        response = self.client.post(self.url, self.payload(variants=[
            {'size_id': str(self.small.id), 'color_id': str(self.black.id), 'stock': 3},
        ]), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        product = Product.objects.get(pk=response.data['id'])
        self.assertEqual(self.stock_by_pair(product), {('Small', 'Black'): 3, ('Medium', 'Black'): 0})
        self.assertEqual(product.stock_cached, 3)
        self.assertEqual(product.tags, ['cotton', 'summer'])
        self.assertEqual(product.metadata, {'material': 'cotton'})
        self.assertEqual(response.data['images'], ['https://cdn.test/p/front.png', 'https://cdn.test/p/back.png'])

        images = list(ProductImage.objects.filter(product=product).order_by('position'))
        self.assertEqual([(i.position, i.is_primary) for i in images], [(0, True), (1, False)])

    def test_update_preserves_stock_when_axes_change(self):
        product = TestDataFactory.create_product(
            self.store, category=self.category,
            variants=[(self.small, self.black, 4), (self.medium, self.black, 6)]
        )
        response = self.client.put(f'{self.url}{product.id}/', self.payload(
            size_ids=[str(self.small.id), str(self.medium.id)],
            color_ids=[str(self.black.id), str(self.white.id)],
        ), format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.assertEqual(self.stock_by_pair(product), {
            ('Small', 'Black'): 4, ('Small', 'White'): 0,
            ('Medium', 'Black'): 6, ('Medium', 'White'): 0,
        })
        product.refresh_from_db()
        self.assertEqual(product.stock_cached, 10)
        self.assertEqual(response.data['stock'], 10)

    def test_update_drops_removed_pairs(self):
        product = TestDataFactory.create_product(
            self.store, category=self.category,
            variants=[(self.small, self.black, 4), (self.medium, self.black, 6)]
        )
        response = self.client.put(f'{self.url}{product.id}/', self.payload(
            size_ids=[str(self.medium.id)],
        ), format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self.stock_by_pair(product), {('Medium', 'Black'): 6})

    def test_update_replaces_images(self):
        product = TestDataFactory.create_product(
            self.store, category=self.category,
            images=['https://cdn.test/old-1.png', 'https://cdn.test/old-2.png']
        )
        response = self.client.put(f'{self.url}{product.id}/', self.payload(
            images=['https://cdn.test/new.png']
        ), format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(list(product.images.values_list('url', flat=True)), ['https://cdn.test/new.png'])

    def test_product_requires_images_sizes_and_colors(self):
        response = self.client.post(self.url, self.payload(images=[], size_ids=[], color_ids=[]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        for field in ('images', 'size_ids', 'color_ids'):
            self.assertIn(field, response.data)

    def test_price_must_be_positive(self):
        response = self.client.post(self.url, self.payload(price='0'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('price', response.data)

    def test_size_of_other_store_is_rejected(self):
        foreign_size = TestDataFactory.create_size(TestDataFactory.create_store())
        response = self.client.post(self.url, self.payload(size_ids=[str(foreign_size.id)]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('size_ids', response.data)
        self.assertFalse(Product.objects.filter(store=self.store).exists())

    def test_retrieve_returns_edit_shape(self):
        product = TestDataFactory.create_product(
            self.store, category=self.category,
            variants=[(self.small, self.black, 2), (self.small, self.white, 1)]
        )
        response = self.client.get(f'{self.url}{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['size_ids'], [str(self.small.id)])
        self.assertEqual(sorted(response.data['color_ids']), sorted([str(self.black.id), str(self.white.id)]))
        self.assertEqual(response.data['stock'], 3)
        self.assertEqual(len(response.data['variants']), 2)

    def test_list_filters(self):
        TestDataFactory.create_product(self.store, name='Linen Shirt', category=self.category)
        TestDataFactory.create_product(self.store, name='Old Hat', is_archived=True)
        response = self.client.get(self.url, {'search': 'linen'})
        self.assertEqual([p['name'] for p in response.data], ['Linen Shirt'])
        response = self.client.get(self.url, {'is_archived': 'true'})
        self.assertEqual([p['name'] for p in response.data], ['Old Hat'])
        response = self.client.get(self.url, {'category': str(self.category.id)})
        self.assertEqual([p['name'] for p in response.data], ['Linen Shirt'])

    def test_delete_product(self):
        product = TestDataFactory.create_product(self.store, variants=[(self.small, self.black, 1)])
        response = self.client.delete(f'{self.url}{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())
        self.assertFalse(ProductVariant.objects.filter(product_id=product.pk).exists())

    def test_variant_matrix_preview(self):
        product = TestDataFactory.create_product(
            self.store, category=self.category, variants=[(self.small, self.black, 5)]
        )
        response = self.client.get(f'{self.url}{product.id}/variant-matrix/', {
            'size_ids': f'{self.small.id},{self.medium.id}',
            'color_ids': str(self.black.id),
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['changed'])
        self.assertEqual([cell['stock'] for cell in response.data['variants']], [5, 0])
        self.assertEqual(response.data['stock'], 5)

    def test_price_is_stored_as_decimal(self):
        response = self.client.post(self.url, self.payload(), format='json')
        self.assertEqual(Product.objects.get(pk=response.data['id']).price, Decimal('49.99'))

    def test_uppercase_variant_ids_keep_submitted_stock(self):
        response = self.client.post(self.url, self.payload(
            size_ids=[str(self.small.id).upper()],
            color_ids=[str(self.black.id).upper()],
            variants=[{'size_id': str(self.small.id).upper(), 'color_id': str(self.black.id).upper(), 'stock': 7}],
        ), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        product = Product.objects.get(pk=response.data['id'])
        self.assertEqual(self.stock_by_pair(product), {('Small', 'Black'): 7})
        self.assertEqual(product.stock_cached, 7)

    def test_invalid_variant_id_is_rejected(self):
        response = self.client.post(self.url, self.payload(variants=[
            {'size_id': 'not-a-uuid', 'color_id': str(self.black.id), 'stock': 1},
        ]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('variants', response.data)

    def test_failed_variant_write_rolls_back_create(self):
        serializer = ProductWriteSerializer(data=self.payload(), context={'store': self.store})
        self.assertTrue(serializer.is_valid(), serializer.errors)
        with mock.patch.object(ProductVariant.objects, 'bulk_create', side_effect=DatabaseError('boom')):
            with self.assertRaises(DatabaseError):
                serializer.save()
        self.assertFalse(Product.objects.filter(store=self.store).exists())
        self.assertFalse(ProductImage.objects.exists())

    def test_failed_variant_write_rolls_back_update(self):
        product = TestDataFactory.create_product(
            self.store, category=self.category, name='Polo',
            images=['https://cdn.test/old.png'], variants=[(self.small, self.black, 4)]
        )
        serializer = ProductWriteSerializer(product, data=self.payload(), context={'store': self.store})
        self.assertTrue(serializer.is_valid(), serializer.errors)
        with mock.patch.object(ProductVariant.objects, 'bulk_create', side_effect=DatabaseError('boom')):
            with self.assertRaises(DatabaseError):
                serializer.save()
        product.refresh_from_db()
        self.assertEqual(product.name, 'Polo')
        self.assertEqual(list(product.images.values_list('url', flat=True)), ['https://cdn.test/old.png'])
        self.assertEqual(self.stock_by_pair(product), {('Small', 'Black'): 4})
