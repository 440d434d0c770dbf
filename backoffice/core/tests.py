"""
Test suite for the core module
Tests: authentication, store membership, store settings, members, uploads and audit logs
"""
import shutil
import tempfile
from decimal import Decimal
from urllib.parse import urlparse

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, SimpleTestCase, override_settings
from django.urls import resolve
from django.views.static import serve
from rest_framework import status
from rest_framework.exceptions import PermissionDenied

from backoffice.catalog.models import Product, Size
from backoffice.core.models import Store, StoreMember, AuditLog
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.core.utils import assert_store_membership, sanitize_upload_filename, build_upload_key


class UploadKeyTests(SimpleTestCase):
    """Test upload file name sanitizing"""

    def test_sanitize_lowercases_and_dashes_whitespace(self):
        self.assertEqual(sanitize_upload_filename('Summer Sale.PNG'), 'summer-sale.png')

    def test_sanitize_collapses_whitespace_runs(self):
        self.assertEqual(sanitize_upload_filename('my   new\tphoto.jpg'), 'my-new-photo.jpg')

    def test_sanitize_drops_non_ascii(self):
        self.assertEqual(sanitize_upload_filename('café photo.jpg'), 'caf-photo.jpg')

    def test_build_upload_key(self):
        key = build_upload_key('billboards', 'Hero Banner.png', now=1700000000.123)
        self.assertEqual(key, 'billboards/1700000000123-hero-banner.png')


class StoreMembershipTests(TestCase):
    """Test store scoping of requests"""

    def setUp(self):
        self.owner = TestDataFactory.create_user()
        self.store = TestDataFactory.create_store(owner=self.owner)
        self.outsider = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()

    def test_assert_membership_returns_membership(self):
        membership = assert_store_membership(self.store, self.owner)
        self.assertEqual(membership.role, StoreMember.ROLE_OWNER)

    def test_assert_membership_rejects_non_member(self):
        with self.assertRaises(PermissionDenied):
            assert_store_membership(self.store, self.outsider)

    def test_non_member_gets_403(self):
        self.client.authenticate_user(self.outsider)
        response = self.client.get(f'/api/v1/stores/{self.store.id}/billboards/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['detail'], 'Forbidden')

    def test_unknown_store_gets_404(self):
        self.client.authenticate_user(self.owner)
        response = self.client.get('/api/v1/stores/00000000-0000-0000-0000-000000000000/billboards/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_unauthenticated_gets_401(self):
        response = self.client.get(f'/api/v1/stores/{self.store.id}/billboards/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_viewer_cannot_write(self):
        viewer = TestDataFactory.add_member(self.store, role=StoreMember.ROLE_VIEWER).user
        self.client.authenticate_user(viewer)
        response = self.client.get(f'/api/v1/stores/{self.store.id}/billboards/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.post(f'/api/v1/stores/{self.store.id}/billboards/', {
            'label': 'Sale', 'image_url': 'https://cdn.test/sale.png'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class AuthAPITests(TestCase):
    """Test token endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(username='staff', password='secret-pass-1')
        self.store = TestDataFactory.create_store(owner=self.user)
        self.client = AuthenticatedAPIClient()

    def test_login_returns_tokens(self):
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'staff', 'password': 'secret-pass-1'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_login_with_wrong_password(self):
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'staff', 'password': 'wrong'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_lists_store_memberships(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'staff')
        self.assertEqual(response.data['stores'], [
            {'id': str(self.store.id), 'name': self.store.name, 'role': 'owner'}
        ])


class StoreAPITests(TestCase):
    """Test store, settings and member endpoints"""

    def setUp(self):
        self.owner = TestDataFactory.create_user()
        self.store = TestDataFactory.create_store(owner=self.owner, name='Main Street')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.owner)

    def test_create_store_makes_caller_owner(self):
        user = TestDataFactory.create_user()
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/stores/', {'name': 'Second Shop'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['role'], 'owner')
        store = Store.objects.get(pk=response.data['id'])
        self.assertEqual(store.owner, user)
        self.assertTrue(StoreMember.objects.filter(store=store, user=user, role='owner').exists())

    def test_list_only_member_stores(self):
        TestDataFactory.create_store()
        response = self.client.get('/api/v1/stores/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([s['name'] for s in response.data], ['Main Street'])

    def test_update_settings(self):
        response = self.client.patch(f'/api/v1/stores/{self.store.id}/settings/', {
            'name': 'Main Street Outlet', 'support_email': ''
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.store.refresh_from_db()
        self.assertEqual(self.store.name, 'Main Street Outlet')
        self.assertIsNone(self.store.support_email)
        self.assertTrue(AuditLog.objects.filter(store=self.store, model_name='Store', action='update').exists())

    def test_update_settings_requires_name(self):
        response = self.client.put(f'/api/v1/stores/{self.store.id}/settings/', {'name': ''}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data)

    def test_update_settings_rejects_invalid_email(self):
        response = self.client.patch(f'/api/v1/stores/{self.store.id}/settings/', {
            'support_email': 'not-an-email'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_manager_cannot_delete_store(self):
        manager = TestDataFactory.add_member(self.store, role=StoreMember.ROLE_MANAGER).user
        self.client.authenticate_user(manager)
        response = self.client.delete(f'/api/v1/stores/{self.store.id}/settings/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Store.objects.filter(pk=self.store.pk).exists())

    def test_owner_deletes_store_with_its_data(self):
        size = TestDataFactory.create_size(self.store, name='Large')
        color = TestDataFactory.create_color(self.store, name='Navy', value='#000080')
        product = TestDataFactory.create_product(self.store, variants=[(size, color, 4)])
        TestDataFactory.create_order(self.store, items=[(product, 1, Decimal('100.00'))])
        response = self.client.delete(f'/api/v1/stores/{self.store.id}/settings/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Store.objects.filter(pk=self.store.pk).exists())
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())
        self.assertFalse(Size.objects.filter(pk=size.pk).exists())

    def test_add_member_by_email(self):
        user = TestDataFactory.create_user(email='helper@test.com')
        response = self.client.post(f'/api/v1/stores/{self.store.id}/members/', {
            'identifier': 'HELPER@test.com', 'role': 'manager'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(StoreMember.objects.get(store=self.store, user=user).role, 'manager')

    def test_add_existing_member_fails(self):
        response = self.client.post(f'/api/v1/stores/{self.store.id}/members/', {
            'identifier': self.owner.username
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_last_owner_cannot_be_removed(self):
        membership = StoreMember.objects.get(store=self.store, user=self.owner)
        response = self.client.delete(f'/api/v1/stores/{self.store.id}/members/{membership.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(StoreMember.objects.filter(pk=membership.pk).exists())

    def test_remove_member(self):
        membership = TestDataFactory.add_member(self.store, role=StoreMember.ROLE_VIEWER)
        response = self.client.delete(f'/api/v1/stores/{self.store.id}/members/{membership.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(StoreMember.objects.filter(pk=membership.pk).exists())

    def test_audit_logs_hidden_from_viewers(self):
        viewer = TestDataFactory.add_member(self.store, role=StoreMember.ROLE_VIEWER).user
        self.client.authenticate_user(viewer)
        response = self.client.get(f'/api/v1/stores/{self.store.id}/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class UploadAPITests(TestCase):
    """Test image uploads"""

    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.owner = TestDataFactory.create_user()
        self.store = TestDataFactory.create_store(owner=self.owner)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.owner)

    def tearDown(self):
        shutil.rmtree(self.media_root, ignore_errors=True)

    def test_upload_returns_url(self):
        upload = SimpleUploadedFile('Hero Banner.png', b'\x89PNG fake', content_type='image/png')
        with override_settings(MEDIA_ROOT=self.media_root):
            response = self.client.post(f'/api/v1/stores/{self.store.id}/uploads/', {
                'file': upload, 'folder': 'billboards'
            }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertRegex(response.data['path'], r'^billboards/\d+-hero-banner\.png$')
        self.assertTrue(response.data['url'].startswith('http://testserver/media/billboards/'))
        match = resolve(urlparse(response.data['url']).path)
        self.assertIs(match.func, serve)
        self.assertEqual(match.kwargs['path'], response.data['path'])

    def test_upload_rejects_unknown_folder(self):
        upload = SimpleUploadedFile('a.png', b'data', content_type='image/png')
        with override_settings(MEDIA_ROOT=self.media_root):
            response = self.client.post(f'/api/v1/stores/{self.store.id}/uploads/', {
                'file': upload, 'folder': 'secrets'
            }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
