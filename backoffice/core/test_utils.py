"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backoffice.core.models import Store, StoreMember
from backoffice.catalog.models import Billboard, Category, Size, Color, Product, ProductImage, ProductVariant
from backoffice.parties.models import Customer
from backoffice.orders.models import Order, OrderItem
from backoffice.orders.utils import compute_order_total
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )
        return user

    @staticmethod
    def create_store(owner=None, name=None):
        """Create a test store; the owner becomes its owner member"""
        if not owner:
            owner = TestDataFactory.create_user()
        if not name:
            name = f'Store_{TestDataFactory.random_string(6)}'
        store = Store.objects.create(owner=owner, name=name)
        StoreMember.objects.create(store=store, user=owner, role=StoreMember.ROLE_OWNER)
        return store

    @staticmethod
    def add_member(store, user=None, role=StoreMember.ROLE_MANAGER):
        """Add a user to a store with the given role"""
        if not user:
            user = TestDataFactory.create_user()
        return StoreMember.objects.create(store=store, user=user, role=role)

    @staticmethod
    def create_billboard(store, label=None):
        """Create a test billboard"""
        if not label:
            label = f'Billboard_{TestDataFactory.random_string(6)}'
        return Billboard.objects.create(
            store=store,
            label=label,
            image_url=f'https://cdn.test/billboards/{TestDataFactory.random_string(8)}.png'
        )

    @staticmethod
    def create_category(store, name=None, billboard=None):
        """Create a test category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return Category.objects.create(store=store, name=name, billboard=billboard)

    @staticmethod
    def create_size(store, name=None, value=None):
        """Create a test size"""
        if not name:
            name = f'Size_{TestDataFactory.random_string(4)}'
        return Size.objects.create(store=store, name=name, value=value or name[:2].upper())

    @staticmethod
    def create_color(store, name=None, value='#000000'):
        """Create a test color"""
        if not name:
            name = f'Color_{TestDataFactory.random_string(4)}'
        return Color.objects.create(store=store, name=name, value=value)

    @staticmethod
    def create_product(store, name=None, category=None, price=None, stock_cached=0,
                       images=None, variants=None, is_archived=False, is_featured=False):
        """
        Create a test product.

        `variants` is a list of (size, color, stock) tuples; stock_cached is
        then the variant sum.
        """
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not category:
            category = TestDataFactory.create_category(store)
        if price is None:
            price = Decimal('100.00')
        if variants:
            stock_cached = sum(stock for _, _, stock in variants)

        product = Product.objects.create(
            store=store,
            category=category,
            name=name,
            description=f'Test product {name}',
            price=price,
            stock_cached=stock_cached,
            is_archived=is_archived,
            is_featured=is_featured
        )
        for index, url in enumerate(images or [f'https://cdn.test/products/{TestDataFactory.random_string(8)}.png']):
            ProductImage.objects.create(product=product, url=url, position=index, is_primary=(index == 0))
        for size, color, stock in variants or []:
            ProductVariant.objects.create(product=product, size=size, color=color, stock=stock)
        return product

    @staticmethod
    def create_customer(store, name=None, email=None, phone=None):
        """Create a test customer"""
        if not name:
            name = f'Customer_{TestDataFactory.random_string(6)}'
        if not phone:
            phone = f'01{random.randint(100000000, 999999999)}'
        if not email:
            email = f'{name.lower()}@test.com'
        return Customer.objects.create(store=store, name=name, email=email, phone=phone)

    @staticmethod
    def create_order(store, items=None, customer=None, status=Order.STATUS_PENDING,
                     payment_method=Order.PAYMENT_COD, is_paid=False):
        """
        Create a test order.

        `items` is a list of (product, quantity, unit_price) tuples; one item of
        a new product is used when omitted.
        """
        if items is None:
            items = [(TestDataFactory.create_product(store), 1, Decimal('100.00'))]
        line_items = [
            {'product': product, 'quantity': quantity, 'unit_price': Decimal(str(unit_price))}
            for product, quantity, unit_price in items
        ]
        order = Order.objects.create(
            store=store,
            customer=customer,
            customer_name=customer.name if customer else f'Buyer_{TestDataFactory.random_string(6)}',
            customer_email=customer.email if customer else None,
            phone=customer.phone if customer else '01700000000',
            address='House 1, Road 2, Dhaka',
            status=status,
            payment_method=payment_method,
            is_paid=is_paid,
            total_price=compute_order_total(line_items)
        )
        for item in line_items:
            OrderItem.objects.create(
                order=order,
                product=item['product'],
                product_name=item['product'].name,
                quantity=item['quantity'],
                unit_price=item['unit_price']
            )
        return order


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
