import hashlib
import hmac
import itertools
import os
import tempfile
from decimal import Decimal

import pytest

from config import Config
from storefront import create_app, database
from storefront.exceptions import PaymentVerificationError
from storefront.models import AppUser, Product, UserRole
from storefront.services import cart_service, discount_service
from storefront.services.checkout_service import create_checkout
from storefront.services.razorpay_client import RazorpayClient
from storefront.services.settings_service import get_store_settings

_db_dir = tempfile.mkdtemp(prefix='storefront-tests-')

ADDRESS = {
    'name': 'Asha Rao',
    'address': '12 MG Road, Indiranagar',
    'city': 'Bengaluru',
    'state': 'Karnataka',
    'pincode': '560038',
    'phone': '9876543210',
}


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    ENV = 'testing'
    WTF_CSRF_ENABLED = False
    SQLALCHEMY_DATABASE_URI = f"sqlite:///{os.path.join(_db_dir, 'storefront.db')}"
    SQLALCHEMY_ECHO = False
    CACHE_ENABLED = False
    MAIL_SUPPRESS_SEND = True
    RAZORPAY_KEY_ID = 'rzp_test_key'
    RAZORPAY_KEY_SECRET = 'rzp_test_secret'
    RAZORPAY_WEBHOOK_SECRET = 'whsec_test'
    DISCOUNT_CODE_PREFIX = 'UNIBLOX'
    DEFAULT_NTH_ORDER = 5
    DEFAULT_REWARD_PERCENT = 10


class FakeGateway(RazorpayClient):
    """
    Razorpay client with the network calls replaced by an in-memory ledger.

    Signature checks are the real ones, so tests sign callbacks with sign().
    """

    def __init__(self):
        super().__init__(
            key_id=TestingConfig.RAZORPAY_KEY_ID,
            key_secret=TestingConfig.RAZORPAY_KEY_SECRET,
            webhook_secret=TestingConfig.RAZORPAY_WEBHOOK_SECRET,
        )
        self.reset()

    def reset(self):
        self.orders = {}
        self.payments = {}
        self._order_seq = itertools.count(1)
        self._payment_seq = itertools.count(1)

    def create_order(self, amount_minor, currency, receipt, notes=None):
        order_id = f"order_test_{next(self._order_seq)}"
        self.orders[order_id] = {
            'id': order_id, 'amount': amount_minor, 'currency': currency,
            'receipt': receipt, 'notes': notes or {},
        }
        return dict(self.orders[order_id])

    def fetch_payment(self, payment_id):
        if payment_id not in self.payments:
            raise PaymentVerificationError('Unknown payment')
        return dict(self.payments[payment_id])

    def capture(self, order_id, amount=None, status='captured'):
        """Simulate the customer paying; returns the payment id."""
        payment_id = f"pay_test_{next(self._payment_seq)}"
        self.payments[payment_id] = {
            'id': payment_id,
            'order_id': order_id,
            'amount': self.orders[order_id]['amount'] if amount is None else amount,
            'status': status,
        }
        return payment_id

    def sign(self, order_id, payment_id):
        return hmac.new(
            self.key_secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256
        ).hexdigest()

    def sign_webhook(self, body: bytes):
        return hmac.new(self.webhook_secret.encode(), body, hashlib.sha256).hexdigest()


@pytest.fixture(scope='session')
def gateway():
    return FakeGateway()


@pytest.fixture(scope='session')
def app(gateway):
    """Create application instance for testing."""
    app = create_app(TestingConfig)
    app.extensions['payment_gateway'] = gateway
    return app


@pytest.fixture(autouse=True)
def _database(app, gateway):
    """Fresh schema and an app context for every test."""
    gateway.reset()
    with app.app_context():
        database.drop_all()
        database.create_all()
        yield
        database.db_session.remove()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session():
    """Database session bound to the test's app context."""
    return database.get_session()


@pytest.fixture(scope='function')
def settings(session):
    """Store settings row with the default reward scheme (every 5th order, 10%)."""
    return get_store_settings(session)


def _make_user(session, email, name, role=UserRole.CUSTOMER):
    user = AppUser(email=email, name=name, role=role, active=True)
    user.set_password('password123')
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def customer(session):
    return _make_user(session, 'customer@test.com', 'Test Customer')


@pytest.fixture(scope='function')
def other_customer(session):
    return _make_user(session, 'other@test.com', 'Other Customer')


@pytest.fixture(scope='function')
def admin_user(session):
    return _make_user(session, 'admin@test.com', 'Store Admin', role=UserRole.ADMIN)


@pytest.fixture(scope='function')
def make_user(session):
    """Factory for extra customers: make_user('n3')."""
    def _factory(tag):
        return _make_user(session, f'{tag}@test.com', f'Customer {tag}')
    return _factory


@pytest.fixture(scope='function')
def make_product(session):
    """Factory: make_product(name, price, stock)."""
    def _factory(name='Wireless Headphones', price='999.00', stock=10, category='Electronics', active=True):
        product = Product(
            name=name,
            description=f'{name} description',
            price=Decimal(str(price)),
            image=f'https://img.test/{name.lower().replace(" ", "-")}.jpg',
            category=category,
            stock=stock,
            active=active,
        )
        session.add(product)
        session.commit()
        return product
    return _factory


@pytest.fixture(scope='function')
def product(make_product):
    return make_product()


def login(client, user_id):
    with client.session_transaction() as sess:
        sess['user_id'] = user_id


@pytest.fixture(scope='function')
def customer_client(client, customer):
    login(client, customer.id)
    return client


@pytest.fixture(scope='function')
def admin_client(client, admin_user):
    login(client, admin_user.id)
    return client


@pytest.fixture(scope='function')
def open_checkout(session, gateway):
    """
    Fill a user's cart and open a checkout quote.

    open_checkout(user_id, [(product_id, qty), ...], code=None) -> remote order id
    """
    def _factory(user_id, items, code=None):
        for product_id, quantity in items:
            cart_service.add_item(session, user_id, product_id, quantity)
        if code:
            discount_service.apply_discount_to_cart(session, user_id, code)
        quote = create_checkout(session, user_id, dict(ADDRESS), gateway)
        return quote.remote_order_id
    return _factory


@pytest.fixture(scope='function')
def login_as(client):
    """Switch the shared test client to another user: login_as(user)."""
    def _login(user):
        login(client, user.id)
        return client
    return _login


@pytest.fixture(scope='function')
def address():
    return dict(ADDRESS)
