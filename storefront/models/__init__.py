"""Models package - exports all SQLAlchemy models."""
# Accounts
from storefront.models.app_user import AppUser, UserRole

# Catalog & cart
from storefront.models.product import Product
from storefront.models.cart import Cart
from storefront.models.cart_item import CartItem

# Rewards & settlement
from storefront.models.discount_code import DiscountCode, DiscountState
from storefront.models.store_settings import StoreSettings, SETTINGS_ID
from storefront.models.order import Order, OrderStatus, PaymentStatus
from storefront.models.order_line import OrderLine
from storefront.models.checkout_quote import CheckoutQuote, QuoteStatus
from storefront.models.payment_webhook_event import PaymentWebhookEvent, WebhookEventStatus

__all__ = [
    'AppUser', 'UserRole',
    'Product', 'Cart', 'CartItem',
    'DiscountCode', 'DiscountState',
    'StoreSettings', 'SETTINGS_ID',
    'Order', 'OrderStatus', 'PaymentStatus', 'OrderLine',
    'CheckoutQuote', 'QuoteStatus',
    'PaymentWebhookEvent', 'WebhookEventStatus',
]
