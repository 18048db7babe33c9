"""Checkout Quote model - server-side record of an opened payment order."""
from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storefront.database import Base, BigId
from storefront.utils.formatters import money


class QuoteStatus:
    PENDING = 'pending'
    SETTLED = 'settled'


class CheckoutQuote(Base):
    """
    Quote handed to the payment gateway.

    Confirmation callbacks only carry gateway ids; amounts, items and the
    purchaser are always read back from this row, never from the client.
    """

    __tablename__ = 'checkout_quote'

    id = Column(BigId, primary_key=True, autoincrement=True)
    remote_order_id = Column(String(100), nullable=False, unique=True)
    user_id = Column(BigId, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)

    items = Column(JSON, nullable=False)  # [{product_id, name, price, quantity}]
    subtotal = Column(Numeric(10, 2), nullable=False)
    discount_code_id = Column(BigId, ForeignKey('discount_code.id', ondelete='SET NULL'), nullable=True)
    discount_percent = Column(Integer, nullable=False, default=0)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)
    amount_minor = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default='INR')

    shipping_address = Column(JSON, nullable=False)
    status = Column(String(20), nullable=False, default=QuoteStatus.PENDING)
    order_id = Column(BigId, ForeignKey('customer_order.id', ondelete='SET NULL'), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship('AppUser')
    discount = relationship('DiscountCode')
    order = relationship('Order')

    def to_dict(self):
        return {
            'razorpayOrderId': self.remote_order_id,
            'amount': money(self.total),
            'amountInPaise': self.amount_minor,
            'currency': self.currency,
            'items': [
                {
                    'productId': item['product_id'],
                    'name': item['name'],
                    'image': item.get('image', ''),
                    'price': float(item['price']),
                    'quantity': item['quantity'],
                }
                for item in self.items
            ],
            'subtotal': money(self.subtotal),
            'discountCode': self.discount.code if self.discount else None,
            'discountPercent': self.discount_percent,
            'discountAmount': money(self.discount_amount),
            'total': money(self.total),
            'shippingAddress': self.shipping_address,
        }

    def __repr__(self):
        return f"<CheckoutQuote(remote_order_id='{self.remote_order_id}', total={self.total}, status='{self.status}')>"
