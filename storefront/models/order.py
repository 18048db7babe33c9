"""Order model - immutable settlement record."""
from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey, CheckConstraint, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storefront.database import Base, BigId
from storefront.utils.formatters import money, isoformat


class OrderStatus:
    """Fulfilment status. The only order field that changes after settlement."""
    PENDING = 'pending'
    PROCESSING = 'processing'
    SHIPPED = 'shipped'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'

    ALL = (PENDING, PROCESSING, SHIPPED, DELIVERED, CANCELLED)


class PaymentStatus:
    PENDING = 'pending'
    COMPLETED = 'completed'
    FAILED = 'failed'


class Order(Base):
    """
    Settled order.

    Line items and pricing are captured at settlement and never edited.
    payment_reference is the gateway payment id and is unique, so the same
    payment can never produce two orders.
    """

    __tablename__ = 'customer_order'

    id = Column(BigId, primary_key=True, autoincrement=True)
    order_number = Column(Integer, nullable=False, unique=True)
    user_id = Column(BigId, ForeignKey('app_user.id'), nullable=False, index=True)

    subtotal = Column(Numeric(10, 2), nullable=False)
    discount_code = Column(String(32), nullable=True)
    discount_percent = Column(Integer, nullable=False, default=0)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)

    payment_reference = Column(String(100), nullable=False, unique=True)
    remote_order_id = Column(String(100), nullable=False, index=True)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING, index=True)
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING)

    shipping_address = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship('AppUser')
    lines = relationship('OrderLine', back_populates='order', cascade='all, delete-orphan',
                         order_by='OrderLine.id')

    __table_args__ = (
        CheckConstraint('subtotal >= 0', name='check_order_subtotal'),
        CheckConstraint('total >= 0', name='check_order_total'),
        CheckConstraint('discount_percent >= 0 AND discount_percent <= 100', name='check_order_discount_percent'),
        CheckConstraint("status IN ('pending', 'processing', 'shipped', 'delivered', 'cancelled')",
                        name='check_order_status'),
        CheckConstraint("payment_status IN ('pending', 'completed', 'failed')", name='check_order_payment_status'),
    )

    @property
    def item_count(self):
        return sum(line.quantity for line in self.lines)

    def to_dict(self):
        return {
            'id': self.id,
            'orderNumber': self.order_number,
            'items': [line.to_dict() for line in self.lines],
            'subtotal': money(self.subtotal),
            'discountCode': self.discount_code,
            'discountPercent': self.discount_percent,
            'discountAmount': money(self.discount_amount),
            'total': money(self.total),
            'status': self.status,
            'paymentStatus': self.payment_status,
            'paymentId': self.payment_reference,
            'shippingAddress': self.shipping_address,
            'createdAt': isoformat(self.created_at),
        }

    def __repr__(self):
        return f"<Order(number={self.order_number}, total={self.total}, status='{self.status}')>"
