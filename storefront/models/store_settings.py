"""Store Settings model - singleton configuration row plus the order counter."""
from sqlalchemy import Column, Integer, DateTime, CheckConstraint
from sqlalchemy.sql import func
from storefront.database import Base

SETTINGS_ID = 1


class StoreSettings(Base):
    """
    Store-wide settings for the nth-order reward scheme.

    Exactly one row exists (id = 1). total_orders only ever moves by +1,
    inside the settlement transaction, through an atomic UPDATE.
    """

    __tablename__ = 'store_settings'

    id = Column(Integer, primary_key=True, default=SETTINGS_ID)
    nth_order_discount = Column(Integer, nullable=False, default=5)
    discount_percent = Column(Integer, nullable=False, default=10)
    total_orders = Column(Integer, nullable=False, default=0)
    default_discount_expiry = Column(Integer, nullable=True)  # days
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(f'id = {SETTINGS_ID}', name='check_settings_singleton'),
        CheckConstraint('nth_order_discount >= 1', name='check_settings_nth_order'),
        CheckConstraint('discount_percent >= 1 AND discount_percent <= 100', name='check_settings_percent'),
        CheckConstraint('total_orders >= 0', name='check_settings_total_orders'),
        CheckConstraint('default_discount_expiry IS NULL OR default_discount_expiry >= 1',
                        name='check_settings_expiry'),
    )

    def to_dict(self, include_counter=True):
        data = {
            'nthOrderDiscount': self.nth_order_discount,
            'discountPercent': self.discount_percent,
            'defaultDiscountExpiry': self.default_discount_expiry,
        }
        if include_counter:
            data['totalOrders'] = self.total_orders
        return data

    def __repr__(self):
        return f"<StoreSettings(n={self.nth_order_discount}, percent={self.discount_percent}, total_orders={self.total_orders})>"
