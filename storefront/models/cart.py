"""Cart model - one persistent cart per user."""
from sqlalchemy import Column, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storefront.database import Base, BigId


class Cart(Base):
    """Pending selection owned by exactly one user."""

    __tablename__ = 'cart'

    id = Column(BigId, primary_key=True, autoincrement=True)
    user_id = Column(BigId, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, unique=True)
    applied_discount_id = Column(BigId, ForeignKey('discount_code.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship('AppUser')
    applied_discount = relationship('DiscountCode')
    items = relationship('CartItem', back_populates='cart', cascade='all, delete-orphan',
                         order_by='CartItem.id')

    @property
    def item_count(self):
        return sum(item.quantity for item in self.items)

    def __repr__(self):
        return f"<Cart(id={self.id}, user_id={self.user_id}, items={len(self.items)})>"
