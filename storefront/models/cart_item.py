"""Cart Item model."""
from sqlalchemy import Column, Integer, Numeric, DateTime, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storefront.database import Base, BigId


class CartItem(Base):
    """Line in a cart. price_at_add is informational; pricing always reads the live product price."""

    __tablename__ = 'cart_item'

    id = Column(BigId, primary_key=True, autoincrement=True)
    cart_id = Column(BigId, ForeignKey('cart.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(BigId, ForeignKey('product.id', ondelete='CASCADE'), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    price_at_add = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    cart = relationship('Cart', back_populates='items')
    product = relationship('Product')

    __table_args__ = (
        UniqueConstraint('cart_id', 'product_id', name='uq_cart_item_product'),
        CheckConstraint('quantity >= 1', name='check_cart_item_quantity'),
    )

    def __repr__(self):
        return f"<CartItem(cart_id={self.cart_id}, product_id={self.product_id}, quantity={self.quantity})>"
