"""Order Line model."""
from sqlalchemy import Column, String, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from storefront.database import Base, BigId
from storefront.utils.formatters import money


class OrderLine(Base):
    """Purchased item. Name, image and price are denormalized at purchase time."""

    __tablename__ = 'order_line'

    id = Column(BigId, primary_key=True, autoincrement=True)
    order_id = Column(BigId, ForeignKey('customer_order.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(BigId, ForeignKey('product.id', ondelete='SET NULL'), nullable=True)
    name = Column(String(200), nullable=False)
    image = Column(String(500), nullable=False, default='')
    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    line_total = Column(Numeric(10, 2), nullable=False)

    # Relationships
    order = relationship('Order', back_populates='lines')

    def to_dict(self):
        return {
            'productId': self.product_id,
            'name': self.name,
            'image': self.image,
            'price': money(self.unit_price),
            'quantity': self.quantity,
            'total': money(self.line_total),
        }

    def __repr__(self):
        return f"<OrderLine(order_id={self.order_id}, product_id={self.product_id}, quantity={self.quantity})>"
