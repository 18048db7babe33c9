"""Product model."""
from sqlalchemy import Column, String, Text, Boolean, Integer, Numeric, DateTime, CheckConstraint
from sqlalchemy.sql import func
from storefront.database import Base, BigId
from storefront.utils.formatters import money, isoformat


class Product(Base):
    """Catalog item. Stock is decremented only by order settlement."""

    __tablename__ = 'product'

    id = Column(BigId, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default='')
    price = Column(Numeric(10, 2), nullable=False)
    image = Column(String(500), nullable=False, default='')
    category = Column(String(100), nullable=False, index=True)
    stock = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('stock >= 0', name='check_product_stock_non_negative'),
        CheckConstraint('price >= 0', name='check_product_price_non_negative'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'price': money(self.price),
            'image': self.image,
            'category': self.category,
            'stock': self.stock,
            'isActive': self.active,
            'createdAt': isoformat(self.created_at),
        }

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', stock={self.stock})>"
