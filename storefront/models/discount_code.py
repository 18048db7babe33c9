"""Discount Code model - single-use reward/coupon codes."""
import enum
from sqlalchemy import Column, String, Boolean, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storefront.database import Base, BigId
from storefront.utils.dates import is_expired
from storefront.utils.formatters import isoformat


class DiscountState(str, enum.Enum):
    """Derived lifecycle state. Never stored."""
    AVAILABLE = 'available'
    REDEEMED = 'redeemed'
    EXPIRED = 'expired'


class DiscountCode(Base):
    """
    Single-use percentage discount.

    Codes are minted automatically for every Nth order or manually by an
    administrator (generated_for_order = 0). The unused -> used transition
    happens exactly once, inside order settlement.
    """

    __tablename__ = 'discount_code'

    id = Column(BigId, primary_key=True, autoincrement=True)
    code = Column(String(32), nullable=False, unique=True)
    discount_percent = Column(Integer, nullable=False, default=10)
    is_used = Column(Boolean, nullable=False, default=False, index=True)
    used_by_id = Column(BigId, ForeignKey('app_user.id', ondelete='SET NULL'), nullable=True)
    used_at = Column(DateTime(timezone=True), nullable=True)
    redeemed_order_id = Column(BigId, ForeignKey('customer_order.id', ondelete='SET NULL'), nullable=True)
    generated_for_order = Column(Integer, nullable=False, default=0)
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    used_by = relationship('AppUser')

    __table_args__ = (
        CheckConstraint('discount_percent >= 1 AND discount_percent <= 100', name='check_discount_percent_range'),
    )

    @property
    def is_expired(self):
        return is_expired(self.expires_at)

    @property
    def is_valid(self):
        """Usable on a cart: not redeemed and not expired."""
        return not self.is_used and not self.is_expired

    @property
    def state(self):
        if self.is_used:
            return DiscountState.REDEEMED
        if self.is_expired:
            return DiscountState.EXPIRED
        return DiscountState.AVAILABLE

    def to_dict(self, include_usage=False):
        data = {
            'id': self.id,
            'code': self.code,
            'discountPercent': self.discount_percent,
            'expiresAt': isoformat(self.expires_at),
        }
        if include_usage:
            data.update({
                'isUsed': self.is_used,
                'isExpired': self.is_expired,
                'state': self.state.value,
                'usedBy': self.used_by.to_dict() if self.used_by else None,
                'usedAt': isoformat(self.used_at),
                'generatedForOrder': self.generated_for_order,
                'createdAt': isoformat(self.created_at),
            })
        return data

    def __repr__(self):
        return f"<DiscountCode(code='{self.code}', percent={self.discount_percent}, used={self.is_used})>"
