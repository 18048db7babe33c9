"""Payment gateway webhook event log, used for idempotent webhook handling."""
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
from storefront.database import Base, BigId
from storefront.utils.formatters import isoformat


class WebhookEventStatus:
    RECEIVED = 'RECEIVED'
    PROCESSED = 'PROCESSED'
    IGNORED = 'IGNORED'
    FAILED = 'FAILED'


class PaymentWebhookEvent(Base):
    """Raw gateway notification, stored once per dedupe key."""
    __tablename__ = 'payment_webhook_event'

    id = Column(BigId, primary_key=True, autoincrement=True)
    event_type = Column(String(50), nullable=False, index=True)
    payment_id = Column(String(100), index=True)
    remote_order_id = Column(String(100), index=True)
    payload_json = Column(JSON, nullable=False)
    dedupe_key = Column(String(64), nullable=False, unique=True)
    received_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)
    processed_at = Column(DateTime(timezone=True))
    status = Column(String(20), nullable=False, default=WebhookEventStatus.RECEIVED, index=True)
    error = Column(String(500))

    def __repr__(self):
        return f"<PaymentWebhookEvent(type='{self.event_type}', payment_id='{self.payment_id}', status='{self.status}')>"

    def to_dict(self):
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'event_type': self.event_type,
            'payment_id': self.payment_id,
            'remote_order_id': self.remote_order_id,
            'payload': self.payload_json,
            'dedupe_key': self.dedupe_key,
            'received_at': isoformat(self.received_at),
            'processed_at': isoformat(self.processed_at),
            'status': self.status,
        }

    @property
    def is_processed(self):
        """Check if event has been processed."""
        return self.status == WebhookEventStatus.PROCESSED
