"""
Payment gateway webhook processing (idempotent).

Every delivery is recorded once in payment_webhook_event under a dedupe key.
Capture events settle through the same transaction as the checkout callback,
so whichever of the two arrives second is answered as a replay.
"""
import hashlib
import json
import logging
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from storefront.models import PaymentWebhookEvent, WebhookEventStatus
from storefront.exceptions import StoreError, NotFoundError, ConflictError, ValidationError
from storefront.services.settlement_service import settle_payment
from storefront.utils.dates import utcnow

logger = logging.getLogger(__name__)

SETTLING_EVENTS = ('payment.captured', 'order.paid')


def build_dedupe_key(event_type: str, payment_id: Optional[str], payload: Dict[str, Any],
                     event_id: Optional[str] = None) -> str:
    """Gateway event id when provided, else a hash over the event content."""
    if event_id:
        components = ['id', event_id]
    else:
        components = [event_type or '', payment_id or '', json.dumps(payload, sort_keys=True)]
    return hashlib.sha256(':'.join(components).encode()).hexdigest()


def _payment_entity(payload: Dict[str, Any]) -> Dict[str, Any]:
    return ((payload.get('payload') or {}).get('payment') or {}).get('entity') or {}


def process_payment_webhook(session, payload: Dict[str, Any],
                            event_id: Optional[str] = None) -> Tuple[str, Any]:
    """
    Record and handle one webhook delivery.

    Returns:
        (event status, SettlementResult or None)

    Raises:
        ValidationError: payload without an event type
        TransientError, FatalError: settlement did not complete; the event is
            left FAILED and the gateway's retry reprocesses it
    """
    event_type = payload.get('event')
    if not event_type:
        raise ValidationError('Webhook payload missing event type')

    payment = _payment_entity(payload)
    payment_id = payment.get('id')
    remote_order_id = payment.get('order_id')
    dedupe_key = build_dedupe_key(event_type, payment_id, payload, event_id)

    event = session.query(PaymentWebhookEvent).filter_by(dedupe_key=dedupe_key).first()
    # RECEIVED means an earlier attempt never finished; settlement is
    # idempotent on the payment id so it is safe to run again
    if event and event.status not in (WebhookEventStatus.FAILED, WebhookEventStatus.RECEIVED):
        logger.info(f"[WEBHOOK] Already received: {dedupe_key[:16]}... ({event.status})")
        return event.status, None

    if event is None:
        event = PaymentWebhookEvent(
            event_type=event_type,
            payment_id=payment_id,
            remote_order_id=remote_order_id,
            payload_json=payload,
            dedupe_key=dedupe_key,
            status=WebhookEventStatus.RECEIVED,
        )
        try:
            session.add(event)
            session.commit()
        except IntegrityError:
            # Concurrent delivery of the same event
            session.rollback()
            logger.warning(f"[WEBHOOK] Dedupe conflict (race): {dedupe_key[:16]}...")
            return WebhookEventStatus.RECEIVED, None
    event_pk = event.id

    if event_type not in SETTLING_EVENTS or not payment_id or not remote_order_id:
        _finish(session, event_pk, WebhookEventStatus.IGNORED)
        logger.info(f"[WEBHOOK] Ignored {event_type} (payment {payment_id})")
        return WebhookEventStatus.IGNORED, None

    try:
        result = settle_payment(session, remote_order_id, payment_id, payment.get('amount'))
    except NotFoundError:
        _finish(session, event_pk, WebhookEventStatus.IGNORED, 'No checkout for this order')
        return WebhookEventStatus.IGNORED, None
    except ConflictError as e:
        # Captured payment that cannot become an order; needs a refund
        logger.error(f"[WEBHOOK] Payment {payment_id} could not be settled: {e.message}")
        _finish(session, event_pk, WebhookEventStatus.FAILED, e.message)
        return WebhookEventStatus.FAILED, None
    except StoreError as e:
        _finish(session, event_pk, WebhookEventStatus.FAILED, e.message)
        raise
    except Exception as e:
        session.rollback()
        _finish(session, event_pk, WebhookEventStatus.FAILED, str(e) or type(e).__name__)
        raise

    _finish(session, event_pk, WebhookEventStatus.PROCESSED)
    return WebhookEventStatus.PROCESSED, result


def _finish(session, event_pk: int, status: str, error: Optional[str] = None) -> None:
    event = session.get(PaymentWebhookEvent, event_pk)
    event.status = status
    event.error = error[:500] if error else None
    event.processed_at = utcnow()
    session.commit()
