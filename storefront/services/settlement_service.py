"""
Order settlement transaction.

Turns one confirmed payment into exactly one immutable order. Everything
between allocating the order number and committing runs in a single database
transaction: the order counter, stock, the applied discount code, the cart,
the quote and the optional nth-order reward code either all change or none do.

Shared counters are only moved through conditional UPDATEs:

    store_settings.total_orders = total_orders + 1   (row lock, serializes settlements)
    product.stock = stock - qty WHERE stock >= qty    (never negative)
    discount_code.is_used = true WHERE is_used = false (single redemption)

The gateway payment id is the idempotency key. A repeated confirmation gets
the original result back with replayed=True and causes no side effects.
"""
import logging
from collections import namedtuple
from typing import Optional

from sqlalchemy.exc import IntegrityError, OperationalError

from storefront.models import (
    AppUser, CheckoutQuote, DiscountCode, Order, OrderLine, Product,
    StoreSettings, SETTINGS_ID, QuoteStatus, OrderStatus, PaymentStatus,
)
from storefront.exceptions import (
    StoreError, ValidationError, NotFoundError, FatalError, TransientError,
    InsufficientStockError, DiscountCodeError, DuplicatePaymentError,
    CartChangedError, PaymentMismatchError,
)
from storefront.services.cart_service import get_cart, price_cart, clear_cart
from storefront.services.discount_service import create_discount_code, redeem_discount_code
from storefront.services.pricing_service import to_decimal, round_money
from storefront.services.settings_service import get_store_settings
from storefront.services.cache_service import invalidate_catalog
from storefront.services.email_service import send_order_confirmation
from storefront.blueprints.metrics import (
    orders_settled_total, reward_codes_issued_total,
    settlement_replays_total, settlement_failures_total,
)
from storefront.utils.dates import utcnow, is_expired
from storefront.utils.formatters import money

logger = logging.getLogger(__name__)


class SettlementResult(namedtuple('SettlementResult', [
    'order_id', 'order_number', 'total', 'status', 'payment_id', 'reward_code', 'replayed',
])):
    """Outcome of settle_payment. reward_code is the serialized code or None."""
    __slots__ = ()

    def to_dict(self):
        return {
            'orderId': self.order_id,
            'orderNumber': self.order_number,
            'total': money(self.total),
            'status': self.status,
            'paymentId': self.payment_id,
        }


def settle_payment(
    session,
    remote_order_id: str,
    payment_id: str,
    amount_minor: int,
    user_id: Optional[int] = None,
    now=None,
) -> SettlementResult:
    """
    Settle a verified payment against its stored checkout quote.

    Args:
        session: Database session
        remote_order_id: Gateway order id returned by create_checkout
        payment_id: Gateway payment id (idempotency key)
        amount_minor: Amount the gateway reports as charged, in minor units
        user_id: Authenticated purchaser, None for webhook deliveries
        now: Clock override

    Returns:
        SettlementResult

    Raises:
        ValidationError: missing payment details
        NotFoundError: unknown quote, or quote owned by another user
        ConflictError: amount/cart mismatch, stock exhausted, discount already
            redeemed, or payment id reused for another checkout
        TransientError: database unavailable; safe to retry with the same payment id
        FatalError: invariant violated; nothing was committed
    """
    if not remote_order_id or not payment_id:
        raise ValidationError('Payment details missing')
    now = now or utcnow()

    replay = _replay_result(session, remote_order_id, payment_id)
    if replay:
        return replay

    quote = session.query(CheckoutQuote).filter_by(remote_order_id=remote_order_id).first()
    if quote is None or (user_id is not None and quote.user_id != user_id):
        raise NotFoundError('Checkout not found')
    if quote.status == QuoteStatus.SETTLED:
        raise DuplicatePaymentError('This checkout has already been paid')
    if amount_minor is None or int(amount_minor) != quote.amount_minor:
        settlement_failures_total.labels(reason='PaymentMismatchError').inc()
        logger.warning(
            f"[SETTLE] Amount mismatch for {remote_order_id}: "
            f"charged={amount_minor} quoted={quote.amount_minor}"
        )
        raise PaymentMismatchError()

    quote_id = quote.id
    get_store_settings(session)

    try:
        result = _settle_locked(session, quote_id, remote_order_id, payment_id, now)

    except IntegrityError as e:
        session.rollback()
        # A concurrent settlement inserted the same payment reference first
        replay = _replay_result(session, remote_order_id, payment_id)
        if replay:
            return replay
        settlement_failures_total.labels(reason='IntegrityError').inc()
        logger.exception(f"[SETTLE] Integrity violation settling payment {payment_id}")
        raise FatalError() from e

    except StoreError as e:
        session.rollback()
        settlement_failures_total.labels(reason=type(e).__name__).inc()
        log = logger.error if isinstance(e, FatalError) else logger.warning
        log(f"[SETTLE] Payment {payment_id} for {remote_order_id} rejected: {e.message}")
        raise

    except OperationalError as e:
        session.rollback()
        settlement_failures_total.labels(reason='TransientError').inc()
        logger.error(f"[SETTLE] Database unavailable settling payment {payment_id}: {e}")
        raise TransientError() from e

    except Exception as e:
        session.rollback()
        settlement_failures_total.labels(reason='FatalError').inc()
        logger.exception(f"[SETTLE] Unexpected error settling payment {payment_id}")
        raise FatalError() from e

    if not result.replayed:
        _after_commit(session, result)
    return result


def _settle_locked(session, quote_id, remote_order_id, payment_id, now) -> SettlementResult:
    # Allocate the order number. The row lock is held until commit/rollback.
    updated = session.query(StoreSettings).filter(StoreSettings.id == SETTINGS_ID).update(
        {StoreSettings.total_orders: StoreSettings.total_orders + 1},
        synchronize_session=False,
    )
    if updated != 1:
        raise FatalError('Store settings are missing')

    # Anything loaded before the lock may predate a concurrent commit
    session.expire_all()
    settings = session.query(StoreSettings).filter_by(id=SETTINGS_ID).one()
    order_number = settings.total_orders

    if session.query(Order.id).filter_by(payment_reference=payment_id).first():
        session.rollback()
        return _replay_result(session, remote_order_id, payment_id)

    quote = session.get(CheckoutQuote, quote_id)
    if quote.status == QuoteStatus.SETTLED:
        raise DuplicatePaymentError('This checkout has already been paid')

    _verify_cart_matches_quote(quote, price_cart(get_cart(session, quote.user_id), now), now)

    for item in quote.items:
        _decrement_stock(session, item)

    order = Order(
        order_number=order_number,
        user_id=quote.user_id,
        subtotal=quote.subtotal,
        discount_code=quote.discount.code if quote.discount else None,
        discount_percent=quote.discount_percent,
        discount_amount=quote.discount_amount,
        total=quote.total,
        payment_reference=payment_id,
        remote_order_id=remote_order_id,
        payment_status=PaymentStatus.COMPLETED,
        status=OrderStatus.PROCESSING,
        shipping_address=quote.shipping_address,
    )
    for item in quote.items:
        price = to_decimal(item['price'])
        order.lines.append(OrderLine(
            product_id=item['product_id'],
            name=item['name'],
            image=item.get('image', ''),
            unit_price=price,
            quantity=item['quantity'],
            line_total=round_money(price * item['quantity']),
        ))
    session.add(order)
    session.flush()

    if quote.discount_code_id is not None:
        redeem_discount_code(session, quote.discount_code_id, quote.user_id, order.id, now)

    clear_cart(session, quote.user_id, commit=False)

    quote.status = QuoteStatus.SETTLED
    quote.order_id = order.id

    reward = None
    if order_number % settings.nth_order_discount == 0:
        reward = create_discount_code(
            session,
            settings.discount_percent,
            expiry_days=settings.default_discount_expiry,
            generated_for_order=order_number,
            now=now,
        )

    result = SettlementResult(
        order_id=order.id,
        order_number=order_number,
        total=quote.total,
        status=order.status,
        payment_id=payment_id,
        reward_code=reward.to_dict() if reward else None,
        replayed=False,
    )
    session.commit()

    logger.info(
        f"[SETTLE] Order #{order_number} settled (payment {payment_id}, total {result.total})"
        + (f", reward {reward.code}" if reward else "")
    )
    return result


def _verify_cart_matches_quote(quote: CheckoutQuote, priced: dict, now) -> None:
    """Raise unless the live cart still prices exactly to the stored quote."""
    if priced['unavailable']:
        raise CartChangedError()

    quoted = sorted(
        (int(item['product_id']), int(item['quantity']), to_decimal(item['price']))
        for item in quote.items
    )
    live = sorted(
        (line['product_id'], line['quantity'], line['price'])
        for line in priced['lines']
    )
    if quoted != live:
        raise CartChangedError()

    live_discount_id = priced['discount'].id if priced['discount'] else None
    if live_discount_id != quote.discount_code_id:
        if quote.discount is not None and (quote.discount.is_used or is_expired(quote.discount.expires_at, now)):
            raise DiscountCodeError('The applied discount code is no longer valid')
        raise CartChangedError()

    if round_money(priced['total']) != round_money(quote.total):
        raise CartChangedError()


def _decrement_stock(session, item: dict) -> None:
    quantity = int(item['quantity'])
    updated = session.query(Product).filter(
        Product.id == item['product_id'],
        Product.active.is_(True),
        Product.stock >= quantity,
    ).update({Product.stock: Product.stock - quantity}, synchronize_session=False)

    if updated != 1:
        available = session.query(Product.stock).filter(Product.id == item['product_id']).scalar()
        raise InsufficientStockError(item['name'], quantity, available)


def _replay_result(session, remote_order_id: str, payment_id: str) -> Optional[SettlementResult]:
    """Result of an earlier settlement of this payment id, if any."""
    order = session.query(Order).filter_by(payment_reference=payment_id).first()
    if order is None:
        return None
    if order.remote_order_id != remote_order_id:
        raise DuplicatePaymentError()

    reward = session.query(DiscountCode).filter_by(generated_for_order=order.order_number).first()
    settlement_replays_total.inc()
    logger.info(f"[SETTLE] Replay of payment {payment_id} -> order #{order.order_number}")

    return SettlementResult(
        order_id=order.id,
        order_number=order.order_number,
        total=order.total,
        status=order.status,
        payment_id=payment_id,
        reward_code=reward.to_dict() if reward else None,
        replayed=True,
    )


def _after_commit(session, result: SettlementResult) -> None:
    """Side effects that must never undo or block a committed order."""
    orders_settled_total.inc()
    if result.reward_code:
        reward_codes_issued_total.inc()

    invalidate_catalog()

    try:
        order = session.get(Order, result.order_id)
        user = session.get(AppUser, order.user_id)
        reward = result.reward_code or {}
        send_order_confirmation(
            user.email,
            user.name,
            order.to_dict(),
            reward_code=reward.get('code'),
            reward_percent=reward.get('discountPercent'),
        )
    except Exception as e:
        logger.exception(f"[SETTLE] Post-commit notification failed for order #{result.order_number}: {e}")
