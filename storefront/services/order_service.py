"""Order history and fulfilment status."""
import logging
import math
from typing import Any, Dict, Optional

from storefront.models import Order, OrderStatus
from storefront.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _paginate(query, page: int, limit: int) -> Dict[str, Any]:
    page = max(page, 1)
    limit = max(min(limit, 100), 1)
    total = query.count()
    orders = (query
              .order_by(Order.created_at.desc(), Order.order_number.desc())
              .offset((page - 1) * limit)
              .limit(limit)
              .all())
    return {
        'orders': orders,
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'pages': math.ceil(total / limit) if total else 0,
        },
    }


def list_user_orders(session, user_id: int, page: int = 1, limit: int = 10) -> Dict[str, Any]:
    """The purchaser's own orders, newest first."""
    result = _paginate(session.query(Order).filter(Order.user_id == user_id), page, limit)
    result['orders'] = [order.to_dict() for order in result['orders']]
    return result


def list_orders(session, status: Optional[str] = None, page: int = 1, limit: int = 20) -> Dict[str, Any]:
    """All orders for the admin panel, optionally filtered by fulfilment status."""
    query = session.query(Order)
    if status:
        if status not in OrderStatus.ALL:
            raise ValidationError(f'Unknown order status: {status}')
        query = query.filter(Order.status == status)

    result = _paginate(query, page, limit)
    orders = []
    for order in result['orders']:
        data = order.to_dict()
        data['customer'] = order.user.to_dict() if order.user else None
        orders.append(data)
    result['orders'] = orders
    return result


def update_order_status(session, order_id: int, status: str) -> Order:
    """
    Change fulfilment status. Items, amounts and the payment reference of a
    settled order are never edited.
    """
    if status not in OrderStatus.ALL:
        raise ValidationError(f'Unknown order status: {status}')

    order = session.get(Order, order_id)
    if not order:
        raise NotFoundError('Order not found')

    previous = order.status
    order.status = status
    session.commit()
    logger.info(f"[ORDERS] Order #{order.order_number}: {previous} -> {status}")
    return order
