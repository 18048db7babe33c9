"""Admin dashboard aggregates."""
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy import func, case

from storefront.models import Order, OrderLine, DiscountCode, PaymentStatus
from storefront.services.settings_service import get_store_settings
from storefront.utils.formatters import money, isoformat


def get_admin_stats(session) -> Dict[str, Any]:
    """
    Store-wide totals over completed orders plus the 10 most recent orders.

    totalOrders is the settlement counter, not a row count.
    """
    settings = get_store_settings(session)

    revenue, discount_given = (
        session.query(
            func.coalesce(func.sum(Order.total), 0),
            func.coalesce(func.sum(Order.discount_amount), 0),
        )
        .filter(Order.payment_status == PaymentStatus.COMPLETED)
        .one()
    )

    items_purchased = (
        session.query(func.coalesce(func.sum(OrderLine.quantity), 0))
        .join(Order, Order.id == OrderLine.order_id)
        .filter(Order.payment_status == PaymentStatus.COMPLETED)
        .scalar()
    )

    codes_total, codes_used = session.query(
        func.count(DiscountCode.id),
        func.coalesce(func.sum(case((DiscountCode.is_used.is_(True), 1), else_=0)), 0),
    ).one()

    recent = (
        session.query(Order)
        .filter(Order.payment_status == PaymentStatus.COMPLETED)
        .order_by(Order.created_at.desc(), Order.order_number.desc())
        .limit(10)
        .all()
    )

    return {
        'stats': {
            'totalOrders': settings.total_orders,
            'totalRevenue': money(Decimal(str(revenue))),
            'totalDiscountGiven': money(Decimal(str(discount_given))),
            'totalItemsPurchased': int(items_purchased or 0),
            'discountCodes': {
                'total': int(codes_total),
                'used': int(codes_used),
                'available': int(codes_total) - int(codes_used),
            },
            'settings': settings.to_dict(include_counter=False),
        },
        'recentOrders': [
            {
                'id': order.id,
                'orderNumber': order.order_number,
                'total': money(order.total),
                'discountAmount': money(order.discount_amount),
                'status': order.status,
                'createdAt': isoformat(order.created_at),
                'customerName': (order.shipping_address or {}).get('name') or 'N/A',
            }
            for order in recent
        ],
    }
