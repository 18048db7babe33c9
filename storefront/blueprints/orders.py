"""Order history blueprint."""
from flask import Blueprint, jsonify, request, g, current_app

from storefront.database import get_session
from storefront.middleware import require_login
from storefront.services.order_service import list_user_orders

orders_bp = Blueprint('orders', __name__, url_prefix='/api/orders')


@orders_bp.route('', methods=['GET'])
@require_login
def list_orders():
    result = list_user_orders(
        get_session(),
        g.user_id,
        page=request.args.get('page', 1, type=int),
        limit=request.args.get('limit', current_app.config.get('ORDERS_PAGE_SIZE', 10), type=int),
    )
    return jsonify({'success': True, **result})
