"""
Admin API blueprint.

Store settings, discount codes, fulfilment status, catalog maintenance and
dashboard stats. Every route requires an admin session.
"""
import logging
from flask import Blueprint, jsonify, request

from storefront.database import get_session
from storefront.exceptions import ValidationError
from storefront.forms.admin_forms import (
    StoreSettingsForm, GenerateDiscountForm, DiscountExpiryForm,
    ProductForm, ProductUpdateForm, OrderStatusForm,
)
from storefront.middleware import require_admin
from storefront.services import (
    settings_service, discount_service, order_service, catalog_service, admin_stats_service,
)

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')

UNSET = settings_service.UNSET


def _json_body():
    return request.get_json(silent=True) or {}


# =====================================================
# SETTINGS
# =====================================================

@admin_bp.route('/settings', methods=['GET'])
@require_admin
def get_settings():
    settings = settings_service.get_store_settings(get_session())
    return jsonify({'success': True, 'settings': settings.to_dict()})


@admin_bp.route('/settings', methods=['PATCH'])
@require_admin
def update_settings():
    data = _json_body()
    form = StoreSettingsForm.from_json(data).validate_or_raise()

    if 'defaultDiscountExpiry' in data:
        # null clears the default expiry
        default_expiry = form.default_discount_expiry.data
    else:
        default_expiry = UNSET

    settings = settings_service.update_store_settings(
        get_session(),
        nth_order_discount=form.nth_order_discount.data,
        discount_percent=form.discount_percent.data,
        default_discount_expiry=default_expiry,
    )
    return jsonify({
        'success': True,
        'message': 'Settings updated successfully',
        'settings': settings.to_dict(),
    })


# =====================================================
# DISCOUNT CODES
# =====================================================

@admin_bp.route('/discounts', methods=['GET'])
@require_admin
def list_discounts():
    status_filter = request.args.get('filter', 'all')
    if status_filter not in ('all', 'used', 'unused'):
        raise ValidationError('filter must be one of: all, used, unused')

    result = discount_service.list_discount_codes(
        get_session(),
        status_filter=status_filter,
        page=request.args.get('page', 1, type=int),
        limit=request.args.get('limit', 20, type=int),
    )
    return jsonify({'success': True, **result})


@admin_bp.route('/discounts', methods=['POST'])
@require_admin
def generate_discount():
    """
    Manually mint a code.

    discountPercent defaults to the reward percent. expiryDays defaults to the
    store's default expiry; an explicit null means no expiry.
    """
    data = _json_body()
    form = GenerateDiscountForm.from_json(data).validate_or_raise()
    session = get_session()
    settings = settings_service.get_store_settings(session)

    percent = form.discount_percent.data or settings.discount_percent
    if 'expiryDays' in data:
        expiry_days = form.expiry_days.data
    else:
        expiry_days = settings.default_discount_expiry

    discount = discount_service.create_discount_code(session, percent, expiry_days=expiry_days)
    session.commit()
    logger.info(f"[ADMIN] Generated discount code {discount.code} ({percent}%)")

    return jsonify({
        'success': True,
        'message': 'Discount code generated successfully',
        'discount': discount.to_dict(),
    }), 201


@admin_bp.route('/discounts', methods=['PATCH'])
@require_admin
def update_discount():
    form = DiscountExpiryForm.from_json(_json_body()).validate_or_raise()
    discount = discount_service.update_discount_expiry(get_session(), form.id.data, form.expiry_days.data)
    return jsonify({
        'success': True,
        'message': 'Discount updated successfully',
        'discount': discount.to_dict(include_usage=True),
    })


@admin_bp.route('/discounts', methods=['DELETE'])
@require_admin
def delete_discount():
    discount_id = request.args.get('id', type=int)
    if not discount_id:
        raise ValidationError('Discount ID is required')
    discount_service.delete_discount_code(get_session(), discount_id)
    return jsonify({'success': True, 'message': 'Discount deleted successfully'})


# =====================================================
# STATS & ORDERS
# =====================================================

@admin_bp.route('/stats', methods=['GET'])
@require_admin
def stats():
    return jsonify({'success': True, **admin_stats_service.get_admin_stats(get_session())})


@admin_bp.route('/orders', methods=['GET'])
@require_admin
def list_orders():
    result = order_service.list_orders(
        get_session(),
        status=request.args.get('status') or None,
        page=request.args.get('page', 1, type=int),
        limit=request.args.get('limit', 20, type=int),
    )
    return jsonify({'success': True, **result})


@admin_bp.route('/orders/<int:order_id>', methods=['PATCH'])
@require_admin
def update_order_status(order_id):
    form = OrderStatusForm.from_json(_json_body()).validate_or_raise()
    order = order_service.update_order_status(get_session(), order_id, form.status.data)
    return jsonify({'success': True, 'order': order.to_dict()})


# =====================================================
# PRODUCTS
# =====================================================

@admin_bp.route('/products', methods=['POST'])
@require_admin
def create_product():
    data = _json_body()
    form = ProductForm.from_json(data).validate_or_raise()
    product = catalog_service.create_product(get_session(), {
        'name': form.name.data.strip(),
        'description': form.description.data or '',
        'price': form.price.data,
        'image': form.image.data or '',
        'category': form.category.data.strip(),
        'stock': form.stock.data or 0,
        'active': form.active.data if 'active' in form.supplied_fields(data) else True,
    })
    return jsonify({'success': True, 'product': product.to_dict()}), 201


@admin_bp.route('/products/<int:product_id>', methods=['PATCH'])
@require_admin
def update_product(product_id):
    data = _json_body()
    form = ProductUpdateForm.from_json(data).validate_or_raise()

    supplied = form.supplied_fields(data)
    changes = {name: field.data for name, field in form._fields.items() if name in supplied}
    product = catalog_service.update_product(get_session(), product_id, changes)
    return jsonify({'success': True, 'product': product.to_dict()})


@admin_bp.route('/products/<int:product_id>', methods=['DELETE'])
@require_admin
def deactivate_product(product_id):
    catalog_service.deactivate_product(get_session(), product_id)
    return jsonify({'success': True, 'message': 'Product deactivated'})
