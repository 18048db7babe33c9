"""Cart blueprint. Every endpoint acts on the logged-in user's cart."""
from flask import Blueprint, jsonify, request, g

from storefront.database import get_session
from storefront.forms.store_forms import AddToCartForm, UpdateCartItemForm, ApplyDiscountForm
from storefront.middleware import require_login
from storefront.services import cart_service, discount_service

cart_bp = Blueprint('cart', __name__, url_prefix='/api/cart')


@cart_bp.route('', methods=['GET'])
@require_login
def view_cart():
    return jsonify({'success': True, 'cart': cart_service.get_cart_view(get_session(), g.user_id)})


@cart_bp.route('', methods=['POST'])
@require_login
def add_to_cart():
    form = AddToCartForm.from_json(request.get_json(silent=True)).validate_or_raise()
    item_count = cart_service.add_item(get_session(), g.user_id, form.product_id.data, form.quantity.data)
    return jsonify({'success': True, 'message': 'Item added to cart', 'itemCount': item_count})


@cart_bp.route('', methods=['DELETE'])
@require_login
def clear_cart():
    cart_service.clear_cart(get_session(), g.user_id)
    return jsonify({'success': True, 'message': 'Cart cleared'})


@cart_bp.route('/<int:product_id>', methods=['PATCH'])
@require_login
def update_item(product_id):
    form = UpdateCartItemForm.from_json(request.get_json(silent=True)).validate_or_raise()
    cart_service.update_item_quantity(get_session(), g.user_id, product_id, form.quantity.data)
    return jsonify({'success': True, 'message': 'Cart updated'})


@cart_bp.route('/<int:product_id>', methods=['DELETE'])
@require_login
def remove_item(product_id):
    cart_service.remove_item(get_session(), g.user_id, product_id)
    return jsonify({'success': True, 'message': 'Item removed from cart'})


@cart_bp.route('/discount', methods=['POST'])
@require_login
def apply_discount():
    form = ApplyDiscountForm.from_json(request.get_json(silent=True)).validate_or_raise()
    discount = discount_service.apply_discount_to_cart(get_session(), g.user_id, form.code.data)
    return jsonify({
        'success': True,
        'message': f'Discount code applied! {discount.discount_percent}% off',
        'discount': {'code': discount.code, 'percent': discount.discount_percent},
    })


@cart_bp.route('/discount', methods=['DELETE'])
@require_login
def remove_discount():
    discount_service.remove_discount_from_cart(get_session(), g.user_id)
    return jsonify({'success': True, 'message': 'Discount removed'})
