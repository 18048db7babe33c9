"""
Checkout blueprint.

POST opens a payment order for the current cart; PUT confirms the payment and
settles the order. The PUT body only carries gateway ids and the signature:
amounts and items always come from the stored quote.
"""
from flask import Blueprint, jsonify, request, g, current_app

from storefront.database import get_session
from storefront.forms.store_forms import ShippingAddressForm, ConfirmPaymentForm
from storefront.middleware import require_login
from storefront.services.checkout_service import create_checkout
from storefront.services.settlement_service import settle_payment
from storefront.services.razorpay_client import get_payment_gateway

checkout_bp = Blueprint('checkout', __name__, url_prefix='/api/checkout')


@checkout_bp.route('', methods=['POST'])
@require_login
def start_checkout():
    data = request.get_json(silent=True) or {}
    form = ShippingAddressForm.from_json(data.get('shippingAddress')).validate_or_raise()

    quote = create_checkout(get_session(), g.user_id, form.to_address(), get_payment_gateway())
    return jsonify({
        'success': True,
        'order': quote.to_dict(),
        'razorpayKey': current_app.config.get('RAZORPAY_KEY_ID'),
    }), 201


@checkout_bp.route('', methods=['PUT'])
@require_login
def confirm_checkout():
    form = ConfirmPaymentForm.from_json(request.get_json(silent=True)).validate_or_raise()

    confirmation = get_payment_gateway().confirm_payment(
        form.razorpay_order_id.data,
        form.razorpay_payment_id.data,
        form.razorpay_signature.data,
    )
    result = settle_payment(
        get_session(),
        remote_order_id=confirmation.order_id,
        payment_id=confirmation.payment_id,
        amount_minor=confirmation.amount,
        user_id=g.user_id,
    )

    return jsonify({
        'success': True,
        'message': 'Order already placed' if result.replayed else 'Order placed successfully',
        'order': result.to_dict(),
        'newDiscountCode': result.reward_code,
        'replayed': result.replayed,
    }), 200 if result.replayed else 201
