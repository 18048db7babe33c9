"""
Webhooks blueprint for Razorpay notifications.
Capture events settle the order if the checkout callback never arrived.
"""

import logging
from flask import Blueprint, request, jsonify

from storefront.database import get_session
from storefront.services.razorpay_client import get_payment_gateway
from storefront.services.webhook_service import process_payment_webhook

logger = logging.getLogger(__name__)

webhooks_bp = Blueprint('webhooks', __name__, url_prefix='/webhooks')


@webhooks_bp.route('/razorpay', methods=['POST'])
def razorpay_webhook():
    """
    Handle Razorpay webhook notifications.

    Expected events:
    - payment.captured / order.paid: settle the checkout
    - anything else: recorded and ignored
    """
    signature = request.headers.get('X-Razorpay-Signature', '')
    if not get_payment_gateway().verify_webhook_signature(request.get_data(), signature):
        logger.warning("[WEBHOOK] Invalid Razorpay webhook signature")
        return jsonify({'success': False, 'status': 'error', 'message': 'Invalid signature'}), 401

    data = request.get_json(silent=True)
    if not data:
        logger.warning("[WEBHOOK] Empty webhook payload")
        return jsonify({'success': False, 'status': 'error', 'message': 'Empty payload'}), 400

    logger.info(f"[WEBHOOK] Received Razorpay event: {data.get('event')}")
    status, result = process_payment_webhook(
        get_session(),
        data,
        event_id=request.headers.get('X-Razorpay-Event-Id'),
    )

    body = {'success': True, 'status': status}
    if result is not None:
        body['order'] = result.to_dict()
        body['replayed'] = result.replayed
    return jsonify(body), 200
