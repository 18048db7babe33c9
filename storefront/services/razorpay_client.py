"""Razorpay API client for checkout payment orders."""
import hashlib
import hmac
from collections import namedtuple
from typing import Any, Dict, Optional

import requests
from flask import current_app

from storefront.exceptions import TransientError, PaymentVerificationError

# amount is in minor units (paise)
PaymentConfirmation = namedtuple('PaymentConfirmation', ['verified', 'payment_id', 'order_id', 'amount', 'status'])

SETTLED_PAYMENT_STATUSES = ('captured', 'authorized')


class RazorpayClient:
    """Thin wrapper over the Razorpay REST API."""

    BASE_URL = "https://api.razorpay.com/v1"

    def __init__(self, key_id: Optional[str] = None, key_secret: Optional[str] = None,
                 webhook_secret: Optional[str] = None, base_url: Optional[str] = None):
        """
        Initialize Razorpay client.

        Args:
            key_id: Public key id (also handed to the browser checkout widget)
            key_secret: Secret used for API auth and payment signatures
            webhook_secret: Secret configured on the Razorpay webhook
        """
        if not key_id or not key_secret:
            raise ValueError("RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET are required")

        self.key_id = key_id
        self.key_secret = key_secret
        self.webhook_secret = webhook_secret
        self.base_url = (base_url or self.BASE_URL).rstrip('/')
        self.auth = (key_id, key_secret)

    @classmethod
    def from_config(cls, config) -> 'RazorpayClient':
        return cls(
            key_id=config.get('RAZORPAY_KEY_ID'),
            key_secret=config.get('RAZORPAY_KEY_SECRET'),
            webhook_secret=config.get('RAZORPAY_WEBHOOK_SECRET'),
            base_url=config.get('RAZORPAY_API_URL'),
        )

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = requests.request(method, url, auth=self.auth, timeout=10, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.HTTPError as e:
            current_app.logger.error(f"[RZP] {method} {path} failed: {e.response.status_code} {e.response.text}")
            raise TransientError("Payment gateway error, please retry") from e
        except requests.RequestException as e:
            current_app.logger.error(f"[RZP] {method} {path} unreachable: {e}")
            raise TransientError("Payment gateway unavailable, please retry") from e

    def create_order(self, amount_minor: int, currency: str, receipt: str,
                     notes: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        Open a remote payment order.

        Returns:
            Dict with at least `id`, `amount` and `currency`
        """
        payload = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }
        current_app.logger.info(f"[RZP] Creating order {receipt} for {amount_minor} {currency}")
        data = self._request('POST', '/orders', json=payload)
        current_app.logger.info(f"[RZP] Order created: {data.get('id')}")
        return data

    def fetch_payment(self, payment_id: str) -> Dict[str, Any]:
        return self._request('GET', f'/payments/{payment_id}')

    def verify_payment_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """HMAC-SHA256 of "order_id|payment_id" keyed with the API secret."""
        if not signature:
            return False
        expected = hmac.new(
            self.key_secret.encode('utf-8'),
            f"{order_id}|{payment_id}".encode('utf-8'),
            hashlib.sha256,
        ).hexdigest()
        return hmac.compare_digest(expected, signature)

    def confirm_payment(self, order_id: str, payment_id: str, signature: str) -> PaymentConfirmation:
        """
        Verify the checkout callback and read the charged amount from the gateway.

        Raises:
            PaymentVerificationError: bad signature, foreign order or unpaid status
            TransientError: gateway unreachable
        """
        if not self.verify_payment_signature(order_id, payment_id, signature):
            current_app.logger.warning(f"[RZP] Invalid signature for payment {payment_id}")
            raise PaymentVerificationError("Invalid payment signature")

        payment = self.fetch_payment(payment_id)
        if payment.get('order_id') != order_id:
            raise PaymentVerificationError("Payment does not belong to this order")

        status = payment.get('status')
        if status not in SETTLED_PAYMENT_STATUSES:
            raise PaymentVerificationError(f"Payment not completed (status: {status})")

        return PaymentConfirmation(
            verified=True,
            payment_id=payment_id,
            order_id=order_id,
            amount=int(payment.get('amount', 0)),
            status=status,
        )

    def verify_webhook_signature(self, body: bytes, signature: Optional[str]) -> bool:
        """HMAC-SHA256 of the raw webhook body keyed with the webhook secret."""
        if not self.webhook_secret or not signature:
            return False
        expected = hmac.new(self.webhook_secret.encode('utf-8'), body, hashlib.sha256).hexdigest()
        return hmac.compare_digest(expected, signature)


def get_payment_gateway():
    """
    Return the gateway registered on the app, building the Razorpay client lazily.

    Tests register their own gateway under app.extensions['payment_gateway'].
    """
    gateway = current_app.extensions.get('payment_gateway')
    if gateway is None:
        try:
            gateway = RazorpayClient.from_config(current_app.config)
        except ValueError as e:
            current_app.logger.error(f"[RZP] Gateway not configured: {e}")
            raise TransientError("Payment gateway not configured") from e
        current_app.extensions['payment_gateway'] = gateway
    return gateway
