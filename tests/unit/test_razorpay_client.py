"""
Unit tests for the Razorpay client: signatures, confirmation and error mapping.
"""

import hashlib
import hmac

import pytest
import requests

from storefront.exceptions import TransientError, PaymentVerificationError
from storefront.services import razorpay_client
from storefront.services.razorpay_client import RazorpayClient


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = str(self._payload)

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f'{self.status_code} error', response=self)


@pytest.fixture
def client():
    return RazorpayClient(key_id='rzp_key', key_secret='rzp_secret', webhook_secret='wh_secret')


def _sign(secret, message):
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


class TestConstruction:

    def test_requires_credentials(self):
        with pytest.raises(ValueError):
            RazorpayClient(key_id=None, key_secret='secret')

    def test_from_config(self, app):
        gateway = RazorpayClient.from_config(app.config)
        assert gateway.key_id == 'rzp_test_key'
        assert gateway.base_url == 'https://api.razorpay.com/v1'


class TestSignatures:
    """HMAC verification of checkout callbacks and webhooks."""

    def test_valid_payment_signature(self, client):
        signature = _sign('rzp_secret', 'order_1|pay_1')
        assert client.verify_payment_signature('order_1', 'pay_1', signature) is True

    def test_signature_bound_to_order(self, client):
        signature = _sign('rzp_secret', 'order_1|pay_1')
        assert client.verify_payment_signature('order_2', 'pay_1', signature) is False

    def test_missing_signature(self, client):
        assert client.verify_payment_signature('order_1', 'pay_1', '') is False

    def test_webhook_signature(self, client):
        body = b'{"event":"payment.captured"}'
        signature = hmac.new(b'wh_secret', body, hashlib.sha256).hexdigest()
        assert client.verify_webhook_signature(body, signature) is True
        assert client.verify_webhook_signature(body + b' ', signature) is False
        assert client.verify_webhook_signature(body, None) is False

    def test_webhook_rejected_without_secret(self):
        gateway = RazorpayClient(key_id='k', key_secret='s')
        assert gateway.verify_webhook_signature(b'{}', 'anything') is False


class TestConfirmPayment:
    """confirm_payment reads the charged amount from the gateway."""

    def _stub_payment(self, monkeypatch, payment):
        calls = []

        def fake_request(method, url, **kwargs):
            calls.append((method, url))
            return FakeResponse(payload=payment)

        monkeypatch.setattr(razorpay_client.requests, 'request', fake_request)
        return calls

    def test_captured_payment(self, client, monkeypatch):
        calls = self._stub_payment(monkeypatch, {
            'id': 'pay_1', 'order_id': 'order_1', 'amount': 179820, 'status': 'captured',
        })
        confirmation = client.confirm_payment('order_1', 'pay_1', _sign('rzp_secret', 'order_1|pay_1'))

        assert confirmation.verified is True
        assert confirmation.amount == 179820
        assert confirmation.order_id == 'order_1'
        assert calls == [('GET', 'https://api.razorpay.com/v1/payments/pay_1')]

    def test_bad_signature_never_calls_gateway(self, client, monkeypatch):
        calls = self._stub_payment(monkeypatch, {})
        with pytest.raises(PaymentVerificationError):
            client.confirm_payment('order_1', 'pay_1', 'forged')
        assert calls == []

    def test_payment_for_other_order(self, client, monkeypatch):
        self._stub_payment(monkeypatch, {
            'id': 'pay_1', 'order_id': 'order_9', 'amount': 100, 'status': 'captured',
        })
        with pytest.raises(PaymentVerificationError):
            client.confirm_payment('order_1', 'pay_1', _sign('rzp_secret', 'order_1|pay_1'))

    def test_failed_payment(self, client, monkeypatch):
        self._stub_payment(monkeypatch, {
            'id': 'pay_1', 'order_id': 'order_1', 'amount': 100, 'status': 'failed',
        })
        with pytest.raises(PaymentVerificationError, match='failed'):
            client.confirm_payment('order_1', 'pay_1', _sign('rzp_secret', 'order_1|pay_1'))


class TestTransportErrors:
    """Gateway outages surface as retryable errors."""

    def test_http_error(self, client, monkeypatch):
        monkeypatch.setattr(
            razorpay_client.requests, 'request',
            lambda method, url, **kwargs: FakeResponse(status_code=502, payload={'error': 'bad gateway'}),
        )
        with pytest.raises(TransientError):
            client.create_order(10000, 'INR', 'rcpt_1')

    def test_connection_error(self, client, monkeypatch):
        def boom(method, url, **kwargs):
            raise requests.ConnectionError('connection refused')

        monkeypatch.setattr(razorpay_client.requests, 'request', boom)
        with pytest.raises(TransientError):
            client.fetch_payment('pay_1')

    def test_create_order_payload(self, client, monkeypatch):
        seen = {}

        def fake_request(method, url, **kwargs):
            seen.update(method=method, url=url, **kwargs)
            return FakeResponse(payload={'id': 'order_abc', 'amount': 10000, 'currency': 'INR'})

        monkeypatch.setattr(razorpay_client.requests, 'request', fake_request)
        order = client.create_order(10000, 'INR', 'rcpt_1', notes={'userId': '7'})

        assert order['id'] == 'order_abc'
        assert seen['method'] == 'POST'
        assert seen['url'].endswith('/orders')
        assert seen['json'] == {'amount': 10000, 'currency': 'INR', 'receipt': 'rcpt_1', 'notes': {'userId': '7'}}
        assert seen['auth'] == ('rzp_key', 'rzp_secret')
