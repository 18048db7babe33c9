"""
Integration tests for signup, login and session handling.
"""

import pytest

from storefront.models import AppUser


class TestSignup:

    def test_signup_starts_session(self, client, session):
        response = client.post('/api/auth/signup', json={
            'name': 'New Shopper',
            'email': 'New.Shopper@Test.com',
            'password': 'secret123',
        })

        assert response.status_code == 201
        assert response.json['user']['email'] == 'new.shopper@test.com'
        assert response.json['user']['role'] == 'customer'

        me = client.get('/api/auth/me')
        assert me.status_code == 200
        assert me.json['user']['name'] == 'New Shopper'

        user = session.query(AppUser).filter_by(email='new.shopper@test.com').one()
        assert user.check_password('secret123')

    def test_duplicate_email(self, client, customer):
        response = client.post('/api/auth/signup', json={
            'name': 'Copy Cat',
            'email': 'customer@test.com',
            'password': 'secret123',
        })
        assert response.status_code == 409
        assert response.json['success'] is False

    @pytest.mark.parametrize('payload, message', [
        ({'name': 'A', 'email': 'a@test.com', 'password': 'secret123'}, 'Name must be at least 2 characters'),
        ({'name': 'Valid Name', 'email': 'not-an-email', 'password': 'secret123'}, 'Invalid email address'),
        ({'name': 'Valid Name', 'email': 'v@test.com', 'password': '123'}, 'Password must be at least 6 characters'),
    ])
    def test_validation(self, client, payload, message):
        response = client.post('/api/auth/signup', json=payload)
        assert response.status_code == 400
        assert response.json['message'] == message


class TestLogin:

    def test_login_and_logout(self, client, customer):
        response = client.post('/api/auth/login', json={
            'email': 'customer@test.com', 'password': 'password123',
        })
        assert response.status_code == 200
        assert response.json['user']['id'] == customer.id

        assert client.get('/api/auth/me').status_code == 200
        assert client.post('/api/auth/logout').status_code == 200
        assert client.get('/api/auth/me').status_code == 401

    def test_wrong_password(self, client, customer):
        response = client.post('/api/auth/login', json={
            'email': 'customer@test.com', 'password': 'nope-nope',
        })
        assert response.status_code == 401
        assert response.json['message'] == 'Invalid email or password'

    def test_inactive_user_cannot_login(self, client, session, customer):
        customer.active = False
        session.commit()

        response = client.post('/api/auth/login', json={
            'email': 'customer@test.com', 'password': 'password123',
        })
        assert response.status_code == 401

    def test_anonymous_is_rejected(self, client):
        assert client.get('/api/auth/me').status_code == 401
        assert client.get('/api/cart').status_code == 401
        assert client.get('/api/orders').status_code == 401


class TestAccessControl:

    def test_customer_cannot_reach_admin(self, customer_client):
        response = customer_client.get('/api/admin/settings')
        assert response.status_code == 403

    def test_anonymous_admin_is_401(self, client):
        assert client.get('/api/admin/stats').status_code == 401

    def test_admin_allowed(self, admin_client):
        assert admin_client.get('/api/admin/settings').status_code == 200


class TestHealth:

    def test_health(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.json['database'] == 'connected'

    def test_cache_health_degraded_when_disabled(self, client):
        response = client.get('/health/cache')
        assert response.status_code == 200
        assert response.json['status'] == 'degraded'

    def test_metrics_endpoint(self, client):
        response = client.get('/metrics')
        assert response.status_code == 200
        assert b'orders_settled_total' in response.data
