"""
Integration tests for the admin API.
"""

import pytest
from decimal import Decimal

from storefront.models import DiscountCode, Product, Cart
from storefront.services.cart_service import add_item
from storefront.services.discount_service import create_discount_code, code_pattern, apply_discount_to_cart
from storefront.services.settlement_service import settle_payment


def _code(session, percent=10, **kwargs):
    discount = create_discount_code(session, percent, **kwargs)
    session.commit()
    return discount


class TestSettings:

    def test_get_settings(self, admin_client, settings):
        response = admin_client.get('/api/admin/settings')
        assert response.json['settings'] == {
            'nthOrderDiscount': 5,
            'discountPercent': 10,
            'defaultDiscountExpiry': None,
            'totalOrders': 0,
        }

    def test_partial_update(self, admin_client, settings):
        response = admin_client.patch('/api/admin/settings', json={'nthOrderDiscount': 3})
        assert response.status_code == 200
        assert response.json['settings']['nthOrderDiscount'] == 3
        assert response.json['settings']['discountPercent'] == 10

    def test_set_and_clear_default_expiry(self, admin_client, settings):
        admin_client.patch('/api/admin/settings', json={'defaultDiscountExpiry': 14})
        assert admin_client.get('/api/admin/settings').json['settings']['defaultDiscountExpiry'] == 14

        admin_client.patch('/api/admin/settings', json={'discountPercent': 20})
        assert admin_client.get('/api/admin/settings').json['settings']['defaultDiscountExpiry'] == 14

        admin_client.patch('/api/admin/settings', json={'defaultDiscountExpiry': None})
        assert admin_client.get('/api/admin/settings').json['settings']['defaultDiscountExpiry'] is None

    @pytest.mark.parametrize('payload', [
        {'nthOrderDiscount': 0},
        {'discountPercent': 0},
        {'discountPercent': 101},
        {'defaultDiscountExpiry': 0},
    ])
    def test_rejects_invalid_values(self, admin_client, settings, payload):
        assert admin_client.patch('/api/admin/settings', json=payload).status_code == 400

    def test_counter_cannot_be_set(self, admin_client, settings):
        admin_client.patch('/api/admin/settings', json={'totalOrders': 99})
        assert admin_client.get('/api/admin/settings').json['settings']['totalOrders'] == 0


class TestDiscountAdmin:

    def test_generate_with_defaults(self, admin_client, session, settings):
        response = admin_client.post('/api/admin/discounts', json={})

        assert response.status_code == 201
        discount = response.json['discount']
        assert code_pattern('UNIBLOX').match(discount['code'])
        assert discount['discountPercent'] == 10
        assert discount['expiresAt'] is None
        assert session.query(DiscountCode).one().generated_for_order == 0

    def test_generate_uses_default_expiry(self, admin_client, session, settings):
        admin_client.patch('/api/admin/settings', json={'defaultDiscountExpiry': 7})

        with_default = admin_client.post('/api/admin/discounts', json={'discountPercent': 30}).json['discount']
        without = admin_client.post('/api/admin/discounts', json={'expiryDays': None}).json['discount']

        assert with_default['discountPercent'] == 30
        assert with_default['expiresAt'] is not None
        assert without['expiresAt'] is None

    @pytest.mark.parametrize('payload', [{'discountPercent': 0}, {'discountPercent': 150}, {'expiryDays': 0}])
    def test_generate_rejects_invalid(self, admin_client, settings, payload):
        assert admin_client.post('/api/admin/discounts', json=payload).status_code == 400

    @pytest.mark.parametrize('percent', [0, 150])
    def test_percent_out_of_range_message(self, admin_client, session, settings, percent):
        response = admin_client.post('/api/admin/discounts', json={'discountPercent': percent})

        assert response.status_code == 400
        assert response.json['message'] == 'Discount must be between 1% and 100%'
        assert session.query(DiscountCode).count() == 0

    def test_list_with_filter(self, admin_client, session, settings, customer):
        used = _code(session)
        _code(session)
        used.is_used = True
        used.used_by_id = customer.id
        session.commit()

        everything = admin_client.get('/api/admin/discounts').json
        assert everything['pagination']['total'] == 2

        only_used = admin_client.get('/api/admin/discounts?filter=used').json['discounts']
        assert [d['code'] for d in only_used] == [used.code]
        assert only_used[0]['usedBy']['email'] == customer.email

        assert len(admin_client.get('/api/admin/discounts?filter=unused').json['discounts']) == 1
        assert admin_client.get('/api/admin/discounts?filter=bogus').status_code == 400

    def test_update_expiry(self, admin_client, session, settings):
        discount = _code(session)

        response = admin_client.patch('/api/admin/discounts', json={'discountId': discount.id, 'expiryDays': 3})
        assert response.status_code == 200
        assert response.json['discount']['expiresAt'] is not None

        response = admin_client.patch('/api/admin/discounts', json={'discountId': discount.id, 'expiryDays': None})
        assert response.json['discount']['expiresAt'] is None

        assert admin_client.patch('/api/admin/discounts', json={'expiryDays': 3}).status_code == 400
        assert admin_client.patch('/api/admin/discounts', json={'discountId': 999, 'expiryDays': 3}).status_code == 404

    def test_delete_detaches_from_carts(self, admin_client, session, settings, customer, product):
        discount = _code(session)
        add_item(session, customer.id, product.id, 1)
        apply_discount_to_cart(session, customer.id, discount.code)

        response = admin_client.delete(f'/api/admin/discounts?id={discount.id}')

        assert response.status_code == 200
        session.expire_all()
        assert session.query(DiscountCode).count() == 0
        assert session.query(Cart).filter_by(user_id=customer.id).one().applied_discount_id is None

    def test_delete_requires_id(self, admin_client, settings):
        assert admin_client.delete('/api/admin/discounts').status_code == 400
        assert admin_client.delete('/api/admin/discounts?id=999').status_code == 404


class TestStatsAndOrders:

    def _place_orders(self, session, customer, product, open_checkout, gateway, count, quantity=2, code=None):
        results = []
        for _ in range(count):
            remote_order_id = open_checkout(customer.id, [(product.id, quantity)], code=code)
            payment_id = gateway.capture(remote_order_id)
            results.append(settle_payment(session, remote_order_id, payment_id,
                                          gateway.payments[payment_id]['amount']))
        return results

    def test_stats(self, admin_client, session, settings, customer, make_product, open_checkout, gateway):
        product = make_product(stock=100)
        self._place_orders(session, customer, product, open_checkout, gateway, 5)
        _code(session, 50)
        reward = session.query(DiscountCode).filter(DiscountCode.generated_for_order == 5).one()
        self._place_orders(session, customer, product, open_checkout, gateway, 1, quantity=1, code=reward.code)

        stats = admin_client.get('/api/admin/stats').json

        assert stats['stats']['totalOrders'] == 6
        assert stats['stats']['totalItemsPurchased'] == 11
        assert stats['stats']['totalRevenue'] == 10889.1
        assert stats['stats']['totalDiscountGiven'] == 99.9
        assert stats['stats']['discountCodes'] == {'total': 2, 'used': 1, 'available': 1}
        assert stats['stats']['settings']['nthOrderDiscount'] == 5
        assert len(stats['recentOrders']) == 6
        assert stats['recentOrders'][0]['customerName'] == 'Asha Rao'

    def test_list_orders_and_update_status(self, admin_client, session, settings, customer, product,
                                           open_checkout, gateway):
        [result] = self._place_orders(session, customer, product, open_checkout, gateway, 1)

        listing = admin_client.get('/api/admin/orders').json
        assert listing['orders'][0]['customer']['email'] == customer.email

        response = admin_client.patch(f'/api/admin/orders/{result.order_id}', json={'status': 'shipped'})
        assert response.status_code == 200
        assert response.json['order']['status'] == 'shipped'
        assert response.json['order']['total'] == 1998.0

        assert admin_client.get('/api/admin/orders?status=shipped').json['pagination']['total'] == 1
        assert admin_client.patch(f'/api/admin/orders/{result.order_id}', json={'status': 'lost'}).status_code == 400
        assert admin_client.patch('/api/admin/orders/999', json={'status': 'shipped'}).status_code == 404


class TestProductAdmin:

    def test_create_product(self, admin_client, session):
        response = admin_client.post('/api/admin/products', json={
            'name': 'Yoga Mat Premium',
            'description': 'Non-slip mat',
            'price': 1499,
            'category': 'Fitness',
            'stock': 55,
        })

        assert response.status_code == 201
        product = session.get(Product, response.json['product']['id'])
        assert product.price == Decimal('1499.00')
        assert product.active is True

    @pytest.mark.parametrize('payload', [
        {'price': 10, 'category': 'Misc'},
        {'name': 'Thing', 'price': -1, 'category': 'Misc'},
        {'name': 'Thing', 'price': 10, 'category': 'Misc', 'stock': -5},
    ])
    def test_create_rejects_invalid(self, admin_client, payload):
        assert admin_client.post('/api/admin/products', json=payload).status_code == 400

    def test_partial_update(self, admin_client, session, product):
        response = admin_client.patch(f'/api/admin/products/{product.id}', json={'price': 899.5, 'stock': 3})

        assert response.status_code == 200
        session.expire_all()
        updated = session.get(Product, product.id)
        assert updated.price == Decimal('899.50')
        assert updated.stock == 3
        assert updated.name == 'Wireless Headphones'
        assert updated.active is True

    def test_deactivate(self, admin_client, client, session, product):
        assert admin_client.delete(f'/api/admin/products/{product.id}').status_code == 200
        session.expire_all()
        assert session.get(Product, product.id).active is False
        assert client.get(f'/api/products/{product.id}').status_code == 404

    def test_reactivate(self, admin_client, session, make_product):
        hidden = make_product(name='Comeback', active=False)
        response = admin_client.patch(f'/api/admin/products/{hidden.id}', json={'isActive': True})
        assert response.json['product']['isActive'] is True
