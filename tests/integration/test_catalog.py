"""
Integration tests for the public product catalog.
"""

import pytest


@pytest.fixture
def catalog(make_product):
    return {
        'headphones': make_product(name='Wireless Headphones', price='4999.00', category='Electronics'),
        'keyboard': make_product(name='Mechanical Keyboard', price='5499.00', category='Electronics'),
        'tshirt': make_product(name='Organic Cotton T-Shirt', price='999.00', category='Clothing'),
        'retired': make_product(name='Retired Gadget', price='10.00', category='Gadgets', active=False),
    }


class TestProductListing:

    def test_lists_active_products_only(self, client, catalog):
        response = client.get('/api/products')

        assert response.status_code == 200
        names = {p['name'] for p in response.json['products']}
        assert names == {'Wireless Headphones', 'Mechanical Keyboard', 'Organic Cotton T-Shirt'}
        assert response.json['categories'] == ['Clothing', 'Electronics']
        assert response.json['pagination']['total'] == 3

    def test_filter_by_category(self, client, catalog):
        response = client.get('/api/products?category=Clothing')
        assert [p['name'] for p in response.json['products']] == ['Organic Cotton T-Shirt']

    def test_search_is_case_insensitive(self, client, catalog):
        response = client.get('/api/products?search=KEYBOARD')
        assert [p['name'] for p in response.json['products']] == ['Mechanical Keyboard']

    def test_pagination(self, client, catalog):
        first = client.get('/api/products?limit=2&page=1').json
        second = client.get('/api/products?limit=2&page=2').json

        assert len(first['products']) == 2
        assert len(second['products']) == 1
        assert first['pagination']['pages'] == 2

    def test_product_detail(self, client, catalog):
        product = catalog['tshirt']
        response = client.get(f'/api/products/{product.id}')
        assert response.status_code == 200
        assert response.json['product']['price'] == 999.0

    def test_inactive_product_is_hidden(self, client, catalog):
        assert client.get(f"/api/products/{catalog['retired'].id}").status_code == 404
        assert client.get('/api/products/99999').status_code == 404
