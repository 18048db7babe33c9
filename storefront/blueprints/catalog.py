"""Public catalog blueprint."""
from flask import Blueprint, jsonify, request

from storefront.database import get_session
from storefront.services import catalog_service

catalog_bp = Blueprint('catalog', __name__, url_prefix='/api/products')


@catalog_bp.route('', methods=['GET'])
def list_products():
    """
    List active products.

    Query params: category, search, page, limit
    """
    result = catalog_service.list_products(
        get_session(),
        category=request.args.get('category'),
        search=request.args.get('search'),
        page=request.args.get('page', 1, type=int),
        limit=request.args.get('limit', type=int),
    )
    return jsonify({'success': True, **result})


@catalog_bp.route('/<int:product_id>', methods=['GET'])
def get_product(product_id):
    product = catalog_service.get_product(get_session(), product_id)
    return jsonify({'success': True, 'product': product.to_dict()})
