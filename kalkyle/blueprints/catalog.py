"""
Catalog blueprint: cost categories and cost items.

Reads are open to every authenticated user; mutations require the admin role.
"""
from flask import Blueprint, request, jsonify
from kalkyle.database import get_session
from kalkyle.exceptions import ValidationError
from kalkyle.models import CATEGORY_TYPES, NDT_METHODS, NDT_LEVELS
from kalkyle.middleware import require_auth, require_role
from kalkyle.services import catalog_service
from kalkyle.utils.validation import (
    get_json_body, parse_string, parse_number, parse_int, parse_choice, parse_id
)

catalog_bp = Blueprint('catalog', __name__)

COST_ITEM_INPUT = {
    'categoryId': ('category_id', lambda v: parse_id(v, 'categoryId')),
    'name': ('name', lambda v: parse_string(v, 'name', max_length=200)),
    'description': ('description', lambda v: parse_string(v, 'description')),
    'unit': ('unit', lambda v: parse_string(v, 'unit', max_length=32)),
    'unitPrice': ('unit_price', lambda v: parse_number(v, 'unitPrice', required=False, minimum=0)),
    'ndtMethod': ('ndt_method', lambda v: parse_choice(v, 'ndtMethod', NDT_METHODS)),
    'ndtLevel': ('ndt_level', lambda v: parse_choice(v, 'ndtLevel', NDT_LEVELS)),
    'sortOrder': ('sort_order', lambda v: parse_int(v, 'sortOrder', required=False, default=0)),
}

REQUIRED_COST_ITEM_FIELDS = {
    'category_id': 'categoryId', 'name': 'name', 'unit': 'unit', 'unit_price': 'unitPrice',
}


def _parse_cost_item(data):
    fields = {}
    for key, (column, parser) in COST_ITEM_INPUT.items():
        if key in data:
            fields[column] = parser(data[key])
    return fields


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

@catalog_bp.route('/categories', methods=['GET'])
@require_auth
def list_categories():
    categories = catalog_service.list_categories(get_session())
    return jsonify({'categories': [c.to_dict() for c in categories]})


@catalog_bp.route('/categories/grouped', methods=['GET'])
@require_auth
def list_categories_grouped():
    """Categories with their cost items nested."""
    return jsonify({'categories': catalog_service.list_categories_grouped(get_session())})


@catalog_bp.route('/categories/<int:category_id>', methods=['GET'])
@require_auth
def get_category(category_id):
    category = catalog_service.get_category(get_session(), category_id)
    return jsonify({'category': category.to_dict()})


@catalog_bp.route('/categories', methods=['POST'])
@require_role('admin')
def create_category():
    data = get_json_body(request)
    name = parse_string(data.get('name'), 'name', required=True, max_length=120)
    category_type = parse_choice(data.get('type'), 'type', CATEGORY_TYPES, required=True)
    sort_order = parse_int(data.get('sortOrder'), 'sortOrder', required=False, default=0)
    category = catalog_service.create_category(get_session(), name, category_type, sort_order)
    return jsonify({'category': category.to_dict()}), 201


@catalog_bp.route('/categories/<int:category_id>', methods=['PUT'])
@require_role('admin')
def update_category(category_id):
    data = get_json_body(request)
    fields = {
        'name': parse_string(data.get('name'), 'name', max_length=120),
        'sort_order': parse_int(data.get('sortOrder'), 'sortOrder', required=False),
    }
    if 'type' in data:
        fields['type'] = data.get('type')
    category = catalog_service.update_category(get_session(), category_id, fields)
    return jsonify({'category': category.to_dict()})


@catalog_bp.route('/categories/<int:category_id>', methods=['DELETE'])
@require_role('admin')
def delete_category(category_id):
    catalog_service.delete_category(get_session(), category_id)
    return jsonify({'message': 'Kategori slettet'})


# ---------------------------------------------------------------------------
# Cost items
# ---------------------------------------------------------------------------

@catalog_bp.route('/cost-items', methods=['GET'])
@require_auth
def list_cost_items():
    """Price list, optionally filtered by ?categoryId= or ?type=."""
    category_id = parse_id(request.args.get('categoryId'), 'categoryId')
    category_type = parse_choice(request.args.get('type'), 'type', CATEGORY_TYPES)
    items = catalog_service.list_cost_items(get_session(), category_id=category_id, category_type=category_type)
    return jsonify({'items': [item.to_dict() for item in items]})


@catalog_bp.route('/cost-items/grouped', methods=['GET'])
@require_auth
def list_cost_items_grouped():
    return jsonify({'items': catalog_service.list_cost_items_grouped(get_session())})


@catalog_bp.route('/cost-items/<int:item_id>', methods=['GET'])
@require_auth
def get_cost_item(item_id):
    item = catalog_service.get_cost_item(get_session(), item_id)
    return jsonify({'item': item.to_dict()})


@catalog_bp.route('/cost-items', methods=['POST'])
@require_role('admin')
def create_cost_item():
    fields = _parse_cost_item(get_json_body(request))
    for column, key in REQUIRED_COST_ITEM_FIELDS.items():
        if fields.get(column) is None:
            raise ValidationError(f'{key} er påkrevd', field=key)
    item = catalog_service.create_cost_item(get_session(), fields)
    return jsonify({'item': item.to_dict()}), 201


@catalog_bp.route('/cost-items/<int:item_id>', methods=['PUT'])
@require_role('admin')
def update_cost_item(item_id):
    """Partial update; required columns cannot be cleared."""
    fields = _parse_cost_item(get_json_body(request))
    for column in REQUIRED_COST_ITEM_FIELDS:
        if column in fields and fields[column] is None:
            fields.pop(column)
    item = catalog_service.update_cost_item(get_session(), item_id, fields)
    return jsonify({'item': item.to_dict()})


@catalog_bp.route('/cost-items/<int:item_id>', methods=['DELETE'])
@require_role('admin')
def delete_cost_item(item_id):
    catalog_service.delete_cost_item(get_session(), item_id)
    return jsonify({'message': 'Kostnadspost slettet'})
