"""Calculations blueprint: margin-target calculations and their lines."""
from flask import Blueprint, request, jsonify, g, current_app
from kalkyle.database import get_session
from kalkyle.middleware import require_auth
from kalkyle.services import calculation_service
from kalkyle.utils.validation import get_json_body, parse_string, parse_number, parse_int, parse_id

calculations_bp = Blueprint('calculations', __name__, url_prefix='/calculations')

LINE_INPUT = {
    'description': ('description', lambda v: parse_string(v, 'description', max_length=500)),
    'quantity': ('quantity', lambda v: parse_number(v, 'quantity', required=False,
                                                    minimum=0, exclusive_minimum=True)),
    'unit': ('unit', lambda v: parse_string(v, 'unit', max_length=32)),
    'unitCost': ('unit_cost', lambda v: parse_number(v, 'unitCost', required=False, minimum=0)),
    'sortOrder': ('sort_order', lambda v: parse_int(v, 'sortOrder', required=False)),
}


def _parse_line(data):
    fields = {}
    for key, (column, parser) in LINE_INPUT.items():
        if key in data:
            fields[column] = parser(data[key])
    return fields


def _detail_response(calculation_id):
    calculation, lines, summary = calculation_service.get_calculation_detail(
        get_session(), calculation_id, g.user_id
    )
    return {
        'calculation': calculation.to_dict(),
        'lines': [line.to_dict() for line in lines],
        'summary': summary.to_dict()
    }


@calculations_bp.route('', methods=['GET'])
@require_auth
def list_calculations():
    return jsonify({'calculations': calculation_service.list_calculations(get_session(), g.user_id)})


@calculations_bp.route('/<int:calculation_id>', methods=['GET'])
@require_auth
def get_calculation(calculation_id):
    """Calculation with lines and computed totals."""
    return jsonify(_detail_response(calculation_id))


@calculations_bp.route('', methods=['POST'])
@require_auth
def create_calculation():
    data = get_json_body(request)
    calculation = calculation_service.create_calculation(
        get_session(),
        g.user_id,
        name=parse_string(data.get('name'), 'name', required=True, max_length=255),
        description=parse_string(data.get('description'), 'description'),
        target_margin_percent=parse_number(
            data.get('targetMarginPercent'), 'targetMarginPercent', required=False, minimum=0,
            default=current_app.config.get('DEFAULT_TARGET_MARGIN_PERCENT', 15)
        )
    )
    return jsonify({'calculation': calculation.to_dict()}), 201


@calculations_bp.route('/<int:calculation_id>', methods=['PUT'])
@require_auth
def update_calculation(calculation_id):
    data = get_json_body(request)
    fields = {}
    if data.get('name'):
        fields['name'] = parse_string(data['name'], 'name', max_length=255)
    if 'description' in data:
        fields['description'] = parse_string(data['description'], 'description')
    if data.get('targetMarginPercent') is not None:
        fields['target_margin_percent'] = parse_number(
            data['targetMarginPercent'], 'targetMarginPercent', minimum=0
        )
    calculation = calculation_service.update_calculation(get_session(), calculation_id, g.user_id, fields)
    return jsonify({'calculation': calculation.to_dict()})


@calculations_bp.route('/<int:calculation_id>', methods=['DELETE'])
@require_auth
def delete_calculation(calculation_id):
    calculation_service.delete_calculation(get_session(), calculation_id, g.user_id)
    return jsonify({'message': 'Kalkyle slettet'})


@calculations_bp.route('/<int:calculation_id>/lines', methods=['POST'])
@require_auth
def add_line(calculation_id):
    data = get_json_body(request)
    fields = _parse_line(data)
    fields.pop('sort_order', None)
    fields['cost_item_id'] = parse_id(data.get('costItemId'), 'costItemId')
    line = calculation_service.add_line(get_session(), calculation_id, g.user_id, fields)
    return jsonify({'line': line.to_dict()}), 201


@calculations_bp.route('/<int:calculation_id>/lines/<int:line_id>', methods=['PUT'])
@require_auth
def update_line(calculation_id, line_id):
    fields = _parse_line(get_json_body(request))
    line = calculation_service.update_line(get_session(), calculation_id, line_id, g.user_id, fields)
    return jsonify({'line': line.to_dict()})


@calculations_bp.route('/<int:calculation_id>/lines/<int:line_id>', methods=['DELETE'])
@require_auth
def delete_line(calculation_id, line_id):
    calculation_service.delete_line(get_session(), calculation_id, line_id, g.user_id)
    return jsonify({'message': 'Linje slettet'})
