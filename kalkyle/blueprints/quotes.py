"""Quotes blueprint: quote headers, lines, summary and PDF (owner-scoped)."""
from flask import Blueprint, request, jsonify, send_file, g
from kalkyle.database import get_session
from kalkyle.exceptions import ValidationError
from kalkyle.models import QUOTE_STATUSES, CATEGORY_TYPES
from kalkyle.middleware import require_auth
from kalkyle.services import quote_service
from kalkyle.services.pdf_service import generate_quote_pdf_from_db
from kalkyle.blueprints.metrics import quote_pdfs_rendered_total
from kalkyle.utils.validation import (
    get_json_body, parse_string, parse_number, parse_int, parse_date, parse_choice, parse_id
)

quotes_bp = Blueprint('quotes', __name__, url_prefix='/quotes')

# JSON key -> (column, parser)
QUOTE_INPUT = {
    'customerName': ('customer_name', lambda v: parse_string(v, 'customerName', max_length=255)),
    'customerEmail': ('customer_email', lambda v: parse_string(v, 'customerEmail', max_length=255)),
    'customerAddress': ('customer_address', lambda v: parse_string(v, 'customerAddress')),
    'projectName': ('project_name', lambda v: parse_string(v, 'projectName', max_length=255)),
    'projectDescription': ('project_description', lambda v: parse_string(v, 'projectDescription')),
    'reference': ('reference', lambda v: parse_string(v, 'reference', max_length=255)),
    'validUntil': ('valid_until', lambda v: parse_date(v, 'validUntil')),
    'status': ('status', lambda v: parse_choice(v, 'status', QUOTE_STATUSES)),
    'markupPercent': ('markup_percent', lambda v: parse_number(v, 'markupPercent', required=False,
                                                               minimum=0, default=0)),
    'notes': ('notes', lambda v: parse_string(v, 'notes')),
    'terms': ('terms', lambda v: parse_string(v, 'terms')),
}

LINE_INPUT = {
    'categoryType': ('category_type', lambda v: parse_choice(v, 'categoryType', CATEGORY_TYPES)),
    'description': ('description', lambda v: parse_string(v, 'description', max_length=500)),
    'quantity': ('quantity', lambda v: parse_number(v, 'quantity', required=False,
                                                    minimum=0, exclusive_minimum=True)),
    'unit': ('unit', lambda v: parse_string(v, 'unit', max_length=32)),
    'unitPrice': ('unit_price', lambda v: parse_number(v, 'unitPrice', required=False, minimum=0)),
    'lineMarkup': ('line_markup', lambda v: parse_number(v, 'lineMarkup', required=False, minimum=0)),
    'sortOrder': ('sort_order', lambda v: parse_int(v, 'sortOrder', required=False)),
}


def _parse_fields(data, field_map):
    """Parse the JSON keys present in data into column values."""
    fields = {}
    for key, (column, parser) in field_map.items():
        if key in data:
            fields[column] = parser(data[key])
    return fields


@quotes_bp.route('', methods=['GET'])
@require_auth
def list_quotes():
    """List the caller's quotes, optionally filtered by status."""
    status = parse_choice(request.args.get('status'), 'status', QUOTE_STATUSES)
    quotes = quote_service.list_quotes(get_session(), g.user_id, status=status)
    return jsonify({'quotes': quotes})


@quotes_bp.route('/<int:quote_id>', methods=['GET'])
@require_auth
def get_quote(quote_id):
    quote, lines = quote_service.get_quote_with_lines(get_session(), quote_id, g.user_id)
    return jsonify({
        'quote': quote.to_dict(),
        'lines': [line.to_dict() for line in lines]
    })


@quotes_bp.route('/<int:quote_id>/summary', methods=['GET'])
@require_auth
def get_summary(quote_id):
    summary = quote_service.get_quote_summary(get_session(), quote_id, g.user_id)
    return jsonify(summary.to_dict())


@quotes_bp.route('', methods=['POST'])
@require_auth
def create_quote():
    fields = _parse_fields(get_json_body(request), QUOTE_INPUT)
    quote = quote_service.create_quote(get_session(), g.user_id, fields)
    return jsonify({'quote': quote.to_dict()}), 201


@quotes_bp.route('/<int:quote_id>', methods=['PUT'])
@require_auth
def update_quote(quote_id):
    """Partial update: only keys present in the body change."""
    fields = _parse_fields(get_json_body(request), QUOTE_INPUT)
    for key, column in (('customerName', 'customer_name'), ('projectName', 'project_name')):
        if column in fields and not fields[column]:
            raise ValidationError(f'{key} er påkrevd', field=key)
    if 'status' in fields and fields['status'] is None:
        fields.pop('status')
    quote = quote_service.update_quote(get_session(), quote_id, g.user_id, fields)
    return jsonify({'quote': quote.to_dict()})


@quotes_bp.route('/<int:quote_id>', methods=['DELETE'])
@require_auth
def delete_quote(quote_id):
    quote_service.delete_quote(get_session(), quote_id, g.user_id)
    return jsonify({'message': 'Tilbud slettet'})


@quotes_bp.route('/<int:quote_id>/lines', methods=['POST'])
@require_auth
def add_line(quote_id):
    """Add a line; with costItemId the missing values are copied from the price list."""
    data = get_json_body(request)
    fields = _parse_fields(data, LINE_INPUT)
    fields.pop('sort_order', None)
    fields['cost_item_id'] = parse_id(data.get('costItemId'), 'costItemId')
    line = quote_service.add_line(get_session(), quote_id, g.user_id, fields)
    return jsonify({'line': line.to_dict()}), 201


@quotes_bp.route('/<int:quote_id>/lines/<int:line_id>', methods=['PUT'])
@require_auth
def update_line(quote_id, line_id):
    fields = _parse_fields(get_json_body(request), LINE_INPUT)
    line = quote_service.update_line(get_session(), quote_id, line_id, g.user_id, fields)
    return jsonify({'line': line.to_dict()})


@quotes_bp.route('/<int:quote_id>/lines/<int:line_id>', methods=['DELETE'])
@require_auth
def delete_line(quote_id, line_id):
    quote_service.delete_line(get_session(), quote_id, line_id, g.user_id)
    return jsonify({'message': 'Linje slettet'})


@quotes_bp.route('/<int:quote_id>/pdf', methods=['GET'])
@require_auth
def quote_pdf(quote_id):
    """Download the quote as PDF. ?detailed=true lists every line."""
    detailed = request.args.get('detailed', 'false').lower() == 'true'
    buffer, filename = generate_quote_pdf_from_db(get_session(), quote_id, g.user_id, detailed=detailed)
    quote_pdfs_rendered_total.labels(mode='detailed' if detailed else 'summary').inc()
    return send_file(
        buffer,
        mimetype='application/pdf',
        as_attachment=True,
        download_name=filename
    )
