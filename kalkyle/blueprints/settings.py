"""Settings blueprint: the caller's company profile and quote defaults."""
from flask import Blueprint, request, jsonify, g
from kalkyle.database import get_session
from kalkyle.middleware import require_auth
from kalkyle.services.settings_service import get_settings, update_settings
from kalkyle.utils.validation import get_json_body, parse_string, parse_number, parse_int

settings_bp = Blueprint('settings', __name__, url_prefix='/settings')

TEXT_FIELDS = {
    'companyName': ('company_name', 200),
    'orgNumber': ('org_number', 50),
    'address': ('address', 255),
    'postalCode': ('postal_code', 20),
    'city': ('city', 120),
    'phone': ('phone', 50),
    'email': ('email', 255),
    'website': ('website', 255),
    'logoUrl': ('logo_url', 500),
    'defaultTerms': ('default_terms', None),
}


@settings_bp.route('', methods=['GET'])
@require_auth
def get_company_settings():
    settings = get_settings(get_session(), g.user_id)
    return jsonify({'settings': settings.to_dict()})


@settings_bp.route('', methods=['PUT'])
@require_auth
def update_company_settings():
    """
    Partial update of the caller's settings.

    Changes apply to quotes created afterwards and to every summary's VAT;
    terms and validity already copied into quotes stay as they are.
    """
    data = get_json_body(request)
    fields = {}
    for key, (column, max_length) in TEXT_FIELDS.items():
        if key in data:
            fields[column] = parse_string(data[key], key, max_length=max_length)

    if data.get('defaultValidityDays') is not None:
        fields['default_validity_days'] = parse_int(data['defaultValidityDays'], 'defaultValidityDays', minimum=1)
    if data.get('vatPercent') is not None:
        fields['vat_percent'] = parse_number(data['vatPercent'], 'vatPercent', minimum=0)

    settings = update_settings(get_session(), g.user_id, fields)
    return jsonify({'settings': settings.to_dict()})
