"""Authentication blueprint: registration, login and profile (bearer tokens)."""
from flask import Blueprint, request, jsonify, g
from kalkyle.database import get_session
from kalkyle.exceptions import ValidationError
from kalkyle.middleware import require_auth
from kalkyle.services.auth_service import register_user, authenticate, issue_token, update_profile
from kalkyle.utils.validation import get_json_body, parse_string, parse_password, is_valid_email

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


@auth_bp.route('/register', methods=['POST'])
def register():
    """Create an account; responds with a token so the client is logged in at once."""
    data = get_json_body(request)
    email = parse_string(data.get('email'), 'email', required=True, max_length=255)
    password = parse_password(data.get('password'), 'password') or ''
    name = parse_string(data.get('name'), 'name', required=True, max_length=200)
    company = parse_string(data.get('company'), 'company', max_length=200)

    if not is_valid_email(email):
        raise ValidationError('Ugyldig e-postadresse', field='email')

    user = register_user(get_session(), email, password, name, company=company)
    return jsonify({
        'message': 'Bruker opprettet',
        'token': issue_token(user),
        'user': user.to_dict()
    }), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    data = get_json_body(request)
    email = parse_string(data.get('email'), 'email', required=True)
    password = parse_password(data.get('password'), 'password', required=True)

    user = authenticate(get_session(), email, password)
    return jsonify({
        'token': issue_token(user),
        'user': user.to_dict()
    })


@auth_bp.route('/me', methods=['GET'])
@require_auth
def me():
    return jsonify({'user': g.user.to_dict()})


@auth_bp.route('/me', methods=['PUT'])
@require_auth
def update_me():
    """Update name/company; a password change needs currentPassword."""
    data = get_json_body(request)
    user = update_profile(
        get_session(),
        g.user,
        name=parse_string(data.get('name'), 'name', max_length=200),
        company=parse_string(data.get('company'), 'company', max_length=200) if 'company' in data else None,
        current_password=parse_password(data.get('currentPassword'), 'currentPassword'),
        new_password=parse_password(data.get('newPassword'), 'newPassword')
    )
    return jsonify({'user': user.to_dict()})
