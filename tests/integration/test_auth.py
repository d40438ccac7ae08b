"""
Integration tests for authentication and authorization.
"""

import jwt
from datetime import datetime, timedelta, timezone

from kalkyle.models import AppUser, CompanySettings


class TestRegistration:
    """Test user registration flow."""

    def test_register_creates_user_and_settings(self, client, session):
        response = client.post('/auth/register', json={
            'email': 'Ny@Firma.no',
            'password': 'hemmelig',
            'name': 'Ny Bruker',
            'company': 'Firma AS'
        })
        assert response.status_code == 201
        data = response.get_json()
        assert data['token']
        assert data['user']['email'] == 'ny@firma.no'
        assert data['user']['role'] == 'user'

        user = session.query(AppUser).filter_by(email='ny@firma.no').first()
        settings = session.query(CompanySettings).filter_by(owner_id=user.id).first()
        assert settings.company_name == 'Firma AS'
        assert settings.vat_percent == 25
        assert settings.default_validity_days == 30

    def test_duplicate_email_is_conflict(self, client, user1):
        response = client.post('/auth/register', json={
            'email': 'USER1@test.no',
            'password': 'password123',
            'name': 'Duplikat'
        })
        assert response.status_code == 409
        assert response.get_json()['status'] == 'error'

    def test_short_password_rejected(self, client):
        response = client.post('/auth/register', json={
            'email': 'kort@test.no', 'password': '123', 'name': 'Kort'
        })
        assert response.status_code == 400
        assert response.get_json()['field'] == 'password'

    def test_invalid_email_rejected(self, client):
        response = client.post('/auth/register', json={
            'email': 'ikke-epost', 'password': 'password123', 'name': 'X'
        })
        assert response.status_code == 400
        assert response.get_json()['field'] == 'email'

    def test_missing_name_rejected(self, client):
        response = client.post('/auth/register', json={
            'email': 'navn@test.no', 'password': 'password123'
        })
        assert response.status_code == 400
        assert response.get_json()['field'] == 'name'


class TestLogin:

    def test_login_success(self, client, user1):
        response = client.post('/auth/login', json={'email': 'user1@test.no', 'password': 'password123'})
        assert response.status_code == 200
        data = response.get_json()
        assert data['user']['id'] == user1['id']
        assert data['token']

    def test_wrong_password(self, client, user1):
        response = client.post('/auth/login', json={'email': 'user1@test.no', 'password': 'feil'})
        assert response.status_code == 401

    def test_unknown_email(self, client):
        response = client.post('/auth/login', json={'email': 'ingen@test.no', 'password': 'password123'})
        assert response.status_code == 401


class TestTokens:

    def test_missing_token_is_401(self, client):
        response = client.get('/quotes')
        assert response.status_code == 401
        assert response.get_json()['error']

    def test_garbage_token_is_403(self, client):
        response = client.get('/quotes', headers={'Authorization': 'Bearer not-a-token'})
        assert response.status_code == 403

    def test_expired_token_is_403(self, app, client, user1):
        expired = jwt.encode(
            {'user_id': user1['id'], 'role': 'user',
             'exp': datetime.now(timezone.utc) - timedelta(minutes=1)},
            app.config['JWT_SECRET'],
            algorithm='HS256'
        )
        response = client.get('/quotes', headers={'Authorization': f'Bearer {expired}'})
        assert response.status_code == 403

    def test_wrong_secret_is_403(self, client, user1):
        forged = jwt.encode({'user_id': user1['id'], 'role': 'admin'}, 'another-secret-key-that-is-long-enough', algorithm='HS256')
        response = client.get('/quotes', headers={'Authorization': f'Bearer {forged}'})
        assert response.status_code == 403

    def test_token_claims(self, app, user1):
        payload = jwt.decode(user1['token'], app.config['JWT_SECRET'], algorithms=['HS256'])
        assert payload['user_id'] == user1['id']
        assert payload['role'] == 'user'
        lifetime = payload['exp'] - payload['iat']
        assert lifetime == 7 * 24 * 3600


class TestProfile:

    def test_me(self, client, user1):
        response = client.get('/auth/me', headers=user1['headers'])
        assert response.status_code == 200
        assert response.get_json()['user']['name'] == 'Ola Nordmann'

    def test_update_name_and_company(self, client, user1):
        response = client.put('/auth/me', headers=user1['headers'], json={'name': 'Ola N.', 'company': 'Nytt AS'})
        assert response.status_code == 200
        user = response.get_json()['user']
        assert user['name'] == 'Ola N.'
        assert user['company'] == 'Nytt AS'

    def test_change_password_requires_current(self, client, user1):
        response = client.put('/auth/me', headers=user1['headers'], json={'newPassword': 'nyttpassord'})
        assert response.status_code == 400

        response = client.put('/auth/me', headers=user1['headers'], json={
            'currentPassword': 'password123', 'newPassword': 'nyttpassord'
        })
        assert response.status_code == 200

        response = client.post('/auth/login', json={'email': 'user1@test.no', 'password': 'nyttpassord'})
        assert response.status_code == 200


class TestPasswordTypes:
    """Passwords sent as JSON numbers are rejected with 400, not 500."""

    def test_register_with_number_password(self, client):
        response = client.post('/auth/register', json={
            'email': 'tall@test.no', 'password': 12345678, 'name': 'Tall'
        })
        assert response.status_code == 400
        assert response.get_json()['field'] == 'password'

    def test_login_with_number_password(self, client, user1):
        response = client.post('/auth/login', json={'email': 'user1@test.no', 'password': 12345678})
        assert response.status_code == 400
        assert response.get_json()['field'] == 'password'

    def test_login_without_password(self, client, user1):
        response = client.post('/auth/login', json={'email': 'user1@test.no'})
        assert response.status_code == 400
        assert response.get_json()['field'] == 'password'

    def test_update_me_with_number_passwords(self, client, user1):
        response = client.put('/auth/me', headers=user1['headers'], json={
            'currentPassword': 'password123', 'newPassword': 87654321
        })
        assert response.status_code == 400
        assert response.get_json()['field'] == 'newPassword'

        response = client.put('/auth/me', headers=user1['headers'], json={
            'currentPassword': 12345678, 'newPassword': 'nyttpassord'
        })
        assert response.status_code == 400
        assert response.get_json()['field'] == 'currentPassword'

    def test_password_whitespace_is_kept(self, client):
        client.post('/auth/register', json={
            'email': 'mellomrom@test.no', 'password': ' hemmelig ', 'name': 'Mellomrom'
        })
        response = client.post('/auth/login', json={'email': 'mellomrom@test.no', 'password': 'hemmelig'})
        assert response.status_code == 401
        response = client.post('/auth/login', json={'email': 'mellomrom@test.no', 'password': ' hemmelig '})
        assert response.status_code == 200
