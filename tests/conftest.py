import pytest
import uuid

from kalkyle import create_app
from kalkyle.database import db_session, get_session, create_all, drop_all
from kalkyle.models import UserRole
from kalkyle.services.auth_service import register_user
from kalkyle.services.catalog_service import seed_default_categories


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (in-memory SQLite)."""
    app = create_app('config.TestingConfig')
    return app


@pytest.fixture(scope='function', autouse=True)
def clean_db(app):
    """Fresh schema for every test."""
    db_session.remove()
    drop_all()
    create_all()
    yield
    db_session.remove()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session():
    """Database session for direct model/service tests."""
    session = get_session()
    yield session
    session.rollback()


def auth_headers(token):
    return {'Authorization': f'Bearer {token}'}


def register(client, email=None, password='password123', name='Test Bruker', company=None):
    """Register through the API and return id, token and headers."""
    email = email or f'user-{uuid.uuid4().hex[:8]}@test.no'
    response = client.post('/auth/register', json={
        'email': email,
        'password': password,
        'name': name,
        'company': company
    })
    assert response.status_code == 201, response.get_json()
    data = response.get_json()
    return {
        'id': data['user']['id'],
        'email': email,
        'password': password,
        'token': data['token'],
        'headers': auth_headers(data['token'])
    }


@pytest.fixture(scope='function')
def user1(client):
    """First user (own tenant)."""
    return register(client, email='user1@test.no', name='Ola Nordmann', company='Sveis AS')


@pytest.fixture(scope='function')
def user2(client):
    """Second user for isolation tests."""
    return register(client, email='user2@test.no', name='Kari Nordmann', company='Stål AS')


@pytest.fixture(scope='function')
def admin(app, client):
    """Catalog administrator."""
    with app.app_context():
        user = register_user(db_session, 'admin@test.no', 'adminpass', 'Admin', role=UserRole.ADMIN.value)
        user_id = user.id

    response = client.post('/auth/login', json={'email': 'admin@test.no', 'password': 'adminpass'})
    token = response.get_json()['token']
    return {'id': user_id, 'token': token, 'headers': auth_headers(token)}


@pytest.fixture(scope='function')
def categories(app):
    """Default categories; returns {type: id}."""
    from kalkyle.models import Category

    with app.app_context():
        seed_default_categories(db_session)
        return {c.type: c.id for c in db_session.query(Category).all()}


@pytest.fixture(scope='function')
def cost_item(client, admin, categories):
    """A labor cost item at 650 NOK per hour."""
    response = client.post('/cost-items', headers=admin['headers'], json={
        'categoryId': categories['labor'],
        'name': 'Sveiser',
        'unit': 'time',
        'unitPrice': 650
    })
    assert response.status_code == 201, response.get_json()
    return response.get_json()['item']


@pytest.fixture(scope='function')
def quote(client, user1):
    """A draft quote owned by user1."""
    response = client.post('/quotes', headers=user1['headers'], json={
        'customerName': 'Kunde AS',
        'projectName': 'Rekkverk'
    })
    assert response.status_code == 201, response.get_json()
    return response.get_json()['quote']


@pytest.fixture(scope='function')
def make_user(client):
    """Factory for extra registered users."""
    def _make(**kwargs):
        return register(client, **kwargs)
    return _make
