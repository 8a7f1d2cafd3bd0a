"""
Pytest fixtures for Mutton Hub backend tests.

Runs the app against the sql gateway on an in-memory SQLite database, so
accounts, sessions and role rows are real and no network is needed.
"""

import pytest
from muttonhub import create_app
from muttonhub.extensions import db
from muttonhub.gateway import app_gateway
from muttonhub.services import role_service


SECURITY_CODE = "test-security-code"
PASSWORD = "secret123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'GATEWAY': 'sql',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SECURITY_CODE': SECURITY_CODE,
        'BCRYPT_ROUNDS': 4,
        'ROLE_FETCH_FAIL_OPEN': True,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function', autouse=True)
def db_session(app):
    """Create fresh database (and request globals) for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def create_account(email: str, role: str | None, password: str = PASSWORD):
    """Sign up through the gateway, assign role (None = no role row), sign in."""
    gateway = app_gateway()
    identity = gateway.sign_up(email, password)
    if role:
        role_service.assign_role(identity.id, role, gateway=gateway)
    session = gateway.sign_in_with_password(email, password)
    return identity, session.access_token


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def owner(db_session):
    return create_account('owner@muttonhub.test', 'owner')


@pytest.fixture
def owner_headers(owner):
    return auth_headers(owner[1])


@pytest.fixture
def admin_headers(db_session):
    _, token = create_account('admin@muttonhub.test', 'admin')
    return auth_headers(token)


@pytest.fixture
def accountant_headers(db_session):
    _, token = create_account('accountant@muttonhub.test', 'accountant')
    return auth_headers(token)


@pytest.fixture
def buyer(client, owner_headers):
    response = client.post('/api/buyers', headers=owner_headers, json={
        'name': 'Ramesh Traders',
        'phone': '9876543210',
        'address': 'Market Road',
    })
    assert response.status_code == 201
    return response.get_json()['profile']


@pytest.fixture
def seller(client, owner_headers):
    response = client.post('/api/sellers', headers=owner_headers, json={
        'name': 'City Meat Shop',
        'phone': '9123456780',
    })
    assert response.status_code == 201
    return response.get_json()['profile']


def audit_entries(action=None, table_name=None):
    """Audit rows straight from the store, oldest first."""
    from muttonhub.models import AuditLog
    query = AuditLog.query
    if action:
        query = query.filter_by(action=action)
    if table_name:
        query = query.filter_by(table_name=table_name)
    return query.order_by(AuditLog.id.asc()).all()
