"""
Pytest fixtures for cashier backend tests.

Provides test database setup, seeded users/catalog, services and test client.
"""

import pytest

from cashier import create_app
from cashier.container import get_services
from cashier.extensions import db
from cashier.models import Category, Product, User, ROLE_ADMIN, ROLE_MANAGER, ROLE_CASHIER
from cashier.services import auth_service
from cashier.services.auth_service import hash_password

TEST_PASSWORD = "secret123"


@pytest.fixture(scope='session', autouse=True)
def fast_bcrypt():
    """Cheap hashes keep the suite fast; production cost is unchanged."""
    original = auth_service.BCRYPT_ROUNDS
    auth_service.BCRYPT_ROUNDS = 4
    yield
    auth_service.BCRYPT_ROUNDS = original


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def services(db_session):
    return get_services()


def _make_user(db_session, name, email, role, is_active=True) -> User:
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
        is_active=is_active,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session):
    return _make_user(db_session, "Admin", "admin@kasir.test", ROLE_ADMIN)


@pytest.fixture(scope='function')
def manager_user(db_session):
    return _make_user(db_session, "Manager", "manager@kasir.test", ROLE_MANAGER)


@pytest.fixture(scope='function')
def cashier_user(db_session):
    return _make_user(db_session, "Cashier", "cashier@kasir.test", ROLE_CASHIER)


@pytest.fixture(scope='function')
def category(db_session):
    cat = Category(name="Minuman")
    db_session.add(cat)
    db_session.commit()
    return cat


@pytest.fixture(scope='function')
def product(db_session, category):
    """Stock 5 at 10000 cents."""
    p = Product(name="Avo Coffee", price_cents=10000, stock=5, category_id=category.id)
    db_session.add(p)
    db_session.commit()
    return p


@pytest.fixture(scope='function')
def second_product(db_session, category):
    p = Product(name="Green Tea", price_cents=2500, stock=10, category_id=category.id)
    db_session.add(p)
    db_session.commit()
    return p


def get_auth_token(client, email: str, password: str = TEST_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/v1/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.email))


@pytest.fixture(scope='function')
def manager_headers(client, manager_user):
    return auth_headers(get_auth_token(client, manager_user.email))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier_user):
    return auth_headers(get_auth_token(client, cashier_user.email))
