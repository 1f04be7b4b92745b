"""
Pytest fixtures for PDV backend tests.

Provides an in-memory application, a per-test table wipe, two shop tenants
with their staff, two resellers, an admin, and bearer-token helpers that
mint real tokens with the configured secret.
"""

import pytest

from pdv import create_app
from pdv.extensions import db
from pdv.models import Tenant, User, Product, Customer, ROLE_ADMIN, ROLE_RESELLER, ROLE_USER
from pdv.services.auth_service import hash_password
from pdv.services.token_service import issue_token, verify_token

TEST_SECRET = "test-secret-key-with-enough-length-for-hs256"
TEST_PASSWORD = "Password123!"


def make_app(database_uri: str = "sqlite:///:memory:"):
    return create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': database_uri,
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'JWT_SECRET': TEST_SECRET,
        'BCRYPT_ROUNDS': 4,
        'REGISTRATION_ALLOWED_ROLES': {"user"},
    })


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = make_app()

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


def token_for(user: User) -> str:
    return issue_token(user.id, user.tenant_id, user.role, TEST_SECRET)


def headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


def claims_for(user: User):
    return verify_token(token_for(user), TEST_SECRET)


def _user(db_session, email, role, tenant_id):
    user = User(
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
        tenant_id=tenant_id,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session):
    return _user(db_session, "admin@pdv.local", ROLE_ADMIN, None)


@pytest.fixture(scope='function')
def reseller(db_session):
    return _user(db_session, "reseller@partner.com", ROLE_RESELLER, "reseller-workspace-1")


@pytest.fixture(scope='function')
def reseller_b(db_session):
    return _user(db_session, "reseller-b@partner.com", ROLE_RESELLER, "reseller-workspace-2")


@pytest.fixture(scope='function')
def tenant_a(db_session, reseller):
    """Shop A, owned by `reseller`."""
    tenant = Tenant(name="Shop A - Padaria", reseller_id=reseller.id, business_type="bakery")
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def tenant_b(db_session):
    """Shop B, owned by the platform."""
    tenant = Tenant(name="Shop B - Mercado")
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def user_a(db_session, tenant_a):
    return _user(db_session, "cashier@shop-a.com", ROLE_USER, tenant_a.id)


@pytest.fixture(scope='function')
def user_b(db_session, tenant_b):
    return _user(db_session, "cashier@shop-b.com", ROLE_USER, tenant_b.id)


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return headers_for(admin_user)


@pytest.fixture(scope='function')
def reseller_headers(reseller):
    return headers_for(reseller)


@pytest.fixture(scope='function')
def reseller_b_headers(reseller_b):
    return headers_for(reseller_b)


@pytest.fixture(scope='function')
def user_a_headers(user_a):
    return headers_for(user_a)


@pytest.fixture(scope='function')
def user_b_headers(user_b):
    return headers_for(user_b)


def add_product(db_session, tenant_id, name, price, stock):
    product = Product(tenant_id=tenant_id, name=name, price=price, stock_quantity=stock)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_a(db_session, tenant_a):
    """Coffee in shop A: 10.00 with 5 in stock."""
    return add_product(db_session, tenant_a.id, "Coffee 500g", 1000, 5)


@pytest.fixture(scope='function')
def product_a2(db_session, tenant_a):
    """Bread in shop A: 2.50 with 10 in stock."""
    return add_product(db_session, tenant_a.id, "Bread", 250, 10)


@pytest.fixture(scope='function')
def product_b(db_session, tenant_b):
    return add_product(db_session, tenant_b.id, "Rice 5kg", 2500, 20)


@pytest.fixture(scope='function')
def customer_a(db_session, tenant_a):
    customer = Customer(tenant_id=tenant_a.id, name="Maria Souza", email="maria@example.com")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def customer_b(db_session, tenant_b):
    customer = Customer(tenant_id=tenant_b.id, name="Joao Lima")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def auth_headers():
    """Callable: user -> Authorization header dict."""
    return headers_for


@pytest.fixture(scope='function')
def claims_of():
    """Callable: user -> verified Claims, as the request layer would see them."""
    return claims_for
