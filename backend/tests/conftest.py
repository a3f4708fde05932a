"""
Pytest fixtures for Toko Kelontong backend tests.

Provides test database setup, tenant isolation fixtures, and test client.
"""

from decimal import Decimal

import pytest

from toko import create_app
from toko.extensions import carts, db
from toko.models import Product, Supplier, Tenant, User
from toko.services.auth_service import hash_password
from toko.services.principal_service import Principal
from toko.services import session_service

PASSWORD = "rahasia123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SESSION_RESOLVE_BACKOFF': 0,
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
        carts.clear_all()

        yield db.session

        # Cleanup after test
        db.session.rollback()
        carts.clear_all()


@pytest.fixture(scope='session')
def password_hash():
    """One bcrypt hash shared by fixture users."""
    return hash_password(PASSWORD)


def make_user(db_session, password_hash, email, role, tenant=None, full_name=None) -> User:
    user = User(
        tenant_id=tenant.id if tenant else None,
        email=email,
        full_name=full_name or email.split("@")[0].title(),
        password_hash=password_hash,
        role=role,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


def make_product(db_session, tenant, name, sell_price, stock, barcode=None, min_stock=0,
                 purchase_price="0") -> Product:
    product = Product(
        tenant_id=tenant.id,
        name=name,
        barcode=barcode,
        sell_price=Decimal(sell_price),
        purchase_price=Decimal(purchase_price),
        stock=stock,
        min_stock=min_stock,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def tenant_a(db_session):
    """Create Tenant A (first store)."""
    tenant = Tenant(name="Toko A - Sumber Makmur", subdomain="toko-a", status="active")
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def tenant_b(db_session):
    """Create Tenant B (second store)."""
    tenant = Tenant(name="Toko B - Berkah Jaya", subdomain="toko-b", status="active")
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def super_admin(db_session, password_hash):
    return make_user(db_session, password_hash, "admin@toko.local", "super_admin", full_name="Super Admin")


@pytest.fixture(scope='function')
def owner_a(db_session, password_hash, tenant_a):
    return make_user(db_session, password_hash, "owner_a@toko.local", "owner", tenant_a, "Owner A")


@pytest.fixture(scope='function')
def kasir_a(db_session, password_hash, tenant_a):
    return make_user(db_session, password_hash, "kasir_a@toko.local", "kasir", tenant_a, "Kasir A")


@pytest.fixture(scope='function')
def owner_b(db_session, password_hash, tenant_b):
    return make_user(db_session, password_hash, "owner_b@toko.local", "owner", tenant_b, "Owner B")


@pytest.fixture(scope='function')
def product_a(db_session, tenant_a):
    """Product A: stock 5, price 10000."""
    return make_product(db_session, tenant_a, "Product A", "10000", 5, barcode="A-001", purchase_price="8000")


@pytest.fixture(scope='function')
def product_b(db_session, tenant_a):
    """Product B: stock 1, price 25000."""
    return make_product(db_session, tenant_a, "Product B", "25000", 1, barcode="B-001", purchase_price="20000")


@pytest.fixture(scope='function')
def foreign_product(db_session, tenant_b):
    """Product belonging to Tenant B."""
    return make_product(db_session, tenant_b, "Produk Tenant B", "5000", 10, barcode="X-001")


@pytest.fixture(scope='function')
def supplier_a(db_session, tenant_a):
    supplier = Supplier(tenant_id=tenant_a.id, name="CV Sumber Rejeki", phone="0812")
    db_session.add(supplier)
    db_session.commit()
    return supplier


def open_session(user) -> tuple[int, str]:
    """Create a session for ``user``; returns (session_id, token)."""
    session, token = session_service.create_session(user.id)
    return session.id, token


def principal_for(user, session_id: int = 0) -> Principal:
    return Principal(
        user_id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        tenant_id=user.tenant_id,
        tenant_status="active" if user.tenant_id else None,
        session_id=session_id,
    )


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
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
def owner_headers(client, owner_a):
    return auth_headers(get_auth_token(client, owner_a.email))


@pytest.fixture(scope='function')
def kasir_headers(client, kasir_a):
    return auth_headers(get_auth_token(client, kasir_a.email))


@pytest.fixture(scope='function')
def admin_headers(client, super_admin):
    return auth_headers(get_auth_token(client, super_admin.email))
