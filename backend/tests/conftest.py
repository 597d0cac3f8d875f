"""
Pytest fixtures for alfapos backend tests.

Provides test database setup, branch/product/user factories and an
authenticated test client.
"""

from decimal import Decimal

import pytest
from alfapos import create_app
from alfapos.extensions import db
from alfapos.models import Branch, BranchInventory, Product, User, ROLE_HEAD_OFFICE, ROLE_BRANCH_ADMIN
from alfapos.services.auth_service import hash_password

PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'BCRYPT_ROUNDS': 4,
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
def branch(db_session):
    """Branch TBB."""
    branch = Branch(code="TBB", name="Alfa Optik Tebet")
    db_session.add(branch)
    db_session.commit()
    return branch


@pytest.fixture(scope='function')
def other_branch(db_session):
    branch = Branch(code="BDG", name="Alfa Optik Bandung")
    db_session.add(branch)
    db_session.commit()
    return branch


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: product with optional stock at a branch."""
    def _make(name="Frame Rayban RB2140", code=None, price="100.00", stock=None, branch=None, **kwargs):
        product = Product(
            name=name,
            product_code=code or f"P-{name[:12]}-{db_session.query(Product).count() + 1}",
            selling_price=Decimal(price),
            **kwargs,
        )
        db_session.add(product)
        db_session.flush()
        if stock is not None:
            db_session.add(BranchInventory(product_id=product.id, branch_id=branch.id, quantity=stock))
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def stock_of(db_session):
    """Read current stock straight from the database, bypassing the identity map."""
    def _stock(product_id, branch_id):
        db_session.expire_all()
        row = db_session.query(BranchInventory).filter_by(product_id=product_id, branch_id=branch_id).first()
        return row.quantity if row else 0

    return _stock


@pytest.fixture(scope='function')
def head_office_user(db_session):
    user = User(
        username="pusat",
        password_hash=hash_password(PASSWORD),
        full_name="Admin Pusat",
        role=ROLE_HEAD_OFFICE,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def branch_admin_user(db_session, branch):
    user = User(
        username="kasir_tbb",
        password_hash=hash_password(PASSWORD),
        full_name="Kasir Tebet",
        role=ROLE_BRANCH_ADMIN,
        branch_id=branch.id,
    )
    db_session.add(user)
    db_session.commit()
    return user


def _login(client, username):
    resp = client.post("/api/auth/login", json={"username": username, "password": PASSWORD})
    assert resp.status_code == 200, resp.get_json()
    return {"Authorization": f"Bearer {resp.get_json()['token']}"}


@pytest.fixture(scope='function')
def auth_headers(client, head_office_user):
    """Bearer headers for the head office admin."""
    return _login(client, head_office_user.username)


@pytest.fixture(scope='function')
def branch_admin_headers(client, branch_admin_user):
    """Bearer headers for the TBB branch admin."""
    return _login(client, branch_admin_user.username)
