"""
Pytest fixtures for RetailOps backend tests.

Provides an in-memory application, a per-test table wipe, store/user
factories and bearer headers for a user.
"""

import io

import pytest
from openpyxl import Workbook

from retailops import create_app
from retailops.extensions import db
from retailops.models import Store, User, UserStoreAccess
from retailops.permissions import default_permissions_for
from retailops.services import session_service
from retailops.services.auth_service import hash_password
from retailops.services.rokar_import_schema import EXPENSE_CATEGORIES, HEADERS


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'IMPORT_PREVIEW_LIMIT': 50,
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
def make_store(db_session):
    """Factory: make_store("MG Road", brand="Acme", city="Pune")."""
    def _make(name, brand="Acme", city="Pune", owner_id=None):
        store = Store(name=name, brand=brand, city=city, owner_id=owner_id)
        db_session.add(store)
        db_session.commit()
        return store
    return _make


@pytest.fixture(scope='function')
def make_user(db_session):
    """
    Factory for users with role-default permissions.

    stores: iterable of store ids (member) or a mapping store_id -> bool.
    permissions: explicit overrides merged over the role defaults.
    """
    def _make(email, role="STAFF", stores=(), assigned_store_id=None, permissions=None,
              name=None, is_active=True):
        record = default_permissions_for(role)
        record.update(permissions or {})
        user = User(
            email=email.lower(),
            name=name or email.split("@")[0].title(),
            role=role,
            assigned_store_id=assigned_store_id,
            permissions=record,
            password_hash=hash_password(PASSWORD),
            is_active=is_active,
        )
        db_session.add(user)
        db_session.flush()

        memberships = stores.items() if isinstance(stores, dict) else ((s, True) for s in stores)
        for store_id, is_member in memberships:
            db_session.add(UserStoreAccess(user_id=user.id, store_id=store_id, is_member=is_member))
        db_session.commit()
        return user
    return _make


@pytest.fixture(scope='function')
def headers_for(db_session):
    """Factory: bearer headers for a user (session created directly)."""
    def _headers(user):
        _, token = session_service.create_session(user_id=user.id)
        return auth_headers(token)
    return _headers


@pytest.fixture(scope='function')
def store_a(make_store):
    return make_store("Store A", city="Pune")


@pytest.fixture(scope='function')
def store_b(make_store):
    return make_store("Store B", city="Mumbai")


@pytest.fixture(scope='function')
def admin(make_user):
    return make_user("admin@retailops.test", role="ADMIN")


@pytest.fixture(scope='function')
def super_admin(make_user):
    return make_user("root@retailops.test", role="SUPER_ADMIN")


@pytest.fixture(scope='function')
def manager_a(make_user, store_a):
    return make_user("manager.a@retailops.test", role="MANAGER", stores=[store_a.id])


@pytest.fixture(scope='function')
def staff_a(make_user, store_a):
    return make_user("staff.a@retailops.test", role="STAFF", stores=[store_a.id])


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


LEDGER_HEADER_ROW = list(HEADERS.values()) + list(EXPENSE_CATEGORIES) + [f"STAFF {i}" for i in range(1, 8)]


def ledger_row(**values):
    """A data row aligned with LEDGER_HEADER_ROW; keys are header labels."""
    return [values.get(label) for label in LEDGER_HEADER_ROW]


def build_workbook(data_rows, header_row=None, banner="ROKAR MARCH") -> bytes:
    """In-memory .xlsx: banner row, header row, then data rows."""
    wb = Workbook()
    ws = wb.active
    ws.append([banner])
    ws.append(header_row if header_row is not None else LEDGER_HEADER_ROW)
    for row in data_rows:
        ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
