import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "servicedesk-tests.log"))

import pytest
from fastapi.testclient import TestClient

from servicedesk.core.database import Base, engine, SessionLocal, get_db
from servicedesk.core.permissions import ADMIN_ROLE, USER_ROLE
from servicedesk.core.security import create_access_token, get_password_hash
from servicedesk.main import app
from servicedesk.models.user import Role, User
from servicedesk.services.permission_service import permission_service
from servicedesk.services.rate_limiter import rate_limiter
from servicedesk.services.token_service import token_claims


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    permission_service.seed_permission_catalog(session)
    permission_service.seed_default_roles(session)
    rate_limiter.reset()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_user(db, username, role_names=(), password="password123", is_active=True):
    roles = db.query(Role).filter(Role.name.in_(role_names)).all() if role_names else []
    user = User(
        email=f"{username}@example.com",
        username=username,
        password_hash=get_password_hash(password),
        is_active=is_active,
    )
    user.roles = roles
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(token_claims(user))}"}


@pytest.fixture
def admin_user(db):
    return make_user(db, "root", [ADMIN_ROLE])


@pytest.fixture
def plain_user(db):
    return make_user(db, "alice", [USER_ROLE])
