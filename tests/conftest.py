import os

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret')
os.environ.setdefault('BCRYPT_ROUNDS', '4')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from tasktracker.auth.dependencies import get_token_service  # noqa: E402
from tasktracker.auth.jwt_handler import TokenService  # noqa: E402
from tasktracker.auth.passwords import hash_password  # noqa: E402
from tasktracker.database import Base, build_engine, get_db  # noqa: E402
from tasktracker.models.task import Task  # noqa: E402
from tasktracker.models.user import User  # noqa: E402
from tasktracker.stores.user_store import create_user  # noqa: E402

TEST_SECRET = 'test-secret'


@pytest.fixture
def engine():
    # StaticPool keeps one in-memory database shared by every session and thread.
    engine = build_engine('sqlite://', poolclass=StaticPool)
    Base.metadata.create_all(bind=engine, tables=[User.__table__, Task.__table__])
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine, tables=[Task.__table__, User.__table__])
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(secret_key=TEST_SECRET)


@pytest.fixture
def make_user(db):
    def _make_user(email: str, password: str = 'secret1') -> User:
        return create_user(email, hash_password(password), db)

    return _make_user


@pytest.fixture
def client(session_factory, token_service):
    from tasktracker.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_service] = lambda: token_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
