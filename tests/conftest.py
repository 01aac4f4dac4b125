import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from todo_api.core.config import Settings
from todo_api.core.security import create_access_token
from todo_api.db.session import create_db_engine
from todo_api.main import create_app
from todo_api.models.user import User
from todo_api.services.oauth import ProviderProfile


class FakeOAuthClient:
    """Stands in for Google: every code maps to a profile registered by the test."""
    provider = "google"

    def __init__(self):
        self.profiles = {}

    def authorization_url(self, state: str = "state") -> str:
        return "https://accounts.example.com/auth?state=" + state

    def fetch_profile(self, code: str) -> ProviderProfile:
        from todo_api.core.exceptions import ProviderError, ValidationFailed

        if not code:
            raise ValidationFailed("Code not found")
        if code not in self.profiles:
            raise ProviderError("Failed to exchange token")
        return self.profiles[code]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        SECRET_KEY="test-secret",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def engine(settings):
    engine = create_db_engine(settings)
    yield engine
    engine.dispose()


@pytest.fixture
def oauth_client():
    return FakeOAuthClient()


@pytest.fixture
def app(settings, engine, oauth_client):
    return create_app(settings=settings, engine=engine, oauth_client=oauth_client)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(app, engine):
    # Depends on app so the schema and role catalog exist
    with Session(engine) as session:
        yield session


@pytest.fixture
def make_user(engine):
    counter = {"n": 0}

    def _make_user(email=None, username=None):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=email or f"user{n}@example.com",
            username=username or f"user{n}",
            provider_user_id=f"google-{n}",
            provider="google",
        )
        with Session(engine) as session:
            session.add(user)
            session.commit()
            session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers(settings):
    def _auth_headers(user):
        token = create_access_token(subject=user.id, settings=settings)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def alice(app, make_user):
    return make_user(email="alice@example.com", username="Alice")


@pytest.fixture
def bob(app, make_user):
    return make_user(email="bob@example.com", username="Bob")


@pytest.fixture
def carol(app, make_user):
    return make_user(email="carol@example.com", username="Carol")
