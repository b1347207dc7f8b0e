import os

# Print embedded metrics to stdout instead of probing for a CloudWatch agent
os.environ.setdefault("AWS_EMF_ENVIRONMENT", "Local")
os.environ.setdefault("LOG_FORMAT", "console")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

# --- Alembic Imports ---
from alembic.config import Config
from alembic import command
# --- End Alembic Imports ---

# Import app and dependency functions first
from main import app, get_db, get_settings
from auth import AuthService
from mailer import get_email_sender
from settings import Settings

# Import database components needed for setup
from database import Base

TEST_DATABASE_URL = "sqlite:///./job-board-test.db"

TEST_SETTINGS = Settings(
    database_url=TEST_DATABASE_URL,
    access_token_secret="test-access-secret",
    refresh_token_secret="test-refresh-secret",
    email_token_secret="test-email-secret",
    bcrypt_rounds=4,
    client_url="http://frontend.test",
    environment="development",
)

connect_args = (
    {"check_same_thread": False} if TEST_DATABASE_URL.startswith("sqlite") else {}
)
test_engine = create_engine(TEST_DATABASE_URL, connect_args=connect_args)


@event.listens_for(test_engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.close()


TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


class RecordingEmailSender:
    """Stands in for the SMTP sender; keeps every message for assertions."""

    def __init__(self):
        self.sent = []

    async def send(self, to: str, subject: str, html: str) -> None:
        self.sent.append({"to": to, "subject": subject, "html": html})


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create the test database from models and stamp with Alembic head."""
    db_path = TEST_DATABASE_URL.split("///")[-1]
    if os.path.exists(db_path):
        os.unlink(db_path)

    # --- Create schema directly from models --- #
    Base.metadata.create_all(bind=test_engine)

    # --- Stamp the database with the latest Alembic revision --- #
    alembic_cfg = Config("alembic.ini")
    alembic_cfg.set_main_option("sqlalchemy.url", TEST_DATABASE_URL)
    command.stamp(alembic_cfg, "head")

    yield  # Tests run here

    test_engine.dispose()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture(autouse=True)
def clean_tables(setup_test_database):
    """Empty every table after each test so counts start from zero."""
    yield
    with test_engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture(scope="function")
def db_session(setup_test_database):
    """Yields a SQLAlchemy session directly from the test factory."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def email_sender():
    return RecordingEmailSender()


@pytest.fixture(scope="function")
def auth_service():
    return AuthService.from_settings(TEST_SETTINGS)


@pytest.fixture(scope="function")
def override_dependencies(email_sender):
    """Point get_db, get_settings and the email sender at test doubles."""

    def _override_get_db():
        db = TestSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_settings] = lambda: TEST_SETTINGS
    app.dependency_overrides[get_email_sender] = lambda: email_sender

    yield

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def test_client(override_dependencies):
    """Provides a test client configured with our test database session."""
    return TestClient(app)
