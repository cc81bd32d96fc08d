import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
os.environ.setdefault("TESTING", "true")

import uuid
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.database import Base, get_db
from app.utils import deps as deps_utils
from app.services.notification import notification_service
from app.services.storage import storage_service
import main

test_db_url = settings.TEST_DATABASE_URL or "sqlite:///./test.db"


@pytest.fixture(scope="session")
def database_engine():
    if test_db_url.startswith("sqlite"):
        engine = create_engine(test_db_url, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(test_db_url)
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()
    if test_db_url == "sqlite:///./test.db" and os.path.exists("./test.db"):
        os.remove("./test.db")


@pytest.fixture(scope="session")
def session_factory(database_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=database_engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


@pytest.fixture(autouse=True)
def _isolate_side_effects(monkeypatch, session_factory, tmp_path):
    # Outcome handlers open their own sessions; point them at the test database.
    monkeypatch.setattr(notification_service, "session_factory", session_factory)
    monkeypatch.setattr(storage_service, "local_dir", tmp_path / "recordings")
    monkeypatch.setattr(storage_service, "bucket_name", None)
    monkeypatch.setattr(storage_service, "s3_client", None)
    monkeypatch.setattr(settings, "SENDGRID_API_KEY", None)


@pytest.fixture(scope="function")
def client(db_session):
    main.app.dependency_overrides[get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_transactional_db] = lambda: db_session
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


@pytest.fixture
def user_id():
    return f"user-{uuid.uuid4().hex[:12]}"


@pytest.fixture
def start_payload(user_id):
    def _payload(task_title="Fintech 101", week_index=0, day_index=0, task_index=0, **extra):
        payload = {
            "userId": user_id,
            "taskTitle": task_title,
            "weekIndex": week_index,
            "dayIndex": day_index,
            "taskIndex": task_index,
            "environment": {"browser": "Firefox", "os": "Linux", "timezone": "Africa/Lagos"},
        }
        payload.update(extra)
        return payload
    return _payload
