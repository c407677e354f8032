import os
from datetime import date

# The app module builds its engine at import time; keep it in memory for tests.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from weekplan.api.deps import get_db, get_today  # noqa: E402
from weekplan.db.base import Base  # noqa: E402
from weekplan.main import app  # noqa: E402
from weekplan.services.schedule_types import BusinessWindow  # noqa: E402

# Wednesday; its week starts on Monday 2025-07-14.
TODAY = date(2025, 7, 16)


@pytest.fixture()
def window():
    return BusinessWindow()


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_today] = lambda: TODAY

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def student(client):
    response = client.post("/api/students", json={"name": "Kim Minji", "grade": "11"})
    assert response.status_code == 201
    return response.json()


def build_week_payload(student_id: str, **extra) -> dict:
    """Monday 08:00-12:00 at the center with the afternoon labeled; every other day absent."""
    days = [{"day": day, "absent": True} for day in ("Tue", "Wed", "Thu", "Fri", "Sat", "Sun")]
    days.insert(
        0,
        {
            "day": "Mon",
            "blocks": [
                {"start_hour": "08", "start_minute": "00", "end_hour": "09", "end_minute": "30"},
                {"start_hour": 9, "start_minute": 0, "end_hour": 12, "end_minute": 0},
            ],
            "gap_labels": [{"start": "12:00", "end": "23:00", "label": "school"}],
        },
    )
    return {"student_id": student_id, "days": days, **extra}


@pytest.fixture()
def week_payload():
    return build_week_payload
