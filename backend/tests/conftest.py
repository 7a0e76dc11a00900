import mongomock
import pytest
from fastapi.testclient import TestClient

from student_records.database import MongoConnection, get_connection
from student_records.main import app


@pytest.fixture(autouse=True)
def mongo_db():
    """Point the app at a fresh in-memory MongoDB for every test."""
    conn = MongoConnection(
        "mongodb://localhost:27017",
        "student_records_test",
        client_factory=mongomock.MongoClient,
    )
    app.dependency_overrides[get_connection] = lambda: conn
    db = conn.connect()
    yield db
    app.dependency_overrides.clear()
    conn.close()


@pytest.fixture
def make_course():
    client = TestClient(app)

    def _make(name="Algorithms", description="Intro to algorithms", duration=12, **extra):
        r = client.post('/api/courses', json={'name': name, 'description': description, 'duration': duration, **extra})
        assert r.status_code == 201, r.text
        return r.json()
    return _make


@pytest.fixture
def make_student():
    client = TestClient(app)

    def _make(name="Ada Lovelace", email="ada@example.com", course="Algorithms", **extra):
        payload = {'name': name, 'email': email, 'course': course, 'enrollmentDate': '2024-09-01'}
        payload.update(extra)
        r = client.post('/api/students', json=payload)
        assert r.status_code == 201, r.text
        return r.json()
    return _make
