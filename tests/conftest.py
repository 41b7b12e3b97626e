from datetime import datetime, timedelta

import pytest

from snap import create_app
from snap.extensions import db
from snap.models import AttendanceSession, Student


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


@pytest.fixture
def now():
    """Fixed 'current time' (naive UTC) for validation tests."""
    return datetime(2025, 3, 1, 9, 0, 0)


@pytest.fixture
def make_session(app):
    def _make(expires_at, qr_id='qr-token-1', class_id='CS101', session_id=None):
        session = AttendanceSession(qr_id=qr_id, expires_at=expires_at, class_id=class_id)
        if session_id:
            session.id = session_id
        return session.save()
    return _make


@pytest.fixture
def live_session(make_session, now):
    return make_session(expires_at=now + timedelta(minutes=10))


@pytest.fixture
def existing_student(app):
    return Student(
        id='student-1',
        full_name='Jane Doe',
        email='jane.21bce1234@uni.edu',
        phone_number='0700000000',
        registration_number='21BCE1234'
    ).save()
