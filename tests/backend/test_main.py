import pytest
from fastapi.testclient import TestClient

from backend.auth.dependencies import get_current_user
from backend.database import get_db
from backend.main import app
from backend.services import notifications


@pytest.fixture
def acting_as(db):
    actor = {}

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: actor['user']

    def _acting_as(user) -> TestClient:
        actor['user'] = user
        return TestClient(app)

    yield _acting_as
    app.dependency_overrides.clear()


@pytest.fixture
def sent_emails(monkeypatch: pytest.MonkeyPatch) -> list[tuple[str, str]]:
    sent = []
    monkeypatch.setattr(notifications, 'send_email', lambda to, subject, _body: sent.append((to, subject)))
    return sent


@pytest.fixture
def members(make_skill, make_user):
    react = make_skill('React', 'web-development')
    teacher = make_user('Teacher', role='faculty', offered=[react])
    student = make_user('Student', seeking=[react])
    other_student = make_user('Other Student', seeking=[react])
    return teacher, student, other_student, react


def _session_payload(student, skill, **overrides) -> dict:
    payload = {
        'student': student.id,
        'skill': skill.id,
        'title': 'React basics',
        'description': 'Components, props and state',
        'scheduled_date': '2025-01-10T10:00:00',
        'duration': 60,
    }
    payload.update(overrides)
    return payload


def test_session_walkthrough_over_http(acting_as, members, sent_emails) -> None:
    teacher, student, other_student, react = members

    created = acting_as(teacher).post('/sessions', json=_session_payload(student, react))
    assert created.status_code == 201
    session_id = created.json()['id']
    assert created.json()['status'] == 'pending'
    assert created.json()['teacher']['email'] == teacher.email

    clash = acting_as(teacher).post(
        '/sessions',
        json=_session_payload(other_student, react, scheduled_date='2025-01-10T10:30:00', duration=30),
    )
    assert clash.status_code == 400
    assert clash.json()['detail'] == 'Scheduling conflict: One or both participants have a session at this time'

    confirmed = acting_as(student).patch(f'/sessions/{session_id}/confirm')
    assert confirmed.status_code == 200
    assert confirmed.json()['status'] == 'confirmed'

    completed = acting_as(teacher).patch(f'/sessions/{session_id}/complete', json={'notes': 'Great', 'rating': 5})
    assert completed.status_code == 200
    assert completed.json()['teacher_rating'] == 5
    assert completed.json()['student_rating'] is None

    fetched = acting_as(student).get(f'/sessions/{session_id}')
    assert fetched.status_code == 200
    assert fetched.json()['status'] == 'completed'

    listing = acting_as(student).get('/sessions', params={'status': 'completed'})
    assert listing.status_code == 200
    assert [item['id'] for item in listing.json()['sessions']] == [session_id]
    assert listing.json()['pagination']['total_sessions'] == 1

    stats = acting_as(teacher).get('/sessions/stats')
    assert stats.status_code == 200
    assert stats.json()['completed_sessions'] == 1
    assert stats.json()['average_ratings'] == {'as_teacher': 5.0, 'as_student': 0.0}

    assert sent_emails == [
        (student.email, 'New Learning Session Created'),
        (teacher.email, 'Session Confirmed'),
    ]


def test_delete_cancelled_session_over_http(acting_as, members, sent_emails) -> None:
    teacher, student, _, react = members
    session_id = acting_as(teacher).post('/sessions', json=_session_payload(student, react)).json()['id']

    assert acting_as(teacher).delete(f'/sessions/{session_id}').status_code == 400
    assert acting_as(student).patch(f'/sessions/{session_id}/cancel', json={'reason': 'Exams'}).status_code == 200

    deleted = acting_as(teacher).delete(f'/sessions/{session_id}')
    assert deleted.status_code == 200
    assert deleted.json() is None
    assert acting_as(teacher).get(f'/sessions/{session_id}').status_code == 404


@pytest.mark.parametrize(
    ('method', 'path', 'body'),
    [
        ('post', '/sessions', {'student': 2, 'skill': 1}),
        ('post', '/sessions', {'student': 2, 'skill': 1, 'title': 'React basics',
                               'description': 'Components, props and state',
                               'scheduled_date': '2025-01-10T10:00:00', 'duration': 5}),
        ('patch', '/sessions/1/complete', {'rating': 9}),
        ('put', '/sessions/1', {'session_type': 'carrier-pigeon'}),
        ('patch', '/users/me/status', {'current_status': 'sleeping'}),
    ],
)
def test_malformed_requests_return_400(acting_as, members, method, path, body) -> None:
    teacher, _, _, _ = members

    response = getattr(acting_as(teacher), method)(path, json=body)

    assert response.status_code == 400
    assert response.json()['detail'] == 'Validation failed'
    assert response.json()['errors']


def test_invalid_faculty_status_reports_message(acting_as, members) -> None:
    teacher, _, _, _ = members

    response = acting_as(teacher).patch('/users/me/status', json={'current_status': 'sleeping'})

    assert response.status_code == 400
    assert any('Invalid status. Must be: free, busy, in-class, or unavailable' in error
               for error in response.json()['errors'])


def test_invalid_query_parameter_returns_400(acting_as, members) -> None:
    teacher, _, _, react = members

    response = acting_as(teacher).get(f'/matching/skills/{react.id}/partners', params={'matchType': 'everyone'})

    assert response.status_code == 400


def test_non_faculty_status_update_is_forbidden(acting_as, members) -> None:
    _, student, _, _ = members

    response = acting_as(student).patch('/users/me/status', json={'current_status': 'free'})

    assert response.status_code == 403
    assert response.json()['detail'] == 'Only faculty members can update their status'
