from datetime import datetime, timedelta, timezone

from bson import ObjectId
from fastapi.testclient import TestClient

from student_records.main import app

client = TestClient(app)


def test_create_student_defaults(make_student):
    student = make_student()
    assert ObjectId.is_valid(student['_id'])
    assert student['status'] == 'active'
    assert student['enrollmentDate'].startswith('2024-09-01T00:00:00')
    assert student['course'] == 'Algorithms'


def test_duplicate_email_rejected(make_student, mongo_db):
    make_student(email='grace@example.com')
    r = client.post('/api/students', json={
        'name': 'Other Grace', 'email': 'grace@example.com',
        'course': 'Maths', 'enrollmentDate': '2024-01-01',
    })
    assert r.status_code == 400
    assert mongo_db.students.count_documents({'email': 'grace@example.com'}) == 1


def test_create_student_missing_and_invalid_fields():
    r = client.post('/api/students', json={'name': 'No Email', 'course': 'X', 'enrollmentDate': '2024-01-01'})
    assert r.status_code == 400
    assert 'email' in r.json()['message']
    r2 = client.post('/api/students', json={
        'name': 'Bad', 'email': 'bad@example.com', 'course': 'X',
        'enrollmentDate': 'yesterday',
    })
    assert r2.status_code == 400


def test_course_value_is_not_checked(make_student):
    student = make_student(course='no-such-course')
    assert student['course'] == 'no-such-course'


def test_get_student_id_format_checked_first(make_student):
    student = make_student()
    r = client.get('/api/students/not-a-valid-id')
    assert r.status_code == 400
    assert r.json() == {'message': 'Invalid student ID format'}
    assert client.get(f'/api/students/{ObjectId()}').status_code == 404
    ok = client.get(f"/api/students/{student['_id']}")
    assert ok.status_code == 200
    assert ok.json()['email'] == student['email']


def test_list_students_newest_first(make_student, mongo_db):
    first = make_student(name='First', email='first@example.com')
    second = make_student(name='Second', email='second@example.com')
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    mongo_db.students.update_one({'_id': ObjectId(first['_id'])}, {'$set': {'createdAt': base}})
    mongo_db.students.update_one({'_id': ObjectId(second['_id'])}, {'$set': {'createdAt': base + timedelta(days=1)}})
    r = client.get('/api/students')
    assert r.status_code == 200
    assert [s['name'] for s in r.json()] == ['Second', 'First']


def test_search_matches_any_field_case_insensitively(make_student):
    make_student(name='Alan Turing', email='alan@bletchley.org', course='Cryptography')
    make_student(name='Grace Hopper', email='grace@navy.mil', course='Compilers')
    make_student(name='Turing Fan', email='fan@turing.io', course='Machines')
    make_student(name='Unrelated', email='nobody@example.com', course='Art')

    r = client.get('/api/students/search', params={'q': 'TURING'})
    assert r.status_code == 200
    names = sorted(s['name'] for s in r.json())
    # "Turing Fan" matches on both name and email but appears once
    assert names == ['Alan Turing', 'Turing Fan']

    by_course = client.get('/api/students/search', params={'q': 'compil'}).json()
    assert [s['name'] for s in by_course] == ['Grace Hopper']


def test_search_treats_query_literally(make_student):
    make_student(name='Dot Com', email='dot@example.com')
    make_student(name='Plain', email='plain@examplexcom.org')
    r = client.get('/api/students/search', params={'q': 'example.com'})
    assert [s['name'] for s in r.json()] == ['Dot Com']


def test_search_without_query_returns_everyone(make_student):
    make_student(email='a@example.com')
    make_student(email='b@example.com')
    r = client.get('/api/students/search')
    assert r.status_code == 200
    assert len(r.json()) == 2


def test_update_student(make_student):
    student = make_student()
    r = client.put(f"/api/students/{student['_id']}", json={'status': 'inactive', 'course': 'Logic'})
    assert r.status_code == 200
    body = r.json()
    assert body['status'] == 'inactive'
    assert body['course'] == 'Logic'
    assert body['email'] == student['email']


def test_update_student_errors(make_student):
    student = make_student(email='one@example.com')
    assert client.put(f"/api/students/{student['_id']}", json={'status': 'graduated'}).status_code == 400
    assert client.put(f"/api/students/{student['_id']}", json={'nickname': 'x'}).status_code == 400
    assert client.put(f'/api/students/{ObjectId()}', json={'name': 'Ghost'}).status_code == 404
    make_student(email='two@example.com')
    dup = client.put(f"/api/students/{student['_id']}", json={'email': 'two@example.com'})
    assert dup.status_code == 400
    assert client.get(f"/api/students/{student['_id']}").json()['email'] == 'one@example.com'


def test_delete_student(make_student):
    student = make_student()
    r = client.delete(f"/api/students/{student['_id']}")
    assert r.status_code == 200
    assert r.json() == {'message': 'Student deleted successfully'}
    assert client.get(f"/api/students/{student['_id']}").status_code == 404
    assert client.delete(f"/api/students/{student['_id']}").status_code == 404
