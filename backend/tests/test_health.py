from pathlib import Path

from fastapi.testclient import TestClient

from student_records.database import MongoConnection, get_connection
from student_records.main import app
from student_records.utils.system import format_uptime

client = TestClient(app)


def _unreachable_factory(calls):
    def factory(uri, **kwargs):
        calls.append(uri)
        raise AssertionError("store must not be contacted")
    return factory


def test_health_never_touches_store():
    calls = []
    conn = MongoConnection("mongodb://localhost:1", "x", client_factory=_unreachable_factory(calls))
    app.dependency_overrides[get_connection] = lambda: conn
    r = client.get('/health')
    assert r.status_code == 200
    body = r.json()
    assert body['status'] == 'UP'
    assert body['environment']
    assert body['uptime'] >= 0
    assert calls == []
    assert 'X-Request-ID' in r.headers


def test_request_id_is_propagated():
    r = client.get('/health', headers={'X-Request-ID': 'abc123'})
    assert r.headers['X-Request-ID'] == 'abc123'


def test_detailed_health_connected():
    r = client.get('/health/detailed')
    assert r.status_code == 200
    body = r.json()
    assert body['status'] == 'UP'
    assert body['database'] == {'status': 'Connected', 'name': 'MongoDB', 'host': 'localhost'}
    assert body['system']['memory']['unit'] == 'MB'
    assert body['system']['memory']['maxRss'] >= 0
    assert body['system']['uptime']['seconds'] >= 0
    assert isinstance(body['system']['uptime']['formatted'], str)


def test_detailed_health_uses_readiness_flag_only():
    calls = []
    conn = MongoConnection("mongodb://db.internal:27017", "x", client_factory=_unreachable_factory(calls))
    app.dependency_overrides[get_connection] = lambda: conn
    body = client.get('/health/detailed').json()
    assert body['database']['status'] == 'Disconnected'
    assert body['database']['host'] == 'db.internal'
    assert calls == []


def test_detailed_health_degrades_to_down(monkeypatch):
    def boom():
        raise RuntimeError("no stats")
    monkeypatch.setattr("student_records.main.runtime_info", boom)
    r = client.get('/health/detailed')
    assert r.status_code == 500
    body = r.json()
    assert body['status'] == 'DOWN'
    assert body['error'] == 'no stats'


def test_format_uptime():
    assert format_uptime(0) == '0s'
    assert format_uptime(59.9) == '59s'
    assert format_uptime(90) == '1m 30s'
    assert format_uptime(3600) == '1h'
    assert format_uptime(3661) == '1h 1m 1s'
    # zero hours are skipped, not printed as "0h"
    assert format_uptime(86461) == '1d 1m 1s'
    assert format_uptime(172800) == '2d'


def test_spa_fallback_serves_index(monkeypatch, tmp_path):
    (tmp_path / 'index.html').write_text('<html>app shell</html>', encoding='utf-8')
    (tmp_path / 'app.js').write_text('console.log(1)', encoding='utf-8')
    monkeypatch.setattr("student_records.main.settings.STATIC_DIR", Path(tmp_path))
    r = client.get('/students/42/edit')
    assert r.status_code == 200
    assert 'app shell' in r.text
    js = client.get('/app.js')
    assert js.status_code == 200
    assert 'console.log' in js.text


def test_spa_fallback_without_index(monkeypatch, tmp_path):
    monkeypatch.setattr("student_records.main.settings.STATIC_DIR", Path(tmp_path))
    r = client.get('/anything')
    assert r.status_code == 404
    assert r.json() == {'message': 'Not found'}
