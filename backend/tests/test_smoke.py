from fastapi.testclient import TestClient
from app.main import app

def test_root():
    client = TestClient(app)
    r = client.get('/')
    assert r.status_code == 200
    assert 'AI Collector' in r.json().get('message', '')

def test_health_and_cors_preflight():
    client = TestClient(app)
    assert client.get('/health').json() == {'status': 'ok'}
    r = client.options('/api/videos/public', headers={
        'Origin': 'http://localhost:5173',
        'Access-Control-Request-Method': 'GET',
    })
    assert r.status_code == 200
    assert r.headers['access-control-allow-origin'] == 'http://localhost:5173'

def test_serve_command_runs_uvicorn(monkeypatch):
    from app import cli
    calls = []
    monkeypatch.setattr(cli.uvicorn, 'run', lambda target, **kw: calls.append((target, kw)))
    cli.main(['serve', '--port', '9000', '--log-level', 'debug'])
    assert calls == [('app.main:app', {'host': '127.0.0.1', 'port': 9000, 'reload': False, 'log_level': 'debug'})]
