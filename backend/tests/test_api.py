"""API smoke tests using FastAPI TestClient."""

from fastapi.testclient import TestClient
from backend.app.main import app

client = TestClient(app)


def test_health():
	r = client.get('/health')
	assert r.status_code == 200
	assert r.json() == {'status': 'ok'}


def test_ping():
	# Basic trace endpoint smoke test
	r = client.post('/trace', json={'code': 'print(1)'})
	assert r.status_code == 200
	body = r.json()
	assert body['error'] is None
	assert body['trace'][0]['output'] == '1'
	assert isinstance(body['duration_ms'], int)
