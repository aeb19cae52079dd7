import asyncio

from fastapi.testclient import TestClient

from board import devserver
from board.devserver import create_app


def test_forwards_api_requests(board):
    client = TestClient(create_app(board))

    response = client.post('/api/advice', json={'name': '张三', 'building': '1号楼', 'contact': '13800138000'})
    assert response.status_code == 201
    advice_id = response.json()['id']

    response = client.get('/api/advice')
    assert response.status_code == 200
    assert [item['id'] for item in response.json()] == [advice_id]

    response = client.get('/api/advice-admin', params={'password': 'wrong'})
    assert response.status_code == 401
    assert response.text == 'Invalid password'


def test_unknown_route_and_health(board):
    client = TestClient(create_app(board))
    assert client.get('/api/missing').status_code == 404
    assert client.get('/health').json() == {'status': 'healthy', 'backend': 'memory'}


def test_dispatch_runs_outside_event_loop(board, monkeypatch):
    seen = {}

    def recording_dispatch(board, context):
        try:
            asyncio.get_running_loop()
            seen['on_loop'] = True
        except RuntimeError:
            seen['on_loop'] = False
        return {'body': '', 'statusCode': 204, 'headers': {}}

    monkeypatch.setattr(devserver, 'dispatch', recording_dispatch)
    response = TestClient(create_app(board)).post('/api/sms-verify', json={})
    assert response.status_code == 204
    assert seen == {'on_loop': False}
