import board.main as entry
from board.http import LocalContext, LocalRequest


def test_main_builds_board_once(monkeypatch):
    monkeypatch.setenv('KV_BACKEND', 'memory')
    monkeypatch.setattr(entry, '_board', None)

    result = entry.main(LocalContext(LocalRequest('GET', '/api/bulletin')))
    assert result['statusCode'] == 200
    assert result['body'] == '[]'

    first = entry.get_board()
    assert entry.get_board() is first


def test_main_reports_configuration_errors(monkeypatch):
    monkeypatch.setenv('KV_BACKEND', 'redis')
    monkeypatch.setattr(entry, '_board', None)

    result = entry.main(LocalContext(LocalRequest('GET', '/api/bulletin')))
    assert result['statusCode'] == 500
    assert entry._board is None
