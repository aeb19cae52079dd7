def submit(call, title='楼道灯坏了', content='3号楼2单元'):
    return call('POST', '/api/post', {'title': title, 'content': content})


def test_submit_post(call, board):
    result = submit(call)
    assert result.status == 200
    key = result.json['key']
    assert key.isdigit()

    stored = board.advices.get_json(key)
    assert stored['title'] == '楼道灯坏了'
    assert stored['approved'] is False
    assert stored['time'].endswith('Z')


def test_submit_validation(call):
    result = call('POST', '/api/post', {'title': '  ', 'content': 'x'})
    assert result.status == 400
    assert result.text == 'Missing title or content'

    result = submit(call, title='长' * 101)
    assert result.status == 400
    assert result.text == 'Title or content too long'


def test_only_approved_posts_are_listed(call, board):
    board.advices.put_json('1700000000001', {'title': '第一条', 'content': 'a', 'approved': True})
    board.advices.put_json('1700000000002', {'title': '第二条', 'content': 'b', 'approved': False})
    board.advices.put_json('1700000000003', {'title': '第三条', 'content': 'c', 'approved': True})

    assert call('GET', '/api/list').json == [
        {'id': '1700000000003', 'title': '第三条'},
        {'id': '1700000000001', 'title': '第一条'},
    ]


def test_list_all_returns_raw_records(call, board):
    board.advices.put_json('1700000000001', {'title': '第一条', 'content': 'a', 'approved': False})
    board.advices.put('broken', '{')
    assert call('GET', '/api/list-all').json == [{'title': '第一条', 'content': 'a', 'approved': False}]


def test_admin_list_requires_password(call, board):
    board.advices.put_json('1700000000001', {'title': '第一条', 'content': 'a', 'approved': False})
    assert call('GET', '/api/admin-list', query={'password': 'bad'}).status == 401

    result = call('GET', '/api/admin-list', query={'password': 'review-pass'})
    assert result.json == [{'title': '第一条', 'content': 'a', 'approved': False, 'id': '1700000000001'}]


def test_approve_and_delete(call, board):
    key = submit(call).json['key']

    result = call('POST', '/api/approve', {'id': key, 'password': 'bad'})
    assert result.status == 401
    assert result.text == 'Unauthorized'

    result = call('POST', '/api/approve', {'id': key, 'password': 'review-pass'})
    assert result.text == 'Approved'
    assert board.advices.get_json(key)['approved'] is True

    assert call('POST', '/api/approve', {'id': 'missing', 'password': 'review-pass'}).status == 404

    result = call('POST', '/api/delete', {'id': key, 'password': 'review-pass'})
    assert result.text == 'Deleted'
    assert board.advices.get(key) is None
