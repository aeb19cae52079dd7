"""
第一版留言接口（与建言共用同一命名空间，键名为毫秒时间戳）
- POST /api/post: 提交留言，待审核
- GET  /api/list: 已审核留言的标题列表
- GET  /api/list-all: 全部记录
- POST /api/approve, POST /api/delete, GET /api/admin-list: 密码认证
"""
from board.auth import check_password
from board.handlers.records import load_records
from board.http import json_response, parse_request_body, query_param, text_response
from board.models import LegacyPost, now_ms

MAX_TITLE_LENGTH = 100
MAX_CONTENT_LENGTH = 2000
LIST_ALL_LIMIT = 100


def create_post(context, board):
    try:
        data = parse_request_body(context.req)
    except ValueError as e:
        return text_response(context, str(e), 400)

    title = str(data.get('title') or '').strip()
    content = str(data.get('content') or '').strip()

    if not title or not content:
        return text_response(context, 'Missing title or content', 400)
    if len(title) > MAX_TITLE_LENGTH or len(content) > MAX_CONTENT_LENGTH:
        return text_response(context, 'Title or content too long', 400)

    key = str(now_ms())
    post = LegacyPost(title=title, content=content)
    board.advices.put_json(key, post.to_record())
    context.log(f'[POST] 新留言 {key}')
    return json_response(context, {'success': True, 'key': key})


def list_approved(context, board):
    posts = [
        {'id': record['id'], 'title': record.get('title')}
        for record in load_records(board.advices)
        if record.get('approved')
    ]
    posts.reverse()
    return json_response(context, posts)


def list_all(context, board):
    """原样返回记录（不附加 id），无法解析的值跳过"""
    posts = []
    try:
        for key in board.advices.list_keys(limit=LIST_ALL_LIMIT):
            post = board.advices.get_json(key)
            if post is not None:
                posts.append(post)
    except Exception as e:
        context.error(f'[LIST-ALL] 读取失败: {str(e)}')
        return json_response(context, {'error': str(e)}, 500)
    return json_response(context, posts)


def list_for_admin(context, board):
    if not check_password(query_param(context.req, 'password'), board.config.ADMIN_PASSWORD):
        return text_response(context, 'Unauthorized', 401)
    posts = load_records(board.advices)
    posts.reverse()
    return json_response(context, posts)


def _authorized_body(context, board):
    """解析请求体并校验密码，失败返回 (None, 响应)"""
    try:
        body = parse_request_body(context.req)
    except ValueError as e:
        return None, text_response(context, str(e), 400)
    if not check_password(body.get('password'), board.config.ADMIN_PASSWORD):
        return None, text_response(context, 'Unauthorized', 401)
    return body, None


def approve_post(context, board):
    body, rejection = _authorized_body(context, board)
    if rejection:
        return rejection

    post_id = body.get('id')
    post = board.advices.get_json(post_id) if post_id else None
    if not isinstance(post, dict):
        return text_response(context, 'Not found', 404)

    post['approved'] = True
    board.advices.put_json(post_id, post)
    return text_response(context, 'Approved')


def delete_post(context, board):
    body, rejection = _authorized_body(context, board)
    if rejection:
        return rejection

    post_id = body.get('id')
    if post_id:
        board.advices.delete(post_id)
    return text_response(context, 'Deleted')
