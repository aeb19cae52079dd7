"""
公告接口 /api/bulletin
- GET: 公开
- POST、PUT /api/bulletin/<id>、DELETE /api/bulletin/<id>: 需要管理员会话
"""
from typing import Optional

from board.handlers.records import load_all
from board.http import bearer_token, error_response, json_response, parse_request_body
from board.models import Bulletin, now_ms

UNAUTHORIZED_MESSAGE = '发布失败，请尝试重新登录，或刷新页面，以确保安全。'


def _read_fields(context):
    body = parse_request_body(context.req)
    title = body.get('title')
    content = body.get('content')
    attachments = body.get('attachments')
    if not title or not content:
        return None
    return {
        'title': title,
        'content': content,
        'attachments': attachments if isinstance(attachments, list) else [],
    }


def list_bulletins(context, board):
    return json_response(context, load_all(board.bulletins))


def create_bulletin(context, board):
    fields = _read_fields(context)
    if fields is None:
        return error_response(context, '标题和内容不能为空', 400)

    bulletin = Bulletin(**fields)
    board.bulletins.put_json(bulletin.id, bulletin.to_record())
    context.log(f'[BULLETIN][POST] 已发布 {bulletin.id}')
    return json_response(context, {'success': True, 'id': bulletin.id}, 201)


def update_bulletin(context, board, bulletin_id: str):
    existing = board.bulletins.get_json(bulletin_id)
    if not isinstance(existing, dict):
        return error_response(context, '公告不存在', 404)

    fields = _read_fields(context)
    if fields is None:
        return error_response(context, '标题和内容不能为空', 400)

    updated = {**existing, **fields, 'updatedAt': now_ms()}
    board.bulletins.put_json(bulletin_id, updated)
    context.log(f'[BULLETIN][PUT] 已更新 {bulletin_id}')
    return json_response(context, {'success': True})


def delete_bulletin(context, board, bulletin_id: str):
    if board.bulletins.get(bulletin_id) is None:
        return error_response(context, '公告不存在', 404, debug={'bulletinId': bulletin_id})
    board.bulletins.delete(bulletin_id)
    context.log(f'[BULLETIN][DELETE] 已删除 {bulletin_id}')
    return json_response(context, {'success': True, 'debug': {'bulletinId': bulletin_id}})


def handle(context, board, bulletin_id: Optional[str] = None):
    """公告接口入口"""
    method = context.req.method.upper()

    if method not in ('GET', 'HEAD'):
        token = bearer_token(context.req)
        if token is None:
            return error_response(context, '未授权访问', 401)
        if not board.session_store.is_admin(token):
            return error_response(context, UNAUTHORIZED_MESSAGE, 401)

    try:
        if method == 'GET':
            return list_bulletins(context, board)
        if method == 'POST' and not bulletin_id:
            return create_bulletin(context, board)
        if method == 'PUT' and bulletin_id:
            return update_bulletin(context, board, bulletin_id)
        if method == 'DELETE' and bulletin_id:
            return delete_bulletin(context, board, bulletin_id)

        return error_response(context, '方法不支持', 405, debug={'method': method, 'bulletinId': bulletin_id})
    except ValueError as e:
        return error_response(context, str(e), 400)
    except Exception as e:
        context.error(f'[BULLETIN][ERROR] {type(e).__name__}: {str(e)}')
        return error_response(context, '操作失败', 500, debug={
            'message': str(e), 'method': method, 'bulletinId': bulletin_id
        })
