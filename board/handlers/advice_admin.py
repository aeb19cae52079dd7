"""
建言审核接口 /api/advice-admin（密码认证，纯文本响应）
- GET ?password=: 列出全部建言
- POST {id, password, action, reply}: approve / delete / reply
"""
from board.auth import check_password
from board.handlers.records import load_all
from board.http import json_response, parse_request_body, query_param, text_response
from board.models import append_reply, touch


def list_for_review(context, board):
    if not check_password(query_param(context.req, 'password'), board.config.ADMIN_PASSWORD):
        return text_response(context, 'Invalid password', 401)

    try:
        return json_response(context, load_all(board.advices))
    except Exception as e:
        context.error(f'[ADVICE-ADMIN] 获取列表失败: {str(e)}')
        return json_response(context, {'error': '获取失败'}, 500)


def _approve(context, board, advice_id):
    existing = board.advices.get_json(advice_id)
    if not isinstance(existing, dict):
        return text_response(context, '建言不存在', 404)
    existing['approved'] = True
    board.advices.put_json(advice_id, touch(existing))
    return text_response(context, '审核通过')


def _delete(context, board, advice_id):
    board.advices.delete(advice_id)
    return text_response(context, '删除成功')


def _reply(context, board, advice_id, reply):
    existing = board.advices.get_json(advice_id)
    if not isinstance(existing, dict):
        return text_response(context, '建言不存在', 404)
    if not isinstance(reply, str) or not reply.strip():
        return text_response(context, '回复内容不能为空', 400)
    append_reply(existing, reply.strip())
    board.advices.put_json(advice_id, existing)
    return text_response(context, '回复已保存')


ACTIONS = {
    'approve': lambda context, board, body: _approve(context, board, body.get('id')),
    'delete': lambda context, board, body: _delete(context, board, body.get('id')),
    'reply': lambda context, board, body: _reply(context, board, body.get('id'), body.get('reply')),
}


def review(context, board):
    try:
        body = parse_request_body(context.req)
    except ValueError as e:
        return text_response(context, str(e), 400)

    if not check_password(body.get('password'), board.config.ADMIN_PASSWORD):
        return text_response(context, 'Invalid password', 401)

    action = ACTIONS.get(body.get('action'))
    if action is None:
        return text_response(context, '无效操作', 400)
    if not body.get('id'):
        return text_response(context, '缺少建言ID', 400)

    try:
        context.log(f"[ADVICE-ADMIN] {body.get('action')} {body.get('id')}")
        return action(context, board, body)
    except Exception as e:
        context.error(f'[ADVICE-ADMIN] 操作失败: {str(e)}')
        return text_response(context, '操作失败', 500)
