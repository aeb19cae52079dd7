"""
建言接口 /api/advice
- GET: 公开，列出全部建言
- POST: 公开，提交建言
- PUT /api/advice/<id>, DELETE /api/advice/<id>: 需要管理员会话
"""
from typing import Any, Dict, Optional, Tuple

from board.http import bearer_token, error_response, json_response, parse_request_body
from board.handlers.records import load_all
from board.models import Advice, touch

REQUIRED_FIELD_MESSAGES = {
    'name': '姓名不能为空',
    'building': '楼栋号不能为空',
    'contact': '联系方式不能为空',
}
LIST_FIELDS = ('attachments', 'pendingAttachments', 'comments', 'replies')
# 第一版字段名 -> 当前字段
LEGACY_ALIASES = {'title': 'contact', 'content': 'description', 'author': 'name'}

UNAUTHORIZED_MESSAGE = '操作失败，请尝试重新登录，或刷新页面，以确保安全。'


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def list_advices(context, board):
    advices = load_all(board.advices)
    context.log(f'[ADVICE][GET] 共 {len(advices)} 条建言')
    return json_response(context, advices, 200, {'Cache-Control': 'public, max-age=30'})


def create_advice(context, board):
    body = parse_request_body(context.req)
    fields = {
        'name': body.get('name', body.get('author')),
        'building': body.get('building'),
        'contact': body.get('contact', body.get('title')),
    }
    for field, message in REQUIRED_FIELD_MESSAGES.items():
        if _blank(fields[field]):
            return error_response(context, message, 400)

    description = body.get('description', body.get('content')) or ''
    attachments = body.get('attachments')
    if not isinstance(attachments, list):
        attachments = [attachments] if attachments else []

    advice = Advice(
        name=fields['name'].strip(),
        building=fields['building'].strip(),
        contact=fields['contact'].strip(),
        description=description.strip() if isinstance(description, str) else '',
        pending_attachments=attachments,
    )
    board.advices.put_json(advice.id, advice.to_record())
    context.log(f'[ADVICE][POST] 已创建 {advice.id}, 待审附件 {len(attachments)} 个')
    return json_response(context, {'success': True, 'id': advice.id}, 201)


def _apply_update(record: Dict[str, Any], body: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    将请求字段应用到已存储的建言记录上，未提交的字段保持原样

    Returns:
        (是否有字段被更新, 校验失败的错误信息)
    """
    changed = False

    for field, message in REQUIRED_FIELD_MESSAGES.items():
        if field in body:
            if _blank(body[field]):
                return changed, message
            record[field] = body[field].strip()
            changed = True

    if 'description' in body:
        description = body['description']
        record['description'] = description.strip() if isinstance(description, str) else ''
        changed = True

    for key in LIST_FIELDS:
        if key in body:
            record[key] = body[key] if isinstance(body[key], list) else []
            changed = True

    for key, field in LEGACY_ALIASES.items():
        if key in body:
            record[field] = body[key] if isinstance(body[key], str) else ''
            changed = True

    if changed:
        touch(record)
    return changed, None


def update_advice(context, board, advice_id: str):
    existing = board.advices.get_json(advice_id)
    if not isinstance(existing, dict):
        return error_response(context, '建言不存在', 404)

    body = parse_request_body(context.req)
    record = dict(existing)
    changed, problem = _apply_update(record, body)
    if problem:
        return error_response(context, problem, 400)
    if not changed:
        return error_response(context, '未提交任何可更新的字段', 400)

    board.advices.put_json(advice_id, record)
    context.log(f'[ADVICE][PUT] 已更新 {advice_id}')
    return json_response(context, {'success': True})


def delete_advice(context, board, advice_id: str):
    if board.advices.get(advice_id) is None:
        return error_response(context, '建言不存在', 404)
    board.advices.delete(advice_id)
    context.log(f'[ADVICE][DELETE] 已删除 {advice_id}')
    return json_response(context, {'success': True})


def handle(context, board, advice_id: Optional[str] = None):
    """建言接口入口"""
    method = context.req.method.upper()
    context.log(f'[ADVICE][REQUEST] {method} {context.req.path}')

    if method in ('PUT', 'DELETE'):
        token = bearer_token(context.req)
        if token is None:
            return error_response(context, '未授权访问', 401)
        if not board.session_store.is_admin(token):
            return error_response(context, UNAUTHORIZED_MESSAGE, 401)

    try:
        if method == 'GET':
            return list_advices(context, board)
        if method == 'POST':
            return create_advice(context, board)
        if method == 'PUT' and advice_id:
            return update_advice(context, board, advice_id)
        if method == 'DELETE' and advice_id:
            return delete_advice(context, board, advice_id)

        return error_response(context, '方法不支持', 405, debug={
            'method': method, 'adviceId': advice_id, 'pathname': context.req.path
        })
    except ValueError as e:
        return error_response(context, str(e), 400)
    except Exception as e:
        context.error(f'[ADVICE][ERROR] {type(e).__name__}: {str(e)}')
        return error_response(context, '操作失败', 500, debug={
            'message': str(e), 'method': method, 'adviceId': advice_id, 'pathname': context.req.path
        })
