"""
超级管理员接口
- POST /api/admin-auth: 密码登录
- POST /api/admin-auth-check: 检查会话
- GET/POST /api/admin-debug: 环境与存储状态
"""
from board.auth import AUTHORIZED_PHONES_KEY, check_password
from board.errors import BoardError
from board.http import error_response, json_response, parse_request_body
from board.models import now_iso, now_ms


def login(context, board):
    """密码登录，成功后发放 1 小时有效的会话"""
    try:
        body = parse_request_body(context.req)
    except ValueError as e:
        return error_response(context, str(e), 400)

    password = body.get('password')
    if not password:
        return error_response(context, '密码不能为空', 400)
    if not check_password(password, board.config.BULLETIN_PASS):
        context.log('[ADMIN-AUTH] 密码错误')
        return error_response(context, '密码错误', 401)

    try:
        session_id = board.session_store.create_password_session()
    except BoardError as e:
        context.error(f'[ADMIN-AUTH] 创建会话失败: {e.message}')
        return error_response(context, '验证失败', 500)

    context.log('[ADMIN-AUTH] 登录成功')
    return json_response(context, {'success': True, 'sessionId': session_id})


def check_session(context, board):
    try:
        body = parse_request_body(context.req)
    except ValueError as e:
        return error_response(context, str(e), 400)

    session_id = body.get('sessionId')
    if not session_id:
        return error_response(context, '会话无效', 401)

    try:
        session_data = board.session_store.get(session_id)
    except BoardError as e:
        context.error(f'[ADMIN-AUTH-CHECK] 查询会话失败: {e.message}')
        return error_response(context, '验证失败', 500)

    if not session_data:
        return error_response(context, '会话已过期', 401)
    return json_response(context, {'success': True, 'message': '会话有效'})


def debug_status(context, board):
    """检查环境配置与存储绑定情况（不输出任何密钥）"""
    config = board.config
    info = {
        'timestamp': now_iso(),
        'environment': {
            'ADMIN_PASSWORD': '已设置' if config.ADMIN_PASSWORD else '未设置',
            'BULLETIN_PASS': '已设置' if config.BULLETIN_PASS else '未设置',
            'ADMIN_AUTHORIZED_PHONES': config.ADMIN_AUTHORIZED_PHONES or '未设置',
            'SMS_PROVIDER': config.SMS_PROVIDER,
            'KV_BACKEND': config.KV_BACKEND,
            **config.sms_config_status(),
        },
        'kvStatus': 'unknown',
        'currentPhones': '',
        'sessionsStatus': 'unknown',
    }

    if board.admin_config is None:
        info['kvStatus'] = '未绑定'
        info['kvWriteTest'] = '跳过（KV未绑定）'
    else:
        try:
            info['currentPhones'] = board.admin_config.get(AUTHORIZED_PHONES_KEY) or '空值'
            info['kvStatus'] = '已绑定'
        except BoardError as e:
            info['kvStatus'] = f'错误: {e.message}'

        try:
            test_key = f'test-{now_ms()}'
            board.admin_config.put(test_key, 'test-value')
            board.admin_config.delete(test_key)
            info['kvWriteTest'] = '成功'
        except BoardError as e:
            info['kvWriteTest'] = f'失败: {e.message}'

    try:
        info['activeSessions'] = board.session_store.count()
        info['sessionsStatus'] = '已绑定'
    except BoardError as e:
        info['sessionsStatus'] = f'错误: {e.message}'

    return json_response(context, info)


def debug_session(context, board):
    try:
        body = parse_request_body(context.req)
    except ValueError as e:
        return error_response(context, '会话调试失败', 400, details=str(e))

    session_id = body.get('sessionId')
    info = {
        'timestamp': now_iso(),
        'sessionId': session_id or '未提供',
        'sessionValid': False,
        'sessionData': None,
    }
    if session_id:
        try:
            session_data = board.session_store.get(session_id)
            info['sessionValid'] = bool(session_data)
            info['sessionData'] = session_data
        except BoardError as e:
            info['sessionError'] = e.message

    return json_response(context, info)
