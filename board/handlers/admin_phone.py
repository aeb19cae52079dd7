"""
管理员手机号登录与白名单维护
- POST /api/admin-phone-auth: check（白名单 + 短信验证 -> 会话）/ verify-sms（确认短信验证并记录）
- GET  /api/admin-phone-list: 授权手机号列表
- POST /api/admin-phone-manage: add / delete（需要管理员会话）
"""
from board.auth import is_valid_phone
from board.errors import BoardError, VerificationError, WhitelistUnavailableError
from board.http import error_response, json_response, parse_request_body

STORAGE_LABEL = 'KV存储'


def _phone_error(context, phone):
    """手机号缺失或格式错误时返回错误响应"""
    if not phone:
        return error_response(context, '手机号不能为空', 400)
    if not is_valid_phone(phone):
        return error_response(context, '手机号格式不正确', 400)
    return None


def phone_auth(context, board):
    try:
        body = parse_request_body(context.req)
        phone = body.get('phoneNumber')
        action = body.get('action')

        problem = _phone_error(context, phone)
        if problem:
            return problem

        if action == 'check':
            if not board.whitelist.contains(phone):
                return error_response(context, '该手机号未授权访问管理后台', 403, code='UNAUTHORIZED_PHONE')
            if not board.session_store.is_sms_verified(phone):
                return error_response(context, '请先完成短信验证', 401, code='SMS_NOT_VERIFIED')

            session_id = board.session_store.create_phone_session(phone)
            return json_response(context, {
                'success': True,
                'sessionId': session_id,
                'message': '管理员身份验证成功'
            })

        if action == 'verify-sms':
            # 先经 sms-verify check 校验过的手机号可以不再提交验证码
            code = body.get('code')
            board.verification.confirm(phone, str(code) if code else None)
            board.session_store.mark_sms_verified(phone)
            return json_response(context, {'success': True, 'message': '短信验证状态已记录'})

        return error_response(context, '无效的操作类型', 400)

    except VerificationError as e:
        return error_response(context, e.message, e.status, code=e.code)
    except ValueError as e:
        return error_response(context, str(e), 400)
    except Exception as e:
        context.error(f'[ADMIN-PHONE-AUTH] 验证失败: {str(e)}')
        return error_response(context, '验证失败', 500)


def phone_list(context, board):
    try:
        phones, _ = board.whitelist.load()
    except Exception as e:
        context.error(f'[ADMIN-PHONE-LIST] 获取失败: {str(e)}')
        return error_response(context, '获取手机号码列表失败', 500)
    return json_response(context, {'success': True, 'phones': phones, 'count': len(phones)})


def phone_manage(context, board):
    try:
        body = parse_request_body(context.req)
    except ValueError as e:
        return error_response(context, str(e), 400)

    action = body.get('action')
    phone = body.get('phoneNumber')
    session_id = body.get('sessionId')
    context.log(f"[ADMIN-PHONE-MANAGE] 收到请求: action={action}, sessionId={'已提供' if session_id else '未提供'}")

    if not session_id:
        return error_response(context, '会话无效，请重新登录', 401)
    try:
        session_data = board.session_store.get(session_id)
    except BoardError as e:
        context.error(f'[ADMIN-PHONE-MANAGE] 会话查询失败: {e.message}')
        return error_response(context, f'会话查询失败: {e.message}', 500)
    if not session_data:
        return error_response(context, '会话已过期，请重新登录', 401)

    problem = _phone_error(context, phone)
    if problem:
        return problem

    try:
        if action == 'add':
            current = board.whitelist.add(phone)
            message = '手机号码添加成功'
        elif action == 'delete':
            current = board.whitelist.remove(phone)
            message = '手机号码删除成功'
        else:
            return error_response(context, '无效的操作类型', 400)
    except WhitelistUnavailableError as e:
        context.error('[ADMIN-PHONE-MANAGE] 白名单存储未配置，无法持久化保存')
        return error_response(context, e.message, e.status, debug=e.details)
    except BoardError as e:
        return error_response(context, e.message, e.status)
    except Exception as e:
        context.error(f'[ADMIN-PHONE-MANAGE] 操作失败: {type(e).__name__}: {str(e)}')
        return error_response(context, f'操作失败: {str(e)}', 500)

    context.log(f'[ADMIN-PHONE-MANAGE] {message}，当前共 {len(current)} 个')
    return json_response(context, {
        'success': True,
        'message': message,
        'phoneNumber': phone,
        'currentList': current,
        'storage': STORAGE_LABEL,
    })
