"""
短信验证码接口 POST /api/sms-verify
{action: 'send' | 'check', phoneNumber, code}
"""
from board.auth import is_valid_phone
from board.errors import BoardError, VerificationError
from board.http import error_response, json_response, parse_request_body


def handle(context, board):
    try:
        body = parse_request_body(context.req)
        action = body.get('action')
        phone = body.get('phoneNumber')
        code = body.get('code')

        # 提供了手机号则先校验格式
        if phone and not is_valid_phone(phone):
            return error_response(context, '手机号格式不正确', 400)

        if action == 'send':
            if not phone:
                return error_response(context, '手机号不能为空', 400)
            result = board.verification.send(phone)
            return json_response(context, result)

        if action == 'check':
            if not phone or not code:
                return error_response(context, '手机号和验证码不能为空', 400)
            result = board.verification.check(phone, str(code))
            return json_response(context, result)

        return error_response(context, '无效的操作类型', 400)

    except VerificationError as e:
        return error_response(context, e.message, e.status, code=e.code)
    except BoardError as e:
        context.error(f'[SMS] {type(e).__name__}: {e.message}')
        return error_response(context, e.message, e.status, type=type(e).__name__)
    except ValueError as e:
        return error_response(context, str(e), 400)
    except Exception as e:
        context.error(f'[SMS] 未知错误: {type(e).__name__}: {str(e)}')
        return error_response(context, '操作失败', 500, type=type(e).__name__)
