"""
业务异常
每个异常携带 HTTP 状态码和面向用户的提示信息，由请求处理函数转换为 JSON 响应
"""
from typing import Any, Dict, Optional


class BoardError(Exception):
    """建言板异常基类"""

    status = 500
    message = '操作失败'

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.message = message or self.message
        if status is not None:
            self.status = status
        self.details = details or {}
        super().__init__(self.message)


class StorageError(BoardError):
    """键值存储访问失败"""
    message = '存储服务异常'


# ========== 短信验证 ==========

class VerificationError(BoardError):
    """验证码校验失败"""
    status = 400
    code = 'VERIFY_ERROR'


class CodeNotFoundError(VerificationError):
    message = '验证码不存在或已过期'
    code = 'CODE_NOT_FOUND'


class CodeExpiredError(VerificationError):
    message = '验证码已过期'
    code = 'CODE_EXPIRED'


class CodeMismatchError(VerificationError):
    message = '验证码错误'
    code = 'CODE_INVALID'


class RateLimitedError(BoardError):
    status = 429
    message = '发送过于频繁，请稍后再试'


class SMSConfigError(BoardError):
    status = 500
    message = '短信服务配置不完整'


class SMSDeliveryError(BoardError):
    status = 502
    message = '发送验证码失败'


# ========== 管理员手机号白名单 ==========

class PhoneExistsError(BoardError):
    status = 409
    message = '该手机号码已存在'


class PhoneNotFoundError(BoardError):
    status = 404
    message = '该手机号码不存在'


class WhitelistUnavailableError(BoardError):
    status = 500
    message = '授权手机号存储未配置，无法保存手机号码'
