"""
短信验证码服务
验证码由本服务生成并保存在键值存储中，短信服务商只负责投递
"""
import secrets
import time
from typing import Any, Callable, Dict, Optional

from loguru import logger

from board.auth import mask_phone
from board.config import Config
from board.errors import (
    CodeExpiredError,
    CodeMismatchError,
    CodeNotFoundError,
    RateLimitedError,
    SMSConfigError,
    SMSDeliveryError,
)
from board.sms.providers import SMSProvider
from board.storage import KVNamespace


def generate_code() -> str:
    """6 位数字验证码（100000-999999）"""
    return str(100000 + secrets.randbelow(900000))


class VerificationService:
    """发送与校验短信验证码"""

    def __init__(self, namespace: KVNamespace, provider_factory: Callable[[], SMSProvider],
                 config: Config, clock: Callable[[], float] = time.time):
        self.namespace = namespace
        self.provider_factory = provider_factory
        self.config = config
        self._clock = clock

    @staticmethod
    def code_key(phone: str) -> str:
        return f'sms-verify:{phone}'

    @staticmethod
    def rate_key(phone: str) -> str:
        return f'sms-rate:{phone}'

    @staticmethod
    def proof_key(phone: str) -> str:
        return f'sms-checked:{phone}'

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _check_rate_limit(self, phone: str) -> None:
        last_send = self.namespace.get(self.rate_key(phone))
        if not last_send:
            return
        try:
            last_send_ms = int(last_send)
        except ValueError:
            return
        if self._now_ms() - last_send_ms < self.config.SMS_RATE_LIMIT_SECONDS * 1000:
            raise RateLimitedError()

    def _get_provider(self) -> SMSProvider:
        try:
            return self.provider_factory()
        except ValueError as e:
            logger.error(f"[验证码] 短信服务商初始化失败: {str(e)}")
            raise SMSConfigError()

    def send(self, phone: str) -> Dict[str, Any]:
        """
        生成并发送验证码

        Raises:
            RateLimitedError: 同一手机号发送过于频繁
            SMSConfigError: 短信服务配置不完整
            SMSDeliveryError: 短信服务商返回失败
        """
        self._check_rate_limit(phone)
        provider = self._get_provider()

        code = generate_code()
        now_ms = self._now_ms()
        self.namespace.put_json(self.code_key(phone), {
            'code': code,
            'phoneNumber': phone,
            'createdAt': now_ms,
            'expiresAt': now_ms + self.config.SMS_CODE_TTL * 1000,
        }, ttl=self.config.SMS_CODE_TTL)

        result = provider.send_verification_code(phone, code)
        if not result.get('success'):
            self.namespace.delete(self.code_key(phone))
            logger.warning(f"[验证码] 发送失败: {mask_phone(phone)}, {result.get('error_code')}")
            raise SMSDeliveryError(result.get('message') or None)

        self.namespace.put(self.rate_key(phone), str(now_ms), ttl=self.config.SMS_RATE_LIMIT_SECONDS)
        logger.info(f"[验证码] 已发送: {mask_phone(phone)}, MessageID: {result.get('message_id', '')}")
        return {'success': True, 'message': '验证码已发送'}

    def check(self, phone: str, code: str) -> Dict[str, Any]:
        """
        校验验证码，成功后删除（一次性使用），并留下短时有效的校验凭证

        Raises:
            CodeNotFoundError / CodeExpiredError / CodeMismatchError
        """
        key = self.code_key(phone)
        stored = self.namespace.get_json(key)
        if not isinstance(stored, dict):
            raise CodeNotFoundError()

        if self._now_ms() > int(stored.get('expiresAt') or 0):
            self.namespace.delete(key)
            raise CodeExpiredError()

        if str(stored.get('code')) != str(code):
            raise CodeMismatchError()

        self.namespace.delete(key)
        self.namespace.put(self.proof_key(phone), str(self._now_ms()), ttl=self.config.SMS_VERIFIED_TTL)
        logger.info(f"[验证码] 验证成功: {mask_phone(phone)}")
        return {'success': True, 'message': '验证成功'}

    def confirm(self, phone: str, code: Optional[str] = None) -> None:
        """
        确认手机号已通过短信验证: 优先消耗 check 留下的凭证，否则校验传入的验证码

        Raises:
            CodeNotFoundError / CodeExpiredError / CodeMismatchError
        """
        proof_key = self.proof_key(phone)
        if self.namespace.get(proof_key) is None:
            if not code:
                raise CodeNotFoundError()
            self.check(phone, code)
        self.namespace.delete(proof_key)
