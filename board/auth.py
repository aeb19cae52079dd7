"""
管理员认证
- 密码登录：发放 session-* 会话
- 手机号登录：白名单 + 短信验证后发放 admin-session-* 会话
- 授权手机号白名单的读取与维护
"""
import hmac
import json
import re
from typing import List, Optional, Tuple

from loguru import logger

from board.config import Config
from board.errors import (
    PhoneExistsError,
    PhoneNotFoundError,
    StorageError,
    WhitelistUnavailableError,
)
from board.models import new_record_id, now_ms
from board.storage import KVNamespace

SESSION_AUTHENTICATED = 'authenticated'
SMS_VERIFIED = 'verified'
AUTHORIZED_PHONES_KEY = 'AUTHORIZED_PHONES'
PHONE_PATTERN = re.compile(r'^1[3-9]\d{9}$')


def check_password(provided: Optional[str], expected: Optional[str]) -> bool:
    """常量时间比较密码，未配置密码时一律不通过"""
    if not expected or not isinstance(provided, str):
        return False
    return hmac.compare_digest(provided.encode('utf-8'), expected.encode('utf-8'))


def is_valid_phone(phone: Optional[str]) -> bool:
    """中国大陆 11 位手机号"""
    return isinstance(phone, str) and bool(PHONE_PATTERN.match(phone))


def mask_phone(phone: str) -> str:
    if len(phone) < 7:
        return phone
    return f'{phone[:3]}****{phone[-4:]}'


class SessionStore:
    """管理员会话存储"""

    def __init__(self, namespace: KVNamespace, config: Config):
        self.namespace = namespace
        self.config = config

    def create_password_session(self) -> str:
        """密码登录会话"""
        session_id = new_record_id('session')
        self.namespace.put(session_id, SESSION_AUTHENTICATED, ttl=self.config.ADMIN_SESSION_TTL)
        return session_id

    def create_phone_session(self, phone: str) -> str:
        """手机号登录会话"""
        session_id = new_record_id('admin-session')
        self.namespace.put_json(session_id, {
            'phoneNumber': phone,
            'authenticated': True,
            'createdAt': now_ms(),
        }, ttl=self.config.PHONE_SESSION_TTL)
        logger.info(f"[会话] 手机号会话已创建: {mask_phone(phone)}")
        return session_id

    def get(self, session_id: Optional[str]) -> Optional[str]:
        if not session_id:
            return None
        return self.namespace.get(session_id)

    def is_admin(self, token: Optional[str]) -> bool:
        """token 是否对应有效的管理员会话（密码会话或手机号会话）"""
        value = self.get(token)
        if value is None:
            return False
        if value == SESSION_AUTHENTICATED:
            return True
        try:
            data = json.loads(value)
        except ValueError:
            return False
        return isinstance(data, dict) and data.get('authenticated') is True

    def mark_sms_verified(self, phone: str) -> None:
        self.namespace.put(self._sms_verified_key(phone), SMS_VERIFIED, ttl=self.config.SMS_VERIFIED_TTL)

    def is_sms_verified(self, phone: str) -> bool:
        return self.namespace.get(self._sms_verified_key(phone)) is not None

    def count(self) -> int:
        return len(self.namespace.list_keys())

    @staticmethod
    def _sms_verified_key(phone: str) -> str:
        return f'admin-sms-verified:{phone}'


class PhoneWhitelist:
    """授权管理员手机号白名单"""

    def __init__(self, namespace: Optional[KVNamespace], config: Config):
        self.namespace = namespace
        self.config = config

    @staticmethod
    def parse(raw: str) -> List[str]:
        """逗号分隔字符串 -> 合法手机号列表"""
        return [phone.strip() for phone in (raw or '').split(',') if is_valid_phone(phone.strip())]

    def load(self) -> Tuple[List[str], str]:
        """
        读取白名单

        Returns:
            (手机号列表, 来源)，来源为 'kv' 或 'env'
        """
        if self.namespace is not None:
            try:
                raw = self.namespace.get(AUTHORIZED_PHONES_KEY) or ''
            except StorageError as e:
                logger.warning(f"[白名单] 读取存储失败，使用环境变量: {e.message}")
                raw = ''
            if raw:
                return self.parse(raw), 'kv'
        return self.parse(self.config.ADMIN_AUTHORIZED_PHONES), 'env'

    def contains(self, phone: str) -> bool:
        phones, _ = self.load()
        return phone in phones

    def add(self, phone: str) -> List[str]:
        phones, _ = self.load()
        if phone in phones:
            raise PhoneExistsError()
        phones.append(phone)
        self._save(phones)
        return phones

    def remove(self, phone: str) -> List[str]:
        phones, _ = self.load()
        if phone not in phones:
            raise PhoneNotFoundError()
        phones = [item for item in phones if item != phone]
        self._save(phones)
        return phones

    def _save(self, phones: List[str]) -> None:
        value = ','.join(phones)
        if self.namespace is None:
            raise WhitelistUnavailableError(details={
                'currentList': phones,
                'newList': value,
                'instruction': f'请将此字符串设置为环境变量ADMIN_AUTHORIZED_PHONES: {value}',
            })
        self.namespace.put(AUTHORIZED_PHONES_KEY, value)
        logger.info(f"[白名单] 已保存 {len(phones)} 个授权手机号")
