"""
配置管理
所有配置均来自环境变量（Appwrite Function 的变量或本地 .env）
"""
import os
import sys
from typing import Dict, Mapping, Optional

from loguru import logger


def _get_int(environ: Mapping[str, str], key: str, default: int) -> int:
    value = environ.get(key)
    if value is None or value == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"环境变量 {key} 必须是整数: {value}")


class Config:
    """建言板配置类"""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        env = os.environ if environ is None else environ

        # 存储后端: appwrite 或 memory
        self.KV_BACKEND: str = env.get('KV_BACKEND', 'appwrite').lower()

        # Appwrite 配置
        self.APPWRITE_ENDPOINT: str = env.get('APPWRITE_ENDPOINT', 'https://cloud.appwrite.io/v1')
        self.APPWRITE_PROJECT_ID: str = env.get('APPWRITE_PROJECT_ID', '')
        self.APPWRITE_API_KEY: str = env.get('APPWRITE_API_KEY', '')
        self.APPWRITE_DATABASE_ID: str = env.get('APPWRITE_DATABASE_ID', 'main')

        # 各命名空间对应的集合
        self.ADVICES_COLLECTION_ID: str = env.get('ADVICES_COLLECTION_ID', 'advices')
        self.BULLETIN_COLLECTION_ID: str = env.get('BULLETIN_COLLECTION_ID', 'bulletins')
        self.SESSIONS_COLLECTION_ID: str = env.get('SESSIONS_COLLECTION_ID', 'admin_sessions')
        self.ADMIN_CONFIG_COLLECTION_ID: str = env.get('ADMIN_CONFIG_COLLECTION_ID', 'admin_config')
        self.VERIFICATION_COLLECTION_ID: str = env.get('VERIFICATION_COLLECTION_ID', 'sms_verification_codes')

        # 管理员认证
        self.ADMIN_PASSWORD: str = env.get('ADMIN_PASSWORD', 'admin123')
        self.BULLETIN_PASS: str = env.get('BULLETIN_PASS', '')
        self.ADMIN_AUTHORIZED_PHONES: str = env.get('ADMIN_AUTHORIZED_PHONES', '')

        # 短信服务商
        self.SMS_PROVIDER: str = env.get('SMS_PROVIDER', 'aliyun_pns').lower()
        self.ALIYUN_ACCESS_KEY_ID: str = (
            env.get('ALIYUN_ACCESS_KEY_ID') or env.get('ALIBABA_CLOUD_ACCESS_KEY_ID', '')
        )
        self.ALIYUN_ACCESS_KEY_SECRET: str = (
            env.get('ALIYUN_ACCESS_KEY_SECRET') or env.get('ALIBABA_CLOUD_ACCESS_KEY_SECRET', '')
        )
        self.ALIYUN_SMS_SIGN_NAME: str = env.get('ALIYUN_SMS_SIGN_NAME', '')
        self.ALIYUN_SMS_TEMPLATE_CODE: str = env.get('ALIYUN_SMS_TEMPLATE_CODE', '')
        self.ALIYUN_SIGNATURE_VERSION: str = env.get('ALIYUN_SIGNATURE_VERSION', 'v1').lower()
        self.ALIYUN_PNS_ENDPOINT: str = env.get('ALIYUN_PNS_ENDPOINT', 'dypnsapi.aliyuncs.com')
        self.ALIYUN_SMS_ENDPOINT: str = env.get('ALIYUN_SMS_ENDPOINT', 'dysmsapi.aliyuncs.com')
        self.SMS_HTTP_TIMEOUT: int = _get_int(env, 'SMS_HTTP_TIMEOUT', 10)

        # 有效期（秒）
        self.SMS_CODE_TTL: int = _get_int(env, 'SMS_CODE_TTL', 300)
        self.SMS_RATE_LIMIT_SECONDS: int = _get_int(env, 'SMS_RATE_LIMIT_SECONDS', 60)
        self.ADMIN_SESSION_TTL: int = _get_int(env, 'ADMIN_SESSION_TTL', 3600)
        self.PHONE_SESSION_TTL: int = _get_int(env, 'PHONE_SESSION_TTL', 7200)
        self.SMS_VERIFIED_TTL: int = _get_int(env, 'SMS_VERIFIED_TTL', 300)

        # 本地开发服务器
        self.API_HOST: str = env.get('API_HOST', '127.0.0.1')
        self.API_PORT: int = _get_int(env, 'API_PORT', 8000)

        # 日志配置
        self.LOG_LEVEL: str = env.get('LOG_LEVEL', 'INFO').upper()

    def validate(self):
        """验证必需的配置项"""
        if self.KV_BACKEND not in ('appwrite', 'memory'):
            raise ValueError(f"不支持的存储后端: {self.KV_BACKEND}")

        if self.KV_BACKEND == 'appwrite':
            required_vars = {
                'APPWRITE_PROJECT_ID': self.APPWRITE_PROJECT_ID,
                'APPWRITE_API_KEY': self.APPWRITE_API_KEY,
            }
            missing = [key for key, value in required_vars.items() if not value]
            if missing:
                raise ValueError(f"缺少必需的环境变量: {', '.join(missing)}")

        if self.ALIYUN_SIGNATURE_VERSION not in ('v1', 'v3'):
            raise ValueError(f"不支持的阿里云签名版本: {self.ALIYUN_SIGNATURE_VERSION}")

    def sms_config_status(self) -> Dict[str, str]:
        """短信配置状态（不包含敏感信息）"""
        return {
            'ALIYUN_ACCESS_KEY_ID': '已设置' if self.ALIYUN_ACCESS_KEY_ID else '未设置',
            'ALIYUN_ACCESS_KEY_SECRET': '已设置' if self.ALIYUN_ACCESS_KEY_SECRET else '未设置',
            'ALIYUN_SMS_SIGN_NAME': self.ALIYUN_SMS_SIGN_NAME or '未设置',
            'ALIYUN_SMS_TEMPLATE_CODE': self.ALIYUN_SMS_TEMPLATE_CODE or '未设置',
        }

    def sms_provider_config(self) -> Dict[str, object]:
        """传给短信服务商的配置"""
        return {
            'access_key_id': self.ALIYUN_ACCESS_KEY_ID,
            'access_key_secret': self.ALIYUN_ACCESS_KEY_SECRET,
            'sign_name': self.ALIYUN_SMS_SIGN_NAME,
            'template_code': self.ALIYUN_SMS_TEMPLATE_CODE,
            'signature_version': self.ALIYUN_SIGNATURE_VERSION,
            'pns_endpoint': self.ALIYUN_PNS_ENDPOINT,
            'sms_endpoint': self.ALIYUN_SMS_ENDPOINT,
            'timeout': self.SMS_HTTP_TIMEOUT,
        }


_logging_configured = False


def configure_logging(level: str = 'INFO') -> None:
    """配置 loguru，只安装一次 stderr 输出"""
    global _logging_configured
    if _logging_configured:
        return
    logger.remove()
    logger.add(sys.stderr, level=level)
    _logging_configured = True
