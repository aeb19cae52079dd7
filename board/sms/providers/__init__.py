"""
短信服务商
导入具体实现以完成注册
"""
from .base import SMSProvider, SMSProviderFactory
from .pns_provider import AliyunPnsProvider
from .aliyun_provider import AliyunSMSProvider

__all__ = ['SMSProvider', 'SMSProviderFactory', 'AliyunPnsProvider', 'AliyunSMSProvider']
