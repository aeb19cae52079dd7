"""
阿里云短信服务商（官方 SDK，短信服务 Dysmsapi SendSms）
"""
import json
from typing import Any, Dict

from alibabacloud_dysmsapi20170525 import models as dysmsapi_models
from alibabacloud_dysmsapi20170525.client import Client as DysmsapiClient
from alibabacloud_tea_openapi import models as open_api_models
from alibabacloud_tea_util import models as util_models
from loguru import logger

from .base import SMSProvider, SMSProviderFactory


class AliyunSMSProvider(SMSProvider):
    """阿里云短信服务商"""

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.client = self._create_client()

    def send_verification_code(self, phone: str, code: str) -> Dict[str, Any]:
        phone_number = self.normalize_phone(phone)

        send_sms_request = dysmsapi_models.SendSmsRequest(
            sign_name=self.config['sign_name'],
            template_code=self.config['template_code'],
            phone_numbers=phone_number,
            template_param=json.dumps({'code': code})
        )
        runtime = util_models.RuntimeOptions(
            read_timeout=self.config.get('timeout', 10) * 1000,
            connect_timeout=self.config.get('timeout', 10) * 1000
        )

        try:
            response = self.client.send_sms_with_options(send_sms_request, runtime)
        except Exception as e:
            # SDK 将服务端错误包装为 TeaException，统一转换为失败结果
            logger.error(f"[阿里云短信] 调用失败: {str(e)}")
            return {
                'success': False,
                'message': f'发送验证码失败: {str(e)}',
                'error_code': 'SEND_ERROR'
            }

        if response.status_code != 200 or not response.body:
            return {
                'success': False,
                'message': '发送失败，请稍后重试',
                'error_code': 'HTTP_ERROR'
            }

        body = response.body
        if body.code == 'OK':
            return {
                'success': True,
                'message': '验证码已发送',
                'message_id': body.biz_id
            }
        return {
            'success': False,
            'message': self.get_user_friendly_error(body.code, body.message),
            'error_code': body.code
        }

    def _create_client(self) -> DysmsapiClient:
        """创建阿里云短信客户端"""
        config = open_api_models.Config(
            access_key_id=self.config['access_key_id'],
            access_key_secret=self.config['access_key_secret']
        )
        config.endpoint = self.config.get('sms_endpoint') or 'dysmsapi.aliyuncs.com'
        return DysmsapiClient(config)


# 注册阿里云提供商
SMSProviderFactory.register_provider('aliyun', AliyunSMSProvider)
