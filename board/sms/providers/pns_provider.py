"""
阿里云号码认证服务（PNS）短信验证码
直接调用 dypnsapi SendSmsVerifyCode 接口，请求签名自行计算（V1 或 V3）
"""
import json
from typing import Any, Dict

import httpx
from loguru import logger

from board.sms import signer
from .base import SMSProvider, SMSProviderFactory

PNS_ACTION = 'SendSmsVerifyCode'
PNS_VERSION = '2017-05-25'


class AliyunPnsProvider(SMSProvider):
    """阿里云号码认证服务短信"""

    def validate_config(self) -> None:
        super().validate_config()
        if self.config.get('signature_version', 'v1') not in ('v1', 'v3'):
            raise ValueError(f'不支持的签名版本: {self.config.get("signature_version")}')

    @property
    def endpoint(self) -> str:
        return self.config.get('pns_endpoint') or 'dypnsapi.aliyuncs.com'

    def build_params(self, phone_number: str, code: str) -> Dict[str, str]:
        """业务参数（注意 PNS 接口参数名为 PhoneNumber 而非 PhoneNumbers）"""
        return {
            'PhoneNumber': phone_number,
            'SignName': self.config['sign_name'],
            'TemplateCode': self.config['template_code'],
            'TemplateParam': json.dumps({'code': code}),
        }

    def build_request(self, phone_number: str, code: str) -> httpx.Request:
        """构造已签名的 HTTP 请求"""
        params = self.build_params(phone_number, code)
        url = f'https://{self.endpoint}/'

        if self.config.get('signature_version', 'v1') == 'v3':
            headers = signer.signed_v3_headers(
                self.config['access_key_id'],
                self.config['access_key_secret'],
                host=self.endpoint,
                action=PNS_ACTION,
                version=PNS_VERSION,
                query=params,
            )
            # 查询串需与签名时的规范化查询串一致
            return httpx.Request('POST', f'{url}?{signer.canonicalized_query(params)}', headers=headers)

        signed = signer.signed_rpc_params(
            self.config['access_key_id'],
            self.config['access_key_secret'],
            action=PNS_ACTION,
            version=PNS_VERSION,
            params=params,
        )
        body = signer.canonicalized_query(signed) + f'&Signature={signer.percent_encode(signed["Signature"])}'
        return httpx.Request(
            'POST',
            url,
            content=body.encode('utf-8'),
            headers={'Content-Type': 'application/x-www-form-urlencoded'}
        )

    def send_verification_code(self, phone: str, code: str) -> Dict[str, Any]:
        phone_number = self.normalize_phone(phone)
        request = self.build_request(phone_number, code)
        logger.debug(f"[PNS] 发送 {PNS_ACTION}，签名版本: {self.config.get('signature_version', 'v1')}")

        try:
            with httpx.Client(timeout=self.config.get('timeout', 10),
                              transport=self.config.get('transport')) as http_client:
                response = http_client.send(request)
            result = response.json()
        except httpx.HTTPError as e:
            logger.error(f"[PNS] 请求失败: {str(e)}")
            return {
                'success': False,
                'message': '发送失败，请稍后重试',
                'error_code': 'HTTP_ERROR'
            }
        except ValueError:
            logger.error(f"[PNS] 响应不是 JSON, HTTP {response.status_code}")
            return {
                'success': False,
                'message': '发送失败，请稍后重试',
                'error_code': 'HTTP_ERROR'
            }

        if result.get('Code') == 'OK':
            model = result.get('Model') or {}
            return {
                'success': True,
                'message': '验证码已发送',
                'message_id': model.get('BizId') or result.get('RequestId', '')
            }

        error_code = result.get('Code', '')
        logger.warning(f"[PNS] 发送失败: {error_code} {result.get('Message', '')}")
        return {
            'success': False,
            'message': self.get_user_friendly_error(error_code, result.get('Message') or '发送验证码失败'),
            'error_code': error_code
        }


SMSProviderFactory.register_provider('aliyun_pns', AliyunPnsProvider)
