"""
短信服务商基类
定义统一的接口规范
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Type


class SMSProvider(ABC):
    """短信服务商基类"""

    REQUIRED_KEYS = ('access_key_id', 'access_key_secret', 'sign_name', 'template_code')

    def __init__(self, config: Dict[str, Any]):
        """
        初始化短信服务商

        Args:
            config: 配置参数字典
        """
        self.config = config
        self.validate_config()

    def validate_config(self) -> None:
        """
        验证配置参数

        Raises:
            ValueError: 当配置参数不完整时
        """
        missing = [key for key in self.REQUIRED_KEYS if not self.config.get(key)]
        if missing:
            raise ValueError(f'短信服务配置不完整: 缺少 {", ".join(missing)}')

    @abstractmethod
    def send_verification_code(self, phone: str, code: str) -> Dict[str, Any]:
        """
        发送验证码短信

        Args:
            phone: 手机号码（不带+86前缀）
            code: 已生成的验证码

        Returns:
            Dict[str, Any]: 发送结果
            {
                'success': bool,
                'message': str,
                'message_id': Optional[str],
                'error_code': Optional[str]
            }
        """
        pass

    def normalize_phone(self, phone: str) -> str:
        """
        标准化手机号格式

        Returns:
            str: 标准化后的手机号（不带+86前缀）
        """
        if not phone:
            return ''

        # 移除所有空格和特殊字符
        phone = phone.replace(' ', '').replace('-', '').replace('(', '').replace(')', '')

        # 移除+86前缀
        if phone.startswith('+86'):
            phone = phone[3:]
        elif phone.startswith('86') and len(phone) == 13:
            phone = phone[2:]

        return phone

    def get_user_friendly_error(self, error_code: str, error_msg: str) -> str:
        """将阿里云错误码转换为用户友好的错误信息"""
        return ALIYUN_ERROR_MESSAGES.get(error_code, f'发送失败: {error_msg}')


ALIYUN_ERROR_MESSAGES = {
    'isp.RAM_PERMISSION_DENY': '权限不足，请联系管理员',
    'isv.OUT_OF_SERVICE': '业务停机，请联系管理员',
    'isv.PRODUCT_UN_SUBSCRIPT': '未开通云通信产品',
    'isv.PRODUCT_UNSUBSCRIBE': '产品未开通',
    'isv.ACCOUNT_NOT_EXISTS': '账户不存在',
    'isv.ACCOUNT_ABNORMAL': '账户异常',
    'isv.SMS_TEMPLATE_ILLEGAL': '短信模板不合法',
    'isv.SMS_SIGNATURE_ILLEGAL': '短信签名不合法',
    'isv.INVALID_PARAMETERS': '参数异常',
    'isv.MOBILE_NUMBER_ILLEGAL': '手机号码格式错误',
    'isv.MOBILE_COUNT_OVER_LIMIT': '手机号码数量超过限制',
    'isv.TEMPLATE_MISSING_PARAMETERS': '模板缺少变量',
    'isv.BUSINESS_LIMIT_CONTROL': '业务限流',
    'isv.INVALID_JSON_PARAM': 'JSON参数不合法',
    'isv.AMOUNT_NOT_ENOUGH': '账户余额不足',
    'isv.TEMPLATE_PARAMS_ILLEGAL': '模板变量里包含非法关键字',
    'SignatureDoesNotMatch': '签名校验失败，请检查 AccessKey 配置',
    'InvalidAccessKeyId.NotFound': 'AccessKeyId 不存在',
    'MissingPhoneNumber': '缺少手机号',
    'InvalidPhoneNumber': '手机号码格式错误',
    'biz.FREQUENCY': '发送过于频繁，请稍后再试',
}


class SMSProviderFactory:
    """短信服务商工厂类"""

    _providers: Dict[str, Type[SMSProvider]] = {}

    @classmethod
    def register_provider(cls, name: str, provider_class: Type[SMSProvider]):
        """注册短信服务商"""
        cls._providers[name] = provider_class

    @classmethod
    def create_provider(cls, name: str, config: Dict[str, Any]) -> SMSProvider:
        """
        创建短信服务商实例

        Raises:
            ValueError: 当服务商不存在或配置不完整时
        """
        if name not in cls._providers:
            raise ValueError(f'未知的短信服务商: {name}')

        provider_class = cls._providers[name]
        return provider_class(config)

    @classmethod
    def get_available_providers(cls) -> list:
        """获取可用的服务商列表"""
        return list(cls._providers.keys())
