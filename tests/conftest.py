"""
测试公共夹具：内存存储 + 桩短信服务商，通过 LocalContext 调用路由
"""
import json

import pytest

from board.app import Board, dispatch
from board.config import Config
from board.http import LocalContext, LocalRequest
from board.storage import MemoryKV

ADMIN_PASSWORD = 'review-pass'
BULLETIN_PASS = 'bulletin-pass'
ADMIN_PHONE = '13800138000'


class FakeClock:
    """可手动推进的时钟"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubSMSProvider:
    """记录发送内容的短信服务商"""

    def __init__(self, success: bool = True):
        self.success = success
        self.sent = []

    def send_verification_code(self, phone, code):
        self.sent.append((phone, code))
        if self.success:
            return {'success': True, 'message': '验证码已发送', 'message_id': 'stub-biz-id'}
        return {'success': False, 'message': '发送失败: 模拟错误', 'error_code': 'isv.MOCK'}


class Result:
    """路由返回值的便捷包装"""

    def __init__(self, raw):
        self.raw = raw
        self.status = raw['statusCode']
        self.headers = raw['headers']
        self.text = raw['body']

    @property
    def json(self):
        return json.loads(self.text)


def make_config(**overrides):
    env = {
        'KV_BACKEND': 'memory',
        'ADMIN_PASSWORD': ADMIN_PASSWORD,
        'BULLETIN_PASS': BULLETIN_PASS,
        'ADMIN_AUTHORIZED_PHONES': ADMIN_PHONE,
        'ALIYUN_ACCESS_KEY_ID': 'testid',
        'ALIYUN_ACCESS_KEY_SECRET': 'testsecret',
        'ALIYUN_SMS_SIGN_NAME': '建言板',
        'ALIYUN_SMS_TEMPLATE_CODE': 'SMS_000001',
    }
    env.update(overrides)
    return Config(env)


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def sms_provider():
    return StubSMSProvider()


@pytest.fixture
def board(config, sms_provider):
    return Board(
        config,
        advices=MemoryKV(),
        bulletins=MemoryKV(),
        sessions=MemoryKV(),
        verification_codes=MemoryKV(),
        admin_config=MemoryKV(),
        sms_provider_factory=lambda: sms_provider,
    )


@pytest.fixture
def call(board):
    def _call(method, path, body='', headers=None, query=None):
        request = LocalRequest(method, path, body=body, headers=headers, query=query)
        return Result(dispatch(board, LocalContext(request)))
    return _call


@pytest.fixture
def admin_token(board):
    return board.session_store.create_password_session()


@pytest.fixture
def auth_headers(admin_token):
    return {'Authorization': f'Bearer {admin_token}'}
