from board.app import Board, dispatch
from board.http import LocalContext, LocalRequest
from board.storage import MemoryKV
from conftest import ADMIN_PHONE, Result, StubSMSProvider, make_config


def login(call):
    return call('POST', '/api/admin-auth', {'password': 'bulletin-pass'})


def test_login_and_check(call):
    result = login(call)
    assert result.status == 200
    session_id = result.json['sessionId']
    assert session_id.startswith('session-')

    result = call('POST', '/api/admin-auth-check', {'sessionId': session_id})
    assert result.json == {'success': True, 'message': '会话有效'}


def test_login_errors(call):
    assert call('POST', '/api/admin-auth', {}).json == {'error': '密码不能为空'}
    result = call('POST', '/api/admin-auth', {'password': 'review-pass'})
    assert result.status == 401
    assert result.json == {'error': '密码错误'}


def test_check_session_errors(call):
    assert call('POST', '/api/admin-auth-check', {}).status == 401
    result = call('POST', '/api/admin-auth-check', {'sessionId': 'session-unknown'})
    assert result.status == 401
    assert result.json == {'error': '会话已过期'}


def test_debug_status_hides_secrets(call):
    result = call('GET', '/api/admin-debug')
    assert result.status == 200
    info = result.json
    assert info['environment']['ADMIN_PASSWORD'] == '已设置'
    assert info['environment']['ALIYUN_ACCESS_KEY_SECRET'] == '已设置'
    assert 'testsecret' not in result.text
    assert 'review-pass' not in result.text
    assert info['kvStatus'] == '已绑定'
    assert info['kvWriteTest'] == '成功'
    assert info['sessionsStatus'] == '已绑定'


def test_debug_session(call):
    session_id = login(call).json['sessionId']
    info = call('POST', '/api/admin-debug', {'sessionId': session_id}).json
    assert info['sessionValid'] is True
    assert info['sessionData'] == 'authenticated'

    info = call('POST', '/api/admin-debug', {}).json
    assert info['sessionId'] == '未提供'
    assert info['sessionValid'] is False


# ========== 手机号登录 ==========

def test_phone_login_flow(call, sms_provider):
    result = call('POST', '/api/admin-phone-auth', {'action': 'check', 'phoneNumber': ADMIN_PHONE})
    assert result.status == 401
    assert result.json['code'] == 'SMS_NOT_VERIFIED'

    assert call('POST', '/api/sms-verify', {'action': 'send', 'phoneNumber': ADMIN_PHONE}).status == 200
    code = sms_provider.sent[-1][1]

    result = call('POST', '/api/admin-phone-auth', {'action': 'verify-sms', 'phoneNumber': ADMIN_PHONE, 'code': code})
    assert result.json == {'success': True, 'message': '短信验证状态已记录'}

    result = call('POST', '/api/admin-phone-auth', {'action': 'check', 'phoneNumber': ADMIN_PHONE})
    assert result.status == 200
    assert result.json['sessionId'].startswith('admin-session-')


def test_phone_auth_rejects_unlisted_phone(call):
    result = call('POST', '/api/admin-phone-auth', {'action': 'check', 'phoneNumber': '13900139000'})
    assert result.status == 403
    assert result.json['code'] == 'UNAUTHORIZED_PHONE'


def test_verify_sms_requires_valid_code(call, board):
    result = call('POST', '/api/admin-phone-auth', {'action': 'verify-sms', 'phoneNumber': ADMIN_PHONE})
    assert result.status == 400

    result = call('POST', '/api/admin-phone-auth',
                  {'action': 'verify-sms', 'phoneNumber': ADMIN_PHONE, 'code': '123456'})
    assert result.status == 400
    assert result.json['code'] == 'CODE_NOT_FOUND'
    assert not board.session_store.is_sms_verified(ADMIN_PHONE)


def test_phone_auth_validation(call):
    assert call('POST', '/api/admin-phone-auth', {'action': 'check'}).json == {'error': '手机号不能为空'}
    result = call('POST', '/api/admin-phone-auth', {'action': 'check', 'phoneNumber': '123'})
    assert result.json == {'error': '手机号格式不正确'}
    result = call('POST', '/api/admin-phone-auth', {'action': 'other', 'phoneNumber': ADMIN_PHONE})
    assert result.json == {'error': '无效的操作类型'}


def test_phone_list(call):
    result = call('GET', '/api/admin-phone-list')
    assert result.json == {'success': True, 'phones': [ADMIN_PHONE], 'count': 1}


def test_phone_manage(call, admin_token):
    def manage(action, phone):
        return call('POST', '/api/admin-phone-manage',
                    {'action': action, 'phoneNumber': phone, 'sessionId': admin_token})

    result = manage('add', '13900139000')
    assert result.status == 200
    assert result.json['currentList'] == [ADMIN_PHONE, '13900139000']
    assert result.json['storage'] == 'KV存储'
    assert call('GET', '/api/admin-phone-list').json['count'] == 2

    result = manage('add', '13900139000')
    assert result.status == 409
    assert result.json == {'error': '该手机号码已存在'}

    assert manage('delete', ADMIN_PHONE).json['currentList'] == ['13900139000']
    assert manage('delete', ADMIN_PHONE).status == 404
    assert manage('rename', ADMIN_PHONE).status == 400


def test_phone_manage_requires_session(call):
    result = call('POST', '/api/admin-phone-manage', {'action': 'add', 'phoneNumber': '13900139000'})
    assert result.status == 401
    result = call('POST', '/api/admin-phone-manage',
                  {'action': 'add', 'phoneNumber': '13900139000', 'sessionId': 'session-expired'})
    assert result.status == 401
    assert result.json == {'error': '会话已过期，请重新登录'}


def test_phone_login_after_sms_verify_check(call, sms_provider):
    call('POST', '/api/sms-verify', {'action': 'send', 'phoneNumber': ADMIN_PHONE})
    code = sms_provider.sent[-1][1]

    result = call('POST', '/api/sms-verify', {'action': 'check', 'phoneNumber': ADMIN_PHONE, 'code': code})
    assert result.json == {'success': True, 'message': '验证成功'}

    result = call('POST', '/api/admin-phone-auth', {'action': 'verify-sms', 'phoneNumber': ADMIN_PHONE})
    assert result.json == {'success': True, 'message': '短信验证状态已记录'}

    result = call('POST', '/api/admin-phone-auth', {'action': 'check', 'phoneNumber': ADMIN_PHONE})
    assert result.status == 200
    assert result.json['sessionId'].startswith('admin-session-')

    # 校验凭证只能使用一次
    result = call('POST', '/api/admin-phone-auth', {'action': 'verify-sms', 'phoneNumber': ADMIN_PHONE})
    assert result.status == 400
    assert result.json['code'] == 'CODE_NOT_FOUND'


def test_phone_manage_without_whitelist_storage():
    board = Board(make_config(), MemoryKV(), MemoryKV(), MemoryKV(), MemoryKV(),
                  admin_config=None, sms_provider_factory=StubSMSProvider)
    session_id = board.session_store.create_password_session()
    request = LocalRequest('POST', '/api/admin-phone-manage',
                           {'action': 'add', 'phoneNumber': '13900139000', 'sessionId': session_id})
    result = Result(dispatch(board, LocalContext(request)))

    assert result.status == 500
    assert result.json['error'] == '授权手机号存储未配置，无法保存手机号码'
    assert result.json['debug']['newList'] == f'{ADMIN_PHONE},13900139000'
    assert result.json['debug']['instruction'] == (
        f'请将此字符串设置为环境变量ADMIN_AUTHORIZED_PHONES: {ADMIN_PHONE},13900139000'
    )
