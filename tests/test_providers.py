import json
from types import SimpleNamespace
from urllib.parse import parse_qs

import httpx
import pytest

from board.sms import signer
from board.sms.providers import AliyunPnsProvider, AliyunSMSProvider, SMSProviderFactory


def pns_config(handler, **overrides):
    config = {
        'access_key_id': 'testid',
        'access_key_secret': 'testsecret',
        'sign_name': '建言板',
        'template_code': 'SMS_000001',
        'signature_version': 'v1',
        'timeout': 5,
        'transport': httpx.MockTransport(handler),
    }
    config.update(overrides)
    return config


def ok_response(request):
    return httpx.Response(200, json={'Code': 'OK', 'Message': 'OK', 'RequestId': 'req-1',
                                     'Model': {'BizId': 'biz-1'}})


def test_factory_registers_aliyun_providers():
    assert {'aliyun', 'aliyun_pns'} <= set(SMSProviderFactory.get_available_providers())
    with pytest.raises(ValueError):
        SMSProviderFactory.create_provider('volc', {})


def test_missing_config_is_rejected():
    with pytest.raises(ValueError) as excinfo:
        AliyunPnsProvider(pns_config(ok_response, sign_name=''))
    assert 'sign_name' in str(excinfo.value)

    with pytest.raises(ValueError):
        AliyunPnsProvider(pns_config(ok_response, signature_version='v2'))


def test_normalize_phone():
    provider = AliyunPnsProvider(pns_config(ok_response))
    assert provider.normalize_phone('+86 138-0013-8000') == '13800138000'
    assert provider.normalize_phone('8613800138000') == '13800138000'


def test_v1_request_is_signed_form():
    captured = []

    def handler(request):
        captured.append(request)
        return ok_response(request)

    provider = AliyunPnsProvider(pns_config(handler))
    result = provider.send_verification_code('13800138000', '123456')
    assert result == {'success': True, 'message': '验证码已发送', 'message_id': 'biz-1'}

    [request] = captured
    assert request.method == 'POST'
    assert request.url.host == 'dypnsapi.aliyuncs.com'
    assert request.headers['content-type'] == 'application/x-www-form-urlencoded'

    form = {key: values[0] for key, values in parse_qs(request.content.decode('utf-8')).items()}
    assert form['Action'] == 'SendSmsVerifyCode'
    assert form['Version'] == '2017-05-25'
    assert form['PhoneNumber'] == '13800138000'
    assert form['SignName'] == '建言板'
    assert json.loads(form['TemplateParam']) == {'code': '123456'}
    assert form['Signature'] == signer.sign_rpc('testsecret', 'POST', form)


def test_v3_request_carries_authorization_header():
    captured = []

    def handler(request):
        captured.append(request)
        return ok_response(request)

    provider = AliyunPnsProvider(pns_config(handler, signature_version='v3'))
    assert provider.send_verification_code('13800138000', '654321')['success'] is True

    [request] = captured
    assert request.headers['x-acs-action'] == 'SendSmsVerifyCode'
    assert request.headers['x-acs-version'] == '2017-05-25'
    assert request.headers['authorization'].startswith('ACS3-HMAC-SHA256 Credential=testid,SignedHeaders=')
    assert request.url.params['PhoneNumber'] == '13800138000'
    assert json.loads(request.url.params['TemplateParam']) == {'code': '654321'}


def test_business_error_is_translated():
    def handler(request):
        return httpx.Response(200, json={'Code': 'isv.BUSINESS_LIMIT_CONTROL', 'Message': 'limit'})

    result = AliyunPnsProvider(pns_config(handler)).send_verification_code('13800138000', '123456')
    assert result['success'] is False
    assert result['error_code'] == 'isv.BUSINESS_LIMIT_CONTROL'
    assert result['message'] == '业务限流'


def test_transport_errors_become_failures():
    def broken(request):
        raise httpx.ConnectError('connection refused', request=request)

    result = AliyunPnsProvider(pns_config(broken)).send_verification_code('13800138000', '123456')
    assert result['success'] is False
    assert result['error_code'] == 'HTTP_ERROR'

    def not_json(request):
        return httpx.Response(502, text='Bad Gateway')

    result = AliyunPnsProvider(pns_config(not_json)).send_verification_code('13800138000', '123456')
    assert result['error_code'] == 'HTTP_ERROR'


# ========== 官方 SDK 短信 ==========

class FakeDysmsapiClient:

    def __init__(self, body=None, error=None):
        self.body = body
        self.error = error
        self.requests = []

    def send_sms_with_options(self, request, runtime):
        self.requests.append(request)
        if self.error:
            raise self.error
        return SimpleNamespace(status_code=200, body=self.body)


def sdk_provider(monkeypatch, client):
    monkeypatch.setattr(AliyunSMSProvider, '_create_client', lambda self: client)
    return AliyunSMSProvider(pns_config(ok_response))


def test_sdk_provider_success(monkeypatch):
    client = FakeDysmsapiClient(body=SimpleNamespace(code='OK', biz_id='biz-2', message='OK'))
    result = sdk_provider(monkeypatch, client).send_verification_code('13800138000', '112233')
    assert result == {'success': True, 'message': '验证码已发送', 'message_id': 'biz-2'}

    [request] = client.requests
    assert request.phone_numbers == '13800138000'
    assert json.loads(request.template_param) == {'code': '112233'}


def test_sdk_provider_failure(monkeypatch):
    client = FakeDysmsapiClient(body=SimpleNamespace(code='isv.MOBILE_NUMBER_ILLEGAL', biz_id=None, message='bad'))
    result = sdk_provider(monkeypatch, client).send_verification_code('13800138000', '112233')
    assert result['success'] is False
    assert result['message'] == '手机号码格式错误'

    client = FakeDysmsapiClient(error=RuntimeError('timeout'))
    result = sdk_provider(monkeypatch, client).send_verification_code('13800138000', '112233')
    assert result['error_code'] == 'SEND_ERROR'
