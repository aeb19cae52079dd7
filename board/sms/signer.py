"""
阿里云 OpenAPI 请求签名

- V1（RPC 风格）：HMAC-SHA1，签名作为 Signature 参数随请求发送
- V3：ACS3-HMAC-SHA256，基于规范化请求（canonical request），签名放在 Authorization 头

参考阿里云文档《RPC 风格请求体签名》和《V3 版本请求体&签名机制》。
"""
import base64
import hashlib
import hmac
import uuid
from datetime import datetime, timezone
from typing import Dict, Mapping, Optional, Tuple
from urllib.parse import quote

V3_ALGORITHM = 'ACS3-HMAC-SHA256'


def percent_encode(value) -> str:
    """RFC 3986 编码：空格 -> %20，* -> %2A，保留 ~"""
    return quote(str(value), safe='~')


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """YYYY-MM-DDTHH:MM:SSZ"""
    now = now or datetime.now(timezone.utc)
    return now.strftime('%Y-%m-%dT%H:%M:%SZ')


def new_nonce() -> str:
    return uuid.uuid4().hex


# ========== V1 / RPC ==========

def canonicalized_query(params: Mapping[str, object]) -> str:
    """按参数名排序并编码，排除 Signature 本身"""
    return '&'.join(
        f'{percent_encode(key)}={percent_encode(params[key])}'
        for key in sorted(params)
        if key != 'Signature'
    )


def rpc_string_to_sign(method: str, params: Mapping[str, object]) -> str:
    return f'{method.upper()}&{percent_encode("/")}&{percent_encode(canonicalized_query(params))}'


def sign_rpc(access_key_secret: str, method: str, params: Mapping[str, object]) -> str:
    """HMAC-SHA1 签名，密钥为 AccessKeySecret + '&'，结果 Base64"""
    string_to_sign = rpc_string_to_sign(method, params)
    digest = hmac.new(
        (access_key_secret + '&').encode('utf-8'),
        string_to_sign.encode('utf-8'),
        hashlib.sha1
    ).digest()
    return base64.b64encode(digest).decode('utf-8')


def rpc_common_params(access_key_id: str, action: str, version: str,
                      timestamp: Optional[str] = None, nonce: Optional[str] = None) -> Dict[str, str]:
    """RPC 风格公共请求参数"""
    return {
        'AccessKeyId': access_key_id,
        'Action': action,
        'Format': 'JSON',
        'SignatureMethod': 'HMAC-SHA1',
        'SignatureNonce': nonce or new_nonce(),
        'SignatureVersion': '1.0',
        'Timestamp': timestamp or utc_timestamp(),
        'Version': version,
    }


def signed_rpc_params(access_key_id: str, access_key_secret: str, action: str, version: str,
                      params: Mapping[str, object], method: str = 'POST',
                      timestamp: Optional[str] = None, nonce: Optional[str] = None) -> Dict[str, str]:
    """公共参数 + 业务参数 + Signature"""
    signed = rpc_common_params(access_key_id, action, version, timestamp=timestamp, nonce=nonce)
    signed.update({key: str(value) for key, value in params.items()})
    signed['Signature'] = sign_rpc(access_key_secret, method, signed)
    return signed


# ========== V3 ==========

def hashed_payload(body: bytes = b'') -> str:
    return hashlib.sha256(body).hexdigest()


def _is_signed_header(name: str) -> bool:
    return name in ('host', 'content-type') or name.startswith('x-acs-')


def canonical_headers(headers: Mapping[str, str]) -> Tuple[str, str]:
    """
    Returns:
        (CanonicalHeaders, SignedHeaders)
        CanonicalHeaders 每行 "name:value\\n"，SignedHeaders 为分号连接的头名
    """
    signed = sorted(
        (name.lower(), str(value).strip())
        for name, value in headers.items()
        if _is_signed_header(name.lower())
    )
    canonical = ''.join(f'{name}:{value}\n' for name, value in signed)
    signed_names = ';'.join(name for name, _ in signed)
    return canonical, signed_names


def v3_canonical_request(method: str, canonical_uri: str, query: Mapping[str, object],
                         headers: Mapping[str, str], body: bytes = b'') -> Tuple[str, str]:
    """
    Returns:
        (CanonicalRequest, SignedHeaders)
    """
    canonical, signed_names = canonical_headers(headers)
    canonical_request = '\n'.join([
        method.upper(),
        canonical_uri or '/',
        canonicalized_query(query),
        canonical,
        signed_names,
        headers.get('x-acs-content-sha256') or hashed_payload(body),
    ])
    return canonical_request, signed_names


def v3_string_to_sign(canonical_request: str) -> str:
    return f'{V3_ALGORITHM}\n{hashlib.sha256(canonical_request.encode("utf-8")).hexdigest()}'


def sign_v3(access_key_secret: str, string_to_sign: str) -> str:
    return hmac.new(
        access_key_secret.encode('utf-8'),
        string_to_sign.encode('utf-8'),
        hashlib.sha256
    ).hexdigest()


def signed_v3_headers(access_key_id: str, access_key_secret: str, host: str, action: str,
                      version: str, query: Mapping[str, object], body: bytes = b'',
                      method: str = 'POST', date: Optional[str] = None,
                      nonce: Optional[str] = None,
                      content_type: Optional[str] = None) -> Dict[str, str]:
    """构造带 Authorization 的完整 V3 请求头"""
    headers = {
        'host': host,
        'x-acs-action': action,
        'x-acs-version': version,
        'x-acs-date': date or utc_timestamp(),
        'x-acs-signature-nonce': nonce or new_nonce(),
        'x-acs-content-sha256': hashed_payload(body),
    }
    if content_type:
        headers['content-type'] = content_type

    canonical_request, signed_names = v3_canonical_request(method, '/', query, headers, body)
    signature = sign_v3(access_key_secret, v3_string_to_sign(canonical_request))
    headers['Authorization'] = (
        f'{V3_ALGORITHM} Credential={access_key_id},SignedHeaders={signed_names},Signature={signature}'
    )
    return headers
