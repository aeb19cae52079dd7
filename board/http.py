"""
请求解析与响应构造
兼容 Appwrite Function 运行时的 context.req / context.res 接口
"""
import json
from typing import Any, Dict, Iterable, Optional

from loguru import logger

DEFAULT_ALLOW_HEADERS = 'Content-Type, Authorization'
ALL_METHODS = ('GET', 'POST', 'PUT', 'DELETE', 'OPTIONS')


# ========== 请求 ==========

def parse_request_body(req) -> Dict[str, Any]:
    """解析请求体，空请求体返回 {}，非 JSON 对象抛出 ValueError"""
    body = getattr(req, 'body', None)
    if isinstance(body, dict):
        return body
    if isinstance(body, bytes):
        body = body.decode('utf-8')
    if not body:
        return {}
    try:
        payload = json.loads(body)
    except ValueError as e:
        raise ValueError(f'无效的请求体: {str(e)}')
    if not isinstance(payload, dict):
        raise ValueError('请求体必须是 JSON 对象')
    return payload


def get_header(req, name: str) -> Optional[str]:
    """读取请求头（大小写不敏感）"""
    headers = getattr(req, 'headers', None) or {}
    name = name.lower()
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def bearer_token(req) -> Optional[str]:
    """从 Authorization 头中取出 Bearer token，没有该头返回 None"""
    auth_header = get_header(req, 'Authorization')
    if auth_header is None:
        return None
    return auth_header.replace('Bearer ', '', 1).strip()


def query_param(req, name: str) -> Optional[str]:
    query = getattr(req, 'query', None) or {}
    value = query.get(name)
    if isinstance(value, list):
        return value[0] if value else None
    return value


# ========== 响应 ==========

def cors_headers(methods: Iterable[str] = ALL_METHODS,
                 allow_headers: str = DEFAULT_ALLOW_HEADERS) -> Dict[str, str]:
    return {
        'Access-Control-Allow-Origin': '*',
        'Access-Control-Allow-Methods': ', '.join(methods),
        'Access-Control-Allow-Headers': allow_headers,
    }


def common_headers(extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """JSON 响应的通用响应头"""
    headers = {
        'Content-Type': 'application/json; charset=utf-8',
        'Cache-Control': 'no-store',
        'X-Content-Type-Options': 'nosniff',
        **cors_headers(),
    }
    if extra:
        headers.update(extra)
    return headers


def json_response(context, body: Any, status: int = 200, headers: Optional[Dict[str, str]] = None):
    return context.res.json(body, status, common_headers(headers))


def text_response(context, body: str, status: int = 200, headers: Optional[Dict[str, str]] = None):
    text_headers = {'Content-Type': 'text/plain; charset=utf-8', **cors_headers()}
    if headers:
        text_headers.update(headers)
    return context.res.text(body, status, text_headers)


def error_response(context, message: str, status: int = 400, **extra):
    """错误响应: {'error': message, ...extra}"""
    return json_response(context, {'error': message, **extra}, status)


def preflight(context, methods: Iterable[str] = ('POST', 'OPTIONS'),
              allow_headers: str = DEFAULT_ALLOW_HEADERS):
    """CORS 预检响应"""
    headers = cors_headers(methods, allow_headers)
    headers['Access-Control-Max-Age'] = '86400'
    return context.res.send('', 204, headers)


# ========== 本地运行时 ==========

class LocalRequest:
    """本地请求对象，字段与 Appwrite 运行时的 context.req 一致"""

    def __init__(self, method: str = 'GET', path: str = '/', body: Any = '',
                 headers: Optional[Dict[str, str]] = None, query: Optional[Dict[str, str]] = None):
        self.method = method.upper()
        self.path = path
        self.body = json.dumps(body) if isinstance(body, (dict, list)) else body
        self.headers = {key.lower(): value for key, value in (headers or {}).items()}
        self.query = dict(query or {})


class LocalResponse:
    """本地响应对象，返回值与 Appwrite 运行时相同: {'body', 'statusCode', 'headers'}"""

    def send(self, body: str = '', status: int = 200, headers: Optional[Dict[str, str]] = None):
        return {'body': body, 'statusCode': status, 'headers': dict(headers or {})}

    def text(self, body: str, status: int = 200, headers: Optional[Dict[str, str]] = None):
        return self.send(body, status, headers)

    def json(self, obj: Any, status: int = 200, headers: Optional[Dict[str, str]] = None):
        merged = {'Content-Type': 'application/json; charset=utf-8'}
        merged.update(headers or {})
        return self.send(json.dumps(obj, ensure_ascii=False), status, merged)

    def empty(self):
        return self.send('', 204)


class LocalContext:
    """本地运行上下文，日志写入 loguru"""

    def __init__(self, request: LocalRequest):
        self.req = request
        self.res = LocalResponse()

    def log(self, message: Any) -> None:
        logger.info(str(message))

    def error(self, message: Any) -> None:
        logger.error(str(message))
