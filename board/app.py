"""
应用装配与路由
- Board: 持有配置、各存储命名空间以及会话、白名单、验证码服务
- ROUTES / PREFIX_ROUTES: 路径与方法 -> 处理函数
- dispatch: 按路径分发请求
"""
from typing import Callable, Dict, Optional

from appwrite.client import Client
from appwrite.services.databases import Databases
from loguru import logger

from board.auth import PhoneWhitelist, SessionStore
from board.config import Config
from board.errors import BoardError
from board.handlers import admin, admin_phone, advice, advice_admin, advice_comment, bulletin, posts, sms_verify
from board.http import error_response, preflight
from board.sms.providers import SMSProvider, SMSProviderFactory
from board.sms.verification import VerificationService
from board.storage import AppwriteKV, KVNamespace, MemoryKV


class Board:
    """一次部署所需的全部依赖"""

    def __init__(self, config: Config, advices: KVNamespace, bulletins: KVNamespace,
                 sessions: KVNamespace, verification_codes: KVNamespace,
                 admin_config: Optional[KVNamespace] = None,
                 sms_provider_factory: Optional[Callable[[], SMSProvider]] = None):
        self.config = config
        self.advices = advices
        self.bulletins = bulletins
        self.sessions = sessions
        self.verification_codes = verification_codes
        self.admin_config = admin_config

        self.session_store = SessionStore(sessions, config)
        self.whitelist = PhoneWhitelist(admin_config, config)
        self.verification = VerificationService(
            verification_codes,
            sms_provider_factory or self._create_sms_provider,
            config
        )

    def _create_sms_provider(self) -> SMSProvider:
        return SMSProviderFactory.create_provider(self.config.SMS_PROVIDER, self.config.sms_provider_config())


def create_board(config: Config, databases: Optional[Databases] = None) -> Board:
    """按配置的存储后端创建 Board"""
    if config.KV_BACKEND == 'memory':
        logger.info("使用内存存储")

        def namespace(collection_id):
            return MemoryKV()
    else:
        if databases is None:
            client = Client()
            client.set_endpoint(config.APPWRITE_ENDPOINT)
            client.set_project(config.APPWRITE_PROJECT_ID)
            client.set_key(config.APPWRITE_API_KEY)
            databases = Databases(client)
        logger.info(f"使用 Appwrite 存储, 数据库: {config.APPWRITE_DATABASE_ID}")

        def namespace(collection_id):
            return AppwriteKV(databases, config.APPWRITE_DATABASE_ID, collection_id)

    # 未配置白名单集合时只读取环境变量
    admin_config = namespace(config.ADMIN_CONFIG_COLLECTION_ID) if config.ADMIN_CONFIG_COLLECTION_ID else None

    return Board(
        config,
        advices=namespace(config.ADVICES_COLLECTION_ID),
        bulletins=namespace(config.BULLETIN_COLLECTION_ID),
        sessions=namespace(config.SESSIONS_COLLECTION_ID),
        verification_codes=namespace(config.VERIFICATION_COLLECTION_ID),
        admin_config=admin_config,
    )


# ========== 路由 ==========

ROUTES: Dict[str, Dict[str, Callable]] = {
    '/api/advice': {'GET': advice.handle, 'POST': advice.handle},
    '/api/advice-comment': {'POST': advice_comment.handle},
    '/api/advice-admin': {'GET': advice_admin.list_for_review, 'POST': advice_admin.review},
    '/api/admin-auth': {'POST': admin.login},
    '/api/admin-auth-check': {'POST': admin.check_session},
    '/api/admin-debug': {'GET': admin.debug_status, 'POST': admin.debug_session},
    '/api/admin-phone-auth': {'POST': admin_phone.phone_auth},
    '/api/admin-phone-list': {'GET': admin_phone.phone_list},
    '/api/admin-phone-manage': {'POST': admin_phone.phone_manage},
    '/api/bulletin': {'GET': bulletin.handle, 'POST': bulletin.handle},
    '/api/sms-verify': {'POST': sms_verify.handle},
    # 第一版留言接口
    '/api/post': {'POST': posts.create_post},
    '/api/list': {'GET': posts.list_approved},
    '/api/list-all': {'GET': posts.list_all},
    '/api/admin-list': {'GET': posts.list_for_admin},
    '/api/approve': {'POST': posts.approve_post},
    '/api/delete': {'POST': posts.delete_post},
}

# 带记录 ID 的路径: 前缀 -> (方法表, 处理函数的 ID 参数名)
PREFIX_ROUTES: Dict[str, tuple] = {
    '/api/advice/': ({'PUT': advice.handle, 'DELETE': advice.handle}, 'advice_id'),
    '/api/bulletin/': ({'PUT': bulletin.handle, 'DELETE': bulletin.handle}, 'bulletin_id'),
}


def resolve(path: str):
    """
    查找路径对应的路由

    Returns:
        (方法表, 额外参数)，未匹配返回 (None, {})
    """
    if len(path) > 1:
        path = path.rstrip('/')

    if path in ROUTES:
        return ROUTES[path], {}

    for prefix, (methods, param) in PREFIX_ROUTES.items():
        if path.startswith(prefix):
            record_id = path[len(prefix):]
            if record_id and '/' not in record_id:
                return methods, {param: record_id}

    return None, {}


def dispatch(board: Board, context):
    """将请求分发到对应的处理函数"""
    method = (context.req.method or 'GET').upper()
    path = context.req.path or '/'

    methods, kwargs = resolve(path)
    if methods is None:
        return error_response(context, 'Not found', 404)

    if method == 'OPTIONS':
        return preflight(context, [*methods, 'OPTIONS'])

    handler = methods.get(method)
    if handler is None:
        return error_response(context, '方法不支持', 405)

    try:
        return handler(context, board, **kwargs)
    except BoardError as e:
        context.error(f'[ROUTER] {method} {path} {type(e).__name__}: {e.message}')
        return error_response(context, e.message, e.status)
    except Exception as e:
        context.error(f'[ROUTER] {method} {path} 未处理的异常: {type(e).__name__}: {str(e)}')
        return error_response(context, '操作失败', 500)

