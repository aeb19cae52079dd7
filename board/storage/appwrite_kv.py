"""
基于 Appwrite 数据库的键值存储实现

每个键对应集合中的一个文档:
- key: 原始键名（字符串，需建立索引以支持前缀查询）
- value: 字符串值
- expiresAt: 过期时间（Unix 秒），0 表示永不过期

Appwrite 文档 ID 最长 36 个字符且只允许 [A-Za-z0-9._-]，
因此文档 ID 使用键名的 md5 十六进制摘要。
"""
import hashlib
import time
from typing import Callable, List, Optional

from appwrite.exception import AppwriteException
from appwrite.query import Query
from appwrite.services.databases import Databases
from loguru import logger

from board.errors import StorageError
from .base import KVNamespace

PAGE_SIZE = 100


def document_id_for(key: str) -> str:
    """键名 -> 文档 ID"""
    return hashlib.md5(key.encode('utf-8')).hexdigest()


class AppwriteKV(KVNamespace):
    """Appwrite 集合键值命名空间"""

    def __init__(self, databases: Databases, database_id: str, collection_id: str,
                 clock: Callable[[], float] = time.time):
        self.databases = databases
        self.database_id = database_id
        self.collection_id = collection_id
        self._clock = clock

    def _is_expired(self, document: dict) -> bool:
        expires_at = document.get('expiresAt') or 0
        return bool(expires_at) and self._clock() >= float(expires_at)

    def get(self, key: str) -> Optional[str]:
        try:
            document = self.databases.get_document(
                database_id=self.database_id,
                collection_id=self.collection_id,
                document_id=document_id_for(key)
            )
        except AppwriteException as e:
            if e.code == 404:
                return None
            raise StorageError(f'读取 {self.collection_id}/{key} 失败: {e.message}')

        if self._is_expired(document):
            logger.debug(f"[AppwriteKV] 键已过期: {self.collection_id}/{key}")
            self.delete(key)
            return None
        return document.get('value')

    def put(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        data = {
            'key': key,
            'value': value,
            'expiresAt': int(self._clock() + ttl) if ttl else 0,
        }
        document_id = document_id_for(key)
        try:
            self.databases.create_document(
                database_id=self.database_id,
                collection_id=self.collection_id,
                document_id=document_id,
                data=data
            )
            return
        except AppwriteException as e:
            if e.code != 409:
                raise StorageError(f'写入 {self.collection_id}/{key} 失败: {e.message}')

        # 文档已存在，改为更新
        try:
            self.databases.update_document(
                database_id=self.database_id,
                collection_id=self.collection_id,
                document_id=document_id,
                data=data
            )
        except AppwriteException as e:
            raise StorageError(f'更新 {self.collection_id}/{key} 失败: {e.message}')

    def delete(self, key: str) -> None:
        try:
            self.databases.delete_document(
                database_id=self.database_id,
                collection_id=self.collection_id,
                document_id=document_id_for(key)
            )
        except AppwriteException as e:
            if e.code != 404:
                raise StorageError(f'删除 {self.collection_id}/{key} 失败: {e.message}')

    def list_keys(self, prefix: Optional[str] = None, limit: Optional[int] = None) -> List[str]:
        keys: List[str] = []
        expired: List[str] = []
        cursor = None

        while True:
            queries = [Query.order_asc('key'), Query.limit(PAGE_SIZE)]
            if prefix:
                queries.append(Query.starts_with('key', prefix))
            if cursor:
                queries.append(Query.cursor_after(cursor))

            try:
                result = self.databases.list_documents(
                    database_id=self.database_id,
                    collection_id=self.collection_id,
                    queries=queries
                )
            except AppwriteException as e:
                raise StorageError(f'列出 {self.collection_id} 失败: {e.message}')

            documents = result.get('documents', [])
            for document in documents:
                if self._is_expired(document):
                    expired.append(document['key'])
                else:
                    keys.append(document['key'])

            if limit is not None and len(keys) >= limit:
                break
            # 返回的文档少于一页，说明已经是最后一页
            if len(documents) < PAGE_SIZE:
                break
            cursor = documents[-1]['$id']

        # 翻页结束后再清理，避免删除游标所指的文档
        for key in expired:
            logger.debug(f"[AppwriteKV] 清理过期键: {self.collection_id}/{key}")
            self.delete(key)

        keys.sort()
        if limit is not None:
            keys = keys[:limit]
        return keys
