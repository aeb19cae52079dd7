"""
键值存储基类
每个命名空间（建言、公告、会话等）对应一个 KVNamespace 实例
"""
import json
from abc import ABC, abstractmethod
from typing import Any, List, Optional


class KVNamespace(ABC):
    """键值命名空间抽象基类"""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        读取键值

        Args:
            key: 键名

        Returns:
            字符串值，不存在或已过期返回 None
        """
        pass

    @abstractmethod
    def put(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """
        写入键值

        Args:
            key: 键名
            value: 字符串值
            ttl: 有效期（秒），None 表示永不过期
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """删除键，键不存在时不报错"""
        pass

    @abstractmethod
    def list_keys(self, prefix: Optional[str] = None, limit: Optional[int] = None) -> List[str]:
        """
        列出键名（按字典序，不含已过期的键）

        Args:
            prefix: 键名前缀过滤
            limit: 最多返回的数量
        """
        pass

    def get_json(self, key: str) -> Optional[Any]:
        """读取并解析 JSON 值，解析失败视为不存在"""
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            return None

    def put_json(self, key: str, obj: Any, ttl: Optional[int] = None) -> None:
        """序列化为 JSON 后写入"""
        self.put(key, json.dumps(obj, ensure_ascii=False), ttl=ttl)
