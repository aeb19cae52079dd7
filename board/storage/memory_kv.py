"""
基于内存的键值存储实现
适用于本地开发和测试环境
"""
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from .base import KVNamespace


class MemoryKV(KVNamespace):
    """内存键值命名空间"""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}  # {key: (value, expires_at)}
        self._clock = clock
        self._lock = threading.Lock()

    def _expired(self, expires_at: Optional[float]) -> bool:
        return expires_at is not None and self._clock() >= expires_at

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._expired(expires_at):
                del self._data[key]
                return None
            return value

    def put(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        if not isinstance(value, str):
            raise TypeError('value 必须是字符串')
        with self._lock:
            expires_at = self._clock() + ttl if ttl else None
            self._data[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def list_keys(self, prefix: Optional[str] = None, limit: Optional[int] = None) -> List[str]:
        with self._lock:
            keys = sorted(
                key for key, (_, expires_at) in self._data.items()
                if not self._expired(expires_at) and (not prefix or key.startswith(prefix))
            )
        if limit is not None:
            keys = keys[:limit]
        return keys
