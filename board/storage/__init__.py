"""
键值存储模块
"""
from .base import KVNamespace
from .memory_kv import MemoryKV
from .appwrite_kv import AppwriteKV

__all__ = ['KVNamespace', 'MemoryKV', 'AppwriteKV']
