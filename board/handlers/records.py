"""
记录读取辅助函数
"""
from typing import Any, Dict, List, Optional

from board.models import sort_newest_first
from board.storage import KVNamespace


def load_records(namespace: KVNamespace, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """按键名顺序读取全部 JSON 对象记录，附带 id（键名），跳过无法解析的值"""
    records = []
    for key in namespace.list_keys(limit=limit):
        record = namespace.get_json(key)
        if isinstance(record, dict):
            records.append({**record, 'id': key})
    return records


def load_all(namespace: KVNamespace) -> List[Dict[str, Any]]:
    """全部记录，按日期倒序"""
    return sort_newest_first(load_records(namespace))
