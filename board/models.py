"""
数据模型
记录以 JSON 形式存放在键值存储中，字段名使用 camelCase（与前端保持一致）
"""
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

_BASE36 = string.digits + string.ascii_lowercase


def now_ms() -> int:
    """当前 Unix 毫秒时间戳"""
    return int(time.time() * 1000)


def now_iso() -> str:
    """当前 UTC 时间，ISO-8601 格式（毫秒精度，Z 结尾）"""
    return datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z'


def new_record_id(prefix: str) -> str:
    """生成记录 ID: <prefix>-<毫秒时间戳>-<9位随机串>"""
    suffix = ''.join(secrets.choice(_BASE36) for _ in range(9))
    return f'{prefix}-{now_ms()}-{suffix}'


class RecordModel(BaseModel):
    """记录基类：保留未知字段，支持按字段名或别名构造"""

    class Config:
        extra = 'allow'
        populate_by_name = True

    def to_record(self) -> Dict[str, Any]:
        """转换为存储用的字典（camelCase）"""
        return self.model_dump(by_alias=True, exclude_none=True)


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


class Comment(RecordModel):
    """公开评论"""
    author: str = '匿名'
    content: str
    date: str = Field(default_factory=now_iso)


class Reply(RecordModel):
    """管理员回复"""
    content: str
    date: str = Field(default_factory=now_iso)


class Advice(RecordModel):
    """建言"""
    id: str = Field(default_factory=lambda: new_record_id('advice'))
    name: str = ''
    building: str = ''
    contact: str = ''
    description: str = ''
    attachments: List[Any] = Field(default_factory=list)
    pending_attachments: List[Any] = Field(default_factory=list, alias='pendingAttachments')
    comments: List[Any] = Field(default_factory=list)
    replies: List[Any] = Field(default_factory=list)
    approved: Optional[bool] = None
    date: str = Field(default_factory=now_iso)
    created_at: int = Field(default_factory=now_ms, alias='createdAt')
    updated_at: Optional[int] = Field(None, alias='updatedAt')

    @field_validator('attachments', 'pending_attachments', 'comments', 'replies', mode='before')
    @classmethod
    def _coerce_list(cls, value):
        return _as_list(value)


# ========== 已存储记录的就地修改 ==========
# 直接修改存储中读出的字典，不经模型校验，保留记录原有的字段和日期

def touch(record: Dict[str, Any]) -> Dict[str, Any]:
    record['updatedAt'] = now_ms()
    return record


def append_comment(record: Dict[str, Any], content: str, author: Optional[str] = None) -> Dict[str, Any]:
    comment = Comment(author=author or '匿名', content=content).to_record()
    record['comments'] = [*_as_list(record.get('comments')), comment]
    touch(record)
    return comment


def append_reply(record: Dict[str, Any], content: str) -> Dict[str, Any]:
    reply = Reply(content=content).to_record()
    record['replies'] = [*_as_list(record.get('replies')), reply]
    touch(record)
    return reply


class Bulletin(RecordModel):
    """公告"""
    id: str = Field(default_factory=lambda: new_record_id('bulletin'))
    title: str
    content: str
    attachments: List[Any] = Field(default_factory=list)
    date: str = Field(default_factory=now_iso)
    created_at: int = Field(default_factory=now_ms, alias='createdAt')
    updated_at: Optional[int] = Field(None, alias='updatedAt')

    @field_validator('attachments', mode='before')
    @classmethod
    def _coerce_list(cls, value):
        return _as_list(value)


class LegacyPost(RecordModel):
    """第一版留言（仅标题和内容，需审核后公开）"""
    title: str
    content: str
    time: str = Field(default_factory=now_iso)
    approved: bool = False


def sort_newest_first(records: List[Dict[str, Any]], field: str = 'date') -> List[Dict[str, Any]]:
    """按日期字段倒序排列（ISO 字符串可直接比较），缺少日期的排在最后"""
    return sorted(records, key=lambda record: str(record.get(field) or ''), reverse=True)
