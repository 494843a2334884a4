#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
表单字段值持久化

每个 (form_id, field_name) 对应一个 Cookie，值为 JSON 序列化后再做百分号编码。
Cookie 名称格式: webforms_<编码后表单标识长度>_<编码后表单标识>_<编码后字段名>。
长度前缀保证一个表单的命名空间不会是另一个表单 Cookie 名称的前缀。
"""

import json
from typing import Any, Dict, Iterator, Optional, Tuple
from urllib.parse import quote, unquote

from loguru import logger

from webforms.services.cookie_storage import SECONDS_PER_DAY, CookieStorage
from webforms.utils.config import settings

COOKIE_PREFIX = 'webforms_'
DEFAULT_RETENTION_DAYS = 30


def _encode(text: str) -> str:
    return quote(text, safe='')


def form_namespace(form_id: str) -> str:
    """表单的 Cookie 名称前缀"""
    encoded = _encode(form_id)
    return f'{COOKIE_PREFIX}{len(encoded)}_{encoded}_'


def field_key(form_id: str, field_name: str) -> str:
    """字段的 Cookie 名称"""
    return form_namespace(form_id) + _encode(field_name)


class FieldStore:
    """按表单隔离的字段值存储"""

    def __init__(self, storage: CookieStorage, retention_days: int = DEFAULT_RETENTION_DAYS):
        self.storage = storage
        self.retention_days = retention_days

    def set(self, form_id: str, field_name: str, value: Any) -> None:
        """
        保存字段值

        Args:
            form_id: 表单标识
            field_name: 字段名称
            value: JSON 兼容的字段值
        """
        payload = _encode(json.dumps(value))
        self.storage.write(field_key(form_id, field_name), payload, self.retention_days * SECONDS_PER_DAY)
        logger.debug(f'保存字段值: 表单={form_id}, 字段={field_name}')

    def get_all(self, form_id: str) -> Dict[str, Any]:
        """
        读取表单的全部已保存字段值

        格式错误的条目会被跳过；无法解析为 JSON 的值按原始字符串返回。
        """
        form_data = {}
        for field_name, raw_value in self._entries(form_id):
            try:
                form_data[field_name] = json.loads(raw_value)
            except ValueError:
                form_data[field_name] = raw_value
        return form_data

    def clear(self, form_id: str) -> int:
        """删除表单的全部已保存字段值，返回删除数量"""
        names = [field_name for field_name, _ in self._entries(form_id)]
        for field_name in names:
            self.storage.delete(field_key(form_id, field_name))
        if names:
            logger.info(f'已清除表单 {form_id} 的 {len(names)} 个字段值')
        return len(names)

    def _entries(self, form_id: str) -> Iterator[Tuple[str, str]]:
        prefix = form_namespace(form_id)
        for cookie in self.storage.read().split(';'):
            cookie = cookie.strip()
            if not cookie.startswith(prefix):
                continue

            name, sep, value = cookie.partition('=')
            if not sep:
                logger.debug(f'跳过格式错误的 Cookie: {name}')
                continue

            field_name = unquote(name[len(prefix):])
            if not field_name:
                continue
            yield field_name, unquote(value)


def create_field_store(storage: CookieStorage, retention_days: Optional[int] = None) -> FieldStore:
    """按配置创建字段存储"""
    return FieldStore(storage, retention_days or settings.FIELD_COOKIE_DAYS)
