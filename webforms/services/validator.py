#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
表单字段校验

纯函数，不访问 DOM，也不做任何 I/O。调用方负责把单选组折叠为一个字段条目。
"""

import re
from typing import Any, Iterable, Mapping, Tuple, Union

from webforms.models.fields import FieldEntry, ValidationResult

REQUIRED_MESSAGE = 'This field is required.'
CHECKED_MESSAGE = 'This field must be checked.'

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def validate_required(value: Any) -> Tuple[bool, str]:
    """
    校验必填字段的值

    Args:
        value: 字段值，可以是列表 (多选)、bool (复选框) 或文本

    Returns:
        (是否通过, 错误信息)，通过时错误信息为空字符串
    """
    if isinstance(value, (list, tuple, set, frozenset)):
        return (True, '') if len(value) > 0 else (False, REQUIRED_MESSAGE)

    if isinstance(value, bool):
        return (True, '') if value is True else (False, CHECKED_MESSAGE)

    trimmed = value.strip() if isinstance(value, str) else ''
    return (True, '') if len(trimmed) > 0 else (False, REQUIRED_MESSAGE)


def validate_all_fields(fields: Iterable[Union[FieldEntry, Mapping[str, Any]]]) -> ValidationResult:
    """
    校验表单中的所有字段

    Args:
        fields: 字段条目列表 (name, value, required)，也接受等价的字典

    Returns:
        ValidationResult，errors 以字段名为键
    """
    errors = {}

    for field in fields:
        entry = field if isinstance(field, FieldEntry) else FieldEntry.model_validate(field)
        if not entry.required:
            continue

        is_valid, message = validate_required(entry.value)
        if not is_valid:
            errors[entry.name] = message

    return ValidationResult(is_valid=not errors, errors=errors)


def is_valid_email(value: str) -> bool:
    """简单的邮箱格式校验"""
    return bool(value) and EMAIL_PATTERN.match(value.strip()) is not None
