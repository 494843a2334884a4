#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
表单定义注册表

从 JSON 文件加载表单区块定义；文件不存在时使用内置的登录表单和退订表单。
"""

import json
from pathlib import Path
from typing import Dict, List, Optional, Union

from loguru import logger
from pydantic import ValidationError

from webforms.models.fields import FieldDescriptor, FieldOption, FieldType, FormBlock, FormType


def default_forms() -> List[FormBlock]:
    """内置表单定义"""
    return [
        FormBlock(
            form_type=FormType.LOGIN,
            form_id='login',
            title='Login',
            submit_label='Log in',
            fields=[
                FieldDescriptor(name='username', label='Username', required=True),
                FieldDescriptor(name='password', label='Password', required=True, input_type='password'),
            ],
        ),
        FormBlock(
            form_type=FormType.UNSUBSCRIBE,
            form_id='unsubscribe',
            title='Unsubscribe',
            submit_label='Unsubscribe',
            fields=[
                FieldDescriptor(
                    name='reason',
                    type=FieldType.SELECT,
                    label='Reason',
                    options=[
                        FieldOption(label='Too many emails', value='too-many'),
                        FieldOption(label='No longer relevant', value='not-relevant'),
                        FieldOption(label='Other', value='other'),
                    ],
                ),
                FieldDescriptor(name='comment', type=FieldType.TEXTAREA, label='Comment'),
                FieldDescriptor(
                    name='confirm',
                    type=FieldType.CHECKBOX,
                    label='I want to stop receiving survey invitations',
                    required=True,
                ),
            ],
        ),
    ]


class FormRegistry:
    """按表单标识查找表单定义"""

    def __init__(self, forms: Optional[List[FormBlock]] = None):
        self._forms: Dict[str, FormBlock] = {}
        for block in forms if forms is not None else default_forms():
            self.add(block)

    def add(self, block: FormBlock) -> None:
        if block.form_id in self._forms:
            raise ValueError(f'表单标识重复: {block.form_id}')
        self._forms[block.form_id] = block

    def get(self, form_id: str) -> Optional[FormBlock]:
        return self._forms.get(form_id)

    def all(self) -> List[FormBlock]:
        return list(self._forms.values())

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'FormRegistry':
        """
        从 JSON 文件加载表单定义

        文件内容为表单区块对象的数组；文件不存在时返回内置定义。

        Raises:
            ValueError: JSON 或表单定义无效
        """
        path = Path(path)
        if not path.exists():
            logger.info(f'未找到表单定义文件 {path}，使用内置表单')
            return cls()

        try:
            raw = json.loads(path.read_text(encoding='utf-8'))
            forms = [FormBlock.model_validate(item) for item in raw]
        except (ValueError, ValidationError) as e:
            logger.error(f'加载表单定义失败: {path}, {str(e)}')
            raise

        logger.info(f'从 {path} 加载了 {len(forms)} 个表单')
        return cls(forms)
