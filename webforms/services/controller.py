#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
表单控制器

把字段存储、校验器和错误展示组合为每个表单实例的状态机:
idle -> validating -> (invalid -> idle) | (submitting -> success | failed -> idle)
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from webforms.models.fields import FieldType
from webforms.services.collector import (
    collect_fields, control_type, find_control, form_values, is_persistable, read_value, write_value,
)
from webforms.services.dom import Document, Element
from webforms.services.field_store import FieldStore
from webforms.services.presentation import LiveRegion, clear_errors, display_errors
from webforms.services.submission import SubmissionClient, SubmissionError
from webforms.services.validator import validate_all_fields

FORM_CONTAINER_CLASS = 'webforms-form'
SUBMIT_CLASS = 'webforms-submit'
GENERAL_ERROR_KEY = 'general'

SUBMITTING_LABEL = 'Submitting...'
SUBMITTING_MESSAGE = 'Submitting form, please wait...'
REDIRECTING_MESSAGE = 'Submission successful, redirecting...'
SUCCESS_MESSAGE = 'Form submitted successfully.'
FAILURE_MESSAGE = 'An error occurred while submitting the form. Please try again.'
NETWORK_ERROR_MESSAGE = 'Network error. Please check your connection and try again.'


class FormState(str, Enum):
    IDLE = 'idle'
    VALIDATING = 'validating'
    INVALID = 'invalid'
    SUBMITTING = 'submitting'
    SUCCESS = 'success'
    FAILED = 'failed'


class FormController:
    """单个表单实例的控制器"""

    def __init__(self, form: Element, store: FieldStore, live_region: LiveRegion,
                 client: Optional[SubmissionClient] = None,
                 navigate: Optional[Callable[[str], None]] = None,
                 clear_on_success: bool = False):
        data = form.dataset
        self.form_id = data.get('form-id', '')
        if not self.form_id:
            raise ValueError('表单缺少 data-form-id 属性')

        self.form = form
        self.store = store
        self.live_region = live_region
        self.client = client or SubmissionClient()
        self.navigate = navigate or (form.document.navigate if form.document is not None else None)
        self.clear_on_success = clear_on_success

        self.action = data.get('action', '')
        self.api_url = data.get('api-url', '')
        self.nonce = data.get('nonce', '')
        self.redirect_url = data.get('redirect-url', '')
        self.use_global_redirect = data.get('use-global-redirect') == 'true'

        self.state = FormState.IDLE
        self.last_result = None
        self.navigated = False

    @property
    def endpoint(self) -> str:
        return f'{self.api_url}{self.action}'

    @property
    def submit_button(self) -> Optional[Element]:
        return self.form.find(class_=SUBMIT_CLASS)

    def restore(self) -> Dict[str, Any]:
        """
        把已保存的字段值写回当前文档中存在的控件

        Returns:
            实际回填的字段名 -> 值；不在当前表单中的旧条目被忽略
        """
        restored = {}
        for field_name, value in self.store.get_all(self.form_id).items():
            control = find_control(self.form, field_name)
            if control is None or not is_persistable(control):
                continue
            write_value(self.form, control, value)
            restored[field_name] = value

        if restored:
            logger.info(f'表单 {self.form_id} 回填了 {len(restored)} 个字段')
        return restored

    def change(self, field_name: str, value: Any) -> None:
        """用户修改字段: 更新控件并保存新值"""
        control = find_control(self.form, field_name)
        if control is None:
            logger.warning(f'表单 {self.form_id} 中不存在字段: {field_name}')
            return

        write_value(self.form, control, value)
        if not is_persistable(control):
            return

        current = read_value(self.form, control)
        if control_type(control) == FieldType.RADIO and current != value:
            return
        self.store.set(self.form_id, field_name, current)

    async def keydown(self, key: str, target: Element) -> Optional[FormState]:
        """在非多行文本框中按回车时提交表单"""
        if key == 'Enter' and target.tag != 'textarea':
            return await self.submit()
        return None

    async def submit(self) -> FormState:
        """
        提交表单

        Returns:
            本次提交的结果状态 (INVALID / SUCCESS / FAILED)；提交进行中时返回 SUBMITTING
        """
        button = self.submit_button
        if self.state == FormState.SUBMITTING or (button is not None and button.has('disabled')):
            logger.debug(f'表单 {self.form_id} 正在提交，忽略重复提交')
            return FormState.SUBMITTING

        self.state = FormState.VALIDATING
        entries = collect_fields(self.form)
        self.last_result = validate_all_fields(entries)

        if not self.last_result.is_valid:
            display_errors(self.form, self.last_result.errors, self.live_region)
            self.state = FormState.IDLE
            await self.live_region.settle()
            return FormState.INVALID

        clear_errors(self.form)
        self.state = FormState.SUBMITTING
        original_label = self._set_busy(button)
        self.live_region.announce(SUBMITTING_MESSAGE)

        payload = form_values(entries)
        payload['useGlobalRedirect'] = self.use_global_redirect
        payload['redirectUrl'] = self.redirect_url

        try:
            outcome = await self._send(payload)
        finally:
            self._reset_busy(button, original_label)
            self.state = FormState.IDLE

        if outcome == FormState.SUCCESS and self.navigated:
            self.state = FormState.SUCCESS
        await self.live_region.settle()
        return outcome

    async def _send(self, payload: Dict[str, Any]) -> FormState:
        self.navigated = False
        try:
            response = await self.client.submit(self.endpoint, payload, self.nonce)
        except SubmissionError:
            display_errors(self.form, {GENERAL_ERROR_KEY: NETWORK_ERROR_MESSAGE}, self.live_region)
            return FormState.FAILED

        if not response.success:
            logger.warning(f'表单 {self.form_id} 提交被拒绝: {response.message}')
            display_errors(self.form, {GENERAL_ERROR_KEY: response.message or FAILURE_MESSAGE}, self.live_region)
            return FormState.FAILED

        logger.info(f'表单 {self.form_id} 提交成功')
        if self.clear_on_success:
            self.store.clear(self.form_id)

        if response.redirect_url and self.navigate is not None:
            self.live_region.announce(REDIRECTING_MESSAGE)
            self.navigate(response.redirect_url)
            self.navigated = True
        else:
            self.live_region.announce(response.message or SUCCESS_MESSAGE)
        return FormState.SUCCESS

    def _set_busy(self, button: Optional[Element]) -> str:
        if button is None:
            return ''
        original_label = button.text
        button.toggle('disabled', True)
        button.set('aria-busy', 'true')
        button.text = SUBMITTING_LABEL
        return original_label

    def _reset_busy(self, button: Optional[Element], original_label: str) -> None:
        if button is None:
            return
        button.toggle('disabled', False)
        button.set('aria-busy', 'false')
        button.text = original_label


def bind_forms(document: Document, store: FieldStore, live_region: Optional[LiveRegion] = None,
               client: Optional[SubmissionClient] = None,
               navigate: Optional[Callable[[str], None]] = None,
               clear_on_success: bool = False) -> List[FormController]:
    """
    为文档中的每个表单创建控制器并回填已保存的值

    所有表单共享同一个播报区域；缺少 data-form-id 的表单会被跳过。
    """
    live_region = live_region or LiveRegion(document)
    controllers = []

    for container in document.find_all(class_=FORM_CONTAINER_CLASS):
        form = container.find('form')
        if form is None:
            continue
        if not form.get('data-form-id'):
            logger.warning('跳过缺少 data-form-id 的表单')
            continue

        controller = FormController(form, store, live_region, client=client,
                                    navigate=navigate, clear_on_success=clear_on_success)
        controller.restore()
        controllers.append(controller)

    return controllers
