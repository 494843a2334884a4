#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
可访问的错误展示

把校验结果反映到表单的无障碍树上: 错误文本、aria-invalid、aria-describedby、
焦点移动，以及通过页面唯一的实时播报区域向读屏软件播报。
"""

import asyncio
from typing import Callable, Dict, Optional

from loguru import logger

from webforms.services.collector import find_control
from webforms.services.dom import Document, Element

LIVE_REGION_ID = 'webforms-live-region'
LIVE_REGION_STYLE = 'position:absolute;left:-10000px;width:1px;height:1px;overflow:hidden'
ANNOUNCE_DELAY = 0.1

ERROR_CLASS = 'webforms-error'
FIELD_ERROR_CLASS = 'has-error'
FIELD_WRAPPER_CLASS = 'webforms-field'
FORM_ERRORS_CLASS = 'webforms-form-errors'

Scheduler = Callable[[float, Callable[[], None]], None]


def default_scheduler(delay: float, callback: Callable[[], None]) -> None:
    """在运行中的事件循环上延迟执行，没有事件循环时立即执行"""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        callback()
        return
    loop.call_later(delay, callback)


class LiveRegion:
    """
    页面唯一的实时播报区域

    首次播报时才创建元素；文档中已存在同 id 的区域时直接复用，
    因此同一页面上的多个表单共享一个区域。
    """

    def __init__(self, document: Document, delay: float = ANNOUNCE_DELAY,
                 scheduler: Optional[Scheduler] = None):
        self.document = document
        self.delay = delay
        self.scheduler = scheduler or default_scheduler
        self.pending = 0

    @property
    def element(self) -> Element:
        region = self.document.get_element_by_id(LIVE_REGION_ID)
        if region is None:
            region = self.document.create_element('div', {
                'id': LIVE_REGION_ID,
                'aria-live': 'polite',
                'aria-atomic': 'true',
                'style': LIVE_REGION_STYLE,
            })
            self.document.body.append(region)
        return region

    @property
    def text(self) -> str:
        region = self.document.get_element_by_id(LIVE_REGION_ID)
        return region.text if region is not None else ''

    def announce(self, message: str) -> None:
        """先清空再延迟写入，保证读屏软件能感知到内容变化"""
        region = self.element
        region.text = ''

        def _write() -> None:
            self.pending -= 1
            region.text = message

        self.pending += 1
        self.scheduler(self.delay, _write)
        logger.debug(f'播报: {message}')

    async def settle(self) -> None:
        """等待已安排的写入完成；事件循环在延迟结束前关闭时写入会丢失"""
        if self.pending:
            await asyncio.sleep(self.delay)


def error_summary(count: int) -> str:
    if count == 1:
        return 'There is 1 error in the form. Please correct it before submitting.'
    return f'There are {count} errors in the form. Please correct them before submitting.'


def _describedby_remove(control: Element, error_id: str) -> None:
    tokens = [token for token in control.get('aria-describedby', '').split() if token != error_id]
    if tokens:
        control.set('aria-describedby', ' '.join(tokens))
    else:
        control.remove_attr('aria-describedby')


def _describedby_add(control: Element, error_id: str) -> None:
    tokens = control.get('aria-describedby', '').split()
    if error_id not in tokens:
        tokens.append(error_id)
    control.set('aria-describedby', ' '.join(tokens))


def clear_errors(form: Element) -> None:
    """移除所有错误元素并重置字段的无效状态，可重复调用"""
    for error in form.find_all(class_=ERROR_CLASS):
        error.remove()

    for control in form.find_all(aria_invalid='true'):
        control.set('aria-invalid', 'false')
        control.remove_class(FIELD_ERROR_CLASS)
        _describedby_remove(control, f'{control.id or control.name}-error')


def _form_errors_container(form: Element) -> Element:
    container = form.find(class_=FORM_ERRORS_CLASS)
    if container is None:
        container = Element('div', {'class': FORM_ERRORS_CLASS}, document=form.document)
        form.insert(0, container)
    return container


def display_errors(form: Element, errors: Dict[str, str], live_region: LiveRegion) -> None:
    """
    展示校验错误

    Args:
        form: 表单元素
        errors: 字段名 -> 错误信息；没有对应控件的键 (例如 general) 显示在表单顶部
        live_region: 播报区域
    """
    clear_errors(form)

    for field_name, message in errors.items():
        error_element = Element('div', {'class': ERROR_CLASS, 'role': 'alert'}, document=form.document)
        error_element.text = message

        control = find_control(form, field_name)
        if control is None:
            error_element.set('id', f'{form.get("data-form-id") or "form"}-{field_name}-error')
            _form_errors_container(form).append(error_element)
            continue

        control.set('aria-invalid', 'true')
        control.add_class(FIELD_ERROR_CLASS)

        wrapper = control.closest(class_=FIELD_WRAPPER_CLASS) or control.parent
        wrapper.append(error_element)

        error_id = f'{control.id or field_name}-error'
        error_element.set('id', error_id)
        _describedby_add(control, error_id)

    logger.info(f'表单 {form.get("data-form-id", "")} 校验失败: {len(errors)} 个错误')
    live_region.announce(error_summary(len(errors)))
    focus_first_error(form)


def focus_first_error(form: Element) -> Optional[Element]:
    """把焦点移动到第一个无效字段，并平滑滚动到可见区域"""
    first = form.find(aria_invalid='true')
    if first is None:
        return None

    first.focus()
    first.scroll_into_view(behavior='smooth', block='center')
    return first
