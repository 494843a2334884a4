#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
表单控件取值与回填

把 DOM 中的控件转换为校验器需要的字段条目 (单选组折叠为一个条目，
复选框为 bool)，以及把已保存的值写回控件。
"""

from typing import Any, Callable, Dict, List, Optional

from webforms.models.fields import FieldEntry, FieldType
from webforms.services.dom import Element

CONTROL_TAGS = 'input,textarea,select'
NON_FIELD_INPUT_TYPES = {'submit', 'button', 'reset', 'image', 'file'}


def form_controls(form: Element) -> List[Element]:
    """表单中参与取值的全部控件"""
    return [
        el for el in form.find_all(CONTROL_TAGS)
        if el.name and not (el.tag == 'input' and el.get('type', 'text').lower() in NON_FIELD_INPUT_TYPES)
    ]


def find_control(form: Element, name: str) -> Optional[Element]:
    """按字段名查找控件，单选组返回第一个选项"""
    for el in form_controls(form):
        if el.name == name:
            return el
    return None


def control_type(control: Element) -> FieldType:
    """根据标签和 type 属性判断控件的字段类型"""
    if control.tag == 'textarea':
        return FieldType.TEXTAREA
    if control.tag == 'select':
        return FieldType.SELECT

    input_type = control.get('type', 'text').lower()
    if input_type == 'checkbox':
        return FieldType.CHECKBOX
    if input_type == 'radio':
        return FieldType.RADIO
    return FieldType.TEXT


NOT_PERSISTED_INPUT_TYPES = {'hidden', 'password'}


def is_persistable(control: Element) -> bool:
    """隐藏字段和密码字段不写入 Cookie"""
    return not (control.tag == 'input' and control.get('type', '').lower() in NOT_PERSISTED_INPUT_TYPES)


def _radio_group(form: Element, name: str) -> List[Element]:
    return [el for el in form.find_all('input', name=name) if el.get('type', '').lower() == 'radio']


# ---- 取值 ----

def _read_text(form: Element, control: Element) -> str:
    return control.get('value', '')


def _read_textarea(form: Element, control: Element) -> str:
    return control.text


def _read_checkbox(form: Element, control: Element) -> bool:
    return control.has('checked')


def _read_radio(form: Element, control: Element) -> str:
    checked = next((el for el in _radio_group(form, control.name) if el.has('checked')), None)
    return checked.get('value', 'on') if checked is not None else ''


def _read_select(form: Element, control: Element) -> Any:
    options = control.find_all('option')
    selected = [opt for opt in options if opt.has('selected')]
    if control.has('multiple'):
        return [_option_value(opt) for opt in selected]
    if selected:
        return _option_value(selected[-1])
    return _option_value(options[0]) if options else ''


def _option_value(option: Element) -> str:
    return option.get('value', option.text)


# ---- 回填 ----

def _write_text(form: Element, control: Element, value: Any) -> None:
    control.set('value', '' if value is None else str(value))


def _write_textarea(form: Element, control: Element, value: Any) -> None:
    control.text = '' if value is None else str(value)


def _write_checkbox(form: Element, control: Element, value: Any) -> None:
    control.toggle('checked', value is True)


def _write_radio(form: Element, control: Element, value: Any) -> None:
    group = _radio_group(form, control.name)
    if not any(el.get('value', 'on') == value for el in group):
        return
    for el in group:
        el.toggle('checked', el.get('value', 'on') == value)


def _write_select(form: Element, control: Element, value: Any) -> None:
    wanted = set(value) if isinstance(value, list) else {value}
    for option in control.find_all('option'):
        option.toggle('selected', _option_value(option) in wanted)


READERS: Dict[FieldType, Callable[[Element, Element], Any]] = {
    FieldType.TEXT: _read_text,
    FieldType.TEXTAREA: _read_textarea,
    FieldType.CHECKBOX: _read_checkbox,
    FieldType.RADIO: _read_radio,
    FieldType.SELECT: _read_select,
}

WRITERS: Dict[FieldType, Callable[[Element, Element, Any], None]] = {
    FieldType.TEXT: _write_text,
    FieldType.TEXTAREA: _write_textarea,
    FieldType.CHECKBOX: _write_checkbox,
    FieldType.RADIO: _write_radio,
    FieldType.SELECT: _write_select,
}

_missing = set(FieldType) - set(READERS) | set(FieldType) - set(WRITERS)
if _missing:
    raise ValueError(f'缺少字段类型处理函数: {sorted(t.value for t in _missing)}')


def read_value(form: Element, control: Element) -> Any:
    return READERS[control_type(control)](form, control)


def write_value(form: Element, control: Element, value: Any) -> None:
    WRITERS[control_type(control)](form, control, value)


def collect_fields(form: Element) -> List[FieldEntry]:
    """
    收集表单中所有字段的当前值

    每个字段名只产生一个条目；单选组取选中项的值，未选中时为空字符串。
    任一选项带 required 属性时整个单选组视为必填。
    """
    entries: Dict[str, FieldEntry] = {}

    for control in form_controls(form):
        name = control.name
        if name in entries:
            if control_type(control) == FieldType.RADIO and control.has('required'):
                entries[name].required = True
            continue

        entries[name] = FieldEntry(
            name=name,
            value=read_value(form, control),
            required=control.has('required'),
        )

    return list(entries.values())


def form_values(entries: List[FieldEntry]) -> Dict[str, Any]:
    """字段条目转换为提交用的字典"""
    return {entry.name: entry.value for entry in entries}
