#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
表单标记渲染

根据字段定义生成带无障碍属性的表单控件，并在表单元素上写入
控制器需要的 data-* 属性 (表单标识、提交端点、令牌、跳转配置)。
"""

from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, Field

from webforms.models.fields import FieldDescriptor, FieldType, FormBlock, FormType
from webforms.services.dom import Document, Element

SELECT_PLACEHOLDER = '-- Select an option --'
SURVEY_ID_FIELD = 'surveyId'


class RenderContext(BaseModel):
    """渲染时注入的全局配置和请求参数"""
    api_url: str = Field('/api/v1/', description='提交端点前缀')
    nonce: str = Field('', description='防伪令牌')
    global_redirect_url: str = Field('', description='全局跳转地址')
    default_survey_id: str = Field('', description='默认问卷 ID')
    use_default_survey_id: bool = Field(False, description='是否强制使用默认问卷 ID')
    url_survey_id: str = Field('', description='URL 中的 surveyId 参数')


def resolve_survey_id(context: RenderContext) -> str:
    """强制使用默认问卷 ID 时忽略 URL 参数，否则 URL 参数优先"""
    if context.use_default_survey_id and context.default_survey_id:
        return context.default_survey_id
    return context.url_survey_id or context.default_survey_id


def _common_attrs(descriptor: FieldDescriptor) -> Dict[str, Optional[str]]:
    attrs = {
        'id': descriptor.field_id,
        'name': descriptor.name,
        'aria-required': 'true' if descriptor.required else 'false',
        'aria-invalid': 'false',
    }
    if descriptor.required:
        attrs['required'] = None
    return attrs


def _label(document: Document, descriptor: FieldDescriptor, tag: str = 'label') -> Element:
    attrs = {'class': 'webforms-label'}
    if tag == 'label':
        attrs['for'] = descriptor.field_id
    else:
        attrs['id'] = f'{descriptor.field_id}-label'

    label = document.create_element(tag, attrs)
    label.append(descriptor.label or descriptor.name)
    if descriptor.required:
        marker = label.append(document.create_element('span', {
            'class': 'webforms-required',
            'aria-label': 'required',
        }))
        marker.append(' *')
    return label


def _render_text(document: Document, descriptor: FieldDescriptor, value: Any) -> Element:
    attrs = _common_attrs(descriptor)
    attrs.update({'type': descriptor.input_type or 'text', 'class': 'webforms-text', 'value': value or ''})
    return document.create_element('input', attrs)


def _render_textarea(document: Document, descriptor: FieldDescriptor, value: Any) -> Element:
    attrs = _common_attrs(descriptor)
    attrs.update({'class': 'webforms-textarea', 'rows': '4'})
    textarea = document.create_element('textarea', attrs)
    textarea.text = value or ''
    return textarea


def _render_checkbox(document: Document, descriptor: FieldDescriptor, value: Any) -> Element:
    attrs = _common_attrs(descriptor)
    attrs.update({'type': 'checkbox', 'class': 'webforms-checkbox', 'value': 'true'})
    checkbox = document.create_element('input', attrs)
    checkbox.toggle('checked', value is True or value == 'true')
    return checkbox


def _render_radio(document: Document, descriptor: FieldDescriptor, value: Any) -> Element:
    group = document.create_element('div', {
        'class': 'webforms-radio-group',
        'role': 'radiogroup',
        'aria-labelledby': f'{descriptor.field_id}-label',
    })
    for index, option in enumerate(descriptor.options):
        option_id = f'{descriptor.field_id}-option-{index}'
        wrapper = group.append(document.create_element('div', {'class': 'webforms-radio-option'}))

        attrs = {
            'type': 'radio',
            'id': option_id,
            'name': descriptor.name,
            'value': option.value,
            'aria-required': 'true' if descriptor.required else 'false',
            'class': 'webforms-radio',
        }
        radio = wrapper.append(document.create_element('input', attrs))
        radio.toggle('required', descriptor.required)
        radio.toggle('checked', value == option.value)

        label = wrapper.append(document.create_element('label', {
            'for': option_id,
            'class': 'webforms-radio-label',
        }))
        label.append(option.label or option.value)
    return group


def _render_select(document: Document, descriptor: FieldDescriptor, value: Any) -> Element:
    attrs = _common_attrs(descriptor)
    attrs['class'] = 'webforms-select'
    select = document.create_element('select', attrs)

    placeholder = select.append(document.create_element('option', {'value': ''}))
    placeholder.append(SELECT_PLACEHOLDER)
    for option in descriptor.options:
        item = select.append(document.create_element('option', {'value': option.value}))
        item.append(option.label or option.value)
        item.toggle('selected', value == option.value)
    return select


RENDERERS: Dict[FieldType, Callable[[Document, FieldDescriptor, Any], Element]] = {
    FieldType.TEXT: _render_text,
    FieldType.TEXTAREA: _render_textarea,
    FieldType.CHECKBOX: _render_checkbox,
    FieldType.RADIO: _render_radio,
    FieldType.SELECT: _render_select,
}

if set(RENDERERS) != set(FieldType):
    raise ValueError('每种字段类型都必须有对应的渲染函数')


def render_field(document: Document, descriptor: FieldDescriptor, value: Any = None) -> Element:
    """
    渲染单个字段 (包装元素 + 标签 + 控件)

    隐藏文本字段只渲染 input 本身。
    """
    control = RENDERERS[descriptor.type](document, descriptor, value)
    if descriptor.type == FieldType.TEXT and descriptor.input_type == 'hidden':
        return control

    wrapper = document.create_element('div', {
        'class': f'webforms-field webforms-field-{descriptor.type.value}',
    })
    wrapper.append(_label(document, descriptor, 'div' if descriptor.type == FieldType.RADIO else 'label'))
    wrapper.append(control)
    return wrapper


def render_form_block(document: Document, block: FormBlock, context: RenderContext) -> Element:
    """渲染表单区块，返回外层容器元素"""
    container = document.create_element('div', {
        'class': f'webforms-form webforms-{block.form_type.value}-form',
    })

    form_attrs = {
        'method': 'post',
        'novalidate': None,
        'data-form-id': block.form_id,
        'data-action': block.form_type.value,
        'data-api-url': context.api_url,
        'data-nonce': context.nonce,
        'data-redirect-url': block.redirect_url,
        'data-use-global-redirect': 'true' if block.use_global_redirect else 'false',
    }
    if block.domain:
        form_attrs['data-domain'] = block.domain
    if context.global_redirect_url:
        form_attrs['data-global-redirect-url'] = context.global_redirect_url
    if block.form_type == FormType.UNSUBSCRIBE:
        if context.default_survey_id:
            form_attrs['data-default-survey-id'] = context.default_survey_id
        if context.use_default_survey_id:
            form_attrs['data-use-default-survey-id'] = 'true'
        if context.url_survey_id:
            form_attrs['data-url-survey-id'] = context.url_survey_id

    form = container.append(document.create_element('form', form_attrs))
    form.append(document.create_element('div', {'class': 'webforms-form-errors'}))

    for descriptor in block.fields:
        form.append(render_field(document, descriptor))

    if block.form_type == FormType.UNSUBSCRIBE and not any(f.name == SURVEY_ID_FIELD for f in block.fields):
        form.append(document.create_element('input', {
            'type': 'hidden',
            'id': f'webforms-field-{SURVEY_ID_FIELD}',
            'name': SURVEY_ID_FIELD,
            'value': resolve_survey_id(context),
        }))

    button = form.append(document.create_element('button', {'type': 'submit', 'class': 'webforms-submit'}))
    button.append(block.submit_label)
    return container


def render_page(block: FormBlock, context: RenderContext, lang: str = 'en') -> str:
    """渲染包含单个表单的完整 HTML 页面"""
    document = Document(doctype='DOCTYPE html')
    html = document.root.append(document.create_element('html', {'lang': lang}))

    head = html.append(document.create_element('head'))
    head.append(document.create_element('meta', {'charset': 'utf-8'}))
    title = head.append(document.create_element('title'))
    title.append(block.title or block.form_id)

    body = html.append(document.create_element('body'))
    body.append(render_form_block(document, block, context))
    return document.to_html()
