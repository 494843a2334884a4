#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
最小化的 DOM 模型

把渲染出的表单标记解析为元素树，供字段收集、错误展示和表单控制器使用。
焦点、滚动和页面跳转记录在 Document 上，便于无浏览器环境下驱动表单。
"""

from html import escape, unescape
from html.parser import HTMLParser
from typing import Dict, Iterator, List, Optional, Tuple, Union

VOID_ELEMENTS = {
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input',
    'link', 'meta', 'source', 'track', 'wbr',
}
RAW_TEXT_ELEMENTS = {'script', 'style'}
# 内容按文本解析 (不识别子标签) 但仍解码字符引用
ESCAPABLE_RAW_TEXT_ELEMENTS = {'textarea', 'title'}

Node = Union['Element', str]


class Element:
    """DOM 元素"""

    def __init__(self, tag: str, attrs: Optional[Dict[str, Optional[str]]] = None,
                 document: Optional['Document'] = None):
        self.tag = tag.lower()
        # 值为 None 表示布尔属性 (如 required、checked)
        self.attrs: Dict[str, Optional[str]] = dict(attrs or {})
        self.children: List[Node] = []
        self.parent: Optional['Element'] = None
        self.document = document

    def __repr__(self) -> str:
        ident = f'#{self.id}' if self.id else ''
        return f'<Element {self.tag}{ident}>'

    # ---- 属性 ----

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        if name not in self.attrs:
            return default
        value = self.attrs[name]
        return '' if value is None else value

    def set(self, name: str, value: Optional[str] = None) -> None:
        self.attrs[name] = value

    def has(self, name: str) -> bool:
        return name in self.attrs

    def remove_attr(self, name: str) -> None:
        self.attrs.pop(name, None)

    def toggle(self, name: str, enabled: bool) -> None:
        """设置或移除布尔属性"""
        if enabled:
            self.attrs[name] = None
        else:
            self.attrs.pop(name, None)

    @property
    def id(self) -> str:
        return self.get('id', '')

    @property
    def name(self) -> str:
        return self.get('name', '')

    @property
    def dataset(self) -> Dict[str, str]:
        """data-* 属性，键名去掉前缀"""
        return {
            key[5:]: ('' if value is None else value)
            for key, value in self.attrs.items()
            if key.startswith('data-')
        }

    @property
    def classes(self) -> List[str]:
        return self.get('class', '').split()

    def has_class(self, cls: str) -> bool:
        return cls in self.classes

    def add_class(self, cls: str) -> None:
        classes = self.classes
        if cls not in classes:
            classes.append(cls)
            self.attrs['class'] = ' '.join(classes)

    def remove_class(self, cls: str) -> None:
        classes = [item for item in self.classes if item != cls]
        if classes:
            self.attrs['class'] = ' '.join(classes)
        else:
            self.attrs.pop('class', None)

    # ---- 树操作 ----

    def append(self, child: Node) -> Node:
        return self.insert(len(self.children), child)

    def insert(self, index: int, child: Node) -> Node:
        if isinstance(child, Element):
            child.remove()
            child.parent = self
            if child.document is None:
                child.document = self.document
        self.children.insert(index, child)
        return child

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.children = [node for node in self.parent.children if node is not self]
            self.parent = None

    def iter(self) -> Iterator['Element']:
        """深度优先遍历所有后代元素 (不含自身)"""
        for child in self.children:
            if isinstance(child, Element):
                yield child
                yield from child.iter()

    def matches(self, tag: Optional[str] = None, class_: Optional[str] = None, **attrs: str) -> bool:
        """
        判断元素是否匹配条件

        attrs 中的下划线会转换为连字符，例如 aria_invalid='true' 对应 aria-invalid="true"。
        属性值为 None 时只要求属性存在。
        """
        if tag is not None and self.tag not in tag.split(','):
            return False
        if class_ is not None and not self.has_class(class_):
            return False
        for key, expected in attrs.items():
            attr = key.rstrip('_').replace('_', '-')
            if not self.has(attr):
                return False
            if expected is not None and self.get(attr) != expected:
                return False
        return True

    def find_all(self, tag: Optional[str] = None, class_: Optional[str] = None, **attrs: str) -> List['Element']:
        return [el for el in self.iter() if el.matches(tag, class_, **attrs)]

    def find(self, tag: Optional[str] = None, class_: Optional[str] = None, **attrs: str) -> Optional['Element']:
        for el in self.iter():
            if el.matches(tag, class_, **attrs):
                return el
        return None

    def closest(self, tag: Optional[str] = None, class_: Optional[str] = None, **attrs: str) -> Optional['Element']:
        node = self
        while node is not None:
            if node.matches(tag, class_, **attrs):
                return node
            node = node.parent
        return None

    @property
    def text(self) -> str:
        parts = []
        for child in self.children:
            parts.append(child if isinstance(child, str) else child.text)
        return ''.join(parts)

    @text.setter
    def text(self, value: str) -> None:
        for child in self.children:
            if isinstance(child, Element):
                child.parent = None
        self.children = [value] if value else []

    # ---- 交互 ----

    def focus(self) -> None:
        if self.document is not None:
            self.document.focus(self)

    def scroll_into_view(self, behavior: str = 'auto', block: str = 'start') -> None:
        if self.document is not None:
            self.document.scroll_requests.append((self, behavior, block))

    # ---- 序列化 ----

    def to_html(self) -> str:
        attrs = ''.join(
            f' {key}' if value is None else f' {key}="{escape(value, quote=True)}"'
            for key, value in self.attrs.items()
        )
        if self.tag in VOID_ELEMENTS:
            return f'<{self.tag}{attrs}>'

        inner = []
        for child in self.children:
            if isinstance(child, Element):
                inner.append(child.to_html())
            elif self.tag in RAW_TEXT_ELEMENTS:
                inner.append(child)
            else:
                inner.append(escape(child, quote=False))
        return f'<{self.tag}{attrs}>{"".join(inner)}</{self.tag}>'


class Document:
    """文档: 元素树的根，并记录焦点、滚动请求和跳转地址"""

    def __init__(self, doctype: Optional[str] = None):
        self.doctype = doctype
        self.root = Element('#document', document=self)
        self.active_element: Optional[Element] = None
        self.scroll_requests: List[Tuple[Element, str, str]] = []
        self.location: Optional[str] = None

    @property
    def body(self) -> Element:
        return self.root.find('body') or self.root

    def create_element(self, tag: str, attrs: Optional[Dict[str, Optional[str]]] = None) -> Element:
        return Element(tag, attrs, document=self)

    def get_element_by_id(self, element_id: str) -> Optional[Element]:
        return self.root.find(id=element_id)

    def find_all(self, tag: Optional[str] = None, class_: Optional[str] = None, **attrs: str) -> List[Element]:
        return self.root.find_all(tag, class_, **attrs)

    def find(self, tag: Optional[str] = None, class_: Optional[str] = None, **attrs: str) -> Optional[Element]:
        return self.root.find(tag, class_, **attrs)

    def focus(self, element: Element) -> None:
        self.active_element = element

    def navigate(self, url: str) -> None:
        self.location = url

    def to_html(self) -> str:
        inner = ''.join(
            child.to_html() if isinstance(child, Element) else escape(child, quote=False)
            for child in self.root.children
        )
        return f'<!{self.doctype}>{inner}' if self.doctype else inner


class _TreeBuilder(HTMLParser):
    """把 HTML 标记构建为 Document"""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.document = Document()
        self.stack: List[Element] = [self.document.root]
        # 较新的 HTMLParser 自己按 RCDATA 处理 textarea/title，并已解码字符引用
        self._native_rcdata = set(getattr(HTMLParser, 'RCDATA_CONTENT_ELEMENTS', ()))
        self._unescape_data = False

    def handle_decl(self, decl: str) -> None:
        self.document.doctype = decl

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        element = self.document.create_element(tag, dict(attrs))
        self.stack[-1].append(element)
        if element.tag not in VOID_ELEMENTS:
            self.stack.append(element)
        if element.tag in ESCAPABLE_RAW_TEXT_ELEMENTS and element.tag not in self._native_rcdata:
            self.set_cdata_mode(element.tag)
            self._unescape_data = True

    def handle_startendtag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        self.stack[-1].append(self.document.create_element(tag, dict(attrs)))

    def handle_endtag(self, tag: str) -> None:
        tag = tag.lower()
        self._unescape_data = False
        for index in range(len(self.stack) - 1, 0, -1):
            if self.stack[index].tag == tag:
                del self.stack[index:]
                return

    def handle_data(self, data: str) -> None:
        if self._unescape_data:
            data = unescape(data)
        if data:
            self.stack[-1].append(data)


def parse_html(markup: str) -> Document:
    """解析 HTML 标记"""
    builder = _TreeBuilder()
    builder.feed(markup)
    builder.close()
    return builder.document
