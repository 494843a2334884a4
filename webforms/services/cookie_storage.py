#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Cookie 存储后端

- CookieJar: 客户端内存 Cookie 罐，按写入时间计算过期
- ResponseCookieStorage: 服务端读取请求 Cookie、通过响应写入 Cookie
"""

import time
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request, Response
from loguru import logger

from webforms.utils.config import settings

SECONDS_PER_DAY = 24 * 60 * 60


class CookieStorage:
    """Cookie 存储接口"""

    def read(self) -> str:
        """返回 "name=value; name2=value2" 形式的 Cookie 串"""
        raise NotImplementedError

    def write(self, name: str, value: str, max_age: int) -> None:
        raise NotImplementedError

    def delete(self, name: str) -> None:
        raise NotImplementedError


class CookieJar(CookieStorage):
    """
    内存中的客户端 Cookie 罐

    过期由存储自身负责: 读取时丢弃已过期的条目。
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self._cookies: Dict[str, Tuple[str, float]] = {}

    def read(self) -> str:
        now = self._clock()
        expired = [name for name, (_, expires) in self._cookies.items() if expires <= now]
        for name in expired:
            del self._cookies[name]
        return '; '.join(f'{name}={value}' for name, (value, _) in self._cookies.items())

    def write(self, name: str, value: str, max_age: int) -> None:
        if max_age <= 0:
            self._cookies.pop(name, None)
            return
        self._cookies[name] = (value, self._clock() + max_age)

    def delete(self, name: str) -> None:
        self._cookies.pop(name, None)


class ResponseCookieStorage(CookieStorage):
    """基于请求/响应的服务端 Cookie 存储"""

    def __init__(self, request: Request, response: Response):
        self.request = request
        self.response = response

    def read(self) -> str:
        return self.request.headers.get('cookie', '')

    def write(self, name: str, value: str, max_age: int) -> None:
        self.response.set_cookie(
            name,
            value,
            max_age=max_age,
            path='/',
            secure=settings.COOKIE_SECURE,
            httponly=False,
            samesite='lax'
        )

    def delete(self, name: str) -> None:
        logger.debug(f'删除 Cookie: {name}')
        self.response.delete_cookie(
            name,
            path='/',
            secure=settings.COOKIE_SECURE,
            httponly=False,
            samesite='lax'
        )
