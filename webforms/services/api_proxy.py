#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
上游 API 代理
"""

from typing import Any, Dict, Optional

import httpx
from loguru import logger
from pydantic import BaseModel, Field

from webforms.utils.config import settings


class ProxyError(Exception):
    """无法连接上游 API"""


class ProxyResponse(BaseModel):
    """上游响应: 状态码和 JSON 对象响应体"""
    code: int = Field(..., description='HTTP 状态码')
    body: Dict[str, Any] = Field(default_factory=dict, description='响应体')


class ApiProxy:
    """把请求转发到上游 API 并返回状态码和 JSON 响应体"""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip('/') + '/'
        self.timeout = timeout or settings.API_TIMEOUT
        self.transport = transport

    def url_for(self, endpoint: str) -> str:
        return self.base_url + endpoint.lstrip('/')

    async def post(self, endpoint: str, body: Dict[str, Any]) -> ProxyResponse:
        """
        POST JSON 到上游端点

        Args:
            endpoint: 相对于 API_BASE_URL 的路径
            body: 请求体

        Returns:
            ProxyResponse；响应体不是 JSON 对象时为空字典

        Raises:
            ProxyError: 网络错误或超时
        """
        url = self.url_for(endpoint)
        logger.info(f'代理请求: POST {url}')

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json=body)
        except httpx.HTTPError as e:
            logger.error(f'代理请求失败: {url}, {str(e)}')
            raise ProxyError(str(e)) from e

        try:
            decoded = response.json()
        except ValueError:
            decoded = None

        logger.info(f'上游响应: {url}, 状态码 {response.status_code}')
        return ProxyResponse(code=response.status_code, body=decoded if isinstance(decoded, dict) else {})
