#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
表单提交客户端

把收集到的字段值以 JSON 形式 POST 到表单声明的端点，并解析
{success, message?, redirect_url?} 形式的响应。
"""

from typing import Any, Dict, Optional

import httpx
from loguru import logger
from pydantic import ValidationError

from webforms.models.request_models import SubmitResponse
from webforms.utils.security import NONCE_HEADER

DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=5.0)


class SubmissionError(Exception):
    """网络错误或响应格式错误"""


class SubmissionClient:
    """基于 httpx 的异步提交客户端"""

    def __init__(self, base_url: str = '', transport: Optional[httpx.AsyncBaseTransport] = None,
                 timeout: httpx.Timeout = DEFAULT_TIMEOUT):
        self.base_url = base_url
        self.transport = transport
        self.timeout = timeout

    async def submit(self, endpoint: str, payload: Dict[str, Any], nonce: str = '') -> SubmitResponse:
        """
        提交表单数据

        Args:
            endpoint: 提交地址
            payload: JSON 请求体
            nonce: 防伪令牌

        Returns:
            SubmitResponse

        Raises:
            SubmissionError: 无法连接，或响应不是合法的 JSON 对象
        """
        headers = {'Content-Type': 'application/json', NONCE_HEADER: nonce}

        try:
            async with httpx.AsyncClient(base_url=self.base_url, transport=self.transport,
                                         timeout=self.timeout) as client:
                response = await client.post(endpoint, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f'提交表单失败: {endpoint}, {str(e)}')
            raise SubmissionError(str(e)) from e

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f'响应不是合法的 JSON: {endpoint}, 状态码 {response.status_code}')
            raise SubmissionError('Malformed response') from e

        if not isinstance(data, dict):
            raise SubmissionError('Malformed response')

        try:
            return SubmitResponse.model_validate(data)
        except ValidationError as e:
            logger.error(f'响应格式错误: {str(e)}')
            raise SubmissionError('Malformed response') from e
