#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
登录/退订提交处理

校验请求参数，通过 ApiProxy 调用上游服务，并决定成功后的跳转地址。
"""

from typing import Any, Dict, Optional

from loguru import logger
from pydantic import BaseModel, Field

from webforms.models.request_models import LoginRequest, RedirectOptions, UnsubscribeRequest
from webforms.services.api_proxy import ApiProxy, ProxyError
from webforms.utils.config import settings


class SubmissionOutcome(BaseModel):
    """处理结果: HTTP 状态码、响应体，以及登录成功时的令牌"""
    status_code: int = Field(..., description='返回给浏览器的 HTTP 状态码')
    payload: Dict[str, Any] = Field(..., description='JSON 响应体')
    token: Optional[str] = Field(None, description='登录成功时的 JWT')


def _failure(status_code: int, message: str) -> SubmissionOutcome:
    return SubmissionOutcome(status_code=status_code, payload={'success': False, 'message': message})


def resolve_redirect(options: RedirectOptions, global_redirect: str) -> str:
    """
    决定跳转地址

    表单自身的地址优先；为空或要求使用全局配置时取全局地址；都为空时回到首页。
    """
    if options.redirect_url and not options.use_global_redirect:
        return options.redirect_url
    if global_redirect:
        return global_redirect
    return options.redirect_url or settings.HOME_URL


class FormSubmissionService:
    """表单提交业务逻辑"""

    def __init__(self, proxy: ApiProxy):
        self.proxy = proxy

    async def login(self, request: LoginRequest) -> SubmissionOutcome:
        username = request.username.strip()
        if not username:
            return _failure(400, 'Username is required.')
        if not request.password:
            return _failure(400, 'Password is required.')

        try:
            response = await self.proxy.post('auth/login', {'username': username, 'password': request.password})
        except ProxyError:
            return _failure(500, 'Unable to connect to authentication service.')

        if response.code != 200:
            logger.warning(f'登录失败: 用户 {username}, 状态码 {response.code}')
            return _failure(response.code, response.body.get('message') or 'Authentication failed.')

        token = response.body.get('token') or ''
        if not token:
            logger.error('认证服务响应中缺少 token')
            return _failure(500, 'Invalid response from authentication service.')

        logger.info(f'用户 {username} 登录成功')
        return SubmissionOutcome(status_code=200, payload={
            'success': True,
            'message': 'Login successful.',
            'redirect_url': resolve_redirect(request, settings.LOGIN_REDIRECT_URL),
        }, token=token)

    async def unsubscribe(self, request: UnsubscribeRequest) -> SubmissionOutcome:
        survey_id = request.survey_id.strip()
        if not survey_id:
            return _failure(400, 'Survey ID is required.')

        try:
            response = await self.proxy.post('survey/unsubscribe', {'surveyId': survey_id, 'reason': request.reason})
        except ProxyError:
            return _failure(500, 'Unable to connect to unsubscribe service.')

        if response.code != 200:
            logger.warning(f'退订失败: 问卷 {survey_id}, 状态码 {response.code}')
            return _failure(response.code, response.body.get('message') or 'Unsubscribe failed.')

        logger.info(f'问卷 {survey_id} 退订成功')
        return SubmissionOutcome(status_code=200, payload={
            'success': True,
            'message': 'You have been successfully unsubscribed.',
            'redirect_url': resolve_redirect(request, settings.UNSUBSCRIBE_REDIRECT_URL),
        })
