from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional


class ValidateEmailRequest(BaseModel):
  """邮箱校验请求模型"""
  email: str = Field('', description='待校验的邮箱地址')


class RedirectOptions(BaseModel):
  """提交请求中附带的跳转配置"""
  model_config = ConfigDict(populate_by_name=True, extra='allow')
  
  redirect_url: str = Field('', alias='redirectUrl', description='表单自身的跳转地址')
  use_global_redirect: bool = Field(False, alias='useGlobalRedirect', description='是否使用全局跳转地址')


class LoginRequest(RedirectOptions):
  """登录请求模型"""
  username: str = Field('', description='用户名')
  password: str = Field('', description='密码')


class UnsubscribeRequest(RedirectOptions):
  """退订请求模型"""
  survey_id: str = Field('', alias='surveyId', description='问卷 ID')
  reason: str = Field('', description='退订原因')


class FieldValueRequest(BaseModel):
  """单个字段持久化请求模型"""
  value: Any = Field(None, description='字段值 (JSON 兼容)')


class SubmitResponse(BaseModel):
  """表单提交响应模型"""
  success: bool = Field(..., description='操作是否成功')
  message: Optional[str] = Field(None, description='响应消息')
  redirect_url: Optional[str] = Field(None, description='跳转地址')


class FieldsResponse(BaseModel):
  """持久化字段读取响应模型"""
  success: bool = Field(True, description='操作是否成功')
  form_id: str = Field(..., description='表单标识')
  fields: Dict[str, Any] = Field(default_factory=dict, description='字段名 -> 字段值')


class HealthResponse(BaseModel):
  """健康检查响应模型"""
  status: str = Field(..., description='服务状态')
  service: str = Field(..., description='服务名称')
