from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# 字段运行时取值: 复选框为 bool，多选为列表，其余为字符串
FieldValue = Union[bool, str, List[str]]


class FieldType(str, Enum):
  """字段类型"""
  TEXT = 'text'
  TEXTAREA = 'textarea'
  CHECKBOX = 'checkbox'
  RADIO = 'radio'
  SELECT = 'select'


class FormType(str, Enum):
  """表单类型，同时决定提交端点"""
  LOGIN = 'login'
  UNSUBSCRIBE = 'unsubscribe'


class FieldOption(BaseModel):
  """单选/下拉选项"""
  model_config = ConfigDict(frozen=True)
  
  label: str = Field('', description='选项显示文本')
  value: str = Field(..., description='选项值')


class FieldDescriptor(BaseModel):
  """表单字段定义，运行时不可变"""
  model_config = ConfigDict(frozen=True)
  
  name: str = Field(..., description='字段名称，表单内唯一，不含空格')
  type: FieldType = Field(FieldType.TEXT, description='字段类型')
  label: str = Field('', description='字段标签')
  required: bool = Field(False, description='是否必填')
  options: List[FieldOption] = Field(default_factory=list, description='单选/下拉选项')
  input_type: str = Field('text', description='文本字段的 input type (text/email/password/hidden)')
  
  @field_validator('name')
  @classmethod
  def check_name(cls, value: str) -> str:
    if not value or any(ch.isspace() for ch in value):
      raise ValueError('字段名称不能为空且不能包含空格')
    return value
  
  @model_validator(mode='after')
  def check_options(self):
    if self.options and self.type not in (FieldType.RADIO, FieldType.SELECT):
      raise ValueError(f'字段 {self.name} 的类型 {self.type.value} 不支持选项')
    return self
  
  @property
  def field_id(self) -> str:
    return f'webforms-field-{self.name}'


class FieldEntry(BaseModel):
  """校验器输入: 字段名、当前值、是否必填"""
  name: str
  value: Any = None
  required: bool = False


class ValidationResult(BaseModel):
  """校验结果"""
  is_valid: bool = Field(..., description='是否全部通过')
  errors: Dict[str, str] = Field(default_factory=dict, description='字段名 -> 错误信息')


class FormBlock(BaseModel):
  """可嵌入表单的定义 (相当于编辑器中保存的区块属性)"""
  form_type: FormType = Field(..., description='表单类型')
  form_id: str = Field(..., description='表单标识，页面内唯一，用于 Cookie 命名空间')
  domain: str = Field('', description='表单所属域')
  redirect_url: str = Field('', description='提交成功后的跳转地址')
  use_global_redirect: bool = Field(False, description='是否使用全局跳转地址')
  submit_label: str = Field('Submit', description='提交按钮文本')
  title: Optional[str] = Field(None, description='页面标题')
  fields: List[FieldDescriptor] = Field(default_factory=list, description='字段列表')
  
  @field_validator('form_id')
  @classmethod
  def check_form_id(cls, value: str) -> str:
    if not value.strip():
      raise ValueError('表单标识不能为空')
    return value
  
  @model_validator(mode='after')
  def check_unique_names(self):
    names = [field.name for field in self.fields]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
      raise ValueError(f'字段名称重复: {", ".join(duplicates)}')
    return self
