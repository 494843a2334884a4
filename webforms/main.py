from contextlib import asynccontextmanager
from typing import Optional
from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse
from loguru import logger
import uvicorn

from webforms import __version__
from webforms.models.fields import FormType
from webforms.models.request_models import (
  FieldValueRequest, FieldsResponse, HealthResponse, LoginRequest, SubmitResponse,
  UnsubscribeRequest, ValidateEmailRequest
)
from webforms.services.api_proxy import ApiProxy
from webforms.services.cookie_storage import ResponseCookieStorage
from webforms.services.field_store import create_field_store
from webforms.services.form_registry import FormRegistry
from webforms.services.form_service import FormSubmissionService, SubmissionOutcome
from webforms.services.renderer import RenderContext, render_page
from webforms.services.validator import is_valid_email
from webforms.utils.config import settings
from webforms.utils.security import NONCE_HEADER, create_nonce, verify_nonce

JWT_COOKIE_NAME = 'webforms_jwt_token'
API_PREFIX = '/api/v1/'
SECURITY_FAILED = 'Security verification failed.'


def get_form_registry(request: Request) -> FormRegistry:
  """当前应用的表单注册表，未经过启动流程时按需加载"""
  registry = getattr(request.app.state, 'form_registry', None)
  if registry is None:
    registry = request.app.state.form_registry = FormRegistry.from_file(settings.FORMS_FILE)
  return registry


def get_api_proxy() -> ApiProxy:
  """上游 API 代理，测试中可通过 dependency_overrides 替换"""
  return ApiProxy()


@asynccontextmanager
async def lifespan(app: FastAPI):
  """应用生命周期管理"""
  # 启动时
  logger.info('应用启动中...')

  if getattr(app.state, 'form_registry', None) is None:
    app.state.form_registry = FormRegistry.from_file(settings.FORMS_FILE)

  logger.info(f'应用启动完成，已加载 {len(app.state.form_registry.all())} 个表单')
  yield

  # 关闭时
  logger.info('应用关闭中...')

# 创建FastAPI应用
app = FastAPI(
  title='表单服务',
  description='提供登录/退订表单渲染、字段持久化和 API 代理提交',
  version=__version__,
  lifespan=lifespan
)


def _outcome_response(outcome: SubmissionOutcome) -> JSONResponse:
  return JSONResponse(status_code=outcome.status_code, content=outcome.payload)


def _security_failed(status_code: int = 403) -> JSONResponse:
  logger.warning('令牌校验失败')
  return JSONResponse(status_code=status_code, content={'success': False, 'message': SECURITY_FAILED})


@app.get('/')
async def root():
  """根路径"""
  return {
    'message': '表单服务',
    'version': __version__,
    'endpoints': {
      'form_page': '/forms/{form_id}',
      'validate_email': f'{API_PREFIX}validate-email',
      'login': f'{API_PREFIX}login',
      'unsubscribe': f'{API_PREFIX}unsubscribe',
      'fields': f'{API_PREFIX}forms/{{form_id}}/fields'
    }
  }


@app.get('/health', response_model=HealthResponse)
async def health_check():
  """健康检查"""
  return HealthResponse(status='healthy', service='webforms')


@app.get('/forms/{form_id}', response_class=HTMLResponse)
async def form_page(
  form_id: str,
  survey_id: Optional[str] = Query(None, alias='surveyId'),
  registry: FormRegistry = Depends(get_form_registry)
):
  """
  渲染表单页面

  Args:
    form_id: 表单标识
    survey_id: URL 中的 surveyId 参数 (仅退订表单使用)

  Returns:
    HTML 页面
  """
  block = registry.get(form_id)
  if block is None:
    raise HTTPException(status_code=404, detail=f'表单不存在: {form_id}')

  if block.form_type == FormType.LOGIN:
    global_redirect = settings.LOGIN_REDIRECT_URL
  else:
    global_redirect = settings.UNSUBSCRIBE_REDIRECT_URL

  context = RenderContext(
    api_url=API_PREFIX,
    nonce=create_nonce(),
    global_redirect_url=global_redirect,
    default_survey_id=settings.DEFAULT_SURVEY_ID,
    use_default_survey_id=settings.USE_DEFAULT_SURVEY_ID,
    url_survey_id=(survey_id or '').strip()
  )

  logger.info(f'渲染表单页面: {form_id}')
  return HTMLResponse(render_page(block, context))


@app.post(f'{API_PREFIX}validate-email', response_model=SubmitResponse)
async def validate_email(
  payload: ValidateEmailRequest,
  nonce: Optional[str] = Header(None, alias=NONCE_HEADER)
):
  """校验邮箱格式"""
  if not verify_nonce(nonce):
    return _security_failed(status_code=200)

  if not is_valid_email(payload.email):
    return SubmitResponse(success=False, message='Please enter a valid email address.')

  return SubmitResponse(success=True, message='Email is valid.')


@app.post(f'{API_PREFIX}login', response_model=SubmitResponse)
async def login(
  payload: LoginRequest,
  nonce: Optional[str] = Header(None, alias=NONCE_HEADER),
  proxy: ApiProxy = Depends(get_api_proxy)
):
  """
  处理登录表单提交

  成功时设置 JWT Cookie 并返回跳转地址。
  """
  if not verify_nonce(nonce):
    return _security_failed()

  outcome = await FormSubmissionService(proxy).login(payload)
  response = _outcome_response(outcome)

  if outcome.token:
    response.set_cookie(
      JWT_COOKIE_NAME,
      outcome.token,
      max_age=settings.JWT_COOKIE_LIFETIME,
      path='/',
      secure=settings.COOKIE_SECURE,
      httponly=False,
      samesite='lax'
    )

  return response


@app.post(f'{API_PREFIX}unsubscribe', response_model=SubmitResponse)
async def unsubscribe(
  payload: UnsubscribeRequest,
  nonce: Optional[str] = Header(None, alias=NONCE_HEADER),
  proxy: ApiProxy = Depends(get_api_proxy)
):
  """处理退订表单提交"""
  if not verify_nonce(nonce):
    return _security_failed()

  outcome = await FormSubmissionService(proxy).unsubscribe(payload)
  return _outcome_response(outcome)


@app.get(f'{API_PREFIX}forms/{{form_id}}/fields', response_model=FieldsResponse)
async def get_fields(form_id: str, request: Request, response: Response):
  """读取请求 Cookie 中保存的表单字段值"""
  store = create_field_store(ResponseCookieStorage(request, response))
  return FieldsResponse(form_id=form_id, fields=store.get_all(form_id))


@app.put(f'{API_PREFIX}forms/{{form_id}}/fields/{{field_name}}')
async def save_field(form_id: str, field_name: str, payload: FieldValueRequest, request: Request, response: Response):
  """把单个字段值写入 Cookie"""
  if not field_name.strip():
    raise HTTPException(status_code=400, detail='字段名称不能为空')

  store = create_field_store(ResponseCookieStorage(request, response))
  try:
    store.set(form_id, field_name, payload.value)
  except (TypeError, ValueError) as e:
    logger.error(f'保存字段值失败: {str(e)}')
    raise HTTPException(status_code=400, detail=f'保存字段值失败: {str(e)}')

  return {'success': True, 'form_id': form_id, 'field': field_name}


@app.delete(f'{API_PREFIX}forms/{{form_id}}/fields')
async def clear_fields(form_id: str, request: Request, response: Response):
  """删除表单保存的全部字段值"""
  store = create_field_store(ResponseCookieStorage(request, response))
  removed = store.clear(form_id)
  return {'success': True, 'form_id': form_id, 'removed': removed}


if __name__ == '__main__':
  uvicorn.run(
    'webforms.main:app',
    host=settings.HOST,
    port=settings.PORT,
    reload=settings.DEBUG,
    log_level='info'
  )
