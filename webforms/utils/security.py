"""
表单提交的防伪令牌 (nonce)
"""

import hashlib
import hmac
import time
from typing import Optional

from loguru import logger

from webforms.utils.config import settings

NONCE_HEADER = 'X-Forms-Nonce'


def _signature(action: str, timestamp: int) -> str:
  message = f'{action}:{timestamp}'.encode('utf-8')
  return hmac.new(settings.SECRET_KEY.encode('utf-8'), message, hashlib.sha256).hexdigest()


def create_nonce(action: str = 'webforms', now: Optional[float] = None) -> str:
  """
  生成带时间戳的 HMAC 令牌
  
  Args:
    action: 令牌作用域
    now: 当前时间戳，默认取系统时间
    
  Returns:
    形如 "<timestamp>.<signature>" 的令牌
  """
  timestamp = int(now if now is not None else time.time())
  return f'{timestamp}.{_signature(action, timestamp)}'


def verify_nonce(nonce: Optional[str], action: str = 'webforms', now: Optional[float] = None) -> bool:
  """校验令牌签名和有效期"""
  if not nonce:
    return False
  
  timestamp_part, _, signature = nonce.partition('.')
  try:
    timestamp = int(timestamp_part)
  except ValueError:
    logger.debug(f'令牌格式无效: {nonce[:16]}')
    return False
  
  current = now if now is not None else time.time()
  if current - timestamp > settings.NONCE_LIFETIME or timestamp - current > 60:
    logger.debug('令牌已过期')
    return False
  
  return hmac.compare_digest(signature, _signature(action, timestamp))
