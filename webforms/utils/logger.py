import logging
import re
import sys
from loguru import logger
from pathlib import Path

from webforms.utils.config import settings

CONSOLE_FORMAT = '<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>'
FILE_FORMAT = '{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}'

# 日志中不能出现的敏感值 (密码、JWT、令牌)
_SECRET_PATTERN = re.compile(r"""(['"]?(?:password|token|nonce)['"]?\s*[:=]\s*['"]?)[^'",\s}]+""", re.IGNORECASE)

UVICORN_LOGGERS = ('uvicorn', 'uvicorn.error', 'uvicorn.access')


def redact(message: str) -> str:
  """把 password/token/nonce 的值替换为 ***"""
  return _SECRET_PATTERN.sub(r'\1***', message)


def _patch_record(record):
  record['message'] = redact(record['message'])


class _InterceptHandler(logging.Handler):
  """把标准库 logging 的记录转发给 loguru"""

  def emit(self, record: logging.LogRecord) -> None:
    try:
      level = logger.level(record.levelname).name
    except ValueError:
      level = record.levelno
    logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def setup_logger(level: str = None, log_file: str = None):
  """
  配置日志系统

  控制台输出 + 按大小轮转的文件日志 + 单独的错误日志；
  uvicorn 的标准库日志也统一写入 loguru。
  """
  level = level or settings.LOG_LEVEL
  log_file = Path(log_file or settings.LOG_FILE)

  # 移除默认的日志处理器
  logger.remove()
  logger.configure(patcher=_patch_record)

  logger.add(sys.stdout, format=CONSOLE_FORMAT, level=level, colorize=True)

  log_file.parent.mkdir(parents=True, exist_ok=True)
  logger.add(log_file, format=FILE_FORMAT, level='DEBUG', rotation='10 MB', retention='7 days', compression='zip')

  # 错误日志与主日志放在同一目录
  logger.add(
    log_file.parent / 'error.log',
    format=FILE_FORMAT,
    level='ERROR',
    rotation='10 MB',
    retention='30 days',
    compression='zip'
  )

  for name in UVICORN_LOGGERS:
    std_logger = logging.getLogger(name)
    std_logger.handlers = [_InterceptHandler()]
    std_logger.propagate = False

  return logger
