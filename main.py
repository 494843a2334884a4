#!/usr/bin/env python3
"""
表单服务启动文件
"""

import uvicorn
from webforms.utils.config import settings
from webforms.utils.logger import setup_logger

if __name__ == '__main__':
  logger = setup_logger()
  logger.info('启动表单服务...')

  uvicorn.run(
    'webforms.main:app',
    host=settings.HOST,
    port=settings.PORT,
    reload=settings.DEBUG,
    log_level='info'
  )
