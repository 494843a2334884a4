from dotenv import load_dotenv
import os
from pathlib import Path

# 加载环境变量
load_dotenv()

# 获取项目根目录
BASE_DIR = Path(__file__).resolve().parent.parent.parent


def _env_bool(name: str, default: str = 'false') -> bool:
  return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Settings:
  """应用配置类"""
  
  def __init__(self):
    # 服务器配置
    self.HOST = os.getenv('HOST', '0.0.0.0')
    self.PORT = int(os.getenv('PORT', '8000'))
    self.DEBUG = _env_bool('DEBUG')
    
    # 日志配置
    self.LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    self.LOG_FILE = os.getenv('LOG_FILE', 'logs/app.log')
    
    # 安全配置
    self.SECRET_KEY = os.getenv('SECRET_KEY', 'your-secret-key-here')
    self.NONCE_LIFETIME = int(os.getenv('NONCE_LIFETIME', '86400'))
    
    # 上游 API 配置
    self.API_BASE_URL = os.getenv('API_BASE_URL', 'https://api.iqtig.org')
    self.API_TIMEOUT = float(os.getenv('API_TIMEOUT', '30'))
    
    # JWT Cookie 有效期 (秒)，最小 60 秒
    self.JWT_COOKIE_LIFETIME = max(60, int(os.getenv('JWT_COOKIE_LIFETIME', '14400')))
    self.COOKIE_SECURE = _env_bool('COOKIE_SECURE')
    
    # 跳转配置
    self.HOME_URL = os.getenv('HOME_URL', '/')
    self.LOGIN_REDIRECT_URL = os.getenv('LOGIN_REDIRECT_URL', '').strip()
    self.UNSUBSCRIBE_REDIRECT_URL = os.getenv('UNSUBSCRIBE_REDIRECT_URL', '').strip()
    
    # 退订表单配置
    self.DEFAULT_SURVEY_ID = os.getenv('DEFAULT_SURVEY_ID', '').strip()
    self.USE_DEFAULT_SURVEY_ID = _env_bool('USE_DEFAULT_SURVEY_ID')
    
    # 表单字段持久化配置
    self.FIELD_COOKIE_DAYS = int(os.getenv('FIELD_COOKIE_DAYS', '30'))
    self.FIELD_CLEAR_ON_SUCCESS = _env_bool('FIELD_CLEAR_ON_SUCCESS')
    
    # 表单定义文件
    self.FORMS_FILE = os.getenv('FORMS_FILE', 'forms.json')
    
    self.BASE_DIR = BASE_DIR


# 创建全局设置实例
settings = Settings()
