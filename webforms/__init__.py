"""
webforms - 可嵌入的登录/退订表单服务
提供表单渲染、字段校验、Cookie 字段持久化和 API 代理提交
"""

__version__ = "1.1.0"
