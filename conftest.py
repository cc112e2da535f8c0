"""全局 pytest 配置 -- 测试环境变量"""

import os

# 测试中降低 PBKDF2 迭代次数，避免注册/登录拖慢用例
os.environ.setdefault("TASKHUB_PASSWORD_ITERATIONS", "1000")
# 测试输出使用可读格式
os.environ.setdefault("TASKHUB_LOG_FORMAT", "dev")
