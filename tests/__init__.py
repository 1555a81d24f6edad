"""
taskretry 测试套件

测试目录结构:
    tests/
    ├── __init__.py
    ├── conftest.py              # pytest fixtures (固定时钟、历史工厂、示例配置)
    ├── core/retry/test_policy.py  # 重试策略测试
    ├── test_config.py           # 配置加载测试
    ├── test_models.py           # 数据模型测试
    └── test_schemas.py          # 传输格式测试
"""
