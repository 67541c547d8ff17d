"""
通用工具：调试日志、数据路径解析、调色板加载
"""
