"""通用工具(日志配置、payload 解析)."""
