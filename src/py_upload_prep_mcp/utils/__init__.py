"""工具模块包。

提供纯工具函数，不包含业务逻辑。
"""

# 从文件助手模块导入
from .file_helpers import (
    ensure_unique_path,
    guess_media_type,
    load_candidate,
    write_processed_file,
)

# 从日志工具模块导入
from .logging_helpers import get_logger, setup_logging

# 从消息格式化模块导入
from .message_formatter import MessageFormatter

# 从大小格式化模块导入
from .size_format import format_file_size


__all__ = [
    "MessageFormatter",
    "ensure_unique_path",
    "format_file_size",
    "get_logger",
    "guess_media_type",
    "load_candidate",
    "setup_logging",
    "write_processed_file",
]
