"""预处理引擎模块。

包含批量预处理和并发执行等核心处理逻辑。
"""

from .batch import UploadPreprocessor, preprocess_uploads
from .concurrent_executor import ConcurrentExecutor


__all__ = [
    "ConcurrentExecutor",
    "UploadPreprocessor",
    "preprocess_uploads",
]
