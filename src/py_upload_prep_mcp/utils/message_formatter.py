"""消息格式化工具模块。

提供统一的错误消息、处理结果消息格式化功能。
"""

from pathlib import Path
from typing import Any

from .size_format import format_file_size


class MessageFormatter:
    """统一的消息格式化器"""

    @staticmethod
    def file_not_found(file_path: str | Path) -> str:
        """文件不存在错误消息"""
        return f"文件不存在: {file_path}"

    @staticmethod
    def path_not_file(path: str | Path) -> str:
        """路径不是文件错误消息"""
        return f"路径不是文件: {path}"

    @staticmethod
    def operation_failed(
        operation: str, target: str | Path, error: Exception | None = None
    ) -> str:
        """操作失败消息"""
        msg = f"{operation}失败: {target}"
        if error:
            msg += f" - {error}"
        return msg

    @staticmethod
    def validation_error(field: str, value: Any, reason: str | None = None) -> str:
        """参数验证错误消息"""
        msg = f"参数验证失败 - {field}: {value}"
        if reason:
            msg += f" ({reason})"
        return msg

    @staticmethod
    def format_error(operation: str, name: str | Path, error: Exception) -> str:
        """格式化通用错误消息"""
        return f"{operation}失败 [{name}]: {error}"

    @staticmethod
    def image_processed(name: str, original_size: int, final_size: int) -> str:
        """图像处理完成消息"""
        return (
            f"已处理图像 {name}: {format_file_size(original_size)} → "
            f"{format_file_size(final_size)}"
        )

    @staticmethod
    def pdf_too_large(name: str, size_bytes: int) -> str:
        """PDF 超出大小上限的提示消息"""
        return f"PDF {name} 过大 ({format_file_size(size_bytes)})，建议先进行优化"

    @staticmethod
    def fallback_to_original(name: str, error: Exception) -> str:
        """回退到原文件的消息"""
        return f"处理图像 {name} 出错，回退到原文件: {error}"
