"""上传预处理异常处理模块。

定义统一的异常类和错误处理机制，包含图像处理异常转换装饰器。
"""

from collections.abc import Callable
from functools import wraps
from typing import TypeVar

from PIL.Image import DecompressionBombError, UnidentifiedImageError

from .models.preprocess_result import FileOutcome, PreprocessAction
from .models.upload_file import FileCandidate, ProcessedFile
from .utils.logging_helpers import get_logger
from .utils.message_formatter import MessageFormatter


logger = get_logger()
T = TypeVar("T")


# 统一的异常类型
class PreprocessError(Exception):
    """预处理相关错误基类"""

    def __init__(self, message: str, name: str | None = None):
        super().__init__(message)
        self.message = message
        self.name = name


class DecodeError(PreprocessError):
    """图像数据损坏或格式不支持"""

    pass


class EncodeError(PreprocessError):
    """编码器不可用或未返回数据"""

    pass


class CapabilityUnavailable(PreprocessError):
    """无法获取光栅渲染环境"""

    pass


class ValidationError(PreprocessError):
    """参数验证错误"""

    pass


def handle_image_errors(
    operation_name: str = "图像处理",
    error_type: type[PreprocessError] = DecodeError,
):
    """统一的图像处理异常转换装饰器

    已属于 PreprocessError 的异常原样抛出，其余异常转换为 error_type。

    Args:
        operation_name: 操作名称，用于日志记录
        error_type: 非预期异常转换成的异常类型
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except PreprocessError:
                raise
            except UnidentifiedImageError as e:
                logger.debug(f"{operation_name} - 无法识别图像格式: {e}")
                raise error_type(f"不支持的图像格式: {e}") from e
            except DecompressionBombError as e:
                logger.debug(f"{operation_name} - 图像过大: {e}")
                raise error_type(f"图像像素过多，可能存在安全风险: {e}") from e
            except MemoryError as e:
                logger.debug(f"{operation_name} - 内存不足: {e}")
                raise CapabilityUnavailable(f"无法分配图像缓冲区: {e}") from e
            except (OSError, KeyError, ValueError, TypeError) as e:
                logger.debug(f"{operation_name} - 处理失败: {e}")
                raise error_type(f"{operation_name}失败: {e}") from e
            except Exception as e:
                logger.debug(f"{operation_name} - 未知错误: {e}")
                raise error_type(f"{operation_name}失败: {e}") from e

        return wrapper

    return decorator


class ErrorHandler:
    """统一错误处理器

    提供标准化的错误日志记录和回退结果构建。
    """

    @staticmethod
    def _log_error(
        operation: str, name: str, error: Exception, level: str = "error"
    ) -> None:
        """标准化的错误日志记录

        Args:
            operation: 操作名称（如"图像解码"、"图像编码"等）
            name: 相关文件名
            error: 异常对象
            level: 日志级别 ("error", "warning", "debug")
        """
        log_msg = MessageFormatter.format_error(operation, name, error)
        getattr(logger, level, logger.error)(log_msg)

    @staticmethod
    def _create_fallback_outcome(
        candidate: FileCandidate, error_msg: str
    ) -> FileOutcome:
        """创建回退到原文件的结果"""
        return FileOutcome(
            file=ProcessedFile.from_candidate(candidate),
            action=PreprocessAction.FALLBACK,
            original_size=candidate.byte_size,
            original_media_type=candidate.media_type,
            error=error_msg,
        )

    @staticmethod
    def handle_with_context(
        error: Exception,
        candidate: FileCandidate,
        operation: str = "未知操作",
        log_level: str = "error",
    ) -> FileOutcome:
        """记录错误并回退到原文件

        Args:
            error: 异常对象
            candidate: 出错的候选文件
            operation: 操作名称
            log_level: 日志级别 ("error", "warning", "debug")

        Returns:
            FileOutcome: 以原文件作为输出的回退结果
        """
        ErrorHandler._log_error(operation, candidate.name, error, log_level)
        logger.info(MessageFormatter.fallback_to_original(candidate.name, error))
        return ErrorHandler._create_fallback_outcome(candidate, f"{operation}: {error}")

    @staticmethod
    def handle_preprocess_error(
        error: Exception, candidate: FileCandidate, operation: str = "图像预处理"
    ) -> FileOutcome:
        """统一的预处理错误处理，按错误类型分发"""
        match error:
            case DecodeError() as de:
                return ErrorHandler.handle_with_context(
                    de, candidate, f"{operation} - 解码", log_level="error"
                )
            case EncodeError() as ee:
                return ErrorHandler.handle_with_context(
                    ee, candidate, f"{operation} - 编码", log_level="error"
                )
            case CapabilityUnavailable() as ce:
                return ErrorHandler.handle_with_context(
                    ce, candidate, f"{operation} - 渲染环境", log_level="error"
                )
            case _:
                return ErrorHandler.handle_with_context(
                    error, candidate, operation, log_level="error"
                )
