"""日志工具模块。

提供统一的日志记录功能，标准化日志格式和配置。
"""

import inspect
import logging
from logging.handlers import RotatingFileHandler


def get_logger(name: str | None = None) -> logging.Logger:
    """获取标准化配置的日志记录器。

    Args:
        name: 日志记录器名称，默认使用调用模块的 __name__

    Returns:
        logging.Logger: 配置好的日志记录器
    """
    if name is None:
        # 获取调用者的模块名
        frame = inspect.currentframe()
        if frame and frame.f_back:
            name = frame.f_back.f_globals.get("__name__", "unknown")
        else:
            name = "unknown"

    return logging.getLogger(name)


def setup_logging(level: str | None = None) -> None:
    """按全局配置初始化根日志记录器。

    Args:
        level: 覆盖配置中的日志级别（可选）
    """
    from ..config import get_config

    logging_defaults = get_config().logging
    log_level = (level or logging_defaults.LOG_LEVEL).upper()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if logging_defaults.ENABLE_FILE_LOGGING:
        handlers.append(
            RotatingFileHandler(
                logging_defaults.LOG_FILE_PATH,
                maxBytes=logging_defaults.LOG_FILE_MAX_SIZE,
                backupCount=logging_defaults.LOG_FILE_BACKUP_COUNT,
                encoding="utf-8",
            )
        )

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format=logging_defaults.LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
