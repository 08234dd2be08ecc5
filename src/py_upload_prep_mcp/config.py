"""统一配置管理模块。

提供应用程序的全局配置管理，包括默认值、环境变量支持等。
编码策略（尺寸上限、质量、大小阈值）不在此处，见 models.policy.PreprocessPolicy。
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ProcessingDefaults:
    """处理相关的默认配置"""

    # 并发设置
    MAX_WORKERS: int = 4
    EXECUTOR_TYPE: str | None = None  # 'thread'/'process'/None为自动选择

    # 自动选择进程池的阈值
    PROCESS_POOL_MIN_TASKS: int = 20
    PROCESS_POOL_MIN_AVG_SIZE: int = 5 * 1024 * 1024  # 5MB


@dataclass(frozen=True)
class LoggingDefaults:
    """日志相关的默认配置"""

    # 日志级别
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # 文件日志
    ENABLE_FILE_LOGGING: bool = False
    LOG_FILE_PATH: str = "py_upload_prep.log"
    LOG_FILE_MAX_SIZE: int = 10 * 1024 * 1024  # 10MB
    LOG_FILE_BACKUP_COUNT: int = 5


class AppConfig:
    """应用程序配置管理器

    支持环境变量覆盖默认配置
    """

    def __init__(self):
        self.processing = ProcessingDefaults()
        self.logging = LoggingDefaults()

        # 从环境变量加载配置
        self._load_from_env()

    def _load_from_env(self):
        """从环境变量加载配置"""
        # 处理配置
        if max_workers := os.getenv("PUP_MAX_WORKERS"):
            object.__setattr__(self.processing, "MAX_WORKERS", int(max_workers))

        if executor_type := os.getenv("PUP_EXECUTOR"):
            executor_type = executor_type.lower()
            if executor_type in ("thread", "process"):
                object.__setattr__(self.processing, "EXECUTOR_TYPE", executor_type)

        # 日志配置
        if log_level := os.getenv("PUP_LOG_LEVEL"):
            object.__setattr__(self.logging, "LOG_LEVEL", log_level.upper())

        if enable_file_log := os.getenv("PUP_ENABLE_FILE_LOGGING"):
            object.__setattr__(
                self.logging,
                "ENABLE_FILE_LOGGING",
                enable_file_log.lower() in ("true", "1", "yes"),
            )

    def get_executor_type(self, task_count: int, avg_size: float) -> str:
        """根据任务数量和平均文件大小选择执行器类型"""
        if (
            task_count > self.processing.PROCESS_POOL_MIN_TASKS
            or avg_size > self.processing.PROCESS_POOL_MIN_AVG_SIZE
        ):
            return "process"  # 大批量或大文件使用进程池
        return "thread"


# 全局配置实例
config = AppConfig()


def get_config() -> AppConfig:
    """获取全局配置实例"""
    return config


def reset_config():
    """重置配置（主要用于测试）"""
    global config
    config = AppConfig()
