"""上传预处理 MCP 服务器。

从磁盘读取待上传文件，执行预处理并写出结果；预处理本身只处理内存中的数据。
"""

from pathlib import Path
from typing import Any

from fastmcp import FastMCP

from .engine.batch import UploadPreprocessor
from .exceptions import PreprocessError
from .models.constants import is_image_type
from .models.preprocess_result import BatchReport, PreprocessAction
from .utils.file_helpers import load_candidate, write_processed_file
from .utils.logging_helpers import get_logger, setup_logging
from .utils.message_formatter import MessageFormatter
from .utils.size_format import format_file_size


# MCP 服务器响应类型定义
MCPPreprocessResponse = dict[str, Any]
MCPInspectResponse = dict[str, Any]

DEFAULT_OUTPUT_DIR_NAME = "upload_ready"


class MCPResponseBuilder:
    """MCP 服务器响应构建器，专门用于构建符合 MCP 协议的响应格式。"""

    @staticmethod
    def error(
        message: str,
        error_type: str = "general",
        details: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """构建错误结果。

        Args:
            message: 错误消息
            error_type: 错误类型
            details: 额外的错误详情

        Returns:
            dict: 标准化的错误响应
        """
        result = {
            "success": False,
            "error": message,
            "error_type": error_type,
        }

        if details:
            result["details"] = details

        return result

    @staticmethod
    def file_error(message: str, file_path: str | None = None) -> dict[str, Any]:
        """构建文件相关错误结果。"""
        details = {"file_path": file_path} if file_path else None
        return MCPResponseBuilder.error(
            message=message,
            error_type="file",
            details=details,
        )

    @staticmethod
    def processing_error(message: str, operation: str | None = None) -> dict[str, Any]:
        """构建处理错误结果。"""
        details = {"operation": operation} if operation else None
        return MCPResponseBuilder.error(
            message=message,
            error_type="processing",
            details=details,
        )


logger = get_logger(__name__)

# 创建MCP应用
mcp: FastMCP[Any] = FastMCP("上传文件预处理服务")

# 全局预处理器实例
preprocessor = UploadPreprocessor()


def run_preprocess(
    input_paths: list[str] | str,
    output_dir: str | None = None,
    uploader: UploadPreprocessor | None = None,
) -> MCPPreprocessResponse:
    """读取文件、执行预处理并写出结果

    Args:
        input_paths: 单个或多个输入文件路径
        output_dir: 输出目录，默认为第一个输入文件同级的 upload_ready 目录
        uploader: 预处理器实例，默认使用全局实例

    Returns:
        dict: 每个文件的处理结果及整体摘要
    """
    paths = [input_paths] if isinstance(input_paths, str) else list(input_paths)
    if not paths:
        return MCPResponseBuilder.error("未提供输入文件", error_type="validation")

    try:
        candidates = [load_candidate(path) for path in paths]
    except (FileNotFoundError, IsADirectoryError) as e:
        logger.error(MessageFormatter.operation_failed("读取输入文件", paths, e))
        return MCPResponseBuilder.file_error(str(e))

    target_dir = (
        Path(output_dir)
        if output_dir
        else Path(paths[0]).parent / DEFAULT_OUTPUT_DIR_NAME
    )

    report = (uploader or preprocessor).process_with_report(candidates)
    output_paths = [
        write_processed_file(outcome.file, target_dir) for outcome in report.outcomes
    ]

    return {
        "success": True,
        "output_dir": str(target_dir),
        "summary": report.get_summary(),
        "results": _format_report(report, output_paths),
    }


def _format_report(
    report: BatchReport, output_paths: list[Path]
) -> list[dict[str, Any]]:
    """格式化批量结果为MCP响应格式"""
    return [
        {
            "name": outcome.file.name,
            "output_path": str(output_path),
            "action": outcome.action.value,
            "original_size": outcome.original_size,
            "final_size": outcome.file.byte_size,
            "original_size_human": format_file_size(outcome.original_size),
            "final_size_human": format_file_size(outcome.file.byte_size),
            "original_media_type": outcome.original_media_type,
            "final_media_type": outcome.file.media_type,
            "original_dimensions": outcome.original_dimensions,
            "final_dimensions": outcome.final_dimensions,
            "quality_used": outcome.quality_used,
            "compression_ratio": outcome.get_compression_ratio(),
            "summary": outcome.get_summary(),
            "error": outcome.error,
        }
        for outcome, output_path in zip(report.outcomes, output_paths, strict=True)
    ]


def run_inspect(
    input_path: str, uploader: UploadPreprocessor | None = None
) -> MCPInspectResponse:
    """检查单个文件在预处理中会被如何处理，不执行编码"""
    uploader = uploader or preprocessor

    try:
        candidate = load_candidate(input_path)
    except (FileNotFoundError, IsADirectoryError) as e:
        return MCPResponseBuilder.file_error(str(e), input_path)

    policy = uploader.policy
    result: dict[str, Any] = {
        "success": True,
        "name": candidate.name,
        "media_type": candidate.media_type,
        "byte_size": candidate.byte_size,
        "byte_size_human": format_file_size(candidate.byte_size),
    }

    if candidate.byte_size < policy.small_file_bypass:
        result["action"] = PreprocessAction.SMALL_FILE_BYPASS.value
        return result

    if not is_image_type(candidate.media_type):
        result["action"] = uploader.process_one(candidate).action.value
        return result

    try:
        plan = uploader.transcoder.plan(
            candidate.data, candidate.media_type, candidate.byte_size
        )
    except PreprocessError as e:
        logger.warning(MessageFormatter.operation_failed("图像解码", input_path, e))
        result["action"] = PreprocessAction.FALLBACK.value
        result["error"] = str(e)
        return result

    result.update(
        {
            "action": (
                PreprocessAction.TRANSCODED.value
                if plan.needs_reencode
                else PreprocessAction.SHORT_CIRCUIT.value
            ),
            "original_dimensions": plan.original_dimensions.as_tuple(),
            "target_dimensions": plan.target_dimensions.as_tuple(),
        }
    )
    if plan.decision:
        result["target_media_type"] = plan.decision.target_type
        result["quality"] = plan.decision.quality
        result["reason"] = plan.decision.reason
    return result


# ============================================================================
# 🎯 核心工具
# ============================================================================


@mcp.tool()
def preprocess_uploads(
    input_paths: list[str] | str,
    output_dir: str | None = None,
) -> MCPPreprocessResponse:
    """📤 上传前预处理工具

    小于 50KB 的文件原样保留；图像等比缩放到 1280x1024 以内并重新编码
    （PNG 优先转为 WebP）；超过 5MB 的 PDF 给出警告；其他文件原样保留。
    任何文件处理失败都会回退为原文件。

    Args:
        input_paths: 单个或多个输入文件路径
        output_dir: 输出目录（可选，默认在第一个输入文件旁创建 upload_ready）

    Returns:
        dict: 每个文件的处理方式、大小变化和输出路径
    """
    try:
        return run_preprocess(input_paths, output_dir)
    except Exception as e:
        logger.error(MessageFormatter.operation_failed("上传预处理", input_paths, e))
        return MCPResponseBuilder.processing_error(
            MessageFormatter.operation_failed("上传预处理", input_paths, e),
            "上传预处理",
        )


@mcp.tool()
def inspect_upload(input_path: str) -> MCPInspectResponse:
    """🔍 查看单个文件会被如何预处理

    Args:
        input_path: 输入文件路径

    Returns:
        dict: 文件大小、媒体类型、预计处理方式；图像额外包含原始/目标尺寸和编码决策
    """
    try:
        return run_inspect(input_path)
    except Exception as e:
        logger.error(MessageFormatter.operation_failed("检查文件", input_path, e))
        return MCPResponseBuilder.processing_error(str(e), "检查文件")


# ============================================================================
# 应用入口
# ============================================================================


def main() -> None:
    """启动 MCP 服务器"""
    setup_logging()
    logger.info("启动上传预处理 MCP 服务器")
    mcp.run()


if __name__ == "__main__":
    main()
