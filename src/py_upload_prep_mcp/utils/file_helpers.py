"""文件工具函数模块。

在磁盘文件与内存中的上传文件之间转换，供 MCP 工具使用。
"""

import itertools
import mimetypes
from pathlib import Path

from PIL import Image

from ..models.constants import get_extension, get_media_type
from ..models.upload_file import FileCandidate, ProcessedFile
from .logging_helpers import get_logger
from .message_formatter import MessageFormatter


logger = get_logger()

DEFAULT_MEDIA_TYPE = "application/octet-stream"


def guess_media_type(file_path: str | Path) -> str:
    """推断文件的媒体类型

    优先按扩展名推断，无法识别时尝试用 Pillow 识别图像格式。

    Args:
        file_path: 文件路径

    Returns:
        str: 媒体类型，如 'image/png'
    """
    media_type, _ = mimetypes.guess_type(str(file_path))
    if media_type:
        return media_type

    try:
        with Image.open(file_path) as img:
            if img.format:
                return get_media_type(img.format)
    except Exception as e:
        logger.debug(MessageFormatter.operation_failed("识别图像格式", file_path, e))
    return DEFAULT_MEDIA_TYPE


def load_candidate(file_path: str | Path, media_type: str | None = None) -> FileCandidate:
    """从磁盘读取文件，构建候选文件

    Args:
        file_path: 文件路径
        media_type: 声明的媒体类型，None 时自动推断

    Returns:
        FileCandidate: 候选文件

    Raises:
        FileNotFoundError: 文件不存在
        IsADirectoryError: 路径不是文件
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(MessageFormatter.file_not_found(file_path))
    if not file_path.is_file():
        raise IsADirectoryError(MessageFormatter.path_not_file(file_path))

    data = file_path.read_bytes()
    return FileCandidate(
        name=file_path.name,
        byte_size=len(data),
        media_type=media_type or guess_media_type(file_path),
        data=data,
    )


def ensure_unique_path(path: Path) -> Path:
    """确保路径唯一，如果文件已存在则添加数字后缀

    Args:
        path: 原始路径

    Returns:
        Path: 唯一的路径，如 photo.webp 已存在时返回 photo_1.webp
    """
    if not path.exists():
        return path

    for counter in itertools.count(1):
        new_path = path.parent / f"{path.stem}_{counter}{path.suffix}"
        if not new_path.exists():
            return new_path

    raise RuntimeError("无法生成唯一路径")


def write_processed_file(processed: ProcessedFile, output_dir: str | Path) -> Path:
    """将处理后的文件写入输出目录

    媒体类型发生变化时（如 PNG 转为 WebP），扩展名随之调整；
    目标文件已存在时添加数字后缀，不会覆盖已有文件。

    Args:
        processed: 处理后的文件
        output_dir: 输出目录

    Returns:
        Path: 写入的文件路径
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    output_path = output_dir / processed.name
    expected_ext = get_extension(processed.media_type)
    if (
        expected_ext
        and mimetypes.guess_type(processed.name)[0] != processed.media_type
        and output_path.suffix.lower() != expected_ext
    ):
        output_path = output_path.with_suffix(expected_ext)

    output_path = ensure_unique_path(output_path)
    output_path.write_bytes(processed.data)
    return output_path
