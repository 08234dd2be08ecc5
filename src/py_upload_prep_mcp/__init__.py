"""上传文件预处理库。

上传前检查待上传文件，按尺寸、格式、质量策略对图像缩放并重新编码。
"""

__version__ = "0.1.0"
__description__ = "上传前文件预处理，基于 Pillow 11"

# 核心功能导出
from .core.codec import ImageCodec, PillowCodec
from .core.transcoder import ImageTranscoder
from .engine.batch import UploadPreprocessor, preprocess_uploads
from .exceptions import CapabilityUnavailable, DecodeError, EncodeError, PreprocessError
from .models import (
    BatchReport,
    Dimensions,
    FileCandidate,
    PreprocessPolicy,
    ProcessedFile,
)
from .utils.size_format import format_file_size


__all__ = [
    "BatchReport",
    "CapabilityUnavailable",
    "DecodeError",
    "Dimensions",
    "EncodeError",
    "FileCandidate",
    "ImageCodec",
    "ImageTranscoder",
    "PillowCodec",
    "PreprocessError",
    "PreprocessPolicy",
    "ProcessedFile",
    "UploadPreprocessor",
    "format_file_size",
    "get_version",
    "preprocess_uploads",
]


def get_version() -> str:
    """获取版本号。"""
    return __version__
