"""数据模型包。

定义上传预处理相关的数据结构和模型。
"""

from .constants import (
    KIB,
    MIB,
    MediaTypes,
    UploadLimits,
    get_extension,
    get_media_type,
    get_pillow_format,
    is_image_type,
    normalize_media_type,
)
from .policy import EncodingDecision, PreprocessPolicy
from .preprocess_result import BatchReport, FileOutcome, PreprocessAction
from .upload_file import Dimensions, FileCandidate, ProcessedFile, UploadFile


__all__ = [
    "KIB",
    "MIB",
    "BatchReport",
    "Dimensions",
    "EncodingDecision",
    "FileCandidate",
    "FileOutcome",
    "MediaTypes",
    "PreprocessAction",
    "PreprocessPolicy",
    "ProcessedFile",
    "UploadFile",
    "UploadLimits",
    "get_extension",
    "get_media_type",
    "get_pillow_format",
    "is_image_type",
    "normalize_media_type",
]
