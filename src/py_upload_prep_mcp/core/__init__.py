"""核心模块包。

图像编解码、尺寸计算、编码策略和转码功能。
"""

from .codec import ImageCodec, PillowCodec, RasterBuffer
from .dimensions import compute_target_dimensions, round_half_up
from .strategy import EncodingStrategy
from .transcoder import ImageTranscoder, TranscodeOutcome, TranscodePlan


__all__ = [
    "EncodingStrategy",
    "ImageCodec",
    "ImageTranscoder",
    "PillowCodec",
    "RasterBuffer",
    "TranscodeOutcome",
    "TranscodePlan",
    "compute_target_dimensions",
    "round_half_up",
]
