"""编码策略模块。

根据声明的媒体类型和编码器能力选择目标格式与质量。
"""

from ..models.constants import MediaTypes, normalize_media_type
from ..models.policy import EncodingDecision, PreprocessPolicy
from ..utils.logging_helpers import get_logger
from .codec import ImageCodec


logger = get_logger()


class EncodingStrategy:
    """编码策略选择器

    - JPEG 系列 -> JPEG，JPEG 质量
    - PNG -> 编码器支持时转为 WebP（WebP 质量），否则保持 PNG（JPEG 质量）
    - WebP -> WebP，WebP 质量
    - 其他图像类型 -> 保持原类型，JPEG 质量
    """

    def __init__(self, policy: PreprocessPolicy, codec: ImageCodec):
        self.policy = policy
        self.codec = codec

    def select(self, declared_type: str) -> EncodingDecision:
        """选择编码方式

        Args:
            declared_type: 声明的媒体类型

        Returns:
            EncodingDecision: 编码决策
        """
        media_type = normalize_media_type(declared_type)

        if media_type in MediaTypes.JPEG_VARIANTS:
            return EncodingDecision(
                target_type=MediaTypes.JPEG,
                quality=self.policy.jpeg_quality,
                reason="JPEG 图像按 JPEG 重新编码",
            )

        if media_type == MediaTypes.PNG:
            if self.codec.supports_encoding(MediaTypes.WEBP):
                return EncodingDecision(
                    target_type=MediaTypes.WEBP,
                    quality=self.policy.webp_quality,
                    reason="PNG 图像转换为 WebP",
                )
            # PNG 为无损格式，此处的质量值不会生效
            logger.debug("编码器不支持 WebP，PNG 保持原格式")
            return EncodingDecision(
                target_type=media_type,
                quality=self.policy.jpeg_quality,
                reason="编码器不支持 WebP，保持 PNG",
            )

        if media_type == MediaTypes.WEBP:
            return EncodingDecision(
                target_type=MediaTypes.WEBP,
                quality=self.policy.webp_quality,
                reason="WebP 图像按 WebP 重新编码",
            )

        return EncodingDecision(
            target_type=media_type,
            quality=self.policy.jpeg_quality,
            reason="其他图像类型保持原格式",
        )
