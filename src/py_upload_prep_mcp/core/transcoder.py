"""图像转码模块。

解码图像、在尺寸上限内等比缩放，并按编码策略重新编码。
转码器是 (字节, 声明类型, 大小) 的纯函数，不持有跨文件的可变状态。
"""

from pydantic import BaseModel, Field

from ..models.policy import EncodingDecision, PreprocessPolicy
from ..models.upload_file import Dimensions, ProcessedFile
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter
from .codec import ImageCodec, PillowCodec
from .dimensions import compute_target_dimensions
from .strategy import EncodingStrategy


logger = get_logger()


class TranscodePlan(BaseModel):
    """转码计划：解码后即可确定的处理方式"""

    original_dimensions: Dimensions = Field(description="原始尺寸")
    target_dimensions: Dimensions = Field(description="目标尺寸")
    needs_reencode: bool = Field(description="是否需要重新编码")
    decision: EncodingDecision | None = Field(None, description="编码决策")


class TranscodeOutcome(BaseModel):
    """转码结果"""

    file: ProcessedFile = Field(description="输出文件")
    plan: TranscodePlan = Field(description="执行的转码计划")

    @property
    def short_circuited(self) -> bool:
        """是否跳过了重新编码"""
        return not self.plan.needs_reencode


class ImageTranscoder:
    """图像转码器

    失败时抛出 DecodeError、EncodeError 或 CapabilityUnavailable，由调用方决定回退方式。
    """

    def __init__(
        self,
        codec: ImageCodec | None = None,
        policy: PreprocessPolicy | None = None,
    ):
        """初始化转码器

        Args:
            codec: 图像编解码器，默认使用 PillowCodec
            policy: 预处理策略，默认使用内置阈值
        """
        self.codec = codec or PillowCodec()
        self.policy = policy or PreprocessPolicy()
        self.strategy = EncodingStrategy(self.policy, self.codec)

    def transcode(
        self, data: bytes, declared_type: str, byte_size: int, name: str = ""
    ) -> ProcessedFile:
        """转码单个图像，返回可上传的文件"""
        return self.transcode_detailed(data, declared_type, byte_size, name).file

    def transcode_detailed(
        self, data: bytes, declared_type: str, byte_size: int, name: str = ""
    ) -> TranscodeOutcome:
        """转码单个图像，并返回执行的转码计划

        Args:
            data: 图像字节
            declared_type: 声明的媒体类型
            byte_size: 文件大小（字节）
            name: 文件名，用于日志和输出文件

        Returns:
            TranscodeOutcome: 转码结果
        """
        with self.codec.decode(data) as raster:
            plan = self._build_plan(raster.dimensions, declared_type, byte_size)

            if not plan.needs_reencode:
                logger.debug(f"图像 {name} 无需缩放且未超出大小上限，跳过重新编码")
                original = ProcessedFile(
                    name=name, byte_size=byte_size, media_type=declared_type, data=data
                )
                return TranscodeOutcome(file=original, plan=plan)

            decision = plan.decision or self.strategy.select(declared_type)
            with self.codec.render(raster, plan.target_dimensions) as rendered:
                encoded = self.codec.encode(
                    rendered, decision.target_type, decision.quality
                )

        processed = ProcessedFile(
            name=name,
            byte_size=len(encoded),
            media_type=decision.target_type,
            data=encoded,
        )
        logger.info(
            MessageFormatter.image_processed(name, byte_size, processed.byte_size)
        )
        return TranscodeOutcome(file=processed, plan=plan)

    def plan(self, data: bytes, declared_type: str, byte_size: int) -> TranscodePlan:
        """只解码并给出转码计划，不执行编码"""
        with self.codec.decode(data) as raster:
            return self._build_plan(raster.dimensions, declared_type, byte_size)

    def _build_plan(
        self, original: Dimensions, declared_type: str, byte_size: int
    ) -> TranscodePlan:
        target = compute_target_dimensions(
            original, self.policy.max_image_width, self.policy.max_image_height
        )

        # 尺寸不变且未超出大小上限时跳过，避免无谓的质量损失
        if target == original and byte_size <= self.policy.max_file_size:
            return TranscodePlan(
                original_dimensions=original,
                target_dimensions=target,
                needs_reencode=False,
            )

        return TranscodePlan(
            original_dimensions=original,
            target_dimensions=target,
            needs_reencode=True,
            decision=self.strategy.select(declared_type),
        )
