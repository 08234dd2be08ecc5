"""预处理策略模型。

定义尺寸上限、大小阈值、编码质量等可由调用方覆盖的策略参数。
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .constants import UploadLimits


class PreprocessPolicy(BaseModel):
    """上传预处理策略

    进程内只读，不从环境变量加载；调用方可通过构造参数覆盖默认值。
    """

    model_config = ConfigDict(frozen=True)

    # 尺寸上限
    max_image_width: int = Field(
        UploadLimits.MAX_IMAGE_WIDTH, gt=0, description="最大宽度"
    )
    max_image_height: int = Field(
        UploadLimits.MAX_IMAGE_HEIGHT, gt=0, description="最大高度"
    )

    # 大小阈值
    max_file_size: int = Field(
        UploadLimits.MAX_FILE_SIZE, gt=0, description="文件大小上限（字节）"
    )
    small_file_bypass: int = Field(
        UploadLimits.SMALL_FILE_BYPASS, ge=0, description="小文件透传阈值（字节）"
    )

    # 编码质量
    jpeg_quality: float = Field(
        UploadLimits.JPEG_QUALITY, ge=0, le=1, description="JPEG 质量"
    )
    webp_quality: float = Field(
        UploadLimits.WEBP_QUALITY, ge=0, le=1, description="WebP 质量"
    )

    @model_validator(mode="after")
    def validate_thresholds(self) -> "PreprocessPolicy":
        if self.small_file_bypass > self.max_file_size:
            raise ValueError("小文件透传阈值不能大于文件大小上限")
        return self


class EncodingDecision(BaseModel):
    """编码决策结果"""

    model_config = ConfigDict(frozen=True)

    target_type: str = Field(description="目标媒体类型")
    quality: float = Field(ge=0, le=1, description="编码质量")
    reason: str = Field(default="", description="决策原因")
