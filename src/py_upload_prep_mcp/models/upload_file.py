"""上传文件模型。

定义进入预处理流程的候选文件和处理后的输出文件。
"""

from pydantic import BaseModel, ConfigDict, Field


class UploadFile(BaseModel):
    """上传文件基类：名称、大小、声明的媒体类型和原始字节"""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="文件名")
    byte_size: int = Field(ge=0, description="文件大小（字节）")
    media_type: str = Field(description="声明的媒体类型，如 image/png")
    data: bytes = Field(repr=False, description="文件内容")


class FileCandidate(UploadFile):
    """待上传的候选文件，尚未经过任何处理"""


class ProcessedFile(UploadFile):
    """处理后可直接上传的文件，可能是原文件或重新编码后的替代文件"""

    @classmethod
    def from_candidate(cls, candidate: UploadFile) -> "ProcessedFile":
        """原样透传候选文件"""
        return cls(
            name=candidate.name,
            byte_size=candidate.byte_size,
            media_type=candidate.media_type,
            data=candidate.data,
        )


class Dimensions(BaseModel):
    """图像像素尺寸"""

    model_config = ConfigDict(frozen=True)

    width: int = Field(gt=0, description="宽度")
    height: int = Field(gt=0, description="高度")

    def fits_within(self, max_width: int, max_height: int) -> bool:
        """是否在给定上限之内"""
        return self.width <= max_width and self.height <= max_height

    def as_tuple(self) -> tuple[int, int]:
        return (self.width, self.height)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"
