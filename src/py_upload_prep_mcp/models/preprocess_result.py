"""预处理结果模型。

定义单个文件和整批文件的预处理结果数据结构。
"""

from enum import Enum

from humanize import naturalsize
from pydantic import BaseModel, Field

from .upload_file import ProcessedFile


class PreprocessAction(str, Enum):
    """单个文件的处理方式"""

    SMALL_FILE_BYPASS = "small_file_bypass"  # 小文件直接透传
    PASS_THROUGH = "pass_through"  # 非图像类型透传
    OVERSIZED_PDF = "oversized_pdf"  # PDF 超出上限，仅警告后透传
    SHORT_CIRCUIT = "short_circuit"  # 图像无需缩放且未超限，跳过重新编码
    TRANSCODED = "transcoded"  # 图像已缩放/重新编码
    FALLBACK = "fallback"  # 图像处理失败，回退到原文件


class BaseOutcome(BaseModel):
    """结果基类，包含通用的格式化方法"""

    @staticmethod
    def format_size(size_bytes: int) -> str:
        """格式化文件大小为人类可读格式"""
        return naturalsize(size_bytes, binary=True)


class FileOutcome(BaseOutcome):
    """单个文件的预处理结果"""

    file: ProcessedFile = Field(description="输出文件")
    action: PreprocessAction = Field(description="处理方式")
    original_size: int = Field(description="原始文件大小（字节）")
    original_media_type: str = Field(description="原始媒体类型")

    # 图像处理信息
    original_dimensions: tuple[int, int] | None = Field(None, description="原始尺寸")
    final_dimensions: tuple[int, int] | None = Field(None, description="最终尺寸")
    quality_used: float | None = Field(None, description="使用的编码质量")

    error: str | None = Field(None, description="错误信息")

    @property
    def was_transformed(self) -> bool:
        """输出是否为重新编码后的文件"""
        return self.action == PreprocessAction.TRANSCODED

    def get_size_saved(self) -> int:
        """节省的字节数"""
        return max(0, self.original_size - self.file.byte_size)

    def get_compression_ratio(self) -> float:
        """压缩比例（百分比）"""
        if self.original_size == 0:
            return 0.0
        return (self.get_size_saved() / self.original_size) * 100

    def get_summary(self) -> str:
        """处理结果摘要"""
        if self.action == PreprocessAction.FALLBACK:
            return f"回退到原文件: {self.error}"
        if not self.was_transformed:
            return f"未修改 ({self.action.value})"

        return (
            f"{self.format_size(self.original_size)} → "
            f"{self.format_size(self.file.byte_size)} "
            f"({self.get_compression_ratio():.1f}% 压缩)"
        )


class BatchReport(BaseOutcome):
    """批量预处理结果，按输入顺序保存每个文件的结果"""

    outcomes: list[FileOutcome] = Field(default_factory=list, description="各文件结果")

    @property
    def files(self) -> list[ProcessedFile]:
        """可上传的文件列表，与输入一一对应"""
        return [outcome.file for outcome in self.outcomes]

    def count_by_action(self, action: PreprocessAction) -> int:
        """统计指定处理方式的文件数"""
        return sum(1 for outcome in self.outcomes if outcome.action == action)

    def get_total_original_size(self) -> int:
        """总原始大小"""
        return sum(outcome.original_size for outcome in self.outcomes)

    def get_total_final_size(self) -> int:
        """总输出大小"""
        return sum(outcome.file.byte_size for outcome in self.outcomes)

    def get_total_size_saved(self) -> int:
        """总节省大小"""
        return sum(outcome.get_size_saved() for outcome in self.outcomes)

    def get_summary(self) -> str:
        """批量处理摘要"""
        total = len(self.outcomes)
        transcoded = self.count_by_action(PreprocessAction.TRANSCODED)
        fallback = self.count_by_action(PreprocessAction.FALLBACK)

        return (
            f"处理 {total} 个文件，重新编码 {transcoded} 个，回退 {fallback} 个，"
            f"总节省 {self.format_size(self.get_total_size_saved())}"
        )
