"""图像编解码模块。

定义预处理流程依赖的编解码接口，并提供基于 Pillow 的实现。
"""

from abc import ABC, abstractmethod
from io import BytesIO
from typing import Any

from PIL import Image, ImageOps

from ..exceptions import (
    CapabilityUnavailable,
    DecodeError,
    EncodeError,
    handle_image_errors,
)
from ..models.constants import get_pillow_format, normalize_media_type
from ..models.upload_file import Dimensions
from ..utils.logging_helpers import get_logger


logger = get_logger()


class RasterBuffer:
    """解码后的像素缓冲区

    持有一个 PIL 图像，close() 后释放；支持 with 语句确保任何路径下都会释放。
    """

    def __init__(self, image: Image.Image, source_format: str | None = None):
        self.image = image
        self.source_format = source_format

    @property
    def dimensions(self) -> Dimensions:
        width, height = self.image.size
        return Dimensions(width=width, height=height)

    def close(self) -> None:
        self.image.close()

    def __enter__(self) -> "RasterBuffer":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class ImageCodec(ABC):
    """图像编解码接口

    转码决策逻辑只依赖该接口，不依赖具体的图像库。
    """

    @abstractmethod
    def decode(self, data: bytes) -> RasterBuffer:
        """解码图像字节，失败时抛出 DecodeError"""

    @abstractmethod
    def render(self, raster: RasterBuffer, dimensions: Dimensions) -> RasterBuffer:
        """按目标尺寸渲染新的缓冲区，无法获取渲染环境时抛出 CapabilityUnavailable"""

    @abstractmethod
    def encode(self, raster: RasterBuffer, target_type: str, quality: float) -> bytes:
        """按目标媒体类型和质量 (0-1) 编码，失败时抛出 EncodeError"""

    @abstractmethod
    def supports_encoding(self, media_type: str) -> bool:
        """是否支持编码为指定媒体类型"""


class PillowCodec(ImageCodec):
    """基于 Pillow 的编解码器"""

    def __init__(self) -> None:
        # 编码能力探测结果缓存，每种类型只探测一次
        self._encoding_support: dict[str, bool] = {}

    @handle_image_errors("图像解码", DecodeError)
    def decode(self, data: bytes) -> RasterBuffer:
        if not data:
            raise DecodeError("图像数据为空")

        img = Image.open(BytesIO(data))
        source_format = img.format
        try:
            img.load()
            # 按 EXIF 方向信息旋转，与浏览器显示一致
            oriented = ImageOps.exif_transpose(img)
        except Exception:
            img.close()
            raise

        if oriented is not img:
            img.close()
        return RasterBuffer(oriented, source_format)

    @handle_image_errors("图像渲染", CapabilityUnavailable)
    def render(self, raster: RasterBuffer, dimensions: Dimensions) -> RasterBuffer:
        img = self._to_canvas_mode(raster.image)
        try:
            if img.size == dimensions.as_tuple():
                resized = img.copy()
            else:
                resized = img.resize(dimensions.as_tuple(), Image.Resampling.LANCZOS)
        finally:
            if img is not raster.image:
                img.close()
        return RasterBuffer(resized, raster.source_format)

    @handle_image_errors("图像编码", EncodeError)
    def encode(self, raster: RasterBuffer, target_type: str, quality: float) -> bytes:
        format_name = get_pillow_format(target_type)
        if format_name is None or format_name not in Image.SAVE:
            raise EncodeError(f"不支持编码为 {target_type}")

        img = self._prepare_for_format(raster.image, format_name)
        try:
            buffer = BytesIO()
            save_params = self._save_parameters(format_name, quality)
            img.save(buffer, format=format_name, **save_params)
            data = buffer.getvalue()
        finally:
            if img is not raster.image:
                img.close()

        if not data:
            raise EncodeError(f"编码器未返回数据: {target_type}")
        return data

    def supports_encoding(self, media_type: str) -> bool:
        normalized = normalize_media_type(media_type)
        if normalized not in self._encoding_support:
            self._encoding_support[normalized] = self._check_format_support(normalized)
        return self._encoding_support[normalized]

    def _check_format_support(self, media_type: str) -> bool:
        """通过试编码一个 1x1 图像检查格式支持"""
        format_name = get_pillow_format(media_type)
        if format_name is None:
            return False

        try:
            test_img = Image.new("RGB", (1, 1), color="red")
            buffer = BytesIO()
            test_img.save(buffer, format=format_name)
            supported = buffer.tell() > 0
        except Exception as e:
            logger.debug(f"格式 {format_name} 不支持编码: {e}")
            return False

        if supported:
            logger.debug(f"✅ {media_type} 编码支持已启用")
        return supported

    def _to_canvas_mode(self, img: Image.Image) -> Image.Image:
        """转换为 RGB/RGBA 像素模式，保证缩放质量"""
        if img.mode in ("RGB", "RGBA"):
            return img
        if img.mode in ("LA", "PA") or "transparency" in img.info:
            return img.convert("RGBA")
        return img.convert("RGB")

    def _prepare_for_format(self, img: Image.Image, format_name: str) -> Image.Image:
        """为目标格式准备像素模式"""
        match format_name:
            case "JPEG":
                return self._prepare_for_jpeg(img)
            case "WEBP" | "PNG":
                return self._to_canvas_mode(img)
            case _:
                return img

    def _prepare_for_jpeg(self, img: Image.Image) -> Image.Image:
        """JPEG 不支持透明度，合成到白色背景上"""
        if img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info:
            rgba = img.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[-1])
            if rgba is not img:
                rgba.close()
            return background

        if img.mode != "RGB":
            return img.convert("RGB")
        return img

    @staticmethod
    def _save_parameters(format_name: str, quality: float) -> dict[str, Any]:
        """获取保存参数，quality 为 0-1 之间的小数"""
        pil_quality = max(1, min(100, round(quality * 100)))

        match format_name:
            case "JPEG":
                return {
                    "quality": pil_quality,
                    "optimize": True,
                    # 4:2:0 标准子采样，高质量时使用 4:2:2
                    "subsampling": 1 if pil_quality >= 85 else 2,
                }
            case "WEBP":
                return {
                    "quality": pil_quality,
                    "method": 4,
                    "alpha_quality": 100 if pil_quality >= 85 else pil_quality,
                }
            case "PNG":
                # PNG 为无损格式，质量参数不起作用
                return {"optimize": True, "compress_level": 9}
            case _:
                return {}
