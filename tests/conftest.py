"""测试配置文件。

提供测试所需的fixtures和配置。
"""

import os
from collections.abc import Callable
from io import BytesIO

import pytest
from PIL import Image, ImageDraw

from py_upload_prep_mcp.core.codec import ImageCodec, PillowCodec, RasterBuffer
from py_upload_prep_mcp.engine.batch import UploadPreprocessor
from py_upload_prep_mcp.exceptions import (
    CapabilityUnavailable,
    DecodeError,
    EncodeError,
)
from py_upload_prep_mcp.models.upload_file import Dimensions, FileCandidate


def create_image_bytes(
    width: int,
    height: int,
    format: str = "PNG",
    mode: str = "RGB",
    noisy: bool = False,
) -> bytes:
    """生成测试图片的字节数据

    noisy=True 时使用随机像素，保证文件体积足够大。
    """
    if noisy:
        channels = len(mode)
        img = Image.frombytes(mode, (width, height), os.urandom(width * height * channels))
    else:
        img = Image.new(mode, (width, height), color="white")
        draw = ImageDraw.Draw(img)
        for i in range(20):
            x, y = (i * 37) % width, (i * 23) % height
            color = (i * 13 % 256, i * 7 % 256, i * 11 % 256)
            if mode == "RGBA":
                color = (*color, 200)
            draw.rectangle([x, y, x + width // 10, y + height // 10], fill=color)

    buffer = BytesIO()
    img.save(buffer, format=format)
    return buffer.getvalue()


def create_candidate(
    name: str = "file.bin",
    media_type: str = "application/octet-stream",
    data: bytes = b"payload",
    byte_size: int | None = None,
) -> FileCandidate:
    """创建候选文件，byte_size 默认取数据长度"""
    return FileCandidate(
        name=name,
        byte_size=len(data) if byte_size is None else byte_size,
        media_type=media_type,
        data=data,
    )


class FakeRaster(RasterBuffer):
    """只记录尺寸的像素缓冲区"""

    def __init__(self, dimensions: Dimensions):
        self.image = None
        self.source_format = None
        self._dimensions = dimensions
        self.closed = False

    @property
    def dimensions(self) -> Dimensions:
        return self._dimensions

    def close(self) -> None:
        self.closed = True


class FakeCodec(ImageCodec):
    """可注入失败的编解码器，记录所有调用"""

    def __init__(
        self,
        width: int = 2000,
        height: int = 1000,
        webp_supported: bool = True,
        fail_on: str | None = None,
        encoded: bytes = b"encoded-image",
    ):
        self.dimensions = Dimensions(width=width, height=height)
        self.webp_supported = webp_supported
        self.fail_on = fail_on
        self.encoded = encoded

        self.decode_calls = 0
        self.rendered: list[Dimensions] = []
        self.encode_calls: list[tuple[str, float]] = []
        self.rasters: list[FakeRaster] = []

    def decode(self, data: bytes) -> RasterBuffer:
        self.decode_calls += 1
        if self.fail_on == "decode":
            raise DecodeError("模拟解码失败")
        if self.fail_on == "crash":
            raise RuntimeError("模拟意外错误")
        raster = FakeRaster(self.dimensions)
        self.rasters.append(raster)
        return raster

    def render(self, raster: RasterBuffer, dimensions: Dimensions) -> RasterBuffer:
        if self.fail_on == "render":
            raise CapabilityUnavailable("模拟无法获取渲染环境")
        self.rendered.append(dimensions)
        rendered = FakeRaster(dimensions)
        self.rasters.append(rendered)
        return rendered

    def encode(self, raster: RasterBuffer, target_type: str, quality: float) -> bytes:
        self.encode_calls.append((target_type, quality))
        if self.fail_on == "encode":
            raise EncodeError("模拟编码器未返回数据")
        return self.encoded

    def supports_encoding(self, media_type: str) -> bool:
        if media_type == "image/webp":
            return self.webp_supported
        return True


@pytest.fixture
def fake_codec() -> FakeCodec:
    """默认返回 2000x1000 尺寸且支持 WebP 的假编解码器"""
    return FakeCodec()


@pytest.fixture
def make_preprocessor() -> Callable[..., UploadPreprocessor]:
    """预处理器工厂，默认使用线程池避免测试中启动进程池"""

    def factory(**kwargs) -> UploadPreprocessor:
        kwargs.setdefault("force_executor_type", "thread")
        return UploadPreprocessor(**kwargs)

    return factory


@pytest.fixture(scope="session")
def webp_supported() -> bool:
    """当前 Pillow 是否支持 WebP 编码"""
    return PillowCodec().supports_encoding("image/webp")
