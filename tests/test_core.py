"""核心功能测试。

测试尺寸计算、大小格式化、编码策略、编解码器和转码器。
"""

from io import BytesIO

import pytest
from PIL import Image

from py_upload_prep_mcp.core.codec import PillowCodec
from py_upload_prep_mcp.core.dimensions import compute_target_dimensions, round_half_up
from py_upload_prep_mcp.core.strategy import EncodingStrategy
from py_upload_prep_mcp.core.transcoder import ImageTranscoder
from py_upload_prep_mcp.exceptions import (
    CapabilityUnavailable,
    DecodeError,
    EncodeError,
)
from py_upload_prep_mcp.models.constants import MIB
from py_upload_prep_mcp.models.policy import PreprocessPolicy
from py_upload_prep_mcp.models.upload_file import Dimensions
from py_upload_prep_mcp.utils.size_format import format_file_size
from tests.conftest import FakeCodec, create_image_bytes


def dims(width: int, height: int) -> Dimensions:
    return Dimensions(width=width, height=height)


class TestComputeTargetDimensions:
    """目标尺寸计算测试"""

    def test_within_caps_unchanged(self):
        """测试未超出上限时保持原尺寸"""
        assert compute_target_dimensions(dims(800, 600), 1280, 1024) == dims(800, 600)
        assert compute_target_dimensions(dims(1280, 1024), 1280, 1024) == dims(
            1280, 1024
        )

    def test_width_bound(self):
        """测试相对更宽的图片以宽度为约束边"""
        assert compute_target_dimensions(dims(2000, 1000), 1280, 1024) == dims(
            1280, 640
        )
        # 1001 * 1280 / 2000 = 640.64
        assert compute_target_dimensions(dims(2000, 1001), 1280, 1024) == dims(
            1280, 641
        )

    def test_height_bound(self):
        """测试相对更高的图片以高度为约束边"""
        assert compute_target_dimensions(dims(1000, 2000), 1280, 1024) == dims(
            512, 1024
        )
        # 只有高度超限：1200 * 1024 / 1100 = 1117.09 → 仍然以高度为约束边
        assert compute_target_dimensions(dims(1200, 1100), 1280, 1024) == dims(
            1117, 1024
        )

    def test_equal_aspect_ratio_uses_height(self):
        """测试宽高比与上限相同时以高度为约束边"""
        assert compute_target_dimensions(dims(2560, 2048), 1280, 1024) == dims(
            1280, 1024
        )

    def test_round_half_up(self):
        """测试 .5 向上取整"""
        # 5 * 1280 / 2560 = 2.5
        assert compute_target_dimensions(dims(2560, 5), 1280, 1024) == dims(1280, 3)
        assert round_half_up(5, 2) == 3
        assert round_half_up(7, 2) == 4
        assert round_half_up(4, 3) == 1

    def test_never_zero(self):
        """测试极端宽高比不会产生零尺寸"""
        result = compute_target_dimensions(dims(100000, 1), 1280, 1024)
        assert result == dims(1280, 1)

        result = compute_target_dimensions(dims(1, 100000), 1280, 1024)
        assert result == dims(1, 1024)

    def test_width_exact_property(self):
        """测试宽度约束时宽度精确等于上限"""
        for width, height in [(1300, 1000), (4000, 3000), (1921, 1080), (5000, 10)]:
            result = compute_target_dimensions(dims(width, height), 1280, 1024)
            assert result.width == 1280
            assert result.height == (2 * height * 1280 + width) // (2 * width)


class TestFormatFileSize:
    """大小格式化测试"""

    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            (0, "0 B"),
            (1023, "1023 B"),
            (1024, "1.0 KB"),
            (1536, "1.5 KB"),
            (50 * 1024, "50.0 KB"),
            (1024 * 1024, "1.0 MB"),
            (6_291_456, "6.0 MB"),
            (2_000_000, "1.9 MB"),
        ],
    )
    def test_thresholds(self, size: int, expected: str):
        """测试各档位的格式化结果"""
        assert format_file_size(size) == expected


class TestEncodingStrategy:
    """编码策略测试"""

    @pytest.fixture
    def strategy(self) -> EncodingStrategy:
        return EncodingStrategy(PreprocessPolicy(), FakeCodec())

    @pytest.mark.parametrize("media_type", ["image/jpeg", "image/jpg", "IMAGE/JPEG"])
    def test_jpeg_variants(self, strategy: EncodingStrategy, media_type: str):
        """测试 JPEG 系列统一编码为 JPEG"""
        decision = strategy.select(media_type)
        assert decision.target_type == "image/jpeg"
        assert decision.quality == 0.8

    def test_png_prefers_webp(self, strategy: EncodingStrategy):
        """测试支持 WebP 时 PNG 转为 WebP"""
        decision = strategy.select("image/png")
        assert decision.target_type == "image/webp"
        assert decision.quality == 0.85

    def test_png_without_webp(self):
        """测试不支持 WebP 时 PNG 保持原类型，质量值取 JPEG 质量"""
        strategy = EncodingStrategy(PreprocessPolicy(), FakeCodec(webp_supported=False))
        decision = strategy.select("image/png")
        assert decision.target_type == "image/png"
        # PNG 无损编码不使用该质量值，但决策中仍保留
        assert decision.quality == 0.8

    def test_webp(self, strategy: EncodingStrategy):
        """测试 WebP 保持 WebP"""
        decision = strategy.select("image/webp")
        assert decision.target_type == "image/webp"
        assert decision.quality == 0.85

    def test_other_image_types(self, strategy: EncodingStrategy):
        """测试其他图像类型保持原类型"""
        decision = strategy.select("image/gif")
        assert decision.target_type == "image/gif"
        assert decision.quality == 0.8

    def test_target_type_normalized(self):
        """测试保持原类型时输出标准化后的媒体类型"""
        strategy = EncodingStrategy(PreprocessPolicy(), FakeCodec(webp_supported=False))
        assert strategy.select("IMAGE/PNG; foo=bar").target_type == "image/png"
        assert strategy.select(" Image/GIF ").target_type == "image/gif"

    def test_custom_policy_quality(self):
        """测试调用方覆盖质量参数"""
        policy = PreprocessPolicy(jpeg_quality=0.6, webp_quality=0.7)
        strategy = EncodingStrategy(policy, FakeCodec())
        assert strategy.select("image/jpeg").quality == 0.6
        assert strategy.select("image/png").quality == 0.7


class TestPreprocessPolicy:
    """策略模型测试"""

    def test_defaults(self):
        """测试默认阈值"""
        policy = PreprocessPolicy()
        assert policy.max_image_width == 1280
        assert policy.max_image_height == 1024
        assert policy.max_file_size == 5 * MIB
        assert policy.small_file_bypass == 50 * 1024
        assert policy.jpeg_quality == 0.8
        assert policy.webp_quality == 0.85

    def test_invalid_values(self):
        """测试非法参数被拒绝"""
        with pytest.raises(ValueError):
            PreprocessPolicy(jpeg_quality=1.5)
        with pytest.raises(ValueError):
            PreprocessPolicy(max_image_width=0)
        with pytest.raises(ValueError):
            PreprocessPolicy(small_file_bypass=10 * MIB)


class TestPillowCodec:
    """Pillow 编解码器测试"""

    @pytest.fixture
    def codec(self) -> PillowCodec:
        return PillowCodec()

    def test_decode(self, codec: PillowCodec):
        """测试解码得到正确尺寸"""
        data = create_image_bytes(300, 200, "PNG")
        with codec.decode(data) as raster:
            assert raster.dimensions == dims(300, 200)
            assert raster.source_format == "PNG"

    def test_decode_invalid_data(self, codec: PillowCodec):
        """测试无效数据抛出 DecodeError"""
        with pytest.raises(DecodeError):
            codec.decode(b"definitely not an image")
        with pytest.raises(DecodeError):
            codec.decode(b"")

    def test_decode_truncated_data(self, codec: PillowCodec):
        """测试截断的图像数据抛出 DecodeError"""
        data = create_image_bytes(300, 200, "JPEG", noisy=True)
        with pytest.raises(DecodeError):
            codec.decode(data[: len(data) // 3])

    def test_render(self, codec: PillowCodec):
        """测试按目标尺寸渲染"""
        data = create_image_bytes(300, 200, "PNG", mode="RGBA")
        with codec.decode(data) as raster, codec.render(raster, dims(150, 100)) as out:
            assert out.dimensions == dims(150, 100)
            assert out.image.mode == "RGBA"

    def test_encode_jpeg_flattens_alpha(self, codec: PillowCodec):
        """测试 RGBA 图像编码为 JPEG"""
        data = create_image_bytes(120, 80, "PNG", mode="RGBA")
        with codec.decode(data) as raster:
            encoded = codec.encode(raster, "image/jpeg", 0.8)

        assert encoded[:2] == b"\xff\xd8"
        with Image.open(BytesIO(encoded)) as img:
            assert img.mode == "RGB"
            assert img.size == (120, 80)

    def test_encode_webp(self, codec: PillowCodec, webp_supported: bool):
        """测试编码为 WebP"""
        if not webp_supported:
            pytest.skip("当前 Pillow 不支持 WebP")

        data = create_image_bytes(120, 80, "PNG")
        with codec.decode(data) as raster:
            encoded = codec.encode(raster, "image/webp", 0.85)

        assert encoded[:4] == b"RIFF"
        assert encoded[8:12] == b"WEBP"

    def test_encode_unknown_type(self, codec: PillowCodec):
        """测试未知目标类型抛出 EncodeError"""
        data = create_image_bytes(50, 50, "PNG")
        with codec.decode(data) as raster, pytest.raises(EncodeError):
            codec.encode(raster, "image/x-unknown", 0.8)

    def test_supports_encoding(self, codec: PillowCodec):
        """测试编码能力探测"""
        assert codec.supports_encoding("image/png")
        assert codec.supports_encoding("image/jpeg")
        assert not codec.supports_encoding("image/x-unknown")

        # 探测结果被缓存
        assert "image/png" in codec._encoding_support


class TestImageTranscoder:
    """图像转码器测试"""

    def test_png_to_webp_example(self):
        """测试 2000x1000 的 PNG 缩放为 1280x640 的 WebP"""
        codec = FakeCodec(width=2000, height=1000)
        transcoder = ImageTranscoder(codec=codec)

        result = transcoder.transcode(b"png-bytes", "image/png", 2_000_000, "a.png")

        assert codec.rendered == [dims(1280, 640)]
        assert codec.encode_calls == [("image/webp", 0.85)]
        assert result.media_type == "image/webp"
        assert result.data == b"encoded-image"
        assert result.byte_size == len(b"encoded-image")
        assert result.name == "a.png"

    def test_png_without_webp_keeps_png(self):
        """测试不支持 WebP 时 PNG 保持原类型"""
        codec = FakeCodec(width=2000, height=1000, webp_supported=False)
        result = ImageTranscoder(codec=codec).transcode(
            b"png-bytes", "image/png", 2_000_000, "a.png"
        )

        assert codec.encode_calls == [("image/png", 0.8)]
        assert result.media_type == "image/png"

    def test_reencoded_media_type_normalized(self):
        """测试重新编码后的媒体类型不带参数且为小写"""
        codec = FakeCodec(width=2000, height=1000, webp_supported=False)
        result = ImageTranscoder(codec=codec).transcode(
            b"png-bytes", "IMAGE/PNG; foo=bar", 2_000_000, "a.png"
        )

        assert result.media_type == "image/png"

    def test_short_circuit(self):
        """测试尺寸不变且未超出大小上限时跳过重新编码"""
        codec = FakeCodec(width=800, height=600)
        outcome = ImageTranscoder(codec=codec).transcode_detailed(
            b"original", "image/jpeg", 5 * MIB, "b.jpg"
        )

        assert outcome.short_circuited
        assert outcome.file.data == b"original"
        assert outcome.file.media_type == "image/jpeg"
        assert outcome.file.byte_size == 5 * MIB
        assert codec.rendered == []
        assert codec.encode_calls == []

    def test_oversized_file_reencoded_at_same_size(self):
        """测试尺寸合规但超出大小上限的图片按原尺寸重新编码"""
        codec = FakeCodec(width=800, height=600)
        outcome = ImageTranscoder(codec=codec).transcode_detailed(
            b"original", "image/jpeg", 5 * MIB + 1, "b.jpg"
        )

        assert not outcome.short_circuited
        assert codec.rendered == [dims(800, 600)]
        assert codec.encode_calls == [("image/jpeg", 0.8)]

    def test_rasters_released(self):
        """测试成功与失败路径都会释放缓冲区"""
        codec = FakeCodec()
        ImageTranscoder(codec=codec).transcode(b"x", "image/png", 2_000_000)
        assert codec.rasters and all(r.closed for r in codec.rasters)

        failing = FakeCodec(fail_on="encode")
        with pytest.raises(EncodeError):
            ImageTranscoder(codec=failing).transcode(b"x", "image/png", 2_000_000)
        assert len(failing.rasters) == 2
        assert all(r.closed for r in failing.rasters)

    def test_render_failure(self):
        """测试渲染环境不可用时抛出 CapabilityUnavailable"""
        codec = FakeCodec(fail_on="render")
        with pytest.raises(CapabilityUnavailable):
            ImageTranscoder(codec=codec).transcode(b"x", "image/png", 2_000_000)
        assert all(r.closed for r in codec.rasters)

    def test_plan(self):
        """测试只生成转码计划"""
        codec = FakeCodec(width=1000, height=2000)
        plan = ImageTranscoder(codec=codec).plan(b"x", "image/webp", 100_000)

        assert plan.needs_reencode
        assert plan.target_dimensions == dims(512, 1024)
        assert plan.decision is not None
        assert plan.decision.target_type == "image/webp"
        assert codec.encode_calls == []

    def test_real_jpeg_downscale(self):
        """测试真实 JPEG 图片缩放"""
        data = create_image_bytes(1000, 2000, "JPEG")
        result = ImageTranscoder().transcode(data, "image/jpeg", len(data), "tall.jpg")

        assert result.media_type == "image/jpeg"
        with Image.open(BytesIO(result.data)) as img:
            assert img.format == "JPEG"
            assert img.size == (512, 1024)

    def test_real_png(self, webp_supported: bool):
        """测试真实 PNG 图片缩放并转码"""
        data = create_image_bytes(2000, 1000, "PNG")
        result = ImageTranscoder().transcode(data, "image/png", 2_000_000, "a.png")

        expected_format = "WEBP" if webp_supported else "PNG"
        with Image.open(BytesIO(result.data)) as img:
            assert img.format == expected_format
            assert img.size == (1280, 640)

    def test_real_short_circuit_returns_same_bytes(self):
        """测试真实小尺寸图片原样返回"""
        data = create_image_bytes(640, 480, "PNG", noisy=True)
        result = ImageTranscoder().transcode(data, "image/png", len(data), "small.png")

        assert result.data == data
        assert result.media_type == "image/png"
