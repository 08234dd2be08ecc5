"""上传预处理相关常量定义。

媒体类型与 Pillow 格式的映射基于 Pillow 动态注册信息，只补充必要的别名。
"""

from typing import Final

from PIL import Image


KIB: Final[int] = 1024
MIB: Final[int] = 1024 * 1024


class UploadLimits:
    """上传预处理的默认阈值"""

    # 图像尺寸上限（像素）
    MAX_IMAGE_WIDTH: Final[int] = 1280
    MAX_IMAGE_HEIGHT: Final[int] = 1024

    # 文件大小上限，超过时图像强制重新编码、PDF 给出警告
    MAX_FILE_SIZE: Final[int] = 5 * MIB

    # 小于该大小的文件直接透传
    SMALL_FILE_BYPASS: Final[int] = 50 * KIB

    # 编码质量 (0-1)
    JPEG_QUALITY: Final[float] = 0.8
    WEBP_QUALITY: Final[float] = 0.85


class MediaTypes:
    """预处理流程关心的媒体类型"""

    JPEG: Final[str] = "image/jpeg"
    JPEG_VARIANTS: Final[frozenset[str]] = frozenset(
        {"image/jpeg", "image/jpg", "image/pjpeg"}
    )
    PNG: Final[str] = "image/png"
    WEBP: Final[str] = "image/webp"
    PDF: Final[str] = "application/pdf"

    IMAGE_PREFIX: Final[str] = "image/"

    # Pillow 的 Image.MIME 未覆盖的别名
    FORMAT_ALIASES: Final[dict[str, str]] = {
        "image/jpg": "JPEG",
        "image/pjpeg": "JPEG",
        "image/x-png": "PNG",
        "image/x-ms-bmp": "BMP",
        "image/vnd.microsoft.icon": "ICO",
        "image/x-icon": "ICO",
    }

    # 首选扩展名（当 Pillow 有多个选择时）
    PREFERRED_EXTENSIONS: Final[dict[str, str]] = {
        "JPEG": ".jpg",
        "PNG": ".png",
        "WEBP": ".webp",
        "GIF": ".gif",
        "BMP": ".bmp",
        "TIFF": ".tiff",
        "ICO": ".ico",
    }


def normalize_media_type(media_type: str) -> str:
    """标准化媒体类型：去掉参数并转为小写"""
    return media_type.split(";", 1)[0].strip().lower()


def is_image_type(media_type: str) -> bool:
    """检查是否为图像类型"""
    return normalize_media_type(media_type).startswith(MediaTypes.IMAGE_PREFIX)


def get_pillow_format(media_type: str) -> str | None:
    """获取媒体类型对应的 Pillow 格式名称，未知时返回 None"""
    # 确保所有插件已注册 MIME 和编码器信息
    Image.init()

    normalized = normalize_media_type(media_type)
    if normalized in MediaTypes.FORMAT_ALIASES:
        return MediaTypes.FORMAT_ALIASES[normalized]

    for format_name, mime in Image.MIME.items():
        if mime == normalized:
            return format_name.upper()
    return None


def get_media_type(format_name: str) -> str:
    """获取 Pillow 格式对应的媒体类型"""
    format_upper = format_name.upper()
    Image.init()
    return Image.MIME.get(format_upper, f"image/{format_upper.lower()}")


def get_extension(media_type: str) -> str | None:
    """获取媒体类型的首选扩展名，未知格式返回 None"""
    format_name = get_pillow_format(media_type)
    if format_name is None:
        return None

    if format_name in MediaTypes.PREFERRED_EXTENSIONS:
        return MediaTypes.PREFERRED_EXTENSIONS[format_name]

    for ext, fmt in Image.registered_extensions().items():
        if fmt and fmt.upper() == format_name:
            return ext.lower()
    return None
