"""尺寸计算模块。

在保持宽高比的前提下计算缩放到尺寸上限内的目标尺寸。
"""

from ..models.upload_file import Dimensions


def round_half_up(numerator: int, denominator: int) -> int:
    """对正有理数 numerator/denominator 四舍五入（.5 向上）"""
    return (2 * numerator + denominator) // (2 * denominator)


def compute_target_dimensions(
    dimensions: Dimensions, max_width: int, max_height: int
) -> Dimensions:
    """计算目标尺寸。

    尺寸未超出上限时原样返回；否则比较图像与上限的宽高比确定约束边：
    图像相对更宽时宽度取上限、高度按比例取整，否则高度取上限、宽度按比例取整。

    Args:
        dimensions: 原始尺寸
        max_width: 最大宽度
        max_height: 最大高度

    Returns:
        Dimensions: 目标尺寸，各边至少为 1
    """
    width, height = dimensions.width, dimensions.height

    if dimensions.fits_within(max_width, max_height):
        return dimensions

    # 交叉相乘比较 width/height > max_width/max_height，避免浮点误差
    if width * max_height > max_width * height:
        # 宽度是约束边
        return Dimensions(
            width=max_width,
            height=max(1, round_half_up(height * max_width, width)),
        )

    # 高度是约束边
    return Dimensions(
        width=max(1, round_half_up(width * max_height, height)),
        height=max_height,
    )
