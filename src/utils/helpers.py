"""通用辅助函数."""

from __future__ import annotations

import re

from PIL import ImageColor

RGBAColor = tuple[int, int, int, int]

_RGBA_PATTERN = re.compile(
    r"^rgba?\(\s*([\d.]+)\s*,\s*([\d.]+)\s*,\s*([\d.]+)\s*(?:,\s*([\d.]+%?)\s*)?\)$",
    re.IGNORECASE,
)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """限制值在指定范围内.

    Args:
        value: 原始值
        min_val: 最小值
        max_val: 最大值

    Returns:
        限制后的值
    """
    return max(min_val, min(max_val, value))


def _parse_alpha(raw: str) -> int:
    if raw.endswith("%"):
        return round(clamp(float(raw[:-1]) / 100, 0.0, 1.0) * 255)
    return round(clamp(float(raw), 0.0, 1.0) * 255)


def parse_css_color(color: str) -> RGBAColor:
    """解析 CSS 风格颜色字符串.

    支持颜色名、#rgb/#rrggbb/#rrggbbaa、rgb(...) 以及 alpha 为小数的 rgba(...)。

    Args:
        color: 颜色字符串

    Returns:
        (r, g, b, a) 元组

    Raises:
        ValueError: 无法识别的颜色
    """
    text = color.strip()
    match = _RGBA_PATTERN.match(text)
    if match:
        r, g, b = (int(clamp(float(v), 0, 255)) for v in match.group(1, 2, 3))
        a = _parse_alpha(match.group(4)) if match.group(4) else 255
        return (r, g, b, a)

    return ImageColor.getcolor(text, "RGBA")  # type: ignore[return-value]
