"""图层几何变换.

将文字图层的归一化属性（百分比位置、字号单位）换算为具体表面上的几何参数。
预览表面使用相对单位（百分比），导出表面使用绝对像素，两者由同一组公式推导，
保证文字锚点落在图片中的同一相对位置。

Features:
    - 锚点位置换算（垂直轴反向，top 为正时向上）
    - 预览字号（百分比）与导出字号（像素）
    - 旋转角度（顺时针为正）
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from src.models.text_layer import TextLayer
from src.utils.constants import (
    BASE_FONT_SIZE,
    EXPORT_FONT_LINEAR,
    EXPORT_FONT_QUADRATIC,
    PREVIEW_FONT_PERCENT,
)


# ===================
# 几何数据
# ===================


@dataclass(frozen=True)
class ExportGeometry:
    """导出表面上的文字几何.

    文字以 (x, y) 为中心锚点（水平居中、垂直居中）。
    """

    x: float  # 锚点 X（像素）
    y: float  # 锚点 Y（像素）
    font_size: float  # 字号（像素）
    rotation: float  # 旋转角度（度，顺时针）

    @property
    def radians(self) -> float:
        """旋转弧度."""
        return math.radians(self.rotation)


@dataclass(frozen=True)
class PreviewGeometry:
    """预览表面上的文字几何（相对单位）."""

    left_percent: float  # 锚点距左边缘的百分比
    top_percent: float  # 锚点距上边缘的百分比
    font_size_percent: float  # 字号，相对参考字号的百分比
    rotation: float  # 旋转角度（度，顺时针）

    def to_pixels(
        self,
        width: float,
        height: float,
        reference_font_px: float,
    ) -> tuple[float, float, float]:
        """在具体尺寸的预览表面上解析相对单位.

        Args:
            width: 预览表面宽度
            height: 预览表面高度
            reference_font_px: 100% 对应的字号像素

        Returns:
            (x, y, font_px)
        """
        return (
            width * self.left_percent / 100,
            height * self.top_percent / 100,
            reference_font_px * self.font_size_percent / 100,
        )


# ===================
# 换算公式
# ===================


def layer_scale(font_size_units: float) -> float:
    """字号单位换算为缩放比例."""
    return font_size_units / BASE_FONT_SIZE


def preview_font_size_percent(scale: float) -> float:
    """预览字号（百分比）."""
    return scale * PREVIEW_FONT_PERCENT


def export_font_size_px(scale: float) -> float:
    """导出字号（像素）.

    二次修正项用于补偿预览字号相对容器、导出字号为绝对像素带来的观感差异。
    """
    return scale * EXPORT_FONT_LINEAR + scale * scale * EXPORT_FONT_QUADRATIC


def anchor_position(
    top: float,
    left: float,
    width: float,
    height: float,
) -> tuple[float, float]:
    """计算锚点像素坐标.

    Args:
        top: 垂直偏移百分比（正值向上）
        left: 水平偏移百分比（正值向右）
        width: 表面宽度
        height: 表面高度

    Returns:
        (x, y)
    """
    x = width * (left + 50) / 100
    y = height * (50 - top) / 100
    return (x, y)


def compute_export_geometry(layer: TextLayer, width: float, height: float) -> ExportGeometry:
    """计算导出表面几何.

    Args:
        layer: 文字图层
        width: 导出宽度（像素）
        height: 导出高度（像素）

    Returns:
        ExportGeometry
    """
    x, y = anchor_position(layer.top, layer.left, width, height)
    return ExportGeometry(
        x=x,
        y=y,
        font_size=export_font_size_px(layer_scale(layer.font_size_units)),
        rotation=layer.rotation,
    )


def compute_preview_geometry(layer: TextLayer) -> PreviewGeometry:
    """计算预览表面几何."""
    return PreviewGeometry(
        left_percent=layer.left + 50,
        top_percent=50 - layer.top,
        font_size_percent=preview_font_size_percent(layer_scale(layer.font_size_units)),
        rotation=layer.rotation,
    )
