"""图层几何变换单元测试."""

from __future__ import annotations

import math

import pytest

from src.core.transform import (
    ExportGeometry,
    anchor_position,
    compute_export_geometry,
    compute_preview_geometry,
    export_font_size_px,
    layer_scale,
    preview_font_size_percent,
)
from src.models.text_layer import TextLayer


class TestFormulas:
    """测试换算公式."""

    def test_layer_scale(self):
        """字号单位按 200 为基准换算."""
        assert layer_scale(200) == 1.0
        assert layer_scale(100) == 0.5
        assert layer_scale(0) == 0.0

    def test_preview_font_size_percent(self):
        """预览字号为 scale * 800."""
        assert preview_font_size_percent(1.0) == 800
        assert preview_font_size_percent(0.5) == 400

    def test_export_font_size_px(self):
        """导出字号为 scale * 1600 + scale^2 * 340."""
        assert export_font_size_px(1.0) == pytest.approx(1940)
        assert export_font_size_px(0.5) == pytest.approx(885)
        assert export_font_size_px(0.0) == 0

    def test_export_font_size_is_monotonic(self):
        """非负缩放下导出字号单调递增."""
        sizes = [export_font_size_px(s / 10) for s in range(0, 40)]
        assert sizes == sorted(sizes)
        assert len(set(sizes)) == len(sizes)


class TestAnchorPosition:
    """测试锚点换算."""

    def test_zero_offset_is_center(self):
        """(0, 0) 偏移应位于画面中心."""
        assert anchor_position(0, 0, 1200, 800) == (600, 400)

    def test_positive_top_moves_up(self):
        """top 为正时向上移动."""
        _, y = anchor_position(25, 0, 1200, 800)
        assert y == 200

    def test_positive_left_moves_right(self):
        """left 为正时向右移动."""
        x, _ = anchor_position(0, 25, 1200, 800)
        assert x == 900

    def test_edges(self):
        """±50 偏移落在画面边缘."""
        assert anchor_position(50, -50, 1000, 500) == (0, 0)
        assert anchor_position(-50, 50, 1000, 500) == (1000, 500)

    def test_out_of_range_is_not_clamped(self):
        """超出范围的偏移不做限制."""
        x, y = anchor_position(-100, 100, 100, 100)
        assert (x, y) == (150, 150)


class TestGeometry:
    """测试导出与预览几何."""

    def test_export_geometry(self):
        """导出几何应包含锚点、字号和旋转."""
        layer = TextLayer(id=1, top=10, left=-10, rotation=30, font_size_units=100)
        geometry = compute_export_geometry(layer, 1000, 1000)

        assert geometry.x == pytest.approx(400)
        assert geometry.y == pytest.approx(400)
        assert geometry.font_size == pytest.approx(885)
        assert geometry.rotation == 30
        assert geometry.radians == pytest.approx(math.pi / 6)

    def test_preview_geometry(self):
        """预览几何使用百分比单位."""
        layer = TextLayer(id=1, top=10, left=-10, rotation=-15)
        geometry = compute_preview_geometry(layer)

        assert geometry.left_percent == 40
        assert geometry.top_percent == 40
        assert geometry.font_size_percent == 800
        assert geometry.rotation == -15

    @pytest.mark.parametrize("size", [(400, 400), (1200, 800), (333, 1777)])
    def test_preview_and_export_share_anchor(self, size):
        """预览与导出的锚点在相对位置上一致."""
        width, height = size
        layer = TextLayer(id=1, top=-17.5, left=22)

        export = compute_export_geometry(layer, width, height)
        x, y, _ = compute_preview_geometry(layer).to_pixels(width, height, 16)

        assert export.x == pytest.approx(x)
        assert export.y == pytest.approx(y)

    def test_to_pixels_resolves_font_size(self):
        """预览字号按参考字号换算为像素."""
        layer = TextLayer(id=1, font_size_units=50)
        _, _, font_px = compute_preview_geometry(layer).to_pixels(100, 100, 16)

        assert font_px == pytest.approx(32)

    def test_export_geometry_is_frozen(self):
        """几何数据不可修改."""
        geometry = ExportGeometry(x=1, y=2, font_size=3, rotation=0)
        with pytest.raises(AttributeError):
            geometry.x = 5
