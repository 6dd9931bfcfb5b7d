"""图层合成引擎.

按固定顺序将背景、文字图层和前景抠图绘制到同一像素缓冲区：
背景 → 文字（按序列顺序）→ 前景抠图。前景覆盖在文字之上，形成文字位于主体背后的效果。

Features:
    - 背景与前景拉伸铺满缓冲区
    - 文字以锚点为中心对齐、绕锚点顺时针旋转
    - 每个文字图层独立的绘制状态（字体、颜色、不透明度）
    - 异步解码背景与前景，前景解码串联在背景绘制之后
"""

from __future__ import annotations

import math
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional, Sequence

from PIL import Image, ImageDraw, ImageFont

from src.core.transform import ExportGeometry, compute_export_geometry, compute_preview_geometry
from src.models.image_layer import Project, load_image_layer
from src.models.text_layer import TextLayer
from src.utils.helpers import clamp, parse_css_color
from src.utils.image_utils import stretch_to_size
from src.utils.logger import setup_logger

logger = setup_logger(__name__)

FontType = ImageFont.FreeTypeFont | ImageFont.ImageFont


# ===================
# 常量定义
# ===================

# 字体搜索路径
FONT_SEARCH_PATHS = [
    "/System/Library/Fonts/",
    "/System/Library/Fonts/Supplemental/",
    "/Library/Fonts/",
    "~/Library/Fonts/",
    "C:/Windows/Fonts/",
    "/usr/share/fonts/",
    "/usr/share/fonts/truetype/",
    "~/.local/share/fonts/",
    "~/.fonts/",
]

FONT_EXTENSIONS = (".ttf", ".otf", ".ttc")

# CSS 字重对应的常见字体文件后缀
WEIGHT_NAMES = {
    100: ("Thin", "Hairline"),
    200: ("ExtraLight", "UltraLight"),
    300: ("Light",),
    400: ("Regular", ""),
    500: ("Medium",),
    600: ("SemiBold", "DemiBold"),
    700: ("Bold",),
    800: ("ExtraBold", "UltraBold", "Heavy"),
    900: ("Black", "Heavy"),
}


# ===================
# 字体管理
# ===================


def _weight_suffixes(weight: int) -> list[str]:
    """按字重由近到远给出候选后缀."""
    nearest = min(WEIGHT_NAMES, key=lambda w: (abs(w - weight), w))
    ordered = sorted(WEIGHT_NAMES, key=lambda w: (abs(w - nearest), w))
    suffixes: list[str] = []
    for w in ordered:
        for name in WEIGHT_NAMES[w]:
            if name not in suffixes:
                suffixes.append(name)
    return suffixes


def _font_candidates(font_family: str, font_weight: int) -> list[str]:
    """生成字体文件候选名."""
    candidates: list[str] = []
    for suffix in _weight_suffixes(font_weight):
        for sep in ("-", " ", ""):
            stem = f"{font_family}{sep}{suffix}" if suffix else font_family
            for ext in FONT_EXTENSIONS:
                name = f"{stem}{ext}"
                if name not in candidates:
                    candidates.append(name)
    return candidates


def _search_dirs(extra_dirs: tuple[str, ...]) -> list[str]:
    dirs = [os.path.expanduser(p) for p in (*extra_dirs, *FONT_SEARCH_PATHS)]
    return [d for d in dirs if os.path.isdir(d)]


@lru_cache(maxsize=64)
def find_font(
    font_family: str,
    font_weight: int,
    font_size: int,
    font_dirs: tuple[str, ...] = (),
) -> FontType:
    """查找字体.

    依次尝试按字重匹配的字体文件，找不到时回退到 Pillow 的可缩放默认字体。

    Args:
        font_family: 字体名称
        font_weight: CSS 字重
        font_size: 字号（像素）
        font_dirs: 额外的字体目录

    Returns:
        ImageFont 对象
    """
    font_size = max(1, font_size)
    candidates = _font_candidates(font_family, font_weight)

    for directory in _search_dirs(font_dirs):
        for name in candidates:
            path = os.path.join(directory, name)
            if os.path.exists(path):
                try:
                    return ImageFont.truetype(path, font_size)
                except OSError:
                    continue

    # 字体名可能本身就是可解析的文件名
    try:
        return ImageFont.truetype(font_family, font_size)
    except OSError:
        pass

    logger.warning(f"字体 '{font_family}' ({font_weight}) 未找到，使用默认字体")
    return ImageFont.load_default(size=font_size)


# ===================
# 合成器
# ===================


class Compositor:
    """图层合成器.

    Example:
        >>> compositor = Compositor()
        >>> result = compositor.render(background, project.text_layers, foreground)
    """

    def __init__(self, font_dirs: Sequence[Path | str] = ()) -> None:
        """初始化合成器.

        Args:
            font_dirs: 额外的字体搜索目录
        """
        self._font_dirs = tuple(str(Path(d).expanduser()) for d in font_dirs)

    def render(
        self,
        background: Image.Image,
        text_layers: Sequence[TextLayer],
        foreground: Optional[Image.Image] = None,
        target_size: Optional[tuple[int, int]] = None,
    ) -> Image.Image:
        """合成图层到新的缓冲区.

        Args:
            background: 背景图片
            text_layers: 文字图层序列（靠前的在下层）
            foreground: 前景抠图，None 时跳过
            target_size: 缓冲区尺寸，默认为背景原始尺寸

        Returns:
            合成后的 RGBA 图片
        """
        canvas = self.begin(background, target_size)
        canvas = self.draw_text_layers(canvas, text_layers)
        if foreground is not None:
            canvas = self.draw_foreground(canvas, foreground)
        return canvas

    async def render_project(self, project: Project) -> Optional[Image.Image]:
        """异步合成项目.

        背景解码并绘制完成后才开始解码前景，保证绘制顺序。

        Args:
            project: 编辑项目

        Returns:
            合成后的图片，项目没有背景时返回 None
        """
        if project.background is None:
            logger.debug("项目没有背景图片，跳过合成")
            return None

        background = await load_image_layer(project.background)
        canvas = self.begin(background, project.background.natural_size)
        canvas = self.draw_text_layers(canvas, project.text_layers)

        if project.foreground is not None:
            foreground = await load_image_layer(project.foreground)
            canvas = self.draw_foreground(canvas, foreground)

        return canvas

    def begin(
        self,
        background: Image.Image,
        target_size: Optional[tuple[int, int]] = None,
    ) -> Image.Image:
        """创建缓冲区并铺满背景."""
        size = target_size or background.size
        canvas = Image.new("RGBA", size, (0, 0, 0, 0))
        canvas.alpha_composite(stretch_to_size(background, size))
        logger.debug(f"合成缓冲区: {size}")
        return canvas

    def draw_text_layers(
        self,
        canvas: Image.Image,
        text_layers: Sequence[TextLayer],
    ) -> Image.Image:
        """按顺序绘制文字图层.

        单个图层绘制失败只记录日志，不影响其他图层。
        """
        for layer in text_layers:
            try:
                canvas = self._draw_text_layer(canvas, layer)
            except (OSError, ValueError, OverflowError) as e:
                logger.error(f"绘制文字图层失败: {layer.id}, 错误: {e}")
        return canvas

    def draw_foreground(self, canvas: Image.Image, foreground: Image.Image) -> Image.Image:
        """将前景抠图拉伸铺满并完全不透明地覆盖在最上层."""
        canvas.alpha_composite(stretch_to_size(foreground, canvas.size))
        return canvas

    def _draw_text_layer(self, canvas: Image.Image, layer: TextLayer) -> Image.Image:
        """绘制单个文字图层."""
        if not layer.text:
            return canvas

        geometry = compute_export_geometry(layer, canvas.width, canvas.height)
        if not all(math.isfinite(v) for v in (geometry.x, geometry.y, geometry.rotation)):
            logger.warning(f"文字图层 {layer.id} 位置或角度无效，已跳过")
            return canvas

        preview = compute_preview_geometry(layer)
        logger.debug(
            f"文字图层 {layer.id} '{layer.text}': "
            f"预览字号 {preview.font_size_percent:g}%, 导出字号 {geometry.font_size:g}px"
        )

        glyphs = self._render_glyph_run(layer, geometry)
        if glyphs is None:
            return canvas

        if geometry.rotation % 360:
            # PIL 逆时针为正
            glyphs = glyphs.rotate(
                -geometry.rotation,
                resample=Image.Resampling.BICUBIC,
                expand=True,
            )

        # 旋转后的字形图像中心即锚点
        offset = (
            round(geometry.x - glyphs.width / 2),
            round(geometry.y - glyphs.height / 2),
        )
        overlay = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        overlay.paste(glyphs, offset)
        return Image.alpha_composite(canvas, overlay)

    def _render_glyph_run(
        self,
        layer: TextLayer,
        geometry: ExportGeometry,
    ) -> Optional[Image.Image]:
        """在以锚点为中心的独立图像上绘制文字."""
        if not math.isfinite(geometry.font_size) or geometry.font_size < 1:
            return None

        font = find_font(
            layer.font_family,
            layer.font_weight,
            round(geometry.font_size),
            self._font_dirs,
        )
        r, g, b, a = parse_css_color(layer.color)
        fill = (r, g, b, round(a * clamp(layer.opacity, 0.0, 1.0)))

        probe = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
        left, top, right, bottom = probe.textbbox((0, 0), layer.text, font=font, anchor="mm")
        half_w = math.ceil(max(abs(left), abs(right))) + 1
        half_h = math.ceil(max(abs(top), abs(bottom))) + 1

        glyphs = Image.new("RGBA", (half_w * 2, half_h * 2), (0, 0, 0, 0))
        ImageDraw.Draw(glyphs).text((half_w, half_h), layer.text, font=font, fill=fill, anchor="mm")
        return glyphs
