"""实时预览画布.

以声明式的图形项叠放还原合成效果：背景图片在最下层，文字图层按序列顺序居中，
前景抠图在最上层。文字几何来自变换引擎的预览几何，与导出路径使用同一套公式。

Classes:
    - TextPreviewItem: 文字图层图形项
    - PreviewScene: 预览场景
    - PreviewCanvas: 预览视图
"""

from __future__ import annotations

from typing import Optional, Sequence

from PyQt6.QtCore import QRectF, Qt
from PyQt6.QtGui import (
    QColor,
    QFont,
    QFontMetricsF,
    QPainter,
    QPixmap,
    QResizeEvent,
    QTransform,
)
from PyQt6.QtWidgets import (
    QGraphicsItem,
    QGraphicsPixmapItem,
    QGraphicsScene,
    QGraphicsSimpleTextItem,
    QGraphicsView,
    QStyleOptionGraphicsItem,
    QWidget,
)

from src.core.transform import compute_preview_geometry
from src.models.image_layer import ImageLayer
from src.models.text_layer import TextLayer
from src.utils.helpers import clamp, parse_css_color
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


# ===================
# 常量定义
# ===================

# 100% 预览字号对应的屏幕像素
REFERENCE_FONT_PX = 16.0

# 叠放层级
BACKGROUND_Z = 0
TEXT_Z_BASE = 1
FOREGROUND_Z = 100000

LOADING_TEXT = "Loading, please wait"
FALLBACK_TEXT_COLOR = QColor(255, 255, 255)


def pixmap_from_layer(layer: ImageLayer) -> QPixmap:
    """将图片图层解码为 QPixmap."""
    pixmap = QPixmap()
    if not pixmap.loadFromData(layer.data):
        logger.warning(f"预览无法解码图片: {layer.source_url}")
    return pixmap


def qcolor_from_css(color: str) -> QColor:
    """CSS 颜色字符串转 QColor，无法识别时回退为白色."""
    try:
        r, g, b, a = parse_css_color(color)
    except ValueError:
        logger.warning(f"无法识别的颜色: {color}")
        return QColor(FALLBACK_TEXT_COLOR)
    return QColor(r, g, b, a)


def qfont_weight(weight: int) -> QFont.Weight:
    """CSS 字重取整到最近的 Qt 字重."""
    nearest = int(clamp(round(weight / 100) * 100, 100, 900))
    return QFont.Weight(nearest)


# ===================
# 文字图形项
# ===================


class TextPreviewItem(QGraphicsItem):
    """文字图层图形项.

    项的局部原点即锚点，文字在局部坐标中水平、垂直居中，旋转绕原点进行。
    忽略视图缩放，使字号以屏幕像素为单位，与相对单位的预览字号一致。
    """

    def __init__(
        self,
        layer: TextLayer,
        reference_font_px: float = REFERENCE_FONT_PX,
        parent: Optional[QGraphicsItem] = None,
    ) -> None:
        """初始化文字图形项.

        Args:
            layer: 文字图层
            reference_font_px: 100% 字号对应的像素
            parent: 父图形项
        """
        super().__init__(parent)
        self._reference_font_px = reference_font_px
        self._font = QFont()
        self._color = QColor(FALLBACK_TEXT_COLOR)
        self._rect = QRectF()
        self._layer = layer
        self.setFlag(QGraphicsItem.GraphicsItemFlag.ItemIgnoresTransformations, True)
        self.update_from_layer(layer)

    @property
    def layer(self) -> TextLayer:
        """关联的文字图层."""
        return self._layer

    @property
    def layer_id(self) -> int:
        """图层ID."""
        return self._layer.id

    @property
    def font_pixel_size(self) -> int:
        """当前字号（像素）."""
        return self._font.pixelSize()

    def update_from_layer(self, layer: TextLayer) -> None:
        """从图层数据刷新显示（位置需由场景设置）."""
        self.prepareGeometryChange()
        self._layer = layer

        geometry = compute_preview_geometry(layer)
        font_px = self._reference_font_px * geometry.font_size_percent / 100

        self._font = QFont(layer.font_family)
        self._font.setPixelSize(max(1, round(font_px)))
        self._font.setWeight(qfont_weight(layer.font_weight))
        self._color = qcolor_from_css(layer.color)

        metrics = QFontMetricsF(self._font)
        width = metrics.horizontalAdvance(layer.text)
        height = metrics.height()
        self._rect = QRectF(-width / 2, -height / 2, width, height)

        self.setRotation(geometry.rotation)
        self.setOpacity(clamp(layer.opacity, 0.0, 1.0))
        self.update()

    def boundingRect(self) -> QRectF:
        """返回以锚点为中心的边界矩形."""
        return self._rect

    def paint(
        self,
        painter: QPainter,
        option: QStyleOptionGraphicsItem,
        widget: Optional[QWidget] = None,
    ) -> None:
        """绘制文字."""
        if not self._layer.text:
            return
        painter.setFont(self._font)
        painter.setPen(self._color)
        painter.drawText(self._rect, int(Qt.AlignmentFlag.AlignCenter), self._layer.text)


# ===================
# 预览场景
# ===================


class PreviewScene(QGraphicsScene):
    """预览场景.

    场景坐标即背景图片的原始像素坐标。
    """

    def __init__(
        self,
        reference_font_px: float = REFERENCE_FONT_PX,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._reference_font_px = reference_font_px
        self._background_item: Optional[QGraphicsPixmapItem] = None
        self._foreground_item: Optional[QGraphicsPixmapItem] = None
        self._text_items: dict[int, TextPreviewItem] = {}

    @property
    def text_items(self) -> list[TextPreviewItem]:
        """按叠放顺序排列的文字图形项."""
        return sorted(self._text_items.values(), key=lambda item: item.zValue())

    @property
    def background_item(self) -> Optional[QGraphicsPixmapItem]:
        """背景图形项."""
        return self._background_item

    @property
    def foreground_item(self) -> Optional[QGraphicsPixmapItem]:
        """前景图形项."""
        return self._foreground_item

    def set_background(self, layer: Optional[ImageLayer]) -> None:
        """设置背景图片，场景尺寸随之改变."""
        if self._background_item is not None:
            self.removeItem(self._background_item)
            self._background_item = None

        if layer is None:
            self.setSceneRect(QRectF())
            return

        self.setSceneRect(QRectF(0, 0, layer.natural_width, layer.natural_height))
        self._background_item = self._add_stretched_pixmap(layer, BACKGROUND_Z)
        self._reposition_text_items()

    def set_foreground(self, layer: Optional[ImageLayer]) -> None:
        """设置前景抠图，None 表示移除."""
        if self._foreground_item is not None:
            self.removeItem(self._foreground_item)
            self._foreground_item = None

        if layer is not None:
            self._foreground_item = self._add_stretched_pixmap(layer, FOREGROUND_Z)

    def _add_stretched_pixmap(self, layer: ImageLayer, z: int) -> QGraphicsPixmapItem:
        """添加拉伸铺满场景的图片项."""
        pixmap = pixmap_from_layer(layer)
        item = QGraphicsPixmapItem(pixmap)
        item.setTransformationMode(Qt.TransformationMode.SmoothTransformation)
        rect = self.sceneRect()
        if not pixmap.isNull() and rect.width() > 0 and rect.height() > 0:
            item.setTransform(
                QTransform.fromScale(
                    rect.width() / pixmap.width(),
                    rect.height() / pixmap.height(),
                )
            )
        item.setZValue(z)
        self.addItem(item)
        return item

    def sync_text_layers(self, layers: Sequence[TextLayer]) -> None:
        """与文字图层序列同步.

        删除不存在的图层项，添加新图层项，更新已有图层项，并按序列顺序设置层级。
        """
        current_ids = set(self._text_items)
        layer_ids = {layer.id for layer in layers}

        for layer_id in current_ids - layer_ids:
            self.removeItem(self._text_items.pop(layer_id))

        for index, layer in enumerate(layers):
            item = self._text_items.get(layer.id)
            if item is None:
                item = TextPreviewItem(layer, self._reference_font_px)
                self.addItem(item)
                self._text_items[layer.id] = item
            else:
                item.update_from_layer(layer)
            item.setZValue(TEXT_Z_BASE + index)
            self._position_text_item(item)

    def _position_text_item(self, item: TextPreviewItem) -> None:
        rect = self.sceneRect()
        geometry = compute_preview_geometry(item.layer)
        x, y, _ = geometry.to_pixels(rect.width(), rect.height(), self._reference_font_px)
        item.setPos(rect.x() + x, rect.y() + y)

    def _reposition_text_items(self) -> None:
        for item in self._text_items.values():
            self._position_text_item(item)

    def clear_project(self) -> None:
        """清空场景中的所有图层."""
        for item in self._text_items.values():
            self.removeItem(item)
        self._text_items.clear()
        self.set_foreground(None)
        self.set_background(None)


# ===================
# 预览视图
# ===================


class PreviewCanvas(QGraphicsView):
    """预览视图.

    背景图片按比例完整显示在视图中（居中），抠图完成前显示加载提示。
    """

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._scene = PreviewScene()
        self.setScene(self._scene)
        self.setRenderHints(
            QPainter.RenderHint.Antialiasing
            | QPainter.RenderHint.TextAntialiasing
            | QPainter.RenderHint.SmoothPixmapTransform
        )
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setMinimumSize(400, 400)

        self._loading_item = QGraphicsSimpleTextItem(LOADING_TEXT)
        self._loading_item.setFlag(
            QGraphicsItem.GraphicsItemFlag.ItemIgnoresTransformations, True
        )
        self._loading_item.setZValue(FOREGROUND_Z + 1)
        self._loading_item.setVisible(False)
        self._scene.addItem(self._loading_item)

    @property
    def preview_scene(self) -> PreviewScene:
        """预览场景."""
        return self._scene

    @property
    def is_loading(self) -> bool:
        """是否处于加载状态."""
        return self._loading_item.isVisible()

    def set_loading(self, loading: bool) -> None:
        """切换加载状态.

        加载期间隐藏图片与文字，只显示提示。
        """
        self._loading_item.setVisible(loading)
        self._loading_item.setPos(self._scene.sceneRect().topLeft())
        for item in self._scene.items():
            if item is not self._loading_item:
                item.setVisible(not loading)

    def fit_to_view(self) -> None:
        """按比例适应视图大小."""
        rect = self._scene.sceneRect()
        if rect.width() > 0 and rect.height() > 0:
            self.fitInView(rect, Qt.AspectRatioMode.KeepAspectRatio)

    def resizeEvent(self, event: QResizeEvent) -> None:
        """尺寸变化时重新适应."""
        super().resizeEvent(event)
        self.fit_to_view()
