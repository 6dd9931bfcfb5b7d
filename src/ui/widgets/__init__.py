"""UI 组件模块."""

from src.ui.widgets.preview_canvas import PreviewCanvas, PreviewScene, TextPreviewItem
from src.ui.widgets.text_layer_panel import TextLayerEditor, TextLayerPanel

__all__ = [
    # 预览
    "PreviewCanvas",
    "PreviewScene",
    "TextPreviewItem",
    # 文字图层面板
    "TextLayerEditor",
    "TextLayerPanel",
]
