"""核心业务逻辑模块."""

from src.core.compositor import Compositor, find_font
from src.core.config_manager import ConfigManager, get_config
from src.core.exporter import encode_png, trigger_download
from src.core.session import EditorSession
from src.core.transform import (
    ExportGeometry,
    PreviewGeometry,
    anchor_position,
    compute_export_geometry,
    compute_preview_geometry,
    export_font_size_px,
    layer_scale,
    preview_font_size_percent,
)

__all__ = [
    # 变换引擎
    "ExportGeometry",
    "PreviewGeometry",
    "anchor_position",
    "compute_export_geometry",
    "compute_preview_geometry",
    "export_font_size_px",
    "layer_scale",
    "preview_font_size_percent",
    # 合成与导出
    "Compositor",
    "find_font",
    "encode_png",
    "trigger_download",
    # 编辑会话
    "EditorSession",
    # 配置
    "ConfigManager",
    "get_config",
]
