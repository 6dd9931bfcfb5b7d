"""数据模型模块."""

from src.models.app_settings import Settings
from src.models.image_layer import (
    ImageLayer,
    Project,
    generate_blob_url,
    load_image_layer,
)
from src.models.text_layer import (
    TEXT_LAYER_FIELDS,
    TextLayer,
    add_text_layer,
    create_text_layer,
    duplicate_text_layer,
    next_layer_id,
    remove_text_layer,
    update_attribute,
)

__all__ = [
    # 文字图层
    "TEXT_LAYER_FIELDS",
    "TextLayer",
    "add_text_layer",
    "create_text_layer",
    "duplicate_text_layer",
    "next_layer_id",
    "remove_text_layer",
    "update_attribute",
    # 图片图层与项目
    "ImageLayer",
    "Project",
    "generate_blob_url",
    "load_image_layer",
    # 设置
    "Settings",
]
