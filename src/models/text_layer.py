"""文字图层数据模型.

文字图层使用与分辨率无关的归一化属性描述，具体像素几何由变换引擎计算。

Features:
    - 封闭字段集合的文字图层记录
    - 纯函数式的新增、复制、删除、属性更新
    - 单调递增的图层ID分配
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.utils.constants import (
    BASE_FONT_SIZE,
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_WEIGHT,
    DEFAULT_OPACITY,
    DEFAULT_SHADOW_COLOR,
    DEFAULT_SHADOW_SIZE,
    DEFAULT_TEXT,
    DEFAULT_TEXT_COLOR,
)
from src.utils.exceptions import InvalidLayerValueError, UnknownLayerAttributeError


# ===================
# 文字图层
# ===================


class TextLayer(BaseModel):
    """文字图层.

    位置以画面中心为原点的百分比偏移表示，(0, 0) 为居中；
    字号以 BASE_FONT_SIZE 为基准单位。

    Attributes:
        id: 图层ID（项目内唯一，单调分配）
        text: 文字内容，可为空
        font_family: 字体名称
        font_size_units: 字号单位，scale = font_size_units / BASE_FONT_SIZE
        font_weight: 字重（100-900）
        color: CSS 颜色字符串
        opacity: 不透明度（0-1）
        top: 垂直偏移百分比，正值向上
        left: 水平偏移百分比，正值向右
        rotation: 旋转角度（度，顺时针为正）
        shadow_color: 阴影颜色
        shadow_size: 阴影大小

    Example:
        >>> layer = TextLayer(id=1, text="HELLO")
        >>> layer.scale
        1.0
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id: int = Field(description="图层ID")
    text: str = Field(default=DEFAULT_TEXT, description="文字内容")
    font_family: str = Field(default=DEFAULT_FONT_FAMILY, description="字体名称")
    font_size_units: float = Field(default=BASE_FONT_SIZE, description="字号单位")
    font_weight: int = Field(default=DEFAULT_FONT_WEIGHT, description="字重")
    color: str = Field(default=DEFAULT_TEXT_COLOR, description="文字颜色")
    opacity: float = Field(default=DEFAULT_OPACITY, description="不透明度")
    top: float = Field(default=0.0, description="垂直偏移百分比")
    left: float = Field(default=0.0, description="水平偏移百分比")
    rotation: float = Field(default=0.0, description="旋转角度")
    shadow_color: Optional[str] = Field(default=DEFAULT_SHADOW_COLOR, description="阴影颜色")
    shadow_size: Optional[float] = Field(default=DEFAULT_SHADOW_SIZE, description="阴影大小")

    @property
    def scale(self) -> float:
        """相对基准字号的缩放比例."""
        return self.font_size_units / BASE_FONT_SIZE


# 可编辑字段（id 由系统分配，不可编辑）
TEXT_LAYER_FIELDS: frozenset[str] = frozenset(
    name for name in TextLayer.model_fields if name != "id"
)


# ===================
# 图层序列操作
# ===================


def next_layer_id(existing: Sequence[TextLayer]) -> int:
    """计算下一个图层ID.

    Args:
        existing: 现有图层序列

    Returns:
        现有最大ID + 1，空序列返回 1
    """
    return max((layer.id for layer in existing), default=0) + 1


def create_text_layer(existing: Sequence[TextLayer]) -> TextLayer:
    """创建默认文字图层.

    Args:
        existing: 现有图层序列（用于分配ID）

    Returns:
        新的文字图层
    """
    return TextLayer(id=next_layer_id(existing))


def add_text_layer(existing: Sequence[TextLayer]) -> list[TextLayer]:
    """追加一个默认文字图层."""
    return [*existing, create_text_layer(existing)]


def duplicate_text_layer(
    existing: Sequence[TextLayer],
    layer: TextLayer,
) -> list[TextLayer]:
    """复制文字图层.

    副本除ID外与原图层完全相同，追加到序列末尾（位于最上层文字）。

    Args:
        existing: 现有图层序列
        layer: 要复制的图层

    Returns:
        新的图层序列
    """
    copy = layer.model_copy(update={"id": next_layer_id(existing)})
    return [*existing, copy]


def remove_text_layer(existing: Sequence[TextLayer], layer_id: int) -> list[TextLayer]:
    """删除指定ID的文字图层.

    Args:
        existing: 现有图层序列
        layer_id: 图层ID

    Returns:
        新的图层序列
    """
    return [layer for layer in existing if layer.id != layer_id]


def update_attribute(
    existing: Sequence[TextLayer],
    layer_id: int,
    key: str,
    value: Any,
) -> list[TextLayer]:
    """更新文字图层的单个属性.

    ID 不存在时原样返回；未知属性在边界处拒绝。数值范围不做限制。

    Args:
        existing: 现有图层序列
        layer_id: 图层ID
        key: 属性名
        value: 新值

    Returns:
        新的图层序列

    Raises:
        UnknownLayerAttributeError: 属性名不在可编辑字段中
        InvalidLayerValueError: 属性值类型无效
    """
    if key not in TEXT_LAYER_FIELDS:
        raise UnknownLayerAttributeError(key)

    result: list[TextLayer] = []
    for layer in existing:
        if layer.id == layer_id:
            try:
                layer = TextLayer.model_validate({**layer.model_dump(), key: value})
            except ValidationError as e:
                raise InvalidLayerValueError(key, value, e.errors()[0]["msg"]) from e
        result.append(layer)
    return result
