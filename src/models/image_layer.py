"""图片图层与项目数据模型.

项目由背景图层、可选的前景抠图图层和有序的文字图层序列组成。
"""

from __future__ import annotations

import asyncio
import uuid
from pathlib import Path
from typing import Optional

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field

from src.models.text_layer import TextLayer
from src.utils.image_utils import bytes_to_image, read_image_size, validate_image_file


def generate_blob_url() -> str:
    """生成内存图片的本地引用."""
    return f"blob:{uuid.uuid4().hex}"


class ImageLayer(BaseModel):
    """图片图层（背景或前景抠图）.

    Attributes:
        source_url: 本地引用（文件路径或 blob: 键）
        data: 编码后的图片字节，由项目在生命周期内持有
        natural_width: 解码后的原始宽度
        natural_height: 解码后的原始高度
    """

    model_config = ConfigDict(frozen=True)

    source_url: str = Field(description="本地图片引用")
    data: bytes = Field(repr=False, description="图片字节数据")
    natural_width: int = Field(ge=1, description="原始宽度")
    natural_height: int = Field(ge=1, description="原始高度")

    @property
    def natural_size(self) -> tuple[int, int]:
        """原始尺寸 (宽, 高)."""
        return (self.natural_width, self.natural_height)

    @classmethod
    def from_bytes(cls, data: bytes, source_url: Optional[str] = None) -> "ImageLayer":
        """从字节数据创建图片图层.

        Args:
            data: 图片字节数据
            source_url: 本地引用，默认生成 blob: 键

        Returns:
            ImageLayer 实例

        Raises:
            ImageCorruptedError: 数据无法识别为图片
        """
        source_url = source_url or generate_blob_url()
        width, height = read_image_size(data, source_url)
        return cls(
            source_url=source_url,
            data=data,
            natural_width=width,
            natural_height=height,
        )

    @classmethod
    def from_file(cls, path: Path | str) -> "ImageLayer":
        """从上传文件创建图片图层.

        Args:
            path: 图片文件路径

        Returns:
            ImageLayer 实例
        """
        path = Path(path)
        validate_image_file(path)
        return cls.from_bytes(path.read_bytes(), str(path))

    def decode(self) -> Image.Image:
        """同步解码为可绘制图片."""
        return bytes_to_image(self.data, self.source_url)


async def load_image_layer(layer: ImageLayer) -> Image.Image:
    """异步解码图片图层.

    解码在线程池中执行，调用方在解码完成前不会继续合成。

    Args:
        layer: 图片图层

    Returns:
        已解码的 PIL Image
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, layer.decode)


class Project(BaseModel):
    """编辑项目.

    上传新图片时整体替换，不与旧状态合并。

    Attributes:
        background: 背景图层
        foreground: 前景抠图图层（抠图完成前或失败时为 None）
        text_layers: 文字图层序列，顺序即叠放顺序（靠前的在下层）
    """

    background: Optional[ImageLayer] = None
    foreground: Optional[ImageLayer] = None
    text_layers: list[TextLayer] = Field(default_factory=list)

    @property
    def has_background(self) -> bool:
        """是否已上传背景图片."""
        return self.background is not None
