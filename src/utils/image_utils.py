"""图片工具函数模块.

提供图片读取、编码、模式转换等工具函数。
"""

from __future__ import annotations

import io
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from src.utils.constants import EXPORT_FORMAT
from src.utils.exceptions import (
    ImageCorruptedError,
    ImageNotFoundError,
    UnsupportedImageFormatError,
)
from src.utils.file_utils import get_file_extension, is_image_file
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


def validate_image_file(path: Path | str) -> None:
    """验证上传的图片文件.

    Args:
        path: 图片文件路径

    Raises:
        UnsupportedImageFormatError: 不支持的格式
        ImageNotFoundError: 文件不存在
    """
    path = Path(path)

    if not is_image_file(path):
        raise UnsupportedImageFormatError(get_file_extension(path) or path.name)

    if not path.is_file():
        raise ImageNotFoundError(str(path))


def read_image_size(data: bytes, source: str = "<bytes>") -> tuple[int, int]:
    """读取图片原始尺寸（只解析文件头）.

    Args:
        data: 图片字节数据
        source: 来源描述，用于错误消息

    Returns:
        (宽, 高)

    Raises:
        ImageCorruptedError: 数据无法识别为图片
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (UnidentifiedImageError, OSError) as e:
        logger.error(f"读取图片尺寸失败: {source}, {e}")
        raise ImageCorruptedError(source) from e


def bytes_to_image(data: bytes, source: str = "<bytes>") -> Image.Image:
    """字节数据完整解码为图片.

    Args:
        data: 图片字节数据
        source: 来源描述，用于错误消息

    Returns:
        已加载到内存的 PIL Image 对象
    """
    try:
        img = Image.open(io.BytesIO(data))
        img.load()  # 强制解码
        return img
    except (UnidentifiedImageError, OSError) as e:
        logger.error(f"解码图片失败: {source}, {e}")
        raise ImageCorruptedError(source) from e


def image_to_bytes(image: Image.Image, format: str = EXPORT_FORMAT) -> bytes:
    """图片编码为字节数据.

    Args:
        image: PIL Image 对象
        format: 图片格式

    Returns:
        图片字节数据
    """
    buffer = io.BytesIO()
    image.save(buffer, format=format)
    return buffer.getvalue()


def ensure_rgba(image: Image.Image) -> Image.Image:
    """确保图片为 RGBA 模式."""
    if image.mode != "RGBA":
        return image.convert("RGBA")
    return image


def stretch_to_size(image: Image.Image, size: tuple[int, int]) -> Image.Image:
    """拉伸图片使其恰好填满目标尺寸（不保持比例）.

    Args:
        image: PIL Image 对象
        size: 目标尺寸 (宽, 高)

    Returns:
        RGBA 图片
    """
    image = ensure_rgba(image)
    if image.size != size:
        image = image.resize(size, Image.Resampling.LANCZOS)
    return image
