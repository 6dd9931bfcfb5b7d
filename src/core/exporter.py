"""导出编码.

将合成完成的缓冲区编码为 PNG，并以固定文件名交付给用户。
"""

from __future__ import annotations

from pathlib import Path

from PIL import Image

from src.utils.constants import EXPORT_FILENAME, EXPORT_FORMAT, EXPORT_MIME_TYPE
from src.utils.file_utils import atomic_write_bytes, ensure_directory
from src.utils.image_utils import image_to_bytes
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


def encode_png(image: Image.Image) -> bytes:
    """编码为无损 PNG.

    Args:
        image: 合成后的图片

    Returns:
        PNG 字节数据
    """
    data = image_to_bytes(image, EXPORT_FORMAT)
    logger.debug(f"PNG 编码完成: {image.size}, {len(data)} bytes")
    return data


def trigger_download(
    data: bytes,
    directory: Path | str,
    filename: str = EXPORT_FILENAME,
) -> Path:
    """将编码后的图片写入下载目录.

    同名文件会被覆盖。

    Args:
        data: 图片字节数据
        directory: 目标目录
        filename: 文件名

    Returns:
        写入的文件路径
    """
    path = ensure_directory(directory) / filename
    atomic_write_bytes(path, data)
    logger.info(f"图片已导出: {path} ({EXPORT_MIME_TYPE})")
    return path
