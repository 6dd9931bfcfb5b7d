"""文件工具函数模块.

提供文件和目录操作的工具函数。
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from src.utils.constants import SUPPORTED_IMAGE_FORMATS
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


def ensure_directory(path: Path | str) -> Path:
    """确保目录存在.

    Args:
        path: 目录路径

    Returns:
        目录路径
    """
    path = Path(path).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_file_extension(path: Path | str) -> str:
    """获取文件扩展名（小写）.

    Args:
        path: 文件路径

    Returns:
        小写扩展名（含点号）
    """
    return Path(path).suffix.lower()


def is_image_file(path: Path | str) -> bool:
    """检查是否为允许上传的图片文件.

    仅检查扩展名白名单（.jpg/.jpeg/.png）。

    Args:
        path: 文件路径

    Returns:
        是否为图片文件
    """
    return get_file_extension(path) in SUPPORTED_IMAGE_FORMATS


def atomic_write_bytes(path: Path, data: bytes) -> Path:
    """原子写入文件.

    先写入同目录临时文件再替换，避免留下半截文件。

    Args:
        path: 目标路径
        data: 文件内容

    Returns:
        目标路径
    """
    ensure_directory(path.parent)
    fd, tmp_name = tempfile.mkstemp(prefix=".tmp_", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.debug(f"文件已写入: {path} ({len(data)} bytes)")
    return path
