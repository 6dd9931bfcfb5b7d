"""Pytest 配置和共享 fixtures."""

import io
import os
import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest
from PIL import Image

# Qt 测试在无显示环境下运行
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

BLUE = (0, 0, 255, 255)
RED = (255, 0, 0, 255)


def png_bytes(
    size: tuple[int, int] = (400, 400),
    color: tuple[int, ...] = BLUE,
    mode: str = "RGBA",
) -> bytes:
    """生成纯色 PNG 字节数据."""
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """临时目录 fixture."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_image_file(temp_dir: Path) -> Callable[..., Path]:
    """创建图片文件的工厂 fixture."""

    def _make(
        name: str = "photo.png",
        size: tuple[int, int] = (400, 400),
        color: tuple[int, ...] = (0, 0, 255),
    ) -> Path:
        path = temp_dir / name
        image = Image.new("RGB", size, color)
        image.save(path, format="JPEG" if path.suffix.lower() in (".jpg", ".jpeg") else "PNG")
        return path

    return _make


@pytest.fixture
def sample_image_file(make_image_file) -> Path:
    """示例背景图片（400x400 蓝色）."""
    return make_image_file()


@pytest.fixture
def cutout_bytes() -> bytes:
    """示例抠图结果（全不透明红色）."""
    return png_bytes((400, 400), RED)


@pytest.fixture
def make_png() -> Callable[..., bytes]:
    """生成纯色 PNG 字节数据的工厂 fixture."""
    return png_bytes
