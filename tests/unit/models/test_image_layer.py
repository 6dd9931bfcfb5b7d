"""图片图层与项目模型单元测试."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.models.image_layer import ImageLayer, Project, generate_blob_url, load_image_layer
from src.models.text_layer import TextLayer
from src.utils.exceptions import (
    ImageCorruptedError,
    ImageNotFoundError,
    UnsupportedImageFormatError,
)


class TestImageLayer:
    """测试图片图层."""

    def test_from_file_reads_natural_size(self, make_image_file):
        """应读取图片原始尺寸."""
        path = make_image_file("photo.jpg", size=(1200, 800))
        layer = ImageLayer.from_file(path)

        assert layer.natural_size == (1200, 800)
        assert layer.source_url == str(path)
        assert layer.data == path.read_bytes()

    def test_from_file_rejects_unsupported_extension(self, temp_dir: Path):
        """不在白名单内的扩展名应被拒绝."""
        path = temp_dir / "anim.gif"
        path.write_bytes(b"GIF89a")

        with pytest.raises(UnsupportedImageFormatError):
            ImageLayer.from_file(path)

    def test_from_file_rejects_missing_file(self, temp_dir: Path):
        """文件不存在时应抛出异常."""
        with pytest.raises(ImageNotFoundError):
            ImageLayer.from_file(temp_dir / "missing.png")

    def test_from_file_rejects_corrupted_file(self, temp_dir: Path):
        """无法解析的文件应抛出异常."""
        path = temp_dir / "broken.png"
        path.write_bytes(b"not an image at all")

        with pytest.raises(ImageCorruptedError):
            ImageLayer.from_file(path)

    def test_from_bytes_generates_blob_url(self, make_png):
        """内存图片应生成 blob: 引用."""
        layer = ImageLayer.from_bytes(make_png((10, 20)))

        assert layer.source_url.startswith("blob:")
        assert layer.natural_size == (10, 20)

    def test_blob_urls_are_unique(self):
        """每次生成的引用应不同."""
        assert generate_blob_url() != generate_blob_url()

    def test_decode_returns_image(self, make_png):
        """应能解码为图片."""
        image = ImageLayer.from_bytes(make_png((16, 8))).decode()
        assert image.size == (16, 8)

    @pytest.mark.asyncio
    async def test_load_image_layer(self, make_png):
        """应能异步解码."""
        layer = ImageLayer.from_bytes(make_png((32, 24)))
        image = await load_image_layer(layer)
        assert image.size == (32, 24)


class TestProject:
    """测试项目模型."""

    def test_empty_project(self):
        """新项目没有任何图层."""
        project = Project()

        assert project.background is None
        assert project.foreground is None
        assert project.text_layers == []
        assert project.has_background is False

    def test_project_with_layers(self, make_png):
        """项目应保存背景和文字图层."""
        background = ImageLayer.from_bytes(make_png())
        project = Project(background=background, text_layers=[TextLayer(id=1)])

        assert project.has_background is True
        assert project.text_layers[0].id == 1
