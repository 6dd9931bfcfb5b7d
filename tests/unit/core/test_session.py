"""编辑会话单元测试."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from src.core.session import EditorSession
from src.services.background_removal import BaseBackgroundRemover
from src.utils.constants import EXPORT_FILENAME
from src.utils.exceptions import (
    APITimeoutError,
    SegmentationError,
    UnknownLayerAttributeError,
    UnsupportedImageFormatError,
)


# ===================
# Fixtures
# ===================


@pytest.fixture
def remover(cutout_bytes: bytes) -> MagicMock:
    """模拟抠图服务."""
    mock = MagicMock(spec=BaseBackgroundRemover)
    mock.remove_background = AsyncMock(return_value=cutout_bytes)
    return mock


@pytest.fixture
def session(remover: MagicMock) -> EditorSession:
    return EditorSession(remover=remover)


# ===================
# 上传测试
# ===================


class TestUpload:
    """测试图片上传."""

    def test_empty_path_is_noop(self, session: EditorSession):
        """未选择文件时不做任何操作."""
        assert session.upload_image(None) is None
        assert session.upload_image("") is None
        assert session.generation == 0
        assert session.project.background is None

    def test_upload_replaces_project(self, session, make_image_file):
        """上传新图片整体替换项目."""
        session.upload_image(make_image_file("a.png"))
        session.add_new_text_set()
        session.upload_image(make_image_file("b.png", size=(50, 60)))

        assert session.text_layers == []
        assert session.project.foreground is None
        assert session.project.background.natural_size == (50, 60)
        assert session.is_image_setup_done is False

    def test_upload_increments_generation(self, session, sample_image_file):
        """每次上传递增代数."""
        first = session.upload_image(sample_image_file)
        second = session.upload_image(sample_image_file)

        assert second == first + 1 == session.generation

    def test_unsupported_file_keeps_project(self, session, sample_image_file, temp_dir):
        """上传不支持的文件时保留当前项目."""
        generation = session.upload_image(sample_image_file)
        bad = temp_dir / "notes.txt"
        bad.write_text("hello")

        with pytest.raises(UnsupportedImageFormatError):
            session.upload_image(bad)
        assert session.generation == generation
        assert session.project.background is not None


# ===================
# 抠图测试
# ===================


class TestSegmentation:
    """测试抠图流程."""

    @pytest.mark.asyncio
    async def test_setup_sets_foreground(self, session, remover, sample_image_file):
        """抠图成功后设置前景."""
        generation = session.upload_image(sample_image_file)

        assert await session.setup_image(generation) is True
        assert session.is_image_setup_done is True
        assert session.project.foreground is not None
        remover.remove_background.assert_awaited_once_with(
            session.project.background.data
        )

    @pytest.mark.asyncio
    async def test_failure_is_not_fatal(self, session, remover, sample_image_file):
        """抠图失败时以无前景方式继续."""
        remover.remove_background.side_effect = APITimeoutError(30)
        generation = session.upload_image(sample_image_file)

        assert await session.setup_image(generation) is True
        assert session.is_image_setup_done is True
        assert session.project.foreground is None
        assert session.last_error
        assert session.can_export() is True

    @pytest.mark.asyncio
    async def test_unexpected_error_is_not_fatal(self, session, remover, make_image_file):
        """抠图服务抛出意外异常时同样以仅背景方式继续."""
        remover.remove_background.side_effect = RuntimeError("boom")
        generation = session.upload_image(make_image_file("bg.png", size=(80, 60), color=(0, 128, 0)))

        assert await session.setup_image(generation) is True
        assert session.is_image_setup_done is True
        assert session.project.foreground is None
        assert session.last_error
        assert session.can_export() is True

        image = await session.render()
        assert image.size == (80, 60)
        assert image.getcolors() == [(80 * 60, (0, 128, 0, 255))]

    @pytest.mark.asyncio
    async def test_stale_result_is_discarded(self, session, remover, make_image_file, cutout_bytes):
        """旧项目的抠图结果不应用到新项目."""
        gate = asyncio.Event()

        async def slow_remove(image: bytes) -> bytes:
            await gate.wait()
            return cutout_bytes

        remover.remove_background.side_effect = slow_remove

        first = session.upload_image(make_image_file("a.png"))
        task = asyncio.create_task(session.setup_image(first))
        await asyncio.sleep(0)

        session.upload_image(make_image_file("b.png"))
        gate.set()

        assert await task is False
        assert session.project.foreground is None
        assert session.is_image_setup_done is False

    def test_stale_failure_is_discarded(self, session, make_image_file):
        """旧项目的失败结果不影响新项目."""
        first = session.upload_image(make_image_file("a.png"))
        session.upload_image(make_image_file("b.png"))

        assert session.apply_segmentation_failure(first, SegmentationError("x")) is False
        assert session.last_error is None
        assert session.is_image_setup_done is False

    def test_invalid_cutout_counts_as_failure(self, session, sample_image_file):
        """无法解析的抠图结果按失败处理."""
        generation = session.upload_image(sample_image_file)

        assert session.apply_segmentation_result(generation, b"garbage") is True
        assert session.project.foreground is None
        assert session.is_image_setup_done is True
        assert session.last_error

    @pytest.mark.asyncio
    async def test_setup_without_upload(self, session):
        """未上传时不执行抠图."""
        assert await session.setup_image(0) is False

    @pytest.mark.asyncio
    async def test_setup_without_remover(self, sample_image_file):
        """未配置抠图服务时直接完成设置."""
        session = EditorSession()
        generation = session.upload_image(sample_image_file)

        assert await session.setup_image(generation) is True
        assert session.is_image_setup_done is True
        assert session.project.foreground is None

    def test_skip_without_background(self):
        """没有背景时跳过无效."""
        session = EditorSession()
        session.skip_segmentation()
        assert session.is_image_setup_done is False


# ===================
# 文字图层操作测试
# ===================


class TestTextLayerOperations:
    """测试文字图层操作."""

    def test_add_and_remove(self, session):
        """新增与删除图层."""
        first = session.add_new_text_set()
        second = session.add_new_text_set()
        session.remove_text_set(first.id)

        assert [layer.id for layer in session.text_layers] == [second.id]

    def test_duplicate(self, session):
        """复制图层."""
        layer = session.add_new_text_set()
        session.handle_attribute_change(layer.id, "text", "HELLO")
        copy = session.duplicate_text_set(layer.id)

        assert copy.id != layer.id
        assert copy.text == "HELLO"
        assert len(session.text_layers) == 2

    def test_duplicate_absent_id(self, session):
        """复制不存在的图层返回 None."""
        assert session.duplicate_text_set(42) is None
        assert session.text_layers == []

    def test_attribute_change(self, session):
        """修改图层属性."""
        layer = session.add_new_text_set()
        session.handle_attribute_change(layer.id, "rotation", 15)

        assert session.text_layers[0].rotation == 15

    def test_unknown_attribute(self, session):
        """未知属性抛出异常且不修改图层."""
        layer = session.add_new_text_set()

        with pytest.raises(UnknownLayerAttributeError):
            session.handle_attribute_change(layer.id, "blur", 3)
        assert session.text_layers == [layer]


# ===================
# 导出测试
# ===================


class TestExport:
    """测试合成导出."""

    @pytest.mark.asyncio
    async def test_export_without_background_is_noop(self, session, temp_dir: Path):
        """没有背景时不导出."""
        assert session.can_export() is False
        assert await session.save_composite_image(temp_dir) is None
        assert list(temp_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_export_before_setup_is_noop(self, session, sample_image_file, temp_dir):
        """抠图完成前不导出."""
        export_dir = temp_dir / "out"
        session.upload_image(sample_image_file)

        assert session.can_export() is False
        assert await session.save_composite_image(export_dir) is None
        assert not export_dir.exists()

    @pytest.mark.asyncio
    async def test_export_at_natural_size(self, session, make_image_file, temp_dir):
        """按上传图片原始尺寸导出."""
        generation = session.upload_image(make_image_file("wide.jpg", size=(1200, 800)))
        await session.setup_image(generation)
        session.add_new_text_set()

        path = await session.save_composite_image(temp_dir / "out")

        assert path.name == EXPORT_FILENAME
        with Image.open(path) as exported:
            assert exported.format == "PNG"
            assert exported.size == (1200, 800)

    @pytest.mark.asyncio
    async def test_render_returns_image(self, session, sample_image_file):
        """合成返回图片."""
        generation = session.upload_image(sample_image_file)
        await session.setup_image(generation)

        image = await session.render()
        assert image.size == (400, 400)
