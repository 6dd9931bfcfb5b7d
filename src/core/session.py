"""编辑会话.

会话独占当前项目，所有图层操作都通过会话进行。上传新图片会整体替换项目并递增代数；
异步抠图结果只有在其捕获的代数与当前代数一致时才会应用，过期结果直接丢弃。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from PIL import Image

from src.core.compositor import Compositor
from src.core.exporter import encode_png, trigger_download
from src.models.image_layer import ImageLayer, Project
from src.models.text_layer import (
    TextLayer,
    add_text_layer,
    duplicate_text_layer,
    remove_text_layer,
    update_attribute,
)
from src.services.background_removal import BaseBackgroundRemover
from src.utils.error_handler import get_user_friendly_message
from src.utils.exceptions import AppException
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


class EditorSession:
    """编辑会话.

    Attributes:
        project: 当前项目
        generation: 项目代数，每次上传递增
        is_image_setup_done: 抠图是否已结束（成功、失败或被跳过）
        last_error: 最近一次抠图失败的用户提示

    Example:
        >>> session = EditorSession(remover=remover)
        >>> generation = session.upload_image("photo.jpg")
        >>> await session.setup_image(generation)
        >>> session.add_new_text_set()
        >>> await session.save_composite_image(Path("~/Downloads").expanduser())
    """

    def __init__(
        self,
        remover: Optional[BaseBackgroundRemover] = None,
        compositor: Optional[Compositor] = None,
    ) -> None:
        """初始化会话.

        Args:
            remover: 抠图服务，None 表示不做抠图
            compositor: 合成器
        """
        self._remover = remover
        self._compositor = compositor or Compositor()
        self._project = Project()
        self._generation = 0
        self._is_image_setup_done = False
        self.last_error: Optional[str] = None

    # ========================
    # 属性
    # ========================

    @property
    def project(self) -> Project:
        """当前项目."""
        return self._project

    @property
    def text_layers(self) -> list[TextLayer]:
        """文字图层序列."""
        return self._project.text_layers

    @property
    def generation(self) -> int:
        """当前项目代数."""
        return self._generation

    @property
    def is_image_setup_done(self) -> bool:
        """抠图是否已结束."""
        return self._is_image_setup_done

    @property
    def remover(self) -> Optional[BaseBackgroundRemover]:
        """抠图服务."""
        return self._remover

    # ========================
    # 上传与抠图
    # ========================

    def upload_image(self, path: Optional[Path | str]) -> Optional[int]:
        """上传新图片，替换当前项目.

        Args:
            path: 图片路径，为空时不做任何操作

        Returns:
            新项目的代数，未选择文件时返回 None

        Raises:
            UnsupportedImageFormatError: 不支持的文件类型
            ImageNotFoundError: 文件不存在
            ImageCorruptedError: 文件无法解析
        """
        if not path:
            return None

        background = ImageLayer.from_file(path)
        self._generation += 1
        self._project = Project(background=background)
        self._is_image_setup_done = False
        self.last_error = None
        logger.info(
            f"已上传图片: {background.source_url} "
            f"({background.natural_width}x{background.natural_height}), 代数 {self._generation}"
        )
        return self._generation

    async def setup_image(self, generation: int) -> bool:
        """为指定代数的项目执行抠图.

        抠图失败不影响后续合成，仅记录错误并以无前景的方式继续。

        Args:
            generation: 上传时返回的代数

        Returns:
            结果是否被应用到当前项目
        """
        background = self._project.background
        if background is None or generation != self._generation:
            return False

        if self._remover is None:
            logger.info("未配置抠图服务，跳过抠图")
            self.skip_segmentation()
            return True

        try:
            cutout = await self._remover.remove_background(background.data)
        except AppException as e:
            return self.apply_segmentation_failure(generation, e)
        except Exception as e:
            logger.exception(f"抠图服务异常: {e}")
            return self.apply_segmentation_failure(generation, e)
        return self.apply_segmentation_result(generation, cutout)

    def apply_segmentation_result(self, generation: int, cutout: bytes) -> bool:
        """应用抠图结果.

        Args:
            generation: 发起抠图时捕获的代数
            cutout: 透明背景 PNG 字节数据

        Returns:
            结果是否被应用（过期结果返回 False）
        """
        if generation != self._generation:
            logger.info(f"过期的抠图结果已丢弃: 代数 {generation}, 当前 {self._generation}")
            return False

        try:
            foreground = ImageLayer.from_bytes(cutout)
        except AppException as e:
            return self.apply_segmentation_failure(generation, e)

        self._project = self._project.model_copy(update={"foreground": foreground})
        self._is_image_setup_done = True
        logger.info(f"抠图完成: {foreground.natural_width}x{foreground.natural_height}")
        return True

    def apply_segmentation_failure(self, generation: int, error: Exception) -> bool:
        """记录抠图失败，项目以无前景方式继续.

        Args:
            generation: 发起抠图时捕获的代数
            error: 失败原因

        Returns:
            失败是否作用于当前项目（过期结果返回 False）
        """
        if generation != self._generation:
            logger.info(f"过期的抠图失败结果已丢弃: 代数 {generation}")
            return False

        logger.error(f"抠图失败，将仅使用背景合成: {error}")
        self.last_error = get_user_friendly_message(error)
        self._is_image_setup_done = True
        return True

    def skip_segmentation(self) -> None:
        """不等待抠图，直接以无前景方式完成设置."""
        if self._project.background is not None:
            self._is_image_setup_done = True

    # ========================
    # 文字图层操作
    # ========================

    def _set_text_layers(self, layers: list[TextLayer]) -> None:
        self._project = self._project.model_copy(update={"text_layers": layers})

    def add_new_text_set(self) -> TextLayer:
        """新增默认文字图层."""
        self._set_text_layers(add_text_layer(self.text_layers))
        layer = self.text_layers[-1]
        logger.debug(f"新增文字图层: {layer.id}")
        return layer

    def duplicate_text_set(self, layer_id: int) -> Optional[TextLayer]:
        """复制文字图层，ID 不存在时不做任何操作."""
        source = next((layer for layer in self.text_layers if layer.id == layer_id), None)
        if source is None:
            return None
        self._set_text_layers(duplicate_text_layer(self.text_layers, source))
        return self.text_layers[-1]

    def remove_text_set(self, layer_id: int) -> None:
        """删除文字图层."""
        self._set_text_layers(remove_text_layer(self.text_layers, layer_id))

    def handle_attribute_change(self, layer_id: int, key: str, value: Any) -> None:
        """修改文字图层属性.

        Raises:
            UnknownLayerAttributeError: 未知属性
            InvalidLayerValueError: 属性值无效
        """
        self._set_text_layers(update_attribute(self.text_layers, layer_id, key, value))

    # ========================
    # 合成与导出
    # ========================

    def can_export(self) -> bool:
        """是否满足导出条件."""
        return self._project.background is not None and self._is_image_setup_done

    async def render(self) -> Optional[Image.Image]:
        """合成当前项目.

        Returns:
            合成结果，条件不满足时返回 None
        """
        if not self.can_export():
            logger.debug("合成条件不满足，跳过")
            return None
        return await self._compositor.render_project(self._project)

    async def save_composite_image(self, directory: Path | str) -> Optional[Path]:
        """合成并导出 PNG.

        Args:
            directory: 导出目录

        Returns:
            导出文件路径，条件不满足时返回 None
        """
        image = await self.render()
        if image is None:
            return None
        return trigger_download(encode_png(image), directory)
