"""抠图工作线程.

在 Qt 线程中运行独立的 asyncio 事件循环调用抠图服务，结果通过信号回到 UI 线程，
由 UI 线程交给会话应用，会话状态只在 UI 线程中修改。
"""

from __future__ import annotations

import asyncio
from typing import Optional

from PyQt6.QtCore import QObject, QThread, pyqtSignal

from src.services.background_removal import BaseBackgroundRemover
from src.utils.exceptions import AppException
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


class SegmentationWorker(QThread):
    """抠图工作线程.

    Signals:
        succeeded: 抠图成功 (generation, cutout_bytes)
        failed: 抠图失败 (generation, exception)

    Example:
        >>> worker = SegmentationWorker(remover, image_bytes, generation)
        >>> worker.succeeded.connect(session.apply_segmentation_result)
        >>> worker.start()
    """

    succeeded = pyqtSignal(int, bytes)
    failed = pyqtSignal(int, object)

    def __init__(
        self,
        remover: BaseBackgroundRemover,
        image: bytes,
        generation: int,
        parent: Optional[QObject] = None,
    ) -> None:
        """初始化工作线程.

        Args:
            remover: 抠图服务
            image: 原图字节数据
            generation: 发起时的项目代数
            parent: 父对象
        """
        super().__init__(parent)
        self._remover = remover
        self._image = image
        self._generation = generation

    @property
    def generation(self) -> int:
        """发起时的项目代数."""
        return self._generation

    def run(self) -> None:
        """线程入口."""
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            cutout = loop.run_until_complete(self._remove())
        except AppException as e:
            self.failed.emit(self._generation, e)
            return
        except Exception as e:
            logger.exception(f"抠图线程异常: {e}")
            self.failed.emit(self._generation, e)
            return
        finally:
            loop.close()
            asyncio.set_event_loop(None)

        self.succeeded.emit(self._generation, cutout)

    async def _remove(self) -> bytes:
        try:
            return await self._remover.remove_background(self._image)
        finally:
            await self._remover.close()
