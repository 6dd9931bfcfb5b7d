"""抠图服务抽象基类.

合成核心只把抠图当作不透明的外部能力：输入原图字节，输出带透明通道的主体抠图。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum


class BackgroundRemoverType(str, Enum):
    """抠图服务类型."""

    EXTERNAL_API = "external_api"  # 外部API服务


class BaseBackgroundRemover(ABC):
    """抠图服务抽象基类.

    Example:
        >>> async with ExternalAPIRemover(api_url="http://localhost:5000/api/remove-background") as remover:
        ...     cutout = await remover.remove_background(image_bytes)
    """

    remover_type: BackgroundRemoverType

    @abstractmethod
    async def remove_background(self, image: bytes) -> bytes:
        """去除图片背景.

        Args:
            image: 输入图片字节数据

        Returns:
            透明背景的 PNG 字节数据

        Raises:
            SegmentationError: 抠图失败
        """

    @abstractmethod
    async def health_check(self) -> bool:
        """检查服务是否可用."""

    async def close(self) -> None:
        """释放资源."""

    async def __aenter__(self) -> "BaseBackgroundRemover":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
