"""抠图服务模块.

Example:
    >>> from src.services.background_removal import get_background_remover
    >>> remover = get_background_remover("external_api", api_url="http://localhost:5000/api/remove-background")
    >>> cutout = await remover.remove_background(image_bytes)
"""

from __future__ import annotations

from typing import Optional

from src.services.background_removal.base import (
    BackgroundRemoverType,
    BaseBackgroundRemover,
)
from src.services.background_removal.external_api_remover import ExternalAPIRemover
from src.utils.constants import DEFAULT_REMOVER_TIMEOUT
from src.utils.exceptions import ConfigError

__all__ = [
    "BackgroundRemoverType",
    "BaseBackgroundRemover",
    "ExternalAPIRemover",
    "get_background_remover",
    "reset_background_remover_cache",
]


# 实例缓存
_remover_instances: dict[str, BaseBackgroundRemover] = {}


def get_background_remover(
    remover_type: BackgroundRemoverType | str = BackgroundRemoverType.EXTERNAL_API,
    *,
    api_url: Optional[str] = None,
    api_key: Optional[str] = None,
    timeout: int = DEFAULT_REMOVER_TIMEOUT,
    proxy: Optional[str] = None,
    use_cache: bool = True,
) -> BaseBackgroundRemover:
    """获取抠图服务实例.

    Args:
        remover_type: 抠图服务类型
        api_url: 外部API地址
        api_key: 外部API密钥
        timeout: 请求超时时间（秒）
        proxy: 代理设置
        use_cache: 是否使用缓存的实例

    Returns:
        抠图服务实例

    Raises:
        ConfigError: 类型不支持或缺少必需参数
    """
    if isinstance(remover_type, str):
        try:
            remover_type = BackgroundRemoverType(remover_type)
        except ValueError as e:
            raise ConfigError(f"不支持的抠图服务类型: {remover_type}") from e

    cache_key = f"{remover_type.value}:{api_url or ''}:{api_key or ''}"
    if use_cache and cache_key in _remover_instances:
        return _remover_instances[cache_key]

    if not api_url:
        raise ConfigError("使用外部API抠图服务时必须指定 api_url")
    instance = ExternalAPIRemover(
        api_url=api_url,
        api_key=api_key or "",
        timeout=timeout,
        proxy=proxy,
    )

    if use_cache:
        _remover_instances[cache_key] = instance
    return instance


def reset_background_remover_cache() -> None:
    """重置抠图服务缓存."""
    _remover_instances.clear()
