"""服务层模块."""

from src.services.background_removal import (
    BackgroundRemoverType,
    BaseBackgroundRemover,
    ExternalAPIRemover,
    get_background_remover,
    reset_background_remover_cache,
)

__all__ = [
    # 抠图服务
    "BackgroundRemoverType",
    "BaseBackgroundRemover",
    "ExternalAPIRemover",
    "get_background_remover",
    "reset_background_remover_cache",
]
