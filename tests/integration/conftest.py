"""集成测试配置和共享 fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.config_manager import ConfigManager
from src.services.background_removal import BaseBackgroundRemover


@pytest.fixture
def config_manager():
    """创建全新的配置管理器实例."""
    ConfigManager._instance = None
    manager = ConfigManager()
    yield manager
    ConfigManager._instance = None


@pytest.fixture
def mock_remover(cutout_bytes: bytes) -> MagicMock:
    """返回固定抠图结果的抠图服务."""
    remover = MagicMock(spec=BaseBackgroundRemover)
    remover.remove_background = AsyncMock(return_value=cutout_bytes)
    remover.close = AsyncMock()
    return remover
