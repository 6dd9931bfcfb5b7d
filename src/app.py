"""应用初始化和管理."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from src.utils.logger import setup_logger

if TYPE_CHECKING:
    from src.core.session import EditorSession
    from src.services.background_removal import BaseBackgroundRemover
    from src.ui.main_window import MainWindow

logger = setup_logger(__name__)


class Application:
    """应用管理类.

    负责应用的初始化、配置加载和资源管理。

    Attributes:
        session: 编辑会话
        main_window: 主窗口实例
    """

    def __init__(self) -> None:
        """初始化应用管理器."""
        self._main_window: Optional["MainWindow"] = None
        self._session: Optional["EditorSession"] = None
        self._remover: Optional["BaseBackgroundRemover"] = None
        self._initialized: bool = False

    def initialize(self) -> None:
        """初始化应用.

        执行以下初始化步骤:
        1. 确保应用数据目录存在
        2. 加载配置并配置日志
        3. 初始化抠图服务与编辑会话
        """
        if self._initialized:
            logger.warning("应用已初始化，跳过重复初始化")
            return

        logger.info("开始初始化应用...")

        self._ensure_data_directory()
        self._load_settings()
        self._init_services()

        self._initialized = True
        logger.info("应用初始化完成")

    def _ensure_data_directory(self) -> None:
        """确保应用数据目录存在."""
        from src.utils.constants import APP_DATA_DIR

        APP_DATA_DIR.mkdir(parents=True, exist_ok=True)
        logger.debug(f"数据目录: {APP_DATA_DIR}")

    def _load_settings(self) -> None:
        """加载应用设置."""
        from src.core.config_manager import get_config

        config = get_config()
        config.apply_logging()
        self.settings = config.settings
        logger.debug(f"日志级别: {self.settings.log_level}")

    def _init_services(self) -> None:
        """初始化抠图服务与编辑会话."""
        from src.core.compositor import Compositor
        from src.core.session import EditorSession
        from src.services.background_removal import get_background_remover

        if self.settings.segmentation_enabled:
            self._remover = get_background_remover(
                self.settings.remover_type,
                api_url=self.settings.remover_api_url,
                api_key=self.settings.remover_api_key,
                timeout=self.settings.remover_timeout,
                proxy=self.settings.remover_proxy,
            )
            logger.info(f"抠图服务: {self.settings.remover_api_url}")
        else:
            logger.warning("未配置抠图服务地址，合成时将不包含前景")

        self._session = EditorSession(
            remover=self._remover,
            compositor=Compositor(font_dirs=self.settings.font_dirs),
        )

    def show_main_window(self) -> None:
        """显示主窗口."""
        from src.ui.main_window import MainWindow

        if self._main_window is None:
            self._main_window = MainWindow(self._session, self.settings.export_dir)

        self._main_window.show()
        logger.info("主窗口已显示")

    def cleanup(self) -> None:
        """清理应用资源."""
        logger.info("开始清理应用资源...")
        from src.services.background_removal import reset_background_remover_cache

        reset_background_remover_cache()
        logger.info("应用资源清理完成")

    @property
    def is_initialized(self) -> bool:
        """返回应用是否已初始化."""
        return self._initialized

    @property
    def session(self) -> Optional["EditorSession"]:
        """返回编辑会话."""
        return self._session
