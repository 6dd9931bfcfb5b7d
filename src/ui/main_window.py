"""主窗口模块.

布局结构:
    ┌─────────────────────────────────────────────────────┐
    │                       工具栏                         │
    ├─────────────────────────────────┬───────────────────┤
    │                                 │                   │
    │            预览区域              │    文字图层面板    │
    │                                 │                   │
    ├─────────────────────────────────┴───────────────────┤
    │                       状态栏                         │
    └─────────────────────────────────────────────────────┘
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

from PyQt6.QtCore import QSize, Qt
from PyQt6.QtGui import QAction, QCloseEvent, QKeySequence
from PyQt6.QtWidgets import (
    QApplication,
    QFileDialog,
    QFrame,
    QLabel,
    QMainWindow,
    QPushButton,
    QSplitter,
    QStatusBar,
    QToolBar,
    QVBoxLayout,
    QWidget,
)

from src.core.segmentation_worker import SegmentationWorker
from src.core.session import EditorSession
from src.ui.widgets.preview_canvas import PreviewCanvas
from src.ui.widgets.text_layer_panel import TextLayerPanel
from src.utils.constants import APP_NAME, APP_VERSION, DEFAULT_EXPORT_DIR, IMAGE_FILE_FILTER
from src.utils.error_handler import get_user_friendly_message
from src.utils.exceptions import AppException, LayerError
from src.utils.logger import setup_logger

logger = setup_logger(__name__)

# 窗口尺寸
WINDOW_MIN_WIDTH = 900
WINDOW_MIN_HEIGHT = 600


class MainWindow(QMainWindow):
    """应用主窗口.

    所有项目状态都由编辑会话持有，窗口只负责把用户操作转交给会话，
    并在会话状态变化后刷新预览和图层面板。

    Attributes:
        session: 编辑会话
        canvas: 预览画布
        layer_panel: 文字图层面板
    """

    def __init__(
        self,
        session: Optional[EditorSession] = None,
        export_dir: Optional[Path] = None,
    ) -> None:
        """初始化主窗口.

        Args:
            session: 编辑会话，None 时创建不带抠图服务的会话
            export_dir: 导出目录
        """
        super().__init__()

        self._session = session or EditorSession()
        self._export_dir = export_dir or DEFAULT_EXPORT_DIR
        self._workers: list[SegmentationWorker] = []

        # UI 组件引用
        self._toolbar: Optional[QToolBar] = None
        self._statusbar: Optional[QStatusBar] = None
        self._status_label: Optional[QLabel] = None

        # Action 引用
        self._action_upload: Optional[QAction] = None
        self._action_save: Optional[QAction] = None

        self._setup_window()
        self._setup_actions()
        self._setup_toolbar()
        self._setup_central_widget()
        self._setup_statusbar()
        self._connect_signals()
        self._update_actions_state()

        logger.debug("主窗口初始化完成")

    # ========================
    # 属性
    # ========================

    @property
    def session(self) -> EditorSession:
        """编辑会话."""
        return self._session

    @property
    def canvas(self) -> PreviewCanvas:
        """预览画布."""
        return self._canvas

    @property
    def layer_panel(self) -> TextLayerPanel:
        """文字图层面板."""
        return self._layer_panel

    @property
    def upload_action(self) -> QAction:
        """上传操作."""
        return self._action_upload

    @property
    def save_action(self) -> QAction:
        """保存操作."""
        return self._action_save

    @property
    def add_text_button(self) -> QPushButton:
        """新增文字按钮."""
        return self._add_text_btn

    # ========================
    # 初始化方法
    # ========================

    def _setup_window(self) -> None:
        """设置窗口属性."""
        self.setWindowTitle(f"{APP_NAME} v{APP_VERSION}")
        self.setMinimumSize(WINDOW_MIN_WIDTH, WINDOW_MIN_HEIGHT)
        self.resize(1280, 800)
        self._center_window()

    def _center_window(self) -> None:
        """将窗口居中显示."""
        screen = QApplication.primaryScreen()
        if screen:
            window_geometry = self.frameGeometry()
            window_geometry.moveCenter(screen.availableGeometry().center())
            self.move(window_geometry.topLeft())

    def _setup_actions(self) -> None:
        """创建操作."""
        self._action_upload = QAction("Upload image", self)
        self._action_upload.setShortcut(QKeySequence.StandardKey.Open)
        self._action_upload.triggered.connect(self._on_upload)

        self._action_save = QAction("Save image", self)
        self._action_save.setShortcut(QKeySequence.StandardKey.Save)
        self._action_save.triggered.connect(self._on_save)

    def _setup_toolbar(self) -> None:
        """设置工具栏."""
        self._toolbar = QToolBar("Main toolbar")
        self._toolbar.setMovable(False)
        self._toolbar.setIconSize(QSize(24, 24))
        self.addToolBar(self._toolbar)

        self._toolbar.addAction(self._action_upload)
        self._toolbar.addSeparator()
        self._toolbar.addAction(self._action_save)

    def _setup_central_widget(self) -> None:
        """设置中央区域."""
        splitter = QSplitter(Qt.Orientation.Horizontal)
        self.setCentralWidget(splitter)

        self._canvas = PreviewCanvas()
        splitter.addWidget(self._canvas)

        right_panel = QFrame()
        right_layout = QVBoxLayout(right_panel)
        right_layout.setContentsMargins(8, 8, 8, 8)

        self._add_text_btn = QPushButton("Add new text set")
        right_layout.addWidget(self._add_text_btn)

        self._layer_panel = TextLayerPanel()
        right_layout.addWidget(self._layer_panel, 1)

        splitter.addWidget(right_panel)
        splitter.setSizes([900, 380])
        right_panel.setMinimumWidth(320)

    def _setup_statusbar(self) -> None:
        """设置状态栏."""
        self._statusbar = QStatusBar()
        self.setStatusBar(self._statusbar)

        self._status_label = QLabel("Ready")
        self._statusbar.addWidget(self._status_label, 1)

    def _connect_signals(self) -> None:
        """连接信号槽."""
        self._add_text_btn.clicked.connect(self._on_add_text)
        self._layer_panel.attribute_changed.connect(self._on_attribute_changed)
        self._layer_panel.duplicate_requested.connect(self._on_duplicate_text)
        self._layer_panel.remove_requested.connect(self._on_remove_text)

    def _update_actions_state(self) -> None:
        """更新操作按钮状态."""
        has_background = self._session.project.has_background
        self._add_text_btn.setEnabled(has_background)
        self._action_save.setEnabled(self._session.can_export())

    # ========================
    # 公共方法
    # ========================

    def show_status_message(self, message: str, timeout: int = 3000) -> None:
        """在状态栏显示临时消息.

        Args:
            message: 消息内容
            timeout: 显示时长(毫秒)，0表示永久
        """
        if self._statusbar:
            self._statusbar.showMessage(message, timeout)

    def handle_exception(self, exception: Exception) -> None:
        """将异常转换为用户提示显示在状态栏."""
        logger.error(f"操作失败: {exception}")
        self.show_status_message(get_user_friendly_message(exception), 5000)

    def open_image(self, path: Path | str) -> bool:
        """打开图片并开始抠图.

        Args:
            path: 图片路径

        Returns:
            是否成功开始新项目
        """
        try:
            generation = self._session.upload_image(path)
        except AppException as e:
            self.handle_exception(e)
            return False
        if generation is None:
            return False

        scene = self._canvas.preview_scene
        scene.clear_project()
        scene.set_background(self._session.project.background)
        self._canvas.set_loading(True)
        self._canvas.fit_to_view()
        self.refresh()

        remover = self._session.remover
        background = self._session.project.background
        if remover is None or background is None:
            self._session.skip_segmentation()
            self._on_setup_finished()
            return True

        worker = SegmentationWorker(remover, background.data, generation, self)
        worker.succeeded.connect(self._on_segmentation_succeeded)
        worker.failed.connect(self._on_segmentation_failed)
        worker.finished.connect(lambda: self._on_worker_finished(worker))
        self._workers.append(worker)
        worker.start()
        self._status_label.setText("Removing background...")
        return True

    def save_image(self) -> Optional[Path]:
        """合成并导出当前项目.

        Returns:
            导出文件路径，条件不满足或失败时返回 None
        """
        try:
            path = asyncio.run(self._session.save_composite_image(self._export_dir))
        except (AppException, OSError) as e:
            self.handle_exception(e)
            return None

        if path is not None:
            self.show_status_message(f"Saved to {path}")
        return path

    def refresh(self) -> None:
        """按会话状态刷新预览与面板."""
        layers = self._session.text_layers
        self._canvas.preview_scene.sync_text_layers(layers)
        if self._canvas.is_loading:
            self._canvas.set_loading(True)
        self._layer_panel.set_layers(layers)
        self._update_actions_state()

    # ========================
    # 槽函数
    # ========================

    def _on_upload(self) -> None:
        """选择并上传图片."""
        path, _ = QFileDialog.getOpenFileName(
            self,
            "Upload image",
            str(Path.home()),
            IMAGE_FILE_FILTER,
        )
        if path:
            self.open_image(path)

    def _on_save(self) -> None:
        """保存图片."""
        self.save_image()

    def _on_add_text(self) -> None:
        """新增文字图层."""
        self._session.add_new_text_set()
        self.refresh()

    def _on_duplicate_text(self, layer_id: int) -> None:
        """复制文字图层."""
        self._session.duplicate_text_set(layer_id)
        self.refresh()

    def _on_remove_text(self, layer_id: int) -> None:
        """删除文字图层."""
        self._session.remove_text_set(layer_id)
        self.refresh()

    def _on_attribute_changed(self, layer_id: int, key: str, value: Any) -> None:
        """修改文字图层属性."""
        try:
            self._session.handle_attribute_change(layer_id, key, value)
        except LayerError as e:
            self.handle_exception(e)
        self.refresh()

    def _on_segmentation_succeeded(self, generation: int, cutout: bytes) -> None:
        """抠图成功."""
        if self._session.apply_segmentation_result(generation, cutout):
            self._on_setup_finished()

    def _on_segmentation_failed(self, generation: int, error: Exception) -> None:
        """抠图失败，以无前景方式继续."""
        if self._session.apply_segmentation_failure(generation, error):
            self._on_setup_finished()

    def _on_setup_finished(self) -> None:
        """抠图结束（成功、失败或跳过）."""
        self._canvas.preview_scene.set_foreground(self._session.project.foreground)
        self._canvas.set_loading(False)
        self.refresh()

        if self._session.last_error:
            self._status_label.setText(self._session.last_error)
        else:
            self._status_label.setText("Ready")

    def _on_worker_finished(self, worker: SegmentationWorker) -> None:
        if worker in self._workers:
            self._workers.remove(worker)
        worker.deleteLater()

    # ========================
    # 事件处理
    # ========================

    def closeEvent(self, event: QCloseEvent) -> None:
        """窗口关闭事件."""
        # 窗口销毁前必须等线程退出，请求时长受抠图服务超时限制
        for worker in list(self._workers):
            worker.succeeded.disconnect()
            worker.failed.disconnect()
            worker.finished.disconnect()
            if worker.isRunning():
                logger.info(f"等待抠图线程结束: 代数 {worker.generation}")
                worker.wait()
        self._workers.clear()
        logger.info("主窗口关闭")
        event.accept()
