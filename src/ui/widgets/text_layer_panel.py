"""文字图层属性面板.

每个文字图层对应一个属性编辑器，控件与图层字段一一对应。
控件修改只发出信号，由主窗口交给编辑会话处理，面板本身不持有图层状态。

Features:
    - 文字、字体、字号、字重、颜色、不透明度编辑
    - 位置偏移与旋转编辑
    - 阴影颜色与大小编辑
    - 复制、删除图层
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtWidgets import (
    QComboBox,
    QDoubleSpinBox,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QScrollArea,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from src.models.text_layer import TextLayer
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


# ===================
# 常量定义
# ===================

FONT_FAMILIES = [
    "Inter",
    "Arial",
    "Helvetica",
    "Verdana",
    "Georgia",
    "Times New Roman",
    "Courier New",
    "Impact",
]

FONT_WEIGHTS = [100, 200, 300, 400, 500, 600, 700, 800, 900]

# 控件范围 (min, max, step, decimals)
FONT_SIZE_RANGE = (1.0, 2000.0, 10.0, 0)
OPACITY_RANGE = (0.0, 1.0, 0.05, 2)
OFFSET_RANGE = (-1000.0, 1000.0, 1.0, 1)
ROTATION_RANGE = (-360.0, 360.0, 1.0, 1)
SHADOW_SIZE_RANGE = (0.0, 100.0, 1.0, 1)


def _double_spin(value_range: tuple[float, float, float, int]) -> QDoubleSpinBox:
    min_val, max_val, step, decimals = value_range
    spin = QDoubleSpinBox()
    spin.setRange(min_val, max_val)
    spin.setSingleStep(step)
    spin.setDecimals(decimals)
    spin.setKeyboardTracking(False)
    return spin


# ===================
# 单个图层编辑器
# ===================


class TextLayerEditor(QGroupBox):
    """单个文字图层的属性编辑器.

    Signals:
        attribute_changed: 属性变更 (layer_id, key, value)
        duplicate_requested: 请求复制 (layer_id)
        remove_requested: 请求删除 (layer_id)
    """

    attribute_changed = pyqtSignal(int, str, object)
    duplicate_requested = pyqtSignal(int)
    remove_requested = pyqtSignal(int)

    def __init__(self, layer: TextLayer, parent: Optional[QWidget] = None) -> None:
        """初始化编辑器.

        Args:
            layer: 文字图层
            parent: 父组件
        """
        super().__init__(parent)
        self._layer_id = layer.id
        self._setup_ui()
        self._connect_signals()
        self.set_layer(layer)

    @property
    def layer_id(self) -> int:
        """图层ID."""
        return self._layer_id

    def _setup_ui(self) -> None:
        """设置UI."""
        self.setTitle(f"Text {self._layer_id}")
        form = QFormLayout(self)
        form.setContentsMargins(8, 8, 8, 8)
        form.setSpacing(6)

        self.text_edit = QLineEdit()
        form.addRow("Text", self.text_edit)

        self.font_family_combo = QComboBox()
        self.font_family_combo.setEditable(True)
        self.font_family_combo.addItems(FONT_FAMILIES)
        form.addRow("Font family", self.font_family_combo)

        self.font_size_spin = _double_spin(FONT_SIZE_RANGE)
        form.addRow("Text size", self.font_size_spin)

        self.font_weight_spin = QSpinBox()
        self.font_weight_spin.setRange(FONT_WEIGHTS[0], FONT_WEIGHTS[-1])
        self.font_weight_spin.setSingleStep(100)
        self.font_weight_spin.setKeyboardTracking(False)
        form.addRow("Font weight", self.font_weight_spin)

        self.color_edit = QLineEdit()
        self.color_edit.setPlaceholderText("white, #ff0000, rgba(0, 0, 0, 0.5)")
        form.addRow("Text color", self.color_edit)

        self.opacity_spin = _double_spin(OPACITY_RANGE)
        form.addRow("Text opacity", self.opacity_spin)

        self.left_spin = _double_spin(OFFSET_RANGE)
        form.addRow("X position", self.left_spin)

        self.top_spin = _double_spin(OFFSET_RANGE)
        form.addRow("Y position", self.top_spin)

        self.rotation_spin = _double_spin(ROTATION_RANGE)
        form.addRow("Rotation", self.rotation_spin)

        self.shadow_color_edit = QLineEdit()
        form.addRow("Shadow color", self.shadow_color_edit)

        self.shadow_size_spin = _double_spin(SHADOW_SIZE_RANGE)
        form.addRow("Shadow size", self.shadow_size_spin)

        buttons = QHBoxLayout()
        self.duplicate_btn = QPushButton("Duplicate")
        self.remove_btn = QPushButton("Remove")
        buttons.addStretch()
        buttons.addWidget(self.duplicate_btn)
        buttons.addWidget(self.remove_btn)
        form.addRow(buttons)

    def _connect_signals(self) -> None:
        """连接信号."""
        self.text_edit.textEdited.connect(lambda v: self._emit("text", v))
        self.font_family_combo.currentTextChanged.connect(
            lambda v: self._emit("font_family", v)
        )
        self.font_size_spin.valueChanged.connect(lambda v: self._emit("font_size_units", v))
        self.font_weight_spin.valueChanged.connect(lambda v: self._emit("font_weight", v))
        self.color_edit.editingFinished.connect(
            lambda: self._emit("color", self.color_edit.text().strip())
        )
        self.opacity_spin.valueChanged.connect(lambda v: self._emit("opacity", v))
        self.left_spin.valueChanged.connect(lambda v: self._emit("left", v))
        self.top_spin.valueChanged.connect(lambda v: self._emit("top", v))
        self.rotation_spin.valueChanged.connect(lambda v: self._emit("rotation", v))
        self.shadow_color_edit.editingFinished.connect(self._on_shadow_color_edited)
        self.shadow_size_spin.valueChanged.connect(lambda v: self._emit("shadow_size", v))

        self.duplicate_btn.clicked.connect(
            lambda: self.duplicate_requested.emit(self._layer_id)
        )
        self.remove_btn.clicked.connect(lambda: self.remove_requested.emit(self._layer_id))

    def _emit(self, key: str, value: Any) -> None:
        self.attribute_changed.emit(self._layer_id, key, value)

    def _on_shadow_color_edited(self) -> None:
        # 空值表示不设置阴影颜色
        value = self.shadow_color_edit.text().strip()
        self._emit("shadow_color", value or None)

    def set_layer(self, layer: TextLayer) -> None:
        """从图层数据刷新控件（不发出信号）."""
        widgets = (
            self.text_edit,
            self.font_family_combo,
            self.font_size_spin,
            self.font_weight_spin,
            self.color_edit,
            self.opacity_spin,
            self.left_spin,
            self.top_spin,
            self.rotation_spin,
            self.shadow_color_edit,
            self.shadow_size_spin,
        )
        for widget in widgets:
            widget.blockSignals(True)
        try:
            if self.text_edit.text() != layer.text:
                self.text_edit.setText(layer.text)
            if self.font_family_combo.currentText() != layer.font_family:
                self.font_family_combo.setCurrentText(layer.font_family)
            self.font_size_spin.setValue(layer.font_size_units)
            self.font_weight_spin.setValue(layer.font_weight)
            if not self.color_edit.hasFocus():
                self.color_edit.setText(layer.color)
            self.opacity_spin.setValue(layer.opacity)
            self.left_spin.setValue(layer.left)
            self.top_spin.setValue(layer.top)
            self.rotation_spin.setValue(layer.rotation)
            if not self.shadow_color_edit.hasFocus():
                self.shadow_color_edit.setText(layer.shadow_color or "")
            self.shadow_size_spin.setValue(layer.shadow_size or 0.0)
        finally:
            for widget in widgets:
                widget.blockSignals(False)


# ===================
# 图层面板
# ===================


class TextLayerPanel(QWidget):
    """文字图层属性面板.

    图层ID序列变化时重建编辑器，否则只刷新各编辑器的控件值。

    Signals:
        attribute_changed: 属性变更 (layer_id, key, value)
        duplicate_requested: 请求复制 (layer_id)
        remove_requested: 请求删除 (layer_id)
    """

    attribute_changed = pyqtSignal(int, str, object)
    duplicate_requested = pyqtSignal(int)
    remove_requested = pyqtSignal(int)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._editors: list[TextLayerEditor] = []
        self._setup_ui()

    def _setup_ui(self) -> None:
        """设置UI."""
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self._scroll = QScrollArea()
        self._scroll.setWidgetResizable(True)
        self._scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)

        self._container = QWidget()
        self._editors_layout = QVBoxLayout(self._container)
        self._editors_layout.setContentsMargins(4, 4, 4, 4)
        self._editors_layout.setSpacing(8)

        self._empty_label = QLabel("No text layers")
        self._empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._empty_label.setStyleSheet("color: #999;")
        self._editors_layout.addWidget(self._empty_label)
        self._editors_layout.addStretch()

        self._scroll.setWidget(self._container)
        layout.addWidget(self._scroll)

    @property
    def editors(self) -> list[TextLayerEditor]:
        """当前的图层编辑器."""
        return list(self._editors)

    def editor_for(self, layer_id: int) -> Optional[TextLayerEditor]:
        """按图层ID查找编辑器."""
        return next((e for e in self._editors if e.layer_id == layer_id), None)

    def set_layers(self, layers: Sequence[TextLayer]) -> None:
        """与文字图层序列同步."""
        if [e.layer_id for e in self._editors] != [layer.id for layer in layers]:
            self._rebuild(layers)
        else:
            for editor, layer in zip(self._editors, layers):
                editor.set_layer(layer)

    def _rebuild(self, layers: Sequence[TextLayer]) -> None:
        for editor in self._editors:
            self._editors_layout.removeWidget(editor)
            editor.deleteLater()
        self._editors = []

        for index, layer in enumerate(layers):
            editor = TextLayerEditor(layer)
            editor.attribute_changed.connect(self.attribute_changed)
            editor.duplicate_requested.connect(self.duplicate_requested)
            editor.remove_requested.connect(self.remove_requested)
            # 位于空提示之后、弹性空间之前
            self._editors_layout.insertWidget(index + 1, editor)
            self._editors.append(editor)

        self._empty_label.setVisible(not self._editors)
        logger.debug(f"文字图层面板已重建: {len(self._editors)} 个图层")
