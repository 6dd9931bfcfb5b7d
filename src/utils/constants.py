"""应用常量定义."""

from pathlib import Path

# ===================
# 应用信息
# ===================
APP_NAME = "Text Behind Image"
APP_VERSION = "0.1.0"

# ===================
# 路径常量
# ===================
# 应用数据目录
APP_DATA_DIR = Path.home() / ".text-behind-image"

# 日志目录
LOG_DIR = APP_DATA_DIR / "logs"

# 默认导出目录
DEFAULT_EXPORT_DIR = Path.home() / "Downloads"

# ===================
# 上传设置
# ===================
# 支持的上传格式
SUPPORTED_IMAGE_FORMATS = {".jpg", ".jpeg", ".png"}

# 文件选择对话框过滤器
IMAGE_FILE_FILTER = "Images (*.jpg *.jpeg *.png)"

# ===================
# 导出设置
# ===================
EXPORT_FILENAME = "text-behind-image.png"
EXPORT_MIME_TYPE = "image/png"
EXPORT_FORMAT = "PNG"

# ===================
# 缩放标定
# ===================
# 字号单位基准，scale = font_size_units / BASE_FONT_SIZE
BASE_FONT_SIZE = 200

# 预览字号：scale * 800（百分比单位）
PREVIEW_FONT_PERCENT = 800

# 导出字号：scale * 1600 + scale^2 * 340（像素）
EXPORT_FONT_LINEAR = 1600
EXPORT_FONT_QUADRATIC = 340

# ===================
# 文字图层默认值
# ===================
DEFAULT_TEXT = "edit"
DEFAULT_FONT_FAMILY = "Inter"
DEFAULT_TEXT_COLOR = "white"
DEFAULT_FONT_WEIGHT = 800
DEFAULT_OPACITY = 1.0
DEFAULT_SHADOW_COLOR = "rgba(0, 0, 0, 0.8)"
DEFAULT_SHADOW_SIZE = 4

# ===================
# 抠图服务
# ===================
DEFAULT_REMOVER_TIMEOUT = 120  # 秒
