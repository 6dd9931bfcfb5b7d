"""自定义异常类."""

from __future__ import annotations

from typing import Any


class AppException(Exception):
    """应用基础异常类.

    所有自定义异常都应继承此类。

    Attributes:
        message: 错误消息
        code: 错误代码
    """

    def __init__(self, message: str, code: str = "UNKNOWN") -> None:
        """初始化异常.

        Args:
            message: 错误消息
            code: 错误代码
        """
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        """返回异常字符串表示."""
        return f"[{self.code}] {self.message}"


# ===================
# 配置相关异常
# ===================
class ConfigError(AppException):
    """配置错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CONFIG_ERROR")


# ===================
# 抠图服务相关异常
# ===================
class SegmentationError(AppException):
    """抠图服务错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "SEGMENTATION_ERROR")


class APIRequestError(SegmentationError):
    """API 请求错误异常."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        msg = message
        if status_code:
            msg = f"API 请求失败 (HTTP {status_code}): {message}"
        super().__init__(msg)


class APITimeoutError(SegmentationError):
    """API 超时异常."""

    def __init__(self, timeout: int) -> None:
        super().__init__(f"API 请求超时 ({timeout}秒)")


# ===================
# 图片处理相关异常
# ===================
class ImageProcessError(AppException):
    """图片处理错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "IMAGE_PROCESS_ERROR")


class ImageNotFoundError(ImageProcessError):
    """图片文件未找到异常."""

    def __init__(self, path: str) -> None:
        super().__init__(f"图片文件未找到: {path}")


class UnsupportedImageFormatError(ImageProcessError):
    """不支持的图片格式异常."""

    def __init__(self, format: str) -> None:
        super().__init__(f"不支持的图片格式: {format}")


class ImageCorruptedError(ImageProcessError):
    """图片文件损坏异常."""

    def __init__(self, path: str) -> None:
        super().__init__(f"图片文件损坏或无法读取: {path}")


# ===================
# 图层相关异常
# ===================
class LayerError(AppException):
    """图层错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "LAYER_ERROR")


class UnknownLayerAttributeError(LayerError):
    """未知图层属性异常."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"未知的文字图层属性: {key}")


class InvalidLayerValueError(LayerError):
    """图层属性值无效异常."""

    def __init__(self, key: str, value: Any, reason: str = "") -> None:
        self.key = key
        msg = f"属性 '{key}' 的值 {value!r} 无效"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
