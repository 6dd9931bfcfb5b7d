"""错误处理工具模块.

提供统一的错误处理机制和用户友好的错误消息。
"""

from __future__ import annotations

from typing import Any

from src.utils.exceptions import (
    APIRequestError,
    APITimeoutError,
    AppException,
    ConfigError,
    ImageCorruptedError,
    ImageNotFoundError,
    ImageProcessError,
    LayerError,
    SegmentationError,
    UnsupportedImageFormatError,
)
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


# 错误消息映射（按匹配顺序，子类在前）
ERROR_MESSAGES: dict[type[Exception], str] = {
    APITimeoutError: "Background removal timed out, the image will be used without a cutout",
    APIRequestError: "Background removal service is unavailable, please try again later",
    SegmentationError: "Background removal failed, the image will be used without a cutout",
    UnsupportedImageFormatError: "Unsupported file type, please choose a .jpg, .jpeg or .png image",
    ImageNotFoundError: "The selected image could not be found",
    ImageCorruptedError: "The selected image is damaged or unreadable",
    ImageProcessError: "Image processing failed",
    LayerError: "Invalid text layer setting",
    ConfigError: "Configuration error, please check your settings",
}


def get_user_friendly_message(exception: Exception) -> str:
    """获取用户友好的错误消息.

    Args:
        exception: 异常对象

    Returns:
        用户友好的错误消息
    """
    for exc_type, message in ERROR_MESSAGES.items():
        if isinstance(exception, exc_type):
            return message

    if isinstance(exception, AppException):
        return exception.message

    return "Something went wrong, please try again"


def get_error_details(exception: Exception) -> dict[str, Any]:
    """获取错误详细信息.

    Args:
        exception: 异常对象

    Returns:
        包含错误详情的字典
    """
    details: dict[str, Any] = {
        "type": type(exception).__name__,
        "message": str(exception),
        "user_message": get_user_friendly_message(exception),
    }

    if isinstance(exception, AppException):
        details["code"] = exception.code

    if isinstance(exception, APIRequestError) and exception.status_code:
        details["status_code"] = exception.status_code

    return details


def handle_exception(
    exception: Exception,
    context: str = "",
    reraise: bool = True,
    log_traceback: bool = True,
) -> None:
    """统一异常处理.

    Args:
        exception: 异常对象
        context: 上下文描述
        reraise: 是否重新抛出异常
        log_traceback: 是否记录堆栈跟踪
    """
    msg = "异常发生"
    if context:
        msg = f"{context}: {msg}"

    if log_traceback:
        logger.exception(f"{msg}: {exception}")
    else:
        logger.error(f"{msg}: {exception}")

    if reraise:
        raise exception
