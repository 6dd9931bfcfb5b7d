"""外部API抠图服务实现.

调用外部抠图API，API 返回蒙版（白色=主体，黑色=透明），
将蒙版作为 alpha 通道应用到原图，得到前景抠图 PNG。
"""

from __future__ import annotations

import asyncio
import base64
import io
from typing import Any, Optional

import httpx
from PIL import Image, UnidentifiedImageError

from src.services.background_removal.base import (
    BackgroundRemoverType,
    BaseBackgroundRemover,
)
from src.utils.constants import DEFAULT_REMOVER_TIMEOUT
from src.utils.exceptions import APIRequestError, APITimeoutError, SegmentationError
from src.utils.logger import setup_logger

logger = setup_logger(__name__)


class ExternalAPIRemover(BaseBackgroundRemover):
    """外部API抠图服务.

    API 约定:
        - POST {api_url}，表单字段 input_type=base64, image=data URL, return_base64=true
        - 请求头: X-API-Key（可选）
        - 响应: JSON {success, base64 | result_url, error}，或直接返回蒙版图片

    Example:
        >>> remover = ExternalAPIRemover(api_url="http://localhost:5000/api/remove-background")
        >>> cutout = await remover.remove_background(image_bytes)
    """

    remover_type = BackgroundRemoverType.EXTERNAL_API

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        timeout: int = DEFAULT_REMOVER_TIMEOUT,
        proxy: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """初始化外部API抠图服务.

        Args:
            api_url: API 服务地址
            api_key: API 密钥
            timeout: 请求超时时间（秒）
            proxy: 代理设置
            transport: 自定义传输层（测试时注入）
        """
        self._api_url = api_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._proxy = proxy
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None
        self._http_client_loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def http_client(self) -> httpx.AsyncClient:
        """获取 HTTP 客户端.

        客户端绑定创建时的事件循环，循环变化后重新创建。
        """
        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None

        if self._http_client is not None and (
            self._http_client_loop is not current_loop
            or (current_loop is not None and current_loop.is_closed())
        ):
            logger.debug("事件循环已改变，重新创建 HTTP 客户端")
            self._http_client = None

        if self._http_client is None:
            transport = self._transport
            if transport is None and self._proxy:
                transport = httpx.AsyncHTTPTransport(proxy=self._proxy)
            self._http_client = httpx.AsyncClient(timeout=self._timeout, transport=transport)
            self._http_client_loop = current_loop
        return self._http_client

    @property
    def _headers(self) -> dict[str, str]:
        return {"X-API-Key": self._api_key} if self._api_key else {}

    async def remove_background(self, image: bytes) -> bytes:
        """去除图片背景.

        Args:
            image: 输入图片字节数据

        Returns:
            透明背景 PNG 字节数据

        Raises:
            APIRequestError: API请求失败
            APITimeoutError: 请求超时
            SegmentationError: 处理失败
        """
        logger.info(f"开始调用外部抠图服务: {self._api_url}")

        data_url = "data:image/png;base64," + base64.b64encode(image).decode("ascii")
        form_data = {
            "input_type": "base64",
            "image": data_url,
            "return_base64": "true",
        }

        try:
            response = await self.http_client.post(
                self._api_url,
                data=form_data,
                headers=self._headers,
            )
            if response.status_code != 200:
                error_msg = self._extract_error(response)
                logger.error(f"外部抠图服务返回错误: {error_msg}")
                raise APIRequestError(error_msg, response.status_code)

            mask_bytes = await self._read_mask(response)

        except httpx.TimeoutException as e:
            logger.error(f"外部抠图服务请求超时: {self._timeout}s")
            raise APITimeoutError(self._timeout) from e

        except httpx.HTTPError as e:
            logger.error(f"无法连接到外部抠图服务: {e}")
            raise APIRequestError(f"无法连接到抠图服务: {e}") from e

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, apply_mask, image, mask_bytes)
        logger.info(f"外部抠图完成，输出大小: {len(result)} bytes")
        return result

    @staticmethod
    def _extract_error(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text or f"API请求失败: {response.status_code}"
        if isinstance(payload, dict) and payload.get("error"):
            return str(payload["error"])
        return f"API请求失败: {response.status_code}"

    async def _read_mask(self, response: httpx.Response) -> bytes:
        """从API响应获取蒙版图片."""
        if response.headers.get("content-type", "").startswith("image/"):
            return response.content

        try:
            result: dict[str, Any] = response.json()
        except ValueError as e:
            raise SegmentationError("抠图服务返回了无法解析的响应") from e

        if not result.get("success", False):
            raise SegmentationError(f"抠图失败: {result.get('error', '未知错误')}")

        if result.get("base64"):
            b64_data: str = result["base64"]
            if b64_data.startswith("data:"):
                b64_data = b64_data.split(",", 1)[1]
            return base64.b64decode(b64_data)

        if result.get("result_url"):
            url: str = result["result_url"]
            if url.startswith("/"):
                url = "/".join(self._api_url.split("/")[:3]) + url
            download = await self.http_client.get(url, headers=self._headers)
            if download.status_code != 200:
                raise SegmentationError(f"下载蒙版图片失败: {download.status_code}")
            return download.content

        raise SegmentationError("API响应中没有找到蒙版图片")

    async def health_check(self) -> bool:
        """检查服务是否可用."""
        try:
            response = await self.http_client.options(self._api_url, headers=self._headers)
        except httpx.HTTPError as e:
            logger.warning(f"外部抠图服务健康检查失败: {e}")
            return False
        # 405 也说明服务可达
        return response.status_code in (200, 204, 405)

    async def close(self) -> None:
        """关闭 HTTP 客户端."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
            logger.debug("外部抠图服务 HTTP 客户端已关闭")


def apply_mask(original_image: bytes, mask_image: bytes) -> bytes:
    """将蒙版作为 alpha 通道应用到原图.

    白色(255)=保留主体，黑色(0)=透明。

    Args:
        original_image: 原始图片字节数据
        mask_image: 蒙版图片字节数据

    Returns:
        透明背景 PNG 字节数据
    """
    try:
        original = Image.open(io.BytesIO(original_image)).convert("RGBA")
        mask = Image.open(io.BytesIO(mask_image)).convert("L")
    except (UnidentifiedImageError, OSError) as e:
        raise SegmentationError(f"无法解析抠图结果: {e}") from e

    if mask.size != original.size:
        mask = mask.resize(original.size, Image.Resampling.LANCZOS)

    original.putalpha(mask)

    output = io.BytesIO()
    original.save(output, format="PNG", optimize=True)
    return output.getvalue()
