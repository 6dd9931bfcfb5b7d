"""外部API抠图服务单元测试."""

from __future__ import annotations

import base64
import io
from typing import Callable

import httpx
import pytest
from PIL import Image

from src.services.background_removal import (
    ExternalAPIRemover,
    get_background_remover,
    reset_background_remover_cache,
)
from src.services.background_removal.external_api_remover import apply_mask
from src.utils.exceptions import (
    APIRequestError,
    APITimeoutError,
    ConfigError,
    SegmentationError,
)

API_URL = "http://remover.local/api/remove-background"


# ===================
# Fixtures
# ===================


def encode(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def original() -> bytes:
    """10x10 红色原图."""
    return encode(Image.new("RGB", (10, 10), (255, 0, 0)))


@pytest.fixture
def mask() -> bytes:
    """左半白、右半黑的蒙版."""
    image = Image.new("L", (10, 10), 0)
    image.paste(255, (0, 0, 5, 10))
    return encode(image)


def make_remover(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> ExternalAPIRemover:
    return ExternalAPIRemover(API_URL, transport=httpx.MockTransport(handler), **kwargs)


def assert_half_cutout(data: bytes) -> None:
    image = Image.open(io.BytesIO(data))
    assert image.mode == "RGBA"
    assert image.getpixel((0, 0)) == (255, 0, 0, 255)
    assert image.getpixel((9, 0))[3] == 0


# ===================
# 抠图请求测试
# ===================


class TestExternalAPIRemover:
    """测试外部API抠图服务."""

    @pytest.mark.asyncio
    async def test_base64_response(self, original, mask):
        """JSON base64 响应应应用为透明通道."""
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(
                200,
                json={"success": True, "base64": "data:image/png;base64," + base64.b64encode(mask).decode()},
            )

        remover = make_remover(handler, api_key="secret")
        result = await remover.remove_background(original)
        await remover.close()

        assert_half_cutout(result)
        request = captured[0]
        assert request.method == "POST"
        assert request.headers["X-API-Key"] == "secret"
        body = request.content.decode()
        assert "input_type=base64" in body
        assert "return_base64=true" in body

    @pytest.mark.asyncio
    async def test_no_api_key_header_when_unset(self, original, mask):
        """未设置密钥时不发送请求头."""
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, content=mask, headers={"content-type": "image/png"})

        await make_remover(handler).remove_background(original)
        assert "X-API-Key" not in captured[0].headers

    @pytest.mark.asyncio
    async def test_image_response(self, original, mask):
        """直接返回图片的响应作为蒙版."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=mask, headers={"content-type": "image/png"})

        assert_half_cutout(await make_remover(handler).remove_background(original))

    @pytest.mark.asyncio
    async def test_relative_result_url(self, original, mask):
        """相对 result_url 基于服务地址下载."""
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            if request.method == "POST":
                return httpx.Response(200, json={"success": True, "result_url": "/results/1.png"})
            return httpx.Response(200, content=mask)

        result = await make_remover(handler).remove_background(original)

        assert_half_cutout(result)
        assert requested[1] == "http://remover.local/results/1.png"

    @pytest.mark.asyncio
    async def test_http_error_status(self, original):
        """非 200 响应抛出请求错误."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"error": "model crashed"})

        with pytest.raises(APIRequestError) as exc_info:
            await make_remover(handler).remove_background(original)

        assert exc_info.value.status_code == 500
        assert "model crashed" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_unsuccessful_payload(self, original):
        """success 为 false 时抛出抠图错误."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": False, "error": "no subject"})

        with pytest.raises(SegmentationError, match="no subject"):
            await make_remover(handler).remove_background(original)

    @pytest.mark.asyncio
    async def test_payload_without_mask(self, original):
        """响应中没有蒙版时抛出抠图错误."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": True})

        with pytest.raises(SegmentationError):
            await make_remover(handler).remove_background(original)

    @pytest.mark.asyncio
    async def test_unparseable_payload(self, original):
        """无法解析的响应抛出抠图错误."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>", headers={"content-type": "text/html"})

        with pytest.raises(SegmentationError):
            await make_remover(handler).remove_background(original)

    @pytest.mark.asyncio
    async def test_timeout(self, original):
        """超时转换为超时错误."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(APITimeoutError):
            await make_remover(handler, timeout=5).remove_background(original)

    @pytest.mark.asyncio
    async def test_connection_error(self, original):
        """连接失败转换为请求错误."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(APIRequestError):
            await make_remover(handler).remove_background(original)

    @pytest.mark.asyncio
    async def test_health_check(self):
        """OPTIONS 返回 405 也视为可用."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "OPTIONS"
            return httpx.Response(405)

        assert await make_remover(handler).health_check() is True

    @pytest.mark.asyncio
    async def test_health_check_unreachable(self):
        """无法连接时不可用."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        assert await make_remover(handler).health_check() is False

    @pytest.mark.asyncio
    async def test_context_manager_closes_client(self, original, mask):
        """退出上下文时关闭客户端."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=mask, headers={"content-type": "image/png"})

        async with make_remover(handler) as remover:
            await remover.remove_background(original)
            assert remover._http_client is not None
        assert remover._http_client is None


# ===================
# 蒙版应用测试
# ===================


class TestApplyMask:
    """测试蒙版应用."""

    def test_mask_is_resized(self, original):
        """蒙版尺寸不同时缩放到原图尺寸."""
        small_mask = encode(Image.new("L", (2, 2), 255))
        result = Image.open(io.BytesIO(apply_mask(original, small_mask)))

        assert result.size == (10, 10)
        assert result.getpixel((5, 5)) == (255, 0, 0, 255)

    def test_invalid_mask(self, original):
        """无法解析的蒙版抛出抠图错误."""
        with pytest.raises(SegmentationError):
            apply_mask(original, b"junk")


# ===================
# 工厂函数测试
# ===================


class TestGetBackgroundRemover:
    """测试抠图服务工厂."""

    def setup_method(self):
        reset_background_remover_cache()

    def teardown_method(self):
        reset_background_remover_cache()

    def test_creates_external_remover(self):
        """应创建外部API抠图服务."""
        remover = get_background_remover("external_api", api_url=API_URL)
        assert isinstance(remover, ExternalAPIRemover)

    def test_caches_instances(self):
        """相同配置返回缓存实例."""
        first = get_background_remover(api_url=API_URL)
        second = get_background_remover(api_url=API_URL)
        uncached = get_background_remover(api_url=API_URL, use_cache=False)

        assert first is second
        assert uncached is not first

    def test_missing_url(self):
        """缺少地址时抛出配置错误."""
        with pytest.raises(ConfigError):
            get_background_remover("external_api")

    def test_unknown_type(self):
        """不支持的类型抛出配置错误."""
        with pytest.raises(ConfigError):
            get_background_remover("magic", api_url=API_URL)
