"""Tests for the streaming facade — dispatch by provider kind, adapter registry."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import respx

from chat_studio.adapters.base import ProviderConfigError
from chat_studio.adapters.gemini import GeminiAdapter
from chat_studio.adapters.openai_compat import OpenAICompatibleAdapter
from chat_studio.config import ProviderKind
from chat_studio.streaming import (
    generate_image,
    get_adapter,
    register_adapter,
    register_image_adapter,
    stream_chat_response,
)
from tests.conftest import MOCK_COMPLETIONS_URL, make_gemini_client, sse_body


def mock_adapter(reply: str = "reply") -> MagicMock:
    adapter = MagicMock()
    adapter.stream = AsyncMock(return_value=reply)
    return adapter


# ─────────────────────────────────────────────────────────────────────
# Registry
# ─────────────────────────────────────────────────────────────────────


class TestRegistry:
    def test_default_adapters_created_lazily(self):
        assert isinstance(get_adapter(ProviderKind.MANAGED), GeminiAdapter)
        assert isinstance(get_adapter(ProviderKind.OPENAI_COMPATIBLE), OpenAICompatibleAdapter)

    def test_default_adapter_reused(self):
        assert get_adapter(ProviderKind.MANAGED) is get_adapter(ProviderKind.MANAGED)

    def test_registered_adapter_wins(self):
        adapter = mock_adapter()
        register_adapter(ProviderKind.MANAGED, adapter)
        assert get_adapter(ProviderKind.MANAGED) is adapter


# ─────────────────────────────────────────────────────────────────────
# Dispatch
# ─────────────────────────────────────────────────────────────────────


class TestDispatch:
    @pytest.mark.asyncio
    async def test_managed_routes_to_managed_adapter(self, managed_provider, sample_history):
        managed, compat = mock_adapter("from gemini"), mock_adapter()
        register_adapter(ProviderKind.MANAGED, managed)
        register_adapter(ProviderKind.OPENAI_COMPATIBLE, compat)
        on_chunk = MagicMock()

        result = await stream_chat_response(
            sample_history, "Hi", ["img"], managed_provider, on_chunk=on_chunk
        )

        assert result == "from gemini"
        managed.stream.assert_awaited_once_with(
            sample_history, "Hi", ["img"], managed_provider,
            on_chunk=on_chunk, should_stop=None,
        )
        compat.stream.assert_not_called()

    @pytest.mark.asyncio
    async def test_compatible_routes_to_compatible_adapter(self, compat_provider):
        managed, compat = mock_adapter(), mock_adapter("from http")
        register_adapter(ProviderKind.MANAGED, managed)
        register_adapter(ProviderKind.OPENAI_COMPATIBLE, compat)

        assert await stream_chat_response([], "Hi", [], compat_provider) == "from http"
        managed.stream.assert_not_called()

    @pytest.mark.asyncio
    @respx.mock(assert_all_called=False)
    async def test_managed_never_fetches_http(self, monkeypatch, managed_provider, chunk_recorder):
        monkeypatch.setenv("GEMINI_API_KEY", "k")
        route = respx.post(MOCK_COMPLETIONS_URL).mock(
            return_value=httpx.Response(200, content=sse_body("no"))
        )
        register_adapter(
            ProviderKind.MANAGED,
            GeminiAdapter(client_factory=lambda key: make_gemini_client(["Hi", "Hi there!"])),
        )

        result = await stream_chat_response([], "Hi", [], managed_provider, on_chunk=chunk_recorder)

        assert result == "Hi there!"
        assert not route.called
        assert len(respx.calls) == 0

    @pytest.mark.asyncio
    @respx.mock
    async def test_compatible_never_touches_sdk(self, compat_provider, chunk_recorder):
        respx.post(MOCK_COMPLETIONS_URL).mock(
            return_value=httpx.Response(200, content=sse_body("Hi", " there"))
        )
        factory = MagicMock()
        register_adapter(ProviderKind.MANAGED, GeminiAdapter(client_factory=factory))

        result = await stream_chat_response([], "Hi", [], compat_provider, on_chunk=chunk_recorder)

        assert result == "Hi there"
        assert chunk_recorder.received == ["Hi", "Hi there"]
        factory.assert_not_called()


class TestProviderValidation:
    @pytest.mark.asyncio
    async def test_user_managed_provider_needs_own_key(self, monkeypatch, managed_provider):
        monkeypatch.setenv("GEMINI_API_KEY", "env-system-key")
        factory = MagicMock()
        register_adapter(ProviderKind.MANAGED, GeminiAdapter(client_factory=factory))
        provider = managed_provider.model_copy(update={"id": "my-gemini", "is_system": False})

        with pytest.raises(ProviderConfigError, match="api_key"):
            await stream_chat_response([], "Hi", [], provider)

        factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_user_managed_provider_with_own_key(self, monkeypatch, managed_provider):
        monkeypatch.setenv("GEMINI_API_KEY", "env-system-key")
        factory = MagicMock(return_value=make_gemini_client(["ok"]))
        register_adapter(ProviderKind.MANAGED, GeminiAdapter(client_factory=factory))
        provider = managed_provider.model_copy(update={"is_system": False, "api_key": "user-key"})

        assert await stream_chat_response([], "Hi", [], provider) == "ok"
        factory.assert_called_once_with("user-key")

    @pytest.mark.asyncio
    @respx.mock(assert_all_called=False)
    async def test_blank_compatible_key_rejected_without_request(self, compat_provider):
        route = respx.post(MOCK_COMPLETIONS_URL).mock(
            return_value=httpx.Response(200, content=sse_body("no"))
        )
        provider = compat_provider.model_copy(update={"api_key": "   "})

        with pytest.raises(ProviderConfigError):
            await stream_chat_response([], "Hi", [], provider)

        assert not route.called

    @pytest.mark.asyncio
    async def test_invalid_provider_never_reaches_registered_adapter(self, compat_provider):
        adapter = mock_adapter()
        register_adapter(ProviderKind.OPENAI_COMPATIBLE, adapter)

        with pytest.raises(ProviderConfigError):
            await stream_chat_response(
                [], "Hi", [], compat_provider.model_copy(update={"base_url": None})
            )

        adapter.stream.assert_not_called()


# ─────────────────────────────────────────────────────────────────────
# Image generation
# ─────────────────────────────────────────────────────────────────────


class TestGenerateImage:
    @pytest.mark.asyncio
    async def test_routes_to_image_adapter(self):
        image_adapter = MagicMock()
        image_adapter.generate_image = AsyncMock(return_value="data:image/jpeg;base64,AAAA")
        register_image_adapter(image_adapter)

        assert await generate_image("a cat", "3:4") == "data:image/jpeg;base64,AAAA"
        image_adapter.generate_image.assert_awaited_once_with("a cat", "3:4")

    @pytest.mark.asyncio
    async def test_default_aspect_ratio(self):
        image_adapter = MagicMock()
        image_adapter.generate_image = AsyncMock(return_value="data:,")
        register_image_adapter(image_adapter)

        await generate_image("a cat")

        image_adapter.generate_image.assert_awaited_once_with("a cat", "1:1")
