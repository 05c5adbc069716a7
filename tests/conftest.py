"""Shared test fixtures for chat-studio tests."""

import base64
from types import SimpleNamespace
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from chat_studio.config import ConversationTurn, ProviderDescriptor, ProviderKind, Role
from chat_studio.streaming import clear_adapters


# ─────────────────────────────────────────────────────────────────────
# MOCK DATA
# ─────────────────────────────────────────────────────────────────────

MOCK_BASE_URL = "https://api.example.test/v1"
MOCK_COMPLETIONS_URL = f"{MOCK_BASE_URL}/chat/completions"

MOCK_JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"
MOCK_IMAGE_B64 = base64.b64encode(MOCK_JPEG_BYTES).decode("ascii")

MOCK_STREAMING_LINES = [
    'data: {"id":"chatcmpl-1","object":"chat.completion.chunk","choices":[{"index":0,"delta":{"role":"assistant","content":""},"finish_reason":null}]}',
    'data: {"id":"chatcmpl-1","object":"chat.completion.chunk","choices":[{"index":0,"delta":{"content":"The"},"finish_reason":null}]}',
    'data: {"id":"chatcmpl-1","object":"chat.completion.chunk","choices":[{"index":0,"delta":{"content":" capital"},"finish_reason":null}]}',
    'data: {"id":"chatcmpl-1","object":"chat.completion.chunk","choices":[{"index":0,"delta":{"content":" of France"},"finish_reason":null}]}',
    'data: {"id":"chatcmpl-1","object":"chat.completion.chunk","choices":[{"index":0,"delta":{"content":" is Paris."},"finish_reason":null}]}',
    'data: {"id":"chatcmpl-1","object":"chat.completion.chunk","choices":[{"index":0,"delta":{},"finish_reason":"stop"}]}',
    "data: [DONE]",
]


def sse_body(*contents: str) -> str:
    """Build an SSE body with one delta line per content, then [DONE]."""
    lines = [
        f'data: {{"choices":[{{"delta":{{"content":"{c}"}}}}]}}\n\n' for c in contents
    ]
    return "".join(lines) + "data: [DONE]\n\n"


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in the given byte fragments."""

    def __init__(self, chunks: list[bytes]):
        self._chunks = chunks

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk


# ─────────────────────────────────────────────────────────────────────
# FAKE GEMINI CLIENT
# ─────────────────────────────────────────────────────────────────────

def make_gemini_client(texts: list[Optional[str]], error: Optional[Exception] = None) -> MagicMock:
    """Fake genai.Client whose chat stream yields chunks with the given texts."""

    async def chunks():
        for text in texts:
            yield SimpleNamespace(text=text)
        if error is not None:
            raise error

    chat = MagicMock()
    chat.send_message_stream = AsyncMock(side_effect=lambda *a, **kw: chunks())

    client = MagicMock()
    client.aio.chats.create = MagicMock(return_value=chat)
    return client


def make_imagen_client(image_bytes: Optional[bytes] = MOCK_JPEG_BYTES) -> MagicMock:
    """Fake genai.Client whose generate_images returns one image (or none)."""
    if image_bytes is None:
        response = SimpleNamespace(generated_images=[])
    else:
        response = SimpleNamespace(
            generated_images=[SimpleNamespace(image=SimpleNamespace(image_bytes=image_bytes))]
        )
    client = MagicMock()
    client.aio.models.generate_images = AsyncMock(return_value=response)
    return client


# ─────────────────────────────────────────────────────────────────────
# FIXTURES
# ─────────────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def reset_adapters():
    """Each test starts with no registered adapters."""
    clear_adapters()
    yield
    clear_adapters()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep tests away from real keys and the user's provider file."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)
    monkeypatch.setenv("CHAT_STUDIO_PROVIDERS_FILE", str(tmp_path / "providers.json"))


@pytest.fixture
def managed_provider():
    return ProviderDescriptor(
        id="gemini-flash",
        name="Gemini Flash",
        kind=ProviderKind.MANAGED,
        model_id="gemini-2.5-flash",
        is_system=True,
    )


@pytest.fixture
def compat_provider():
    return ProviderDescriptor(
        id="deepseek-chat",
        name="DeepSeek",
        kind=ProviderKind.OPENAI_COMPATIBLE,
        base_url=MOCK_BASE_URL,
        api_key="sk-test-123",
        model_id="deepseek-chat",
    )


@pytest.fixture
def sample_history():
    """Prior turns: text-only user, model reply, user with two images."""
    return [
        ConversationTurn(role=Role.USER, text="Hello"),
        ConversationTurn(role=Role.ASSISTANT, text="Hi! How can I help?"),
        ConversationTurn(
            role=Role.USER, text="What is in these?", images=[MOCK_IMAGE_B64, MOCK_IMAGE_B64]
        ),
        ConversationTurn(role=Role.ASSISTANT, text="Two pictures of a cat."),
    ]


@pytest.fixture
def chunk_recorder():
    """Callback that records every accumulated snapshot it receives."""
    received: list[str] = []

    def on_chunk(text: str) -> None:
        received.append(text)

    on_chunk.received = received
    return on_chunk
