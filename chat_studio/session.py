"""
ChatSession - conversation history plus the in-progress assistant reply.
"""

import asyncio
import logging
from typing import Iterable, Optional, Sequence

from chat_studio.adapters.base import ChunkCallback, StopCheck, StreamCancelled, emit
from chat_studio.config import ConversationTurn, ProviderDescriptor, Role
from chat_studio.streaming import stream_chat_response

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Error: "


class ChatSession:
    """
    Append-only conversation with a single streaming reply at a time.

    Sends are serialized with a lock so two replies never write the
    in-progress turn at once.
    """

    def __init__(self, history: Optional[Iterable[ConversationTurn]] = None):
        self._history: list[ConversationTurn] = list(history or [])
        self.in_progress: Optional[str] = None
        self._lock = asyncio.Lock()

    @property
    def history(self) -> tuple[ConversationTurn, ...]:
        return tuple(self._history)

    @property
    def is_streaming(self) -> bool:
        return self.in_progress is not None

    def clear(self) -> None:
        self._history.clear()
        self.in_progress = None

    async def send(
        self,
        text: str,
        images: Sequence[str],
        provider: ProviderDescriptor,
        on_chunk: Optional[ChunkCallback] = None,
        should_stop: Optional[StopCheck] = None,
    ) -> ConversationTurn:
        """
        Send a user turn and record the reply.

        Failures other than configuration errors are recorded as an
        error-flagged assistant turn and returned rather than raised.

        Raises:
            ValueError: no text and no images
            ProviderConfigError: provider is missing settings
        """
        text = text or ""
        images = list(images or [])
        if not text.strip() and not images:
            raise ValueError("Message is empty")
        provider.validate_for_use()

        async with self._lock:
            prior = self.history
            recorded_images = images if provider.supports_images else []
            self._history.append(
                ConversationTurn(role=Role.USER, text=text, images=recorded_images)
            )
            self.in_progress = ""

            async def track(accumulated: str) -> None:
                self.in_progress = accumulated
                await emit(on_chunk, accumulated)

            try:
                reply = await stream_chat_response(
                    prior, text, images, provider,
                    on_chunk=track,
                    should_stop=should_stop,
                )
                turn = ConversationTurn(role=Role.ASSISTANT, text=reply)
            except StreamCancelled as e:
                logger.info(f"Reply from {provider.id} stopped by user")
                turn = ConversationTurn(role=Role.ASSISTANT, text=e.partial_text)
            except asyncio.CancelledError:
                # Torn down mid-stream: record what arrived
                logger.info(f"Reply from {provider.id} cancelled")
                self._history.append(
                    ConversationTurn(role=Role.ASSISTANT, text=self.in_progress or "")
                )
                raise
            except Exception as e:
                logger.error(f"Chat turn failed for {provider.id}: {e}")
                turn = ConversationTurn(
                    role=Role.ASSISTANT,
                    text=f"{ERROR_PREFIX}{str(e) or 'request failed'}",
                    is_error=True,
                )
            finally:
                self.in_progress = None

            self._history.append(turn)
            return turn
