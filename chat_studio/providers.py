"""
Provider registry - built-in defaults merged with user edits.

A ProviderRegistry is an immutable snapshot. Edits return a new registry,
so handlers and tests can build arbitrary provider sets without touching
the persisted file.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Iterator, Optional

from pydantic import ValidationError

from chat_studio.config import ProviderDescriptor, ProviderKind, get_providers_file

logger = logging.getLogger(__name__)


DEFAULT_PROVIDERS: tuple[ProviderDescriptor, ...] = (
    ProviderDescriptor(
        id="gemini-flash",
        name="Gemini 2.5 Flash (built-in)",
        kind=ProviderKind.MANAGED,
        model_id="gemini-2.5-flash",
        is_system=True,
    ),
    ProviderDescriptor(
        id="gemini-pro",
        name="Gemini 3.0 Pro (built-in)",
        kind=ProviderKind.MANAGED,
        model_id="gemini-3-pro-preview",
        is_system=True,
    ),
    ProviderDescriptor(
        id="deepseek-chat",
        name="DeepSeek V3",
        kind=ProviderKind.OPENAI_COMPATIBLE,
        base_url="https://api.deepseek.com",
        model_id="deepseek-chat",
    ),
    ProviderDescriptor(
        id="kimi-8k",
        name="Kimi / Moonshot",
        kind=ProviderKind.OPENAI_COMPATIBLE,
        base_url="https://api.moonshot.cn/v1",
        model_id="moonshot-v1-8k",
    ),
)


class ProviderRegistry:
    """Ordered, immutable collection of providers keyed by id."""

    def __init__(self, providers: Iterable[ProviderDescriptor] = DEFAULT_PROVIDERS):
        self._providers: tuple[ProviderDescriptor, ...] = tuple(providers)
        if not self._providers:
            raise ValueError("ProviderRegistry needs at least one provider")

    def __iter__(self) -> Iterator[ProviderDescriptor]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    @property
    def providers(self) -> tuple[ProviderDescriptor, ...]:
        return self._providers

    def ids(self) -> list[str]:
        return [p.id for p in self._providers]

    def get(self, provider_id: str) -> Optional[ProviderDescriptor]:
        for provider in self._providers:
            if provider.id == provider_id:
                return provider
        return None

    def resolve(self, provider_id: Optional[str]) -> ProviderDescriptor:
        """Return the provider with this id, or the first provider."""
        if provider_id:
            provider = self.get(provider_id)
            if provider is not None:
                return provider
        return self._providers[0]

    def choices(self) -> list[tuple[str, str]]:
        """(label, id) pairs for UI dropdowns."""
        return [(p.name, p.id) for p in self._providers]

    # ─────────────────────────────────────────────────────────────────
    # EDITS (return new registries)
    # ─────────────────────────────────────────────────────────────────

    def upsert(self, provider: ProviderDescriptor) -> "ProviderRegistry":
        """Replace the provider with the same id, or append it."""
        if self.get(provider.id) is None:
            return ProviderRegistry(self._providers + (provider,))
        return ProviderRegistry(
            provider if p.id == provider.id else p for p in self._providers
        )

    def remove(self, provider_id: str) -> "ProviderRegistry":
        existing = self.get(provider_id)
        if existing is None:
            raise KeyError(provider_id)
        if existing.is_system:
            raise ValueError(f"Built-in provider '{existing.name}' cannot be removed")
        return ProviderRegistry(p for p in self._providers if p.id != provider_id)

    # ─────────────────────────────────────────────────────────────────
    # PERSISTENCE SHAPE
    # ─────────────────────────────────────────────────────────────────

    @classmethod
    def merged_with_saved(
        cls,
        saved: Iterable[ProviderDescriptor],
        defaults: Iterable[ProviderDescriptor] = DEFAULT_PROVIDERS,
    ) -> "ProviderRegistry":
        """
        Merge persisted providers onto the built-in defaults.

        - Unknown ids are appended.
        - A saved entry replaces a non-system default with the same id.
        - System defaults are kept, but pick up a saved non-empty api_key.
        """
        merged = list(defaults)
        for entry in saved:
            idx = next((i for i, p in enumerate(merged) if p.id == entry.id), None)
            if idx is None:
                merged.append(entry)
            elif not merged[idx].is_system:
                merged[idx] = entry
            elif entry.api_key:
                merged[idx] = merged[idx].model_copy(update={"api_key": entry.api_key})
        return cls(merged)

    def to_storage(self) -> list[dict]:
        """Providers worth persisting: user-added ones and anything with a user key."""
        return [
            p.model_dump(mode="json")
            for p in self._providers
            if not p.is_system or p.kind == ProviderKind.OPENAI_COMPATIBLE
        ]


def load_providers(path: Optional[Path] = None) -> ProviderRegistry:
    """Load the persisted provider list and merge it onto the defaults."""
    path = Path(path) if path else get_providers_file()
    if not path.exists():
        return ProviderRegistry()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, list):
            raise ValueError("expected a JSON list")
        saved = [ProviderDescriptor.model_validate(item) for item in raw]
    except (OSError, ValueError, ValidationError) as e:
        logger.warning(f"Ignoring unreadable provider file {path}: {e}")
        return ProviderRegistry()

    return ProviderRegistry.merged_with_saved(saved)


def save_providers(registry: ProviderRegistry, path: Optional[Path] = None) -> Path:
    """Write the persistable part of registry to disk. Returns the path written."""
    path = Path(path) if path else get_providers_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(registry.to_storage(), indent=2), encoding="utf-8")
    return path
