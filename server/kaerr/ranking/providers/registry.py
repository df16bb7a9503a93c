"""Keyed factories for pluggable components (scoring engines, path sources)."""
from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Dict, Generic, NamedTuple, Optional, Tuple, TypeVar

P = TypeVar("P")


class Resolved(NamedTuple):
    """Result of :meth:`ProviderRegistry.create`.

    ``fallback_from`` holds the requested key when it was unknown and the
    default had to be used instead, so callers can log it.
    """

    instance: Any
    key: str
    fallback_from: Optional[str]


class ProviderRegistry(Generic[P]):
    """Registry of factories addressable by a canonical key or any alias."""

    def __init__(self, default_key: str):
        default = self._normalize(default_key)
        if default is None:
            raise ValueError("default_key must be a non-empty string")
        self._default_key = default
        self._factories: Dict[str, Callable[..., P]] = {}
        self._canonical: Dict[str, str] = {}

    @property
    def default_key(self) -> str:
        return self._default_key

    def register(
        self,
        key: str,
        *,
        aliases: Sequence[str] | None = None,
    ) -> Callable[[Callable[..., P]], Callable[..., P]]:
        canonical = self._normalize(key)
        if canonical is None:
            raise ValueError("provider key must be a non-empty string")
        names = [canonical, *(self._normalize(alias) for alias in aliases or ())]

        def decorator(factory: Callable[..., P]) -> Callable[..., P]:
            for name in names:
                if name is None:
                    continue
                self._factories[name] = factory
                self._canonical[name] = canonical
            return factory

        return decorator

    def create(self, key: str | None, *args, **kwargs) -> Tuple[P, str, Optional[str]]:
        """Build the provider registered under ``key``.

        An empty key silently selects the default. An unknown key also selects
        the default but reports the requested key as ``fallback_from``.
        """

        requested = self._normalize(key)
        lookup = requested or self._default_key
        fallback_from: str | None = None

        if lookup not in self._factories:
            if lookup != self._default_key:
                fallback_from = lookup
            lookup = self._default_key
            if lookup not in self._factories:
                raise ValueError(
                    f"Default provider '{self._default_key}' is not registered"
                )

        instance = self._factories[lookup](*args, **kwargs)
        return Resolved(instance, self._canonical[lookup], fallback_from)

    @staticmethod
    def _normalize(key: str | None) -> Optional[str]:
        if key is None:
            return None
        return key.strip().lower() or None
