from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias, cast

BindingKey: TypeAlias = str | type[Any]
"""A symbolic name or a class used to address a binding."""

Resolver: TypeAlias = Any
"""A zero-argument factory, a class built by injection, or a pre-built value."""

EffectiveKey: TypeAlias = BindingKey | tuple[str, str]
"""The instance cache key: a plain key, or ``(key, context_key)`` for contextual singletons."""


class Lifetime(str, Enum):
    """Define cache behavior for resolved values."""

    SINGLETON = "singleton"
    """Build once on first resolution and reuse for the container lifetime."""

    TRANSIENT = "transient"
    """Disable caching and build a new value for every resolution call."""


@dataclass(frozen=True, slots=True)
class PlainBinding:
    """Describe how a single key is produced and cached."""

    key: BindingKey
    resolver: Resolver
    lifetime: Lifetime


@dataclass(frozen=True, slots=True)
class ContextualEntry:
    """One resolver inside a contextual binding group."""

    context_key: str
    resolver: Resolver
    lifetime: Lifetime


@dataclass(slots=True)
class ContextualBindingGroup:
    """Map context keys to resolvers registered under one symbolic key."""

    key: str
    entries: dict[str, ContextualEntry] = field(default_factory=dict)

    def get(self, context_key: str) -> ContextualEntry | None:
        return self.entries.get(context_key)

    def add(self, entry: ContextualEntry) -> None:
        self.entries[entry.context_key] = entry


Binding: TypeAlias = PlainBinding | ContextualBindingGroup
"""A key is bound either plainly or as a contextual group, never both."""


def binding_kind(binding: Binding) -> str:
    """Return a human-readable name for the binding variant."""
    if isinstance(binding, ContextualBindingGroup):
        return "contextual"
    return "non-contextual"


class BindingsRegistry:
    """Store bindings indexed by key.

    Plain keys are unique: adding a plain binding for an existing plain key
    replaces the previous one. The registry does not check for plain versus
    contextual clashes; the container does that before mutating.
    """

    def __init__(self) -> None:
        self._bindings: dict[BindingKey, Binding] = {}

    def find(self, key: BindingKey) -> Binding | None:
        """Get a binding by key, if it exists.

        Args:
            key: Symbolic name or class to look up.

        """
        return self._bindings.get(key)

    def set_plain(self, binding: PlainBinding) -> PlainBinding | None:
        """Install a plain binding and return the one it replaced.

        Args:
            binding: Plain binding to register.

        """
        previous = self._bindings.get(binding.key)
        self._bindings[binding.key] = binding
        return previous if isinstance(previous, PlainBinding) else None

    def ensure_group(self, key: str) -> ContextualBindingGroup:
        """Return the contextual group for ``key``, creating an empty one if unbound.

        Args:
            key: Symbolic name holding (or about to hold) contextual entries.

        """
        group = self._bindings.get(key)
        if group is None:
            group = ContextualBindingGroup(key=key)
            self._bindings[key] = group
        return cast("ContextualBindingGroup", group)

    def __contains__(self, key: object) -> bool:
        return key in self._bindings

    def __iter__(self) -> Iterator[BindingKey]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)
