from __future__ import annotations

from collections.abc import Sequence
from inspect import Parameter
from typing import Any


def _describe(value: Any) -> str:
    if isinstance(value, type):
        return value.__qualname__
    return repr(value)


class DIBootError(Exception):
    """Represent a base class for all diboot-specific failures.

    Catch this type when you want to handle any diboot error path without
    matching each concrete exception class individually.
    """


class DIBootInvalidRegistrationError(DIBootError):
    """Signal invalid binding or marking arguments.

    Raised by ``Container.singleton``, ``Container.transient``,
    ``Container.context`` and ``injectable`` when arguments have the wrong
    shape, for example a non-string context key, an unknown lifetime or a
    non-class target.
    """


class DIBootInvalidKeyError(DIBootError):
    """Signal a key that is neither a symbolic name (``str``) nor a class.

    Raised by every binding, lookup and resolution call before anything is
    read or written, so the container state is left unchanged.
    """

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(f"Binding keys must be strings or classes, got {key!r}.")


class DIBootBindingCollisionError(DIBootInvalidRegistrationError):
    """Signal a clash between a plain binding and a contextual group.

    A key holds either a plain binding or a contextual binding group, never
    both. The registration call fails before touching the registry, so the
    existing binding stays intact.
    """

    def __init__(self, key: Any, *, existing: str, requested: str) -> None:
        self.key = key
        self.existing = existing
        self.requested = requested
        msg = (
            f"Cannot add {requested} binding for key {_describe(key)} because it is "
            f"already bound as a {existing} binding."
        )
        super().__init__(msg)


class DIBootBindingNotFoundError(DIBootError):
    """Signal that a symbolic key has no binding at all.

    Typical fix is registering the key with ``singleton``, ``transient`` or
    ``context`` from a service provider's ``register`` hook.
    """

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(f"Binding not found for key: {_describe(key)}")


class DIBootMissingContextError(DIBootError):
    """Represent a base class for contextual resolution failures."""


class DIBootContextKeyRequiredError(DIBootMissingContextError):
    """Signal resolution of a contextual key without a context key."""

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(
            f"Context key must be provided for contextual binding for key: {_describe(key)}",
        )


class DIBootContextBindingNotFoundError(DIBootMissingContextError):
    """Signal a context key that is not registered under a contextual key."""

    def __init__(self, key: Any, context_key: str) -> None:
        self.key = key
        self.context_key = context_key
        super().__init__(
            f"Binding not found for context: {context_key!r} under key: {_describe(key)}",
        )


class DIBootUnresolvableDependencyError(DIBootError):
    """Signal a constructor dependency that automatic construction cannot build.

    Raised for primitive or builtin parameter types (``str``, ``int``,
    ``bool`` and friends) and for parameters without an annotation.

    ``index`` is the parameter position in the owner's ``__init__``
    signature, not counting ``self``; parameters with defaults still count.
    For explicit ``@injectable(dependencies=...)`` it is the list position.

    Typical fixes include binding the owning type explicitly with a factory
    that supplies the value, or changing the parameter to an injectable type.
    """

    def __init__(self, owner: type[Any], index: int, expected: Any) -> None:
        self.owner = owner
        self.index = index
        self.expected = expected
        expected_name = "no type" if expected is Parameter.empty else _describe(expected)
        msg = (
            f"Cannot resolve dependency at index {index} of {owner.__qualname__}: "
            f"expected type {expected_name} is not injectable. "
            f"Bind {owner.__qualname__} explicitly with a factory."
        )
        super().__init__(msg)


class DIBootNotInjectableError(DIBootError):
    """Signal automatic construction of a type that was never marked.

    Unmarked classes are only constructible when their ``__init__`` takes no
    required parameters. Decorate the class with ``@injectable`` to record
    its constructor dependencies. Builtins, abstract classes and protocols
    are never constructed; bind them explicitly.
    """

    def __init__(self, owner: type[Any], reason: str | None = None) -> None:
        self.owner = owner
        if reason is None:
            reason = "is not marked with @injectable and its constructor requires arguments"
        super().__init__(f"{owner.__qualname__} {reason}.")


class DIBootAmbiguousDependencyError(DIBootError):
    """Signal several cached instances matching one dependency type.

    Automatic construction reuses a cached instance whose runtime type
    matches the dependency. When more than one distinct instance matches,
    picking one would be a guess, so construction fails instead.
    """

    def __init__(self, owner: type[Any], expected: type[Any], candidates: Sequence[Any]) -> None:
        self.owner = owner
        self.expected = expected
        self.candidates = tuple(candidates)
        msg = (
            f"Ambiguous dependency {expected.__qualname__} for {owner.__qualname__}: "
            f"{len(self.candidates)} cached instances match."
        )
        super().__init__(msg)


class DIBootCircularDependencyError(DIBootError):
    """Signal a dependency cycle.

    Cycles are configuration errors. ``chain`` holds the keys being built,
    ending with the key that closed the cycle.
    """

    def __init__(self, chain: Sequence[Any]) -> None:
        self.chain = tuple(chain)
        rendered = " -> ".join(_describe(key) for key in self.chain)
        super().__init__(f"Circular dependency detected: {rendered}")


class DIBootBootstrapError(DIBootError):
    """Represent a base class for application bootstrap failures."""


class DIBootProvidersFileNotFoundError(DIBootBootstrapError):
    """Signal that the providers module is missing on disk."""


class DIBootInvalidProvidersFileError(DIBootBootstrapError):
    """Signal a providers module without a valid ``PROVIDERS`` sequence."""


class DIBootInvalidProviderError(DIBootBootstrapError):
    """Signal a provider entry that is not a ``ServiceProvider`` subclass."""


class DIBootConfigDirectoryNotFoundError(DIBootBootstrapError):
    """Signal that the configuration directory does not exist."""


class DIBootAsyncProviderInSyncContextError(DIBootBootstrapError):
    """Signal an ``async`` provider hook run by the synchronous ``boot``.

    Typical fix is switching to ``await application.aboot()``.
    """


class DIBootApplicationAlreadyBootedError(DIBootBootstrapError):
    """Signal a second ``boot``/``aboot`` call on the same application."""
