from __future__ import annotations

import logging
import threading
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, TypeVar, overload

from diboot._internal.constructibility import ConstructibleTypePolicy, is_runtime_class
from diboot._internal.integrations.pydantic_settings import is_pydantic_settings_subclass
from diboot.bindings import (
    BindingKey,
    BindingsRegistry,
    ContextualBindingGroup,
    ContextualEntry,
    EffectiveKey,
    Lifetime,
    PlainBinding,
    Resolver,
    binding_kind,
)
from diboot.exceptions import (
    DIBootAmbiguousDependencyError,
    DIBootBindingCollisionError,
    DIBootBindingNotFoundError,
    DIBootCircularDependencyError,
    DIBootContextBindingNotFoundError,
    DIBootContextKeyRequiredError,
    DIBootInvalidKeyError,
    DIBootInvalidRegistrationError,
    DIBootNotInjectableError,
    DIBootUnresolvableDependencyError,
)
from diboot.injectable import resolve_forward_references
from diboot.lock_mode import LockMode

T = TypeVar("T")

logger = logging.getLogger(__name__)
_MISSING: Any = object()

# Keys under construction in the current thread or task, tagged with the owning container id.
_construction_chain: ContextVar[tuple[tuple[int, EffectiveKey], ...]] = ContextVar(
    "diboot_construction_chain",
    default=(),
)


class Container:
    """Store bindings and build the values they describe.

    Keys are either symbolic names (``str``) or classes. Symbolic keys must
    be bound before they can be resolved. Classes resolve through automatic
    construction unless a plain binding exists for them: the container reads
    the class's ``@injectable`` capability record, resolves every recorded
    dependency type and calls the constructor with the results.

    Singleton values are cached per effective key (the plain key, or the
    ``(key, context_key)`` pair for contextual bindings). Transient values
    are built on every call and never cached.
    """

    def __init__(self, *, lock_mode: LockMode = LockMode.NONE) -> None:
        """Initialize an empty container.

        Args:
            lock_mode: ``LockMode.THREAD`` guards first-time singleton
                construction with per-key re-entrant locks, so concurrent
                callers build each singleton at most once. The default
                ``LockMode.NONE`` suits single-threaded use.

        """
        self._lock_mode = lock_mode
        self._bindings = BindingsRegistry()
        self._instances: dict[EffectiveKey, Any] = {}
        self._constructible_type_policy = ConstructibleTypePolicy()
        self._locks: dict[EffectiveKey, threading.RLock] = {}
        self._lock_owners: dict[EffectiveKey, int] = {}
        self._waiting_for: dict[int, EffectiveKey] = {}
        self._locks_guard = threading.Lock()

        # Dependencies typed as the container resolve to the container itself.
        self._instances[Container] = self
        self._instances[type(self)] = self

    # region Registration Methods
    def singleton(self, key: BindingKey, resolver: Resolver) -> None:
        """Bind ``key`` to a resolver built once and cached.

        Re-binding a plain key overrides the previous binding and discards
        any value already cached for it.

        Args:
            key: Symbolic name or class to bind.
            resolver: Zero-argument factory, class built by injection, or a
                pre-built value returned as-is.

        Raises:
            DIBootBindingCollisionError: If ``key`` holds contextual bindings.
            DIBootInvalidKeyError: If ``key`` is neither a string nor a class.

        Examples:
            .. code-block:: python

                container.singleton("email", lambda: EmailClient(host="localhost"))
                container.singleton(Mailer, SmtpMailer)

        """
        self._bind_plain(key, resolver, Lifetime.SINGLETON)

    def transient(self, key: BindingKey, resolver: Resolver) -> None:
        """Bind ``key`` to a resolver invoked on every resolution.

        Args:
            key: Symbolic name or class to bind.
            resolver: Zero-argument factory, class built by injection, or a
                pre-built value returned as-is.

        Raises:
            DIBootBindingCollisionError: If ``key`` holds contextual bindings.
            DIBootInvalidKeyError: If ``key`` is neither a string nor a class.

        """
        self._bind_plain(key, resolver, Lifetime.TRANSIENT)

    def context(
        self,
        key: str,
        context_key: str,
        resolver: Resolver,
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> None:
        """Bind one implementation of ``key`` for a given context.

        The first contextual binding turns ``key`` into a contextual group.
        Resolving it afterwards requires a context key.

        Args:
            key: Symbolic name shared by all contexts.
            context_key: Name of the context this resolver serves.
            resolver: Zero-argument factory, class built by injection, or a
                pre-built value returned as-is.
            lifetime: Caching for this entry. Singleton entries are cached
                per ``(key, context_key)`` pair.

        Raises:
            DIBootBindingCollisionError: If ``key`` already holds a plain binding.
            DIBootInvalidRegistrationError: If a key is not a string or the
                lifetime is unknown.

        Examples:
            .. code-block:: python

                container.context("storage", "local", LocalStorage)
                container.context("storage", "s3", lambda: S3Storage(bucket="media"))

                storage = container.resolve("storage", "s3")

        """
        if not isinstance(key, str):
            msg = f"Contextual bindings require a string key, got {key!r}."
            raise DIBootInvalidRegistrationError(msg)
        if not isinstance(context_key, str):
            msg = f"Context keys must be strings, got {context_key!r}."
            raise DIBootInvalidRegistrationError(msg)
        lifetime = self._normalize_lifetime(lifetime)

        existing = self._bindings.find(key)
        if isinstance(existing, PlainBinding):
            raise DIBootBindingCollisionError(
                key,
                existing=binding_kind(existing),
                requested="contextual",
            )

        group = self._bindings.ensure_group(key)
        group.add(ContextualEntry(context_key=context_key, resolver=resolver, lifetime=lifetime))
        self._instances.pop((key, context_key), None)
        logger.debug("Bound %r for context %r as %s", key, context_key, lifetime.value)

    def _bind_plain(self, key: BindingKey, resolver: Resolver, lifetime: Lifetime) -> None:
        self._check_key(key)

        existing = self._bindings.find(key)
        if isinstance(existing, ContextualBindingGroup):
            raise DIBootBindingCollisionError(
                key,
                existing=binding_kind(existing),
                requested=lifetime.value,
            )

        previous = self._bindings.set_plain(PlainBinding(key=key, resolver=resolver, lifetime=lifetime))
        discarded = self._instances.pop(key, _MISSING) is not _MISSING
        if previous is not None or discarded:
            logger.debug(
                "Rebound %r as %s (cached value discarded: %s)",
                key,
                lifetime.value,
                discarded,
            )
        else:
            logger.debug("Bound %r as %s", key, lifetime.value)

    def _check_key(self, key: object) -> None:
        if not (isinstance(key, str) or is_runtime_class(key)):
            raise DIBootInvalidKeyError(key)

    def _normalize_lifetime(self, lifetime: Lifetime | str) -> Lifetime:
        try:
            return Lifetime(lifetime)
        except ValueError:
            msg = f"Unknown lifetime {lifetime!r}."
            raise DIBootInvalidRegistrationError(msg) from None

    # endregion Registration Methods

    # region Resolution
    def has(self, key: BindingKey) -> bool:
        """Report whether ``key`` has a plain or contextual binding.

        Nothing is constructed. Classes that would resolve through automatic
        construction without a binding report ``False``.

        Raises:
            DIBootInvalidKeyError: If ``key`` is neither a string nor a class.

        """
        self._check_key(key)
        return key in self._bindings

    def __contains__(self, key: object) -> bool:
        return self.has(key)  # type: ignore[arg-type]

    @overload
    def resolve(self, key: type[T], context_key: None = None) -> T: ...

    @overload
    def resolve(self, key: str, context_key: str | None = None) -> Any: ...

    def resolve(self, key: Any, context_key: str | None = None) -> Any:
        """Resolve a value by symbolic key or class.

        Args:
            key: Symbolic name or class to resolve.
            context_key: Context to pick when ``key`` holds contextual bindings.
                Ignored for plain bindings. Classes have no contextual
                bindings, so passing one with a class always fails.

        Returns:
            The cached singleton, or a freshly built value.

        Raises:
            DIBootInvalidKeyError: If ``key`` is neither a string nor a class.
            DIBootBindingNotFoundError: If a symbolic key is not bound.
            DIBootContextKeyRequiredError: If a contextual key is resolved
                without ``context_key``.
            DIBootContextBindingNotFoundError: If ``context_key`` is not bound
                under ``key``.
            DIBootUnresolvableDependencyError: If automatic construction meets
                a primitive or untyped constructor parameter.
            DIBootNotInjectableError: If a class cannot be constructed.
            DIBootAmbiguousDependencyError: If several cached values match a
                dependency type.
            DIBootCircularDependencyError: If construction re-enters a key that
                is still being built.

        Examples:
            .. code-block:: python

                container.singleton("email", lambda: {"sent": 0})
                assert container.resolve("email") is container.resolve("email")

                newsletter = container.resolve(Newsletter)

        """
        if is_runtime_class(key):
            if context_key is not None:
                raise DIBootContextBindingNotFoundError(key, context_key)
            return self._resolve_type(key)

        self._check_key(key)

        binding = self._bindings.find(key)
        if binding is None:
            raise DIBootBindingNotFoundError(key)

        if isinstance(binding, ContextualBindingGroup):
            if context_key is None:
                raise DIBootContextKeyRequiredError(key)
            entry = binding.get(context_key)
            if entry is None:
                raise DIBootContextBindingNotFoundError(key, context_key)
            return self._provide((key, context_key), entry.resolver, entry.lifetime)

        return self._provide(key, binding.resolver, binding.lifetime)

    def _resolve_type(self, cls: type[Any]) -> Any:
        instance = self._instances.get(cls, _MISSING)
        if instance is not _MISSING:
            return instance

        binding = self._bindings.find(cls)
        if isinstance(binding, PlainBinding):
            return self._provide(cls, binding.resolver, binding.lifetime)
        return self._provide(cls, cls, Lifetime.SINGLETON)

    def _provide(self, effective_key: EffectiveKey, resolver: Resolver, lifetime: Lifetime) -> Any:
        if lifetime is Lifetime.TRANSIENT:
            with self._constructing(effective_key):
                return self._invoke(resolver)

        instance = self._instances.get(effective_key, _MISSING)
        if instance is not _MISSING:
            return instance

        with self._construction_lock(effective_key):
            instance = self._instances.get(effective_key, _MISSING)
            if instance is not _MISSING:
                return instance
            with self._constructing(effective_key):
                instance = self._invoke(resolver)
            self._instances[effective_key] = instance
            logger.debug("Cached singleton for %r", effective_key)
            return instance

    def _invoke(self, resolver: Resolver) -> Any:
        if is_runtime_class(resolver):
            return self._construct(resolver)
        if callable(resolver):
            return resolver()
        return resolver

    # endregion Resolution

    # region Automatic Construction
    def _construct(self, cls: type[Any]) -> Any:
        policy = self._constructible_type_policy
        if not policy.is_constructible(cls):
            raise DIBootNotInjectableError(
                cls,
                reason="cannot be constructed automatically; bind it explicitly",
            )

        record = resolve_forward_references(cls)
        if record is None:
            if is_pydantic_settings_subclass(cls):
                logger.debug("Constructing settings model %s from the environment", cls.__qualname__)
                return cls()
            if policy.has_required_parameters(cls):
                raise DIBootNotInjectableError(cls)
            return cls()

        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for parameter in record.parameters:
            value = self._resolve_dependency(cls, parameter.position, parameter.annotation)
            if parameter.keyword_only:
                kwargs[parameter.name] = value
            else:
                args.append(value)

        logger.debug("Constructing %s with %d dependencies", cls.__qualname__, len(record.parameters))
        return cls(*args, **kwargs)

    def _resolve_dependency(self, owner: type[Any], index: int, dependency: Any) -> Any:
        if is_runtime_class(dependency) and (
            isinstance(self._bindings.find(dependency), PlainBinding)
            or dependency in self._instances
        ):
            return self._resolve_type(dependency)

        if self._constructible_type_policy.is_primitive(dependency) or not is_runtime_class(
            dependency,
        ):
            raise DIBootUnresolvableDependencyError(owner, index, dependency)

        cached = self._find_cached_instance(owner, dependency)
        if cached is not _MISSING:
            return cached
        return self._resolve_type(dependency)

    def _find_cached_instance(self, owner: type[Any], dependency: type[Any]) -> Any:
        """Find a cached value whose runtime type matches ``dependency``.

        Exact type matches win over subclass matches. Several distinct
        values in the winning tier are reported as ambiguous.
        """
        supports_isinstance = not getattr(dependency, "_is_protocol", False) or getattr(
            dependency,
            "_is_runtime_protocol",
            False,
        )
        exact: list[Any] = []
        compatible: list[Any] = []
        seen: set[int] = set()
        for instance in list(self._instances.values()):
            if id(instance) in seen:
                continue
            seen.add(id(instance))
            if type(instance) is dependency:
                exact.append(instance)
            elif supports_isinstance and isinstance(instance, dependency):
                compatible.append(instance)

        for matches in (exact, compatible):
            if len(matches) == 1:
                logger.debug(
                    "Reusing cached %s for %s",
                    type(matches[0]).__qualname__,
                    owner.__qualname__,
                )
                return matches[0]
            if matches:
                raise DIBootAmbiguousDependencyError(owner, dependency, matches)
        return _MISSING

    # endregion Automatic Construction

    # region Construction Guards
    @contextmanager
    def _constructing(self, effective_key: EffectiveKey) -> Generator[None, None, None]:
        chain = _construction_chain.get()
        marker = (id(self), effective_key)
        if marker in chain:
            keys = [key for owner_id, key in chain if owner_id == id(self)]
            raise DIBootCircularDependencyError([*keys[keys.index(effective_key) :], effective_key])

        token = _construction_chain.set((*chain, marker))
        try:
            yield
        finally:
            _construction_chain.reset(token)

    @contextmanager
    def _construction_lock(self, effective_key: EffectiveKey) -> Generator[None, None, None]:
        if self._lock_mode is LockMode.NONE:
            yield
            return

        thread_id = threading.get_ident()
        with self._locks_guard:
            lock = self._locks.get(effective_key)
            if lock is None:
                lock = threading.RLock()
                self._locks[effective_key] = lock
            reentrant = self._lock_owners.get(effective_key) == thread_id
            if not reentrant:
                self._check_lock_cycle(effective_key, thread_id)
                self._waiting_for[thread_id] = effective_key

        with lock:
            if reentrant:
                yield
                return

            with self._locks_guard:
                del self._waiting_for[thread_id]
                self._lock_owners[effective_key] = thread_id
            try:
                yield
            finally:
                with self._locks_guard:
                    del self._lock_owners[effective_key]

    def _check_lock_cycle(self, effective_key: EffectiveKey, thread_id: int) -> None:
        """Fail instead of blocking when waiting would close a cycle across threads.

        Follows "key is held by thread, thread waits for key" edges starting
        at ``effective_key``. Reaching a key held by the calling thread means
        every thread on the path would wait forever. Must be called with
        ``_locks_guard`` held.
        """
        path = [effective_key]
        seen: set[int] = set()
        owner = self._lock_owners.get(effective_key)
        while owner is not None and owner != thread_id and owner not in seen:
            seen.add(owner)
            wanted = self._waiting_for.get(owner)
            if wanted is None:
                return
            path.append(wanted)
            owner = self._lock_owners.get(wanted)

        if owner == thread_id:
            raise DIBootCircularDependencyError([path[-1], *path])

    # endregion Construction Guards


__all__ = ["Container"]
