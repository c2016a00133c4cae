from __future__ import annotations

import inspect
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from typing_extensions import Self

from diboot._internal.module_loader import load_module_from_path
from diboot.container import Container
from diboot.exceptions import (
    DIBootApplicationAlreadyBootedError,
    DIBootAsyncProviderInSyncContextError,
    DIBootInvalidProviderError,
    DIBootInvalidProvidersFileError,
    DIBootProvidersFileNotFoundError,
)
from diboot.provider import APPLICATION_KEY, BASE_PATH_KEY, ServiceProvider
from diboot.providers.config import ConfigServiceProvider

logger = logging.getLogger(__name__)

DEFAULT_PROVIDERS_MODULE = Path("app/bootstrap/providers.py")
"""Providers module location, relative to the application base path."""

_PROVIDERS_ATTRIBUTE = "PROVIDERS"


class Application:
    """Own a container and run service providers against it.

    Booting instantiates every provider with the shared container, calls
    ``register`` on all of them, then ``boot`` on all of them. Provider
    classes come from, in order: ``default_providers`` (the config provider
    unless overridden), the ``providers`` argument, and the ``PROVIDERS``
    list of the providers module on disk.

    Examples:
        .. code-block:: python

            # app/bootstrap/providers.py
            from myapp.providers import MailServiceProvider

            PROVIDERS = [MailServiceProvider]

            application = Application(base_path=project_root).boot()
            mailer = application.resolve("mailer")

    """

    default_providers: tuple[type[ServiceProvider], ...] = (ConfigServiceProvider,)

    def __init__(
        self,
        base_path: str | Path | None = None,
        *,
        container: Container | None = None,
        providers: Sequence[type[ServiceProvider]] = (),
        default_providers: Sequence[type[ServiceProvider]] | None = None,
        providers_module: str | Path = DEFAULT_PROVIDERS_MODULE,
        load_providers_module: bool = True,
    ) -> None:
        """Initialize an application that has not booted yet.

        Args:
            base_path: Application root. Defaults to the working directory.
            container: Container to populate. A new one is created when omitted.
            providers: Provider classes registered after the default ones.
            default_providers: Replaces the class-level default providers.
                Pass an empty sequence to skip the config provider.
            providers_module: Providers module path relative to ``base_path``.
            load_providers_module: Set to ``False`` to skip reading the
                providers module from disk.

        """
        self.base_path = Path(base_path) if base_path is not None else Path.cwd()
        self.container = container if container is not None else Container()
        if default_providers is None:
            default_providers = self.default_providers
        self.providers: list[type[ServiceProvider]] = [*default_providers, *providers]
        self.providers_module = Path(providers_module)
        self.load_providers_module = load_providers_module
        self.booted_providers: list[ServiceProvider] = []
        self._booted = False

    @property
    def booted(self) -> bool:
        return self._booted

    def resolve(self, key: Any, context_key: str | None = None) -> Any:
        """Resolve from the application container; see ``Container.resolve``."""
        return self.container.resolve(key, context_key)

    def boot(self) -> Self:
        """Register and boot every provider synchronously.

        A failed boot leaves the application unbooted, so it can be booted
        again once the cause is fixed.

        Raises:
            DIBootApplicationAlreadyBootedError: If the application already booted.
            DIBootProvidersFileNotFoundError: If the providers module is missing.
            DIBootInvalidProvidersFileError: If the providers module is malformed.
            DIBootInvalidProviderError: If an entry is not a ``ServiceProvider`` subclass.
            DIBootAsyncProviderInSyncContextError: If a hook is asynchronous.

        """
        self._ensure_not_booted()
        logger.info("Bootstrapping application...")
        self._booted = True
        try:
            instances = self._instantiate_providers()
            for provider in instances:
                self._run_hook_sync(provider, "register")
            for provider in instances:
                self._run_hook_sync(provider, "boot")
        except Exception:
            self._booted = False
            self.booted_providers = []
            logger.exception("Error during bootstrap")
            raise

        logger.info("Application bootstrapped successfully.")
        return self

    async def aboot(self) -> Self:
        """Register and boot every provider, awaiting asynchronous hooks.

        A failed boot leaves the application unbooted, so it can be booted
        again once the cause is fixed.

        Raises:
            DIBootApplicationAlreadyBootedError: If the application already booted.
            DIBootProvidersFileNotFoundError: If the providers module is missing.
            DIBootInvalidProvidersFileError: If the providers module is malformed.
            DIBootInvalidProviderError: If an entry is not a ``ServiceProvider`` subclass.

        """
        self._ensure_not_booted()
        logger.info("Bootstrapping application...")
        self._booted = True
        try:
            instances = self._instantiate_providers()
            for provider in instances:
                await self._run_hook_async(provider, "register")
            for provider in instances:
                await self._run_hook_async(provider, "boot")
        except Exception:
            self._booted = False
            self.booted_providers = []
            logger.exception("Error during bootstrap")
            raise

        logger.info("Application bootstrapped successfully.")
        return self

    def _ensure_not_booted(self) -> None:
        if self._booted:
            msg = "Application has already been booted."
            raise DIBootApplicationAlreadyBootedError(msg)

    def _instantiate_providers(self) -> list[ServiceProvider]:
        providers = list(self.providers)
        if self.load_providers_module:
            providers.extend(self._load_providers_module())

        for provider_cls in providers:
            if not (inspect.isclass(provider_cls) and issubclass(provider_cls, ServiceProvider)):
                msg = (
                    f"Invalid provider {provider_cls!r}: expected a subclass of ServiceProvider."
                )
                raise DIBootInvalidProviderError(msg)

        self.container.singleton(APPLICATION_KEY, self)
        self.container.singleton(Application, self)
        if type(self) is not Application:
            self.container.singleton(type(self), self)
        self.container.singleton(BASE_PATH_KEY, self.base_path)

        self.booted_providers = [provider_cls(self.container) for provider_cls in providers]
        logger.debug(
            "Instantiated providers: %s",
            ", ".join(type(provider).__qualname__ for provider in self.booted_providers),
        )
        return self.booted_providers

    def _load_providers_module(self) -> list[type[ServiceProvider]]:
        path = (self.base_path / self.providers_module).resolve()
        if not path.is_file():
            msg = (
                f"Providers file not found at: {path}. Ensure the file exists and defines "
                f"{_PROVIDERS_ATTRIBUTE}."
            )
            raise DIBootProvidersFileNotFoundError(msg)

        try:
            module = load_module_from_path(path, "diboot_bootstrap_providers")
        except Exception as exc:
            msg = f"Invalid providers file {path}: {exc}"
            raise DIBootInvalidProvidersFileError(msg) from exc

        providers = getattr(module, _PROVIDERS_ATTRIBUTE, None)
        if not isinstance(providers, (list, tuple)):
            msg = (
                f"Invalid providers file {path}: expected {_PROVIDERS_ATTRIBUTE} to be a list "
                "of ServiceProvider subclasses."
            )
            raise DIBootInvalidProvidersFileError(msg)
        return list(providers)

    def _run_hook_sync(self, provider: ServiceProvider, hook: str) -> None:
        result = getattr(provider, hook)()
        if inspect.isawaitable(result):
            if inspect.iscoroutine(result):
                result.close()
            msg = (
                f"{type(provider).__qualname__}.{hook} is asynchronous; "
                "use 'await application.aboot()' instead of 'boot()'."
            )
            raise DIBootAsyncProviderInSyncContextError(msg)

    async def _run_hook_async(self, provider: ServiceProvider, hook: str) -> None:
        result = getattr(provider, hook)()
        if inspect.isawaitable(result):
            await result


__all__ = ["DEFAULT_PROVIDERS_MODULE", "Application"]
