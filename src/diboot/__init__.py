from diboot.application import Application
from diboot.bindings import Lifetime
from diboot.container import Container
from diboot.exceptions import (
    DIBootAmbiguousDependencyError,
    DIBootApplicationAlreadyBootedError,
    DIBootAsyncProviderInSyncContextError,
    DIBootBindingCollisionError,
    DIBootBindingNotFoundError,
    DIBootBootstrapError,
    DIBootCircularDependencyError,
    DIBootConfigDirectoryNotFoundError,
    DIBootContextBindingNotFoundError,
    DIBootContextKeyRequiredError,
    DIBootError,
    DIBootInvalidProviderError,
    DIBootInvalidKeyError,
    DIBootInvalidProvidersFileError,
    DIBootInvalidRegistrationError,
    DIBootMissingContextError,
    DIBootNotInjectableError,
    DIBootProvidersFileNotFoundError,
    DIBootUnresolvableDependencyError,
)
from diboot.injectable import get_capability_record, injectable, is_injectable
from diboot.lock_mode import LockMode
from diboot.provider import ServiceProvider
from diboot.providers.config import CONFIG_KEY, ConfigServiceProvider

__all__ = [
    "CONFIG_KEY",
    "Application",
    "ConfigServiceProvider",
    "Container",
    "DIBootAmbiguousDependencyError",
    "DIBootApplicationAlreadyBootedError",
    "DIBootAsyncProviderInSyncContextError",
    "DIBootBindingCollisionError",
    "DIBootBindingNotFoundError",
    "DIBootBootstrapError",
    "DIBootCircularDependencyError",
    "DIBootConfigDirectoryNotFoundError",
    "DIBootContextBindingNotFoundError",
    "DIBootContextKeyRequiredError",
    "DIBootError",
    "DIBootInvalidProviderError",
    "DIBootInvalidKeyError",
    "DIBootInvalidProvidersFileError",
    "DIBootInvalidRegistrationError",
    "DIBootMissingContextError",
    "DIBootNotInjectableError",
    "DIBootProvidersFileNotFoundError",
    "DIBootUnresolvableDependencyError",
    "Lifetime",
    "LockMode",
    "ServiceProvider",
    "get_capability_record",
    "injectable",
    "is_injectable",
]
