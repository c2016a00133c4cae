from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from diboot.container import Container

APPLICATION_KEY = "app"
"""Symbolic key the booting application binds itself under."""

BASE_PATH_KEY = "base_path"
"""Symbolic key holding the application base directory as a ``pathlib.Path``."""


class ServiceProvider(ABC):
    """Install bindings into a shared container in two phases.

    The application calls ``register`` on every provider first, then
    ``boot`` on every provider, so ``boot`` may resolve anything any
    provider registered. Both hooks may be plain methods or ``async def``
    coroutines; the latter require ``Application.aboot``.

    Examples:
        .. code-block:: python

            class MailServiceProvider(ServiceProvider):
                def register(self) -> None:
                    self.container.singleton("mailer", lambda: SmtpMailer(host="localhost"))

                def boot(self) -> None:
                    self.container.resolve("mailer").connect()

    """

    def __init__(self, container: Container) -> None:
        self.container = container

    @abstractmethod
    def register(self) -> None | Awaitable[None]:
        """Register bindings with the container."""

    def boot(self) -> None | Awaitable[None]:  # noqa: B027
        """Run setup after every provider has registered."""
        return None


__all__ = ["APPLICATION_KEY", "BASE_PATH_KEY", "ServiceProvider"]
