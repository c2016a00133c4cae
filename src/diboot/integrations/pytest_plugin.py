from __future__ import annotations

import pytest

from diboot.application import Application
from diboot.container import Container
from diboot.provider import ServiceProvider


@pytest.fixture()
def diboot_container() -> Container:
    """Create a per-test container.

    The fixture is function-scoped, so bindings are isolated between tests.
    Override it to pre-populate bindings or change the lock mode.

    Returns:
        A new ``Container`` instance.

    """
    return Container()


@pytest.fixture()
def diboot_providers() -> list[type[ServiceProvider]]:
    """Provider classes booted by ``diboot_application``.

    Override this fixture in your test suite to supply providers.
    """
    return []


@pytest.fixture()
def diboot_application(
    tmp_path_factory: pytest.TempPathFactory,
    diboot_container: Container,
    diboot_providers: list[type[ServiceProvider]],
) -> Application:
    """Boot an application over ``diboot_container`` and ``diboot_providers``.

    Nothing is read from disk: the config provider and the providers module
    are skipped, and the base path is a fresh temporary directory.

    Returns:
        The booted ``Application``.

    """
    application = Application(
        base_path=tmp_path_factory.mktemp("diboot_app"),
        container=diboot_container,
        providers=diboot_providers,
        default_providers=(),
        load_providers_module=False,
    )
    return application.boot()
